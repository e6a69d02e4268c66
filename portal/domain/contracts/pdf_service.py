"""Contract PDF generation service"""

import base64
import io
import logging
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ...models import Contract

logger = logging.getLogger(__name__)

KOREAN_FONT = "HYSMyeongJo-Medium"
pdfmetrics.registerFont(UnicodeCIDFont(KOREAN_FONT))

PROVIDER_NAME = "주식회사 폴라애드"

ARTICLES = [
    (
        "제3조 서비스 내용 및 범위",
        [
            "을은 갑에게 선택한 패키지에 포함된 광고 대행 서비스를 제공한다.",
            "광고 집행에 필요한 광고비는 갑이 직접 결제하며, 을은 광고 설정 및 리포트 등 제반 서비스를 제공한다.",
            "광고 소재의 제작은 본 서비스에 포함되지 않으며, 갑이 직접 제작하여 을에게 제공해야 한다.",
        ],
    ),
    (
        "제4조 비용 및 결제",
        [
            "갑은 계약 체결 시 총 계약 금액의 100%를 선금으로 결제해야 하며, 결제 완료 후 서비스가 착수된다.",
            "세금계산서는 결제 완료 후 익월 10일 이내에 발행된다.",
        ],
    ),
    (
        "제5조 계약의 해지",
        [
            "갑이 계약 기간 중 해지를 원할 경우, 최소 30일 전에 서면으로 통보해야 한다.",
            "을의 귀책사유로 서비스가 중단될 경우, 해당 기간만큼 서비스 기간을 연장한다.",
        ],
    ),
    (
        "제6조 제작 진행 및 협조 의무",
        [
            "갑은 계약 체결 후 제작에 필요한 자료를 30일 이내에 을에게 제공해야 한다.",
            "시안에 대한 피드백은 시안 전달일로부터 3영업일 이내에 제공해야 한다.",
            "기본 수정 횟수는 3회로 제한되며, 초과 수정 시 회당 50,000원의 추가 비용이 발생한다.",
        ],
    ),
    (
        "제7조 지식재산권",
        [
            "을이 제작한 결과물의 저작권은 최종 대금 완납 시 갑에게 양도된다.",
            "을은 제작 사례로 포트폴리오에 결과물을 활용할 수 있다.",
        ],
    ),
    (
        "제8조 분쟁 해결",
        [
            "본 계약과 관련하여 분쟁이 발생할 경우, 양 당사자는 상호 협의하여 원만히 해결하도록 노력한다.",
            "협의가 이루어지지 않을 경우, 을의 주소지 관할 법원을 전속관할로 한다.",
        ],
    ),
]


def format_won(amount: int) -> str:
    return f"{amount:,}원"


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y년 %m월 %d일") if value else "승인 후 확정"


def _signature_image(data_url: Optional[str]) -> Optional[Image]:
    """Decode the signature pad's PNG data URL into a flowable"""
    if not data_url or "," not in data_url:
        return None
    try:
        raw = base64.b64decode(data_url.split(",", 1)[1])
        return Image(io.BytesIO(raw), width=50 * mm, height=20 * mm)
    except Exception as e:
        logger.warning(f"Could not render client signature: {e}")
        return None


class ContractPDFService:
    """Render a contract from its stored fields"""

    def __init__(self, contract: Contract):
        self.contract = contract
        self.brand_color = colors.HexColor("#1d4ed8")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        contract = self.contract
        logger.info(f"📄 Generating contract PDF for {contract.contract_number}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=18 * mm,
            leftMargin=18 * mm,
            topMargin=18 * mm,
            bottomMargin=18 * mm,
            title=f"광고 대행 서비스 계약서 {contract.contract_number}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ContractTitle",
            parent=styles["Heading1"],
            fontName=KOREAN_FONT,
            fontSize=20,
            textColor=self.brand_color,
            alignment=1,
            spaceAfter=6,
        )
        heading_style = ParagraphStyle(
            "ContractHeading",
            parent=styles["Heading2"],
            fontName=KOREAN_FONT,
            fontSize=12,
            textColor=self.dark_gray,
            spaceBefore=14,
            spaceAfter=6,
        )
        body_style = ParagraphStyle(
            "ContractBody",
            parent=styles["Normal"],
            fontName=KOREAN_FONT,
            fontSize=9,
            leading=14,
            textColor=self.dark_gray,
        )
        center_style = ParagraphStyle("ContractCenter", parent=body_style, alignment=1)

        package_name = contract.package.display_name if contract.package else "-"

        story = [
            Paragraph("광고 대행 서비스 계약서", title_style),
            Paragraph(f"계약번호: {contract.contract_number}", center_style),
            Spacer(1, 8 * mm),
            Paragraph("제1조 계약 당사자", heading_style),
            self._info_table(
                [
                    ["갑 (서비스 이용자)", contract.company_name],
                    ["을 (서비스 제공자)", PROVIDER_NAME],
                    ["대표자", contract.ceo_name],
                    ["사업자등록번호", contract.business_number],
                    ["사업장 주소", contract.address],
                    ["담당자", f"{contract.contact_name} ({contract.contact_phone})"],
                    ["이메일", contract.contact_email],
                ],
                body_style,
            ),
            Paragraph("제2조 계약 내용", heading_style),
            self._info_table(
                [
                    ["서비스 패키지", package_name],
                    [
                        "계약 기간",
                        f"{contract.contract_period}개월 "
                        f"({_format_date(contract.start_date)} ~ {_format_date(contract.end_date)})",
                    ],
                    ["월 서비스 비용", format_won(contract.monthly_fee)],
                    ["총 계약 금액", f"{format_won(contract.total_amount)} (부가세 별도)"],
                ],
                body_style,
            ),
        ]

        for title, clauses in ARTICLES:
            story.append(Paragraph(title, heading_style))
            for index, clause in enumerate(clauses, start=1):
                story.append(Paragraph(f"{index}. {escape(clause)}", body_style))

        story.append(Spacer(1, 10 * mm))
        story.append(Paragraph("위 내용에 동의하며 계약을 체결합니다.", center_style))
        story.append(Paragraph(f"계약 체결일: {_format_date(contract.signed_at)}", center_style))
        story.append(Spacer(1, 6 * mm))
        story.append(self._signature_table(body_style))
        story.append(Spacer(1, 10 * mm))
        story.append(
            Paragraph(
                "본 계약서는 전자서명법에 따라 유효한 전자문서입니다.",
                ParagraphStyle("Footer", parent=center_style, fontSize=8, textColor=colors.grey),
            )
        )

        doc.build(story)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Generated contract PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _info_table(self, rows: list[list[str]], body_style: ParagraphStyle) -> Table:
        data = [[Paragraph(escape(label), body_style), Paragraph(escape(value or "-"), body_style)] for label, value in rows]
        table = Table(data, colWidths=[40 * mm, 134 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (0, -1), self.light_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("LEFTPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    def _signature_table(self, body_style: ParagraphStyle) -> Table:
        contract = self.contract
        client_mark = _signature_image(contract.client_signature) or Paragraph(
            f"{escape(contract.ceo_name)} (인)", body_style
        )
        data = [
            [
                Paragraph(f"갑 ({escape(contract.company_name)})", body_style),
                Paragraph(f"을 ({PROVIDER_NAME})", body_style),
            ],
            [client_mark, Paragraph("대표이사 (인)", body_style)],
        ]
        table = Table(data, colWidths=[87 * mm, 87 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("BOX", (0, 0), (0, -1), 0.5, colors.grey),
                    ("BOX", (1, 0), (1, -1), 0.5, colors.grey),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        return table


def generate_contract_pdf(contract: Contract) -> bytes:
    return ContractPDFService(contract).generate()
