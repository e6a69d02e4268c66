"""
MJML Email Templates
Transactional emails for the client portal
"""

from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="18px 40px" font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="'Apple SD Gothic Neo', 'Malgun Gothic', Arial, sans-serif" />
          <mj-text font-size="15px" line-height="1.7" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="22px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © Polarad. 본 메일은 발신 전용입니다.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def contract_submitted_template(
    company_name: str,
    contract_number: str,
    package_name: str,
    monthly_fee: int,
    contract_period: int,
    total_amount: int,
) -> str:
    """Customer confirmation after signing a contract request"""
    content = f"""
    <mj-text>
      <strong>{company_name}</strong>님, 마케팅 서비스 계약 신청이 정상적으로 접수되었습니다.
    </mj-text>
    <mj-text>
      계약번호: {contract_number}<br/>
      패키지: {package_name}<br/>
      월 이용료: {monthly_fee:,}원<br/>
      계약기간: {contract_period}개월<br/>
      총 계약금액: {total_amount:,}원
    </mj-text>
    <mj-text color="{THEME['text_muted']}">
      서명하신 계약서 사본을 첨부해 드립니다. 담당자 검토 후 승인 결과를 안내해 드리겠습니다.
    </mj-text>
    """

    return get_base_template(
        title="계약 신청이 접수되었습니다",
        preview_text=f"계약번호 {contract_number} 접수 완료",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/contracts",
        cta_label="계약 현황 보기",
    )


def contract_request_admin_template(
    company_name: str, contact_name: str, contact_phone: str, contract_number: str, package_name: str
) -> str:
    """Staff notice for a newly signed contract request"""
    content = f"""
    <mj-text>
      새 계약 신청이 접수되었습니다.
    </mj-text>
    <mj-text>
      회사명: {company_name}<br/>
      담당자: {contact_name} ({contact_phone})<br/>
      계약번호: {contract_number}<br/>
      패키지: {package_name}
    </mj-text>
    """

    return get_base_template(
        title="새 계약 신청",
        preview_text=f"{company_name} 계약 신청",
        content_sections=content,
    )
