import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import SENSITIVE_FILE_TYPES, Contract, Submission, User, Workflow
from ..models_meta import ClientTarget, RawData

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])

ANALYTICS_DAYS = 30

WORKFLOW_TYPE_LABELS = {
    "NAMECARD": "명함",
    "NAMETAG": "명찰",
    "CONTRACT": "계약서",
    "ENVELOPE": "대봉투",
    "WEBSITE": "홈페이지",
    "BLOG": "블로그",
    "META_ADS": "메타 광고",
    "NAVER_ADS": "네이버 광고",
}

WORKFLOW_STATUS_LABELS = {
    "PENDING": "대기",
    "SUBMITTED": "제출완료",
    "IN_PROGRESS": "진행중",
    "DESIGN_UPLOADED": "시안확인",
    "ORDER_REQUESTED": "발주요청",
    "ORDER_APPROVED": "발주승인",
    "COMPLETED": "완료",
    "SHIPPED": "발송완료",
    "CANCELLED": "취소됨",
}

# Dashboard checklist: (model attribute, label)
SUBMISSION_ITEMS = [
    ("profile_photo", "프로필 사진"),
    ("brand_name", "브랜드명"),
    ("contact_email", "대표 이메일"),
    ("contact_phone", "대표 번호"),
    ("bank_account", "계좌 정보"),
]

FINISHED_WORKFLOW_STATUSES = ("COMPLETED", "SHIPPED")


@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return {
        "user": {
            "id": current_user.id,
            "name": current_user.name,
            "email": current_user.email,
            "phone": current_user.phone,
            "clientName": current_user.client_name,
            "telegramChatId": current_user.telegram_chat_id,
            "telegramEnabled": current_user.telegram_enabled,
            "smsConsent": current_user.sms_consent,
            "emailConsent": current_user.email_consent,
            "createdAt": current_user.created_at,
        }
    }


def _submission_progress(submission: Submission) -> dict:
    items = [
        {"name": label, "completed": bool(submission and getattr(submission, attr))}
        for attr, label in SUBMISSION_ITEMS
    ]
    delivered = (submission.sensitive_documents or {}) if submission else {}
    items.append(
        {
            "name": "민감정보 서류",
            "completed": all(file_type in delivered for file_type in SENSITIVE_FILE_TYPES),
        }
    )
    return {
        "total": len(items),
        "completed": sum(1 for item in items if item["completed"]),
        "items": items,
        "status": submission.status if submission else None,
    }


@router.get("/dashboard")
async def get_dashboard(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Submission checklist, workflow board and latest contract in one call"""
    submission = db.query(Submission).filter(Submission.user_id == current_user.id).first()
    workflows = (
        db.query(Workflow)
        .filter(Workflow.user_id == current_user.id)
        .order_by(Workflow.created_at, Workflow.id)
        .all()
    )
    latest_contract = (
        db.query(Contract)
        .filter(Contract.user_id == current_user.id)
        .order_by(Contract.created_at.desc(), Contract.id.desc())
        .first()
    )

    finished = sum(1 for wf in workflows if wf.status in FINISHED_WORKFLOW_STATUSES)
    progress = round(finished / len(workflows) * 100) if workflows else 0

    return {
        "success": True,
        "data": {
            "user": {
                "name": current_user.name,
                "clientName": current_user.client_name,
                "email": current_user.email,
            },
            "submission": _submission_progress(submission),
            "workflows": [
                {
                    "id": wf.id,
                    "type": WORKFLOW_TYPE_LABELS.get(wf.type, wf.type),
                    "typeCode": wf.type,
                    "status": WORKFLOW_STATUS_LABELS.get(wf.status, wf.status),
                    "statusCode": wf.status,
                    "designUrl": wf.design_url,
                    "trackingNumber": wf.tracking_number,
                    "courier": wf.courier,
                }
                for wf in workflows
            ],
            "progress": progress,
            "contract": {
                "id": latest_contract.id,
                "contractNumber": latest_contract.contract_number,
                "status": latest_contract.status,
                "packageName": latest_contract.package.display_name,
                "monthlyFee": latest_contract.monthly_fee,
                "createdAt": latest_contract.created_at,
            }
            if latest_contract
            else None,
        },
    }


@router.get("/analytics")
async def get_analytics(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Daily ad performance for the linked ads account over the last 30 days"""
    if not current_user.client_id:
        return {"success": True, "data": None, "message": "연동된 광고 계정이 없습니다"}

    today = date.today()
    rows = (
        db.query(
            RawData.date,
            func.sum(RawData.impressions),
            func.sum(RawData.reach),
            func.sum(RawData.clicks),
            func.sum(RawData.leads),
            func.sum(RawData.spend),
        )
        .filter(RawData.client_id == current_user.client_id, RawData.date >= today - timedelta(days=ANALYTICS_DAYS))
        .group_by(RawData.date)
        .order_by(RawData.date)
        .all()
    )

    daily = [
        {
            "date": day.isoformat(),
            "impressions": int(impressions or 0),
            "reach": int(reach or 0),
            "clicks": int(clicks or 0),
            "leads": int(leads or 0),
            "spend": float(spend or 0),
        }
        for day, impressions, reach, clicks, leads, spend in rows
    ]

    totals = {
        key: sum(d[key] for d in daily) for key in ("impressions", "reach", "clicks", "leads", "spend")
    }
    ctr = totals["clicks"] / totals["impressions"] * 100 if totals["impressions"] else 0
    cpc = totals["spend"] / totals["clicks"] if totals["clicks"] else 0
    cpl = totals["spend"] / totals["leads"] if totals["leads"] else 0
    totals.update({"ctr": f"{ctr:.2f}", "cpc": round(cpc), "cpl": round(cpl)})

    target = (
        db.query(ClientTarget)
        .filter(ClientTarget.client_id == current_user.client_id, ClientTarget.target_month == today.replace(day=1))
        .first()
    )

    return {
        "success": True,
        "data": {
            "daily": daily,
            "totals": totals,
            "target": {
                "leads": target.target_leads,
                "spend": float(target.target_spend) if target.target_spend is not None else None,
                "cpl": float(target.target_cpl) if target.target_cpl is not None else None,
            }
            if target
            else None,
        },
    }
