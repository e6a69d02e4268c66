"""
Meta Ads data service
Service-period checks, collection windows and raw insight persistence
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ... import config
from ...models_meta import Client, RawData
from .api import fetch_meta_ads_data, transform_to_insight
from .token_manager import MetaTokenError, TokenManager

logger = logging.getLogger(__name__)

KST = ZoneInfo("Asia/Seoul")


def check_service_period(db: Session, client_id: int) -> dict:
    """
    A client is in service when active and its service end date (if any) is today or later

    Returns:
        {"valid": bool, "endDate": date | None}
    """
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        return {"valid": False, "endDate": None}
    if not client.is_active:
        return {"valid": False, "endDate": client.service_period_end}
    if not client.service_period_end:
        return {"valid": True, "endDate": None}

    today = datetime.now(KST).date()
    return {"valid": client.service_period_end >= today, "endDate": client.service_period_end}


def get_data_collection_period(today: Optional[date] = None) -> dict:
    """
    Collection window as YYYY-MM-DD strings.

    DATA_DAYS=N        the N days ending yesterday
    DATA_PERIOD=last_month   first to last day of the previous month
    otherwise          last week, Monday to Sunday
    """
    today = today or datetime.now(KST).date()

    if config.DATA_DAYS:
        days = int(config.DATA_DAYS)
        end = today - timedelta(days=1)
        start = end - timedelta(days=days - 1)
    elif config.DATA_PERIOD == "last_month":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    else:
        this_monday = today - timedelta(days=today.weekday())
        start = this_monday - timedelta(days=7)
        end = start + timedelta(days=6)

    return {"start": start.isoformat(), "end": end.isoformat()}


def upsert_raw_data(db: Session, client_id: int, insights: list[dict]) -> int:
    """Insert or update one RawData row per (date, ad, platform, device)"""
    count = 0
    for insight in insights:
        row_date = date.fromisoformat(insight["date"])
        row = (
            db.query(RawData)
            .filter(
                RawData.client_id == client_id,
                RawData.date == row_date,
                RawData.ad_id == insight["ad_id"],
                RawData.platform == insight["platform"],
                RawData.device == insight["device"],
            )
            .first()
        )
        if not row:
            row = RawData(client_id=client_id, date=row_date, ad_id=insight["ad_id"])
            db.add(row)

        for key, value in insight.items():
            if key not in ("date", "ad_id"):
                setattr(row, key, value)
        count += 1

    db.commit()
    return count


async def collect_client_insights(
    db: Session, client_id: int, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> int:
    """
    Collect and store insights for one client. Entry point for an external job runner.

    Returns:
        Number of rows written (0 when the client is out of service)

    Raises:
        MetaTokenError when no valid token can be obtained
    """
    period = check_service_period(db, client_id)
    if not period["valid"]:
        logger.info(f"⏭️ Client {client_id} is out of service period, skipping collection")
        return 0

    client = db.query(Client).filter(Client.id == client_id).first()
    if not client.meta_ad_account_id:
        raise MetaTokenError(f"Client {client_id} has no ad account")

    access_token = await TokenManager(db).ensure_valid_token(client_id)

    if not start_date or not end_date:
        window = get_data_collection_period()
        start_date, end_date = window["start"], window["end"]

    raw_items = await fetch_meta_ads_data(client.meta_ad_account_id, access_token, start_date, end_date)
    insights = [transform_to_insight(item) for item in raw_items]
    written = upsert_raw_data(db, client_id, insights)
    logger.info(f"✅ Stored {written} insight rows for {client.client_name} ({start_date} ~ {end_date})")
    return written
