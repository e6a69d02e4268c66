"""
Meta Ads Insights API
Fetches ad-level daily insights with pagination and normalizes them into flat rows
"""

import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from ...config import HTTP_TIMEOUT_SECONDS, META_GRAPH_URL

logger = logging.getLogger(__name__)

INSIGHT_FIELDS = (
    "ad_id,ad_name,campaign_id,campaign_name,impressions,spend,inline_link_clicks,reach,"
    "actions,video_avg_time_watched_actions,cost_per_action_type,account_currency"
)
PAGE_LIMIT = 90
PAGE_DELAY_SECONDS = 0.2


class MetaAPIError(Exception):
    """Graph API returned an error response"""


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message") or response.reason_phrase
    except ValueError:
        return response.reason_phrase


def get_action_value(actions: Optional[list[dict]], action_type: str) -> int:
    """Integer value of one action_type in an actions array, 0 if absent"""
    if not actions:
        return 0
    for action in actions:
        if action.get("action_type") == action_type:
            try:
                return int(float(action.get("value", 0)))
            except (TypeError, ValueError):
                return 0
    return 0


def _float_action(actions: Optional[list[dict]], action_type: str) -> float:
    if not actions:
        return 0.0
    for action in actions:
        if action.get("action_type") == action_type:
            try:
                return float(action.get("value", 0))
            except (TypeError, ValueError):
                return 0.0
    return 0.0


def get_video_avg_time(video_actions: Optional[list[dict]]) -> float:
    return _float_action(video_actions, "video_view")


def get_cost_per_action(cost_actions: Optional[list[dict]], action_type: str) -> float:
    return _float_action(cost_actions, action_type)


def _to_int(value: Any) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def transform_to_insight(item: dict) -> dict:
    """Flatten one raw Graph API row"""
    return {
        "date": item.get("date_start"),
        "ad_id": item.get("ad_id"),
        "ad_name": item.get("ad_name") or "Unknown",
        "campaign_id": item.get("campaign_id") or "",
        "campaign_name": item.get("campaign_name") or "Unknown",
        "platform": item.get("publisher_platform") or "unknown",
        "device": item.get("device_platform") or "unknown",
        "currency": item.get("account_currency") or "KRW",
        "impressions": _to_int(item.get("impressions")),
        "reach": _to_int(item.get("reach")),
        "clicks": _to_int(item.get("inline_link_clicks")),
        "leads": get_action_value(item.get("actions"), "lead"),
        "spend": _to_float(item.get("spend")),
        "video_views": get_action_value(item.get("actions"), "video_view"),
        "avg_watch_time": get_video_avg_time(item.get("video_avg_time_watched_actions")),
        "cost_per_video_view": get_cost_per_action(item.get("cost_per_action_type"), "video_view"),
        "cost_per_lead": get_cost_per_action(item.get("cost_per_action_type"), "lead"),
    }


async def fetch_meta_ads_data(ad_account_id: str, access_token: str, start_date: str, end_date: str) -> list[dict]:
    """
    Fetch every insights page for the date range

    Args:
        ad_account_id: act_XXXXXXXX
        access_token: Decrypted access token
        start_date / end_date: YYYY-MM-DD, inclusive

    Raises:
        MetaAPIError on any non-2xx page
    """
    params = {
        "access_token": access_token,
        "time_range": json.dumps({"since": start_date, "until": end_date}),
        "fields": INSIGHT_FIELDS,
        "breakdowns": "publisher_platform,device_platform",
        "level": "ad",
        "limit": str(PAGE_LIMIT),
        "time_increment": "1",
    }

    all_data: list[dict] = []
    next_url: Optional[str] = f"{META_GRAPH_URL}/{ad_account_id}/insights"

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        while next_url:
            # paging.next already carries every query parameter
            response = await client.get(next_url, params=params)
            params = None
            if response.status_code >= 400:
                raise MetaAPIError(f"Meta API Error: {_error_message(response)}")

            payload = response.json()
            page = payload.get("data") or []
            if page:
                all_data.extend(page)
                logger.info(f"📦 Fetched {len(page)} records (Total: {len(all_data)})")

            next_url = (payload.get("paging") or {}).get("next")
            if next_url:
                await asyncio.sleep(PAGE_DELAY_SECONDS)

    return all_data


async def validate_meta_token(access_token: str) -> dict:
    """Check a token against /me"""
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(f"{META_GRAPH_URL}/me", params={"access_token": access_token})
        if response.status_code >= 400:
            return {"valid": False, "error": _error_message(response) or "Token validation failed"}
        return {"valid": True, "userId": response.json().get("id")}
    except Exception as e:
        logger.error(f"❌ Meta token validation error: {e}")
        return {"valid": False, "error": str(e)}


async def validate_ad_account(ad_account_id: str, access_token: str) -> dict:
    """An ad account is usable when it has the act_ prefix and account_status == 1"""
    if not ad_account_id.startswith("act_"):
        return {"valid": False, "error": "Ad account id must start with act_"}

    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{META_GRAPH_URL}/{ad_account_id}",
                params={"access_token": access_token, "fields": "name,account_status,currency"},
            )
        if response.status_code >= 400:
            return {"valid": False, "error": _error_message(response) or "Ad account validation failed"}

        data = response.json()
        if data.get("account_status") != 1:
            return {"valid": False, "name": data.get("name"), "error": "Ad account is not active"}
        return {"valid": True, "name": data.get("name"), "currency": data.get("currency")}
    except Exception as e:
        logger.error(f"❌ Meta ad account validation error: {e}")
        return {"valid": False, "error": str(e)}
