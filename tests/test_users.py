"""Profile, dashboard and ad analytics."""

from datetime import date, timedelta
from decimal import Decimal

from portal.models import Contract, Package, Submission, Workflow
from portal.models_meta import Client, ClientTarget, RawData


def test_profile(auth_client):
    res = auth_client.get("/api/user/profile")
    assert res.status_code == 200
    profile = res.json()["user"]
    assert profile["clientName"] == "폴라애드 테스트"
    assert profile["email"] == "owner@example.com"
    assert profile["smsConsent"] is False


def test_profile_requires_login(client):
    assert client.get("/api/user/profile").status_code == 401


class TestDashboard:
    def test_fresh_account(self, auth_client):
        data = auth_client.get("/api/user/dashboard").json()["data"]
        assert data["submission"]["total"] == 6
        assert data["submission"]["completed"] == 0
        assert data["submission"]["status"] == "DRAFT"
        assert [wf["type"] for wf in data["workflows"]] == ["명함", "명찰", "계약서", "대봉투", "홈페이지"]
        assert data["workflows"][0]["status"] == "대기"
        assert data["workflows"][0]["statusCode"] == "PENDING"
        assert data["progress"] == 0
        assert data["contract"] is None

    def test_progress_and_contract(self, auth_client, db, user):
        submission = db.query(Submission).filter(Submission.user_id == user["id"]).one()
        submission.brand_name = "폴라애드"
        submission.sensitive_documents = {
            "businessLicense": "2026-01-01T00:00:00",
            "idCard": "2026-01-01T00:00:00",
            "bankBook": "2026-01-01T00:00:00",
        }
        workflows = db.query(Workflow).filter(Workflow.user_id == user["id"]).order_by(Workflow.id).all()
        workflows[0].status = "SHIPPED"
        workflows[4].status = "COMPLETED"
        package = Package(name="basic", display_name="베이직", price=300000, features=[])
        db.add(package)
        db.flush()
        db.add(
            Contract(
                contract_number="20260101-0001",
                user_id=user["id"],
                package_id=package.id,
                company_name="폴라애드 테스트",
                ceo_name="홍길동",
                business_number="123-45-67890",
                address="서울",
                contact_name="김담당",
                contact_phone="010-1234-5678",
                contact_email="owner@example.com",
                monthly_fee=300000,
                total_amount=3600000,
                status="SUBMITTED",
            )
        )
        db.commit()

        data = auth_client.get("/api/user/dashboard").json()["data"]
        assert data["submission"]["completed"] == 2
        assert data["progress"] == 40
        assert data["contract"]["packageName"] == "베이직"
        assert data["contract"]["contractNumber"] == "20260101-0001"


class TestAnalytics:
    def test_without_linked_account(self, auth_client):
        body = auth_client.get("/api/user/analytics").json()
        assert body["success"] is True
        assert body["data"] is None

    def test_daily_rows_totals_and_target(self, auth_client, db, user_row):
        ads_client = Client(client_name="폴라애드 테스트", meta_ad_account_id="act_1")
        db.add(ads_client)
        db.flush()
        user_row.client_id = ads_client.id

        today = date.today()
        yesterday = today - timedelta(days=1)
        for day, device, impressions, clicks, leads, spend in [
            (yesterday, "mobile", 1000, 30, 2, "30000"),
            (yesterday, "desktop", 500, 20, 1, "15000"),
            (today, "mobile", 500, 10, 1, "15000"),
            (today - timedelta(days=60), "mobile", 9999, 999, 99, "999999"),
        ]:
            db.add(
                RawData(
                    client_id=ads_client.id,
                    date=day,
                    ad_id="ad-1",
                    platform="facebook",
                    device=device,
                    impressions=impressions,
                    reach=impressions // 2,
                    clicks=clicks,
                    leads=leads,
                    spend=Decimal(spend),
                )
            )
        db.add(ClientTarget(client_id=ads_client.id, target_month=today.replace(day=1), target_leads=10))
        db.commit()

        data = auth_client.get("/api/user/analytics").json()["data"]
        assert [d["date"] for d in data["daily"]] == [yesterday.isoformat(), today.isoformat()]
        assert data["daily"][0]["clicks"] == 50
        totals = data["totals"]
        assert totals["impressions"] == 2000
        assert totals["clicks"] == 60
        assert totals["leads"] == 4
        assert totals["ctr"] == "3.00"
        assert totals["cpc"] == 1000
        assert totals["cpl"] == 15000
        assert data["target"]["leads"] == 10
        assert data["target"]["spend"] is None
