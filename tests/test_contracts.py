"""Contract requests, signing, numbering and PDF download."""

import base64
import io
from datetime import datetime

import pytest
from PIL import Image
from sqlalchemy.exc import IntegrityError

from portal.domain.contracts.repository import ContractRepository
from portal.domain.contracts.service import ContractService
from portal.models import Contract, ContractLog, Package


def signature_data_url() -> str:
    buffer = io.BytesIO()
    Image.new("RGB", (120, 40), color=(255, 255, 255)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


@pytest.fixture
def packages(db):
    rows = [
        Package(name="basic", display_name="베이직", price=300000, features=["홈페이지"], sort_order=2),
        Package(name="premium", display_name="프리미엄", price=500000, features=["홈페이지", "광고"], sort_order=1),
        Package(name="legacy", display_name="구형", price=100000, features=[], is_active=False, sort_order=0),
    ]
    db.add_all(rows)
    db.commit()
    return {p.name: p.id for p in rows}


def contract_payload(package_id, **overrides) -> dict:
    payload = {
        "packageId": package_id,
        "companyName": "폴라애드 테스트",
        "ceoName": "홍길동",
        "businessNumber": "123-45-67890",
        "address": "서울시 강남구 테헤란로 1",
        "contactName": "김담당",
        "contactPhone": "010-1234-5678",
        "contactEmail": "owner@example.com",
        "contractPeriod": 6,
        "clientSignature": signature_data_url(),
    }
    payload.update(overrides)
    return payload


def today_prefix() -> str:
    return datetime.utcnow().strftime("%Y%m%d")


def insert_contract(db, user_id, package_id, number, status) -> Contract:
    contract = Contract(
        contract_number=number,
        user_id=user_id,
        package_id=package_id,
        company_name="폴라애드 테스트",
        ceo_name="홍길동",
        business_number="123-45-67890",
        address="서울",
        contact_name="김담당",
        contact_phone="010-1234-5678",
        contact_email="owner@example.com",
        contract_period=12,
        monthly_fee=300000,
        total_amount=3600000,
        status=status,
    )
    db.add(contract)
    db.commit()
    return contract


class TestPackages:
    def test_lists_active_packages_in_order(self, client, packages):
        res = client.get("/api/packages")
        assert res.status_code == 200
        assert [p["name"] for p in res.json()["packages"]] == ["premium", "basic"]


class TestCreateContract:
    def test_creates_submitted_contract(self, auth_client, packages, external, db, user):
        res = auth_client.post(
            "/api/contracts",
            json=contract_payload(packages["basic"]),
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )
        assert res.status_code == 201
        body = res.json()
        assert body["contractNumber"] == f"{today_prefix()}-0001"
        contract = body["contract"]
        assert contract["status"] == "SUBMITTED"
        assert contract["monthlyFee"] == 300000
        assert contract["totalAmount"] == 1800000
        assert contract["package"]["displayName"] == "베이직"
        assert contract["signedAt"] is not None

        row = db.query(Contract).filter(Contract.user_id == user["id"]).one()
        assert row.signed_ip == "203.0.113.7"
        log = db.query(ContractLog).filter(ContractLog.contract_id == row.id).one()
        assert (log.from_status, log.to_status) == (None, "SUBMITTED")

        assert any(body["contractNumber"] in message for message in external.admin_messages)

    def test_period_defaults_to_twelve_months(self, auth_client, packages):
        res = auth_client.post("/api/contracts", json=contract_payload(packages["premium"], contractPeriod=None))
        assert res.json()["contract"]["contractPeriod"] == 12
        assert res.json()["contract"]["totalAmount"] == 6000000

    def test_numbers_are_sequential_per_day(self, auth_client, other_client, packages):
        first = auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        second = other_client.post(
            "/api/contracts", json=contract_payload(packages["basic"], contactEmail="other@example.com")
        )
        assert first.json()["contractNumber"].endswith("-0001")
        assert second.json()["contractNumber"].endswith("-0002")

    @pytest.mark.parametrize("field", ["companyName", "businessNumber", "clientSignature"])
    def test_missing_required_field(self, auth_client, packages, field):
        res = auth_client.post("/api/contracts", json=contract_payload(packages["basic"], **{field: " "}))
        assert res.status_code == 400

    def test_inactive_package_is_rejected(self, auth_client, packages):
        res = auth_client.post("/api/contracts", json=contract_payload(packages["legacy"]))
        assert res.status_code == 400

    def test_unknown_package_is_rejected(self, auth_client, packages):
        res = auth_client.post("/api/contracts", json=contract_payload(9999))
        assert res.status_code == 400

    def test_second_request_while_in_flight_is_rejected(self, auth_client, packages, db):
        auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        res = auth_client.post("/api/contracts", json=contract_payload(packages["premium"]))
        assert res.status_code == 400
        assert db.query(Contract).count() == 1

    def test_new_request_allowed_after_rejection(self, auth_client, packages, db, user):
        insert_contract(db, user["id"], packages["basic"], f"{today_prefix()}-0001", "REJECTED")
        res = auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        assert res.status_code == 201
        assert res.json()["contractNumber"].endswith("-0002")


class TestConcurrentRequests:
    def test_index_rejects_second_in_flight_contract(self, db, user, packages):
        insert_contract(db, user["id"], packages["basic"], "20260101-0001", "SUBMITTED")
        with pytest.raises(IntegrityError):
            insert_contract(db, user["id"], packages["basic"], "20260101-0002", "PENDING")
        db.rollback()

    def test_request_that_loses_the_race_gets_400(self, auth_client, packages, db, monkeypatch):
        # Both requests pass the pre-check; the database decides
        monkeypatch.setattr(ContractService, "_ensure_no_in_flight", lambda self, user: None)
        first = auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        second = auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["error"] == "이미 진행 중인 계약 요청이 있습니다"
        assert db.query(Contract).count() == 1

    def test_number_collision_retries_with_next_sequence(self, auth_client, packages, db, user, monkeypatch):
        insert_contract(db, user["id"], packages["basic"], f"{today_prefix()}-0001", "CANCELLED")

        # A stale count makes the first attempt collide with an existing number
        monkeypatch.setattr(ContractRepository, "count_numbers_for_day", staticmethod(lambda db, date_str: 0))
        res = auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        assert res.status_code == 201
        assert res.json()["contractNumber"] == f"{today_prefix()}-0002"


class TestReadContracts:
    def test_detail_includes_signature_and_logs(self, auth_client, packages):
        created = auth_client.post("/api/contracts", json=contract_payload(packages["basic"])).json()
        res = auth_client.get(f"/api/contracts/{created['contract']['id']}")
        assert res.status_code == 200
        contract = res.json()["contract"]
        assert contract["clientSignature"].startswith("data:image/png;base64,")
        assert [log["toStatus"] for log in contract["logs"]] == ["SUBMITTED"]

    def test_list_is_scoped_to_user(self, auth_client, other_client, packages):
        auth_client.post("/api/contracts", json=contract_payload(packages["basic"]))
        assert len(auth_client.get("/api/contracts").json()["contracts"]) == 1
        assert other_client.get("/api/contracts").json()["contracts"] == []

    def test_foreign_contract_is_forbidden(self, auth_client, other_client, packages):
        created = auth_client.post("/api/contracts", json=contract_payload(packages["basic"])).json()
        assert other_client.get(f"/api/contracts/{created['contract']['id']}").status_code == 403

    def test_missing_contract(self, auth_client):
        assert auth_client.get("/api/contracts/9999").status_code == 404


class TestSignContract:
    def test_signs_pending_contract(self, auth_client, packages, db, user, external):
        pending = insert_contract(db, user["id"], packages["basic"], f"{today_prefix()}-0001", "PENDING")
        res = auth_client.patch(f"/api/contracts/{pending.id}", json=contract_payload(packages["premium"]))
        assert res.status_code == 200
        contract = res.json()["contract"]
        assert contract["status"] == "SUBMITTED"
        assert contract["packageId"] == packages["premium"]
        assert contract["totalAmount"] == 3000000
        assert len(external.admin_messages) == 1

    def test_only_pending_contracts_can_be_signed(self, auth_client, packages, db, user):
        approved = insert_contract(db, user["id"], packages["basic"], f"{today_prefix()}-0001", "APPROVED")
        res = auth_client.patch(f"/api/contracts/{approved.id}", json=contract_payload(packages["basic"]))
        assert res.status_code == 400


class TestContractPDF:
    def test_submitted_contract_cannot_be_downloaded(self, auth_client, packages):
        created = auth_client.post("/api/contracts", json=contract_payload(packages["basic"])).json()
        res = auth_client.get(f"/api/contracts/{created['contract']['id']}/pdf")
        assert res.status_code == 400

    @pytest.mark.parametrize("status", ["APPROVED", "ACTIVE", "EXPIRED"])
    def test_approved_contract_downloads_pdf(self, auth_client, packages, db, user, status):
        contract = insert_contract(db, user["id"], packages["basic"], f"{today_prefix()}-0007", status)
        contract.client_signature = signature_data_url()
        db.commit()

        res = auth_client.get(f"/api/contracts/{contract.id}/pdf")
        assert res.status_code == 200
        assert res.headers["content-type"] == "application/pdf"
        assert res.headers["content-disposition"] == f"attachment; filename=contract-{today_prefix()}-0007.pdf"
        assert res.content.startswith(b"%PDF")

    def test_foreign_pdf_is_forbidden(self, other_client, packages, db, user):
        contract = insert_contract(db, user["id"], packages["basic"], f"{today_prefix()}-0001", "APPROVED")
        assert other_client.get(f"/api/contracts/{contract.id}/pdf").status_code == 403
