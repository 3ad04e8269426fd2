"""
Transaction recorder tests.

Verifies:
- A wash settles transaction, commission ledger, customer and operator together
- Free washes charge 0 but pay commission on the original price
- Any failure rolls back every write
"""

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from motorbersih.extensions import db
from motorbersih.models import ActivityEvent, CommissionRecord, Customer, Operator, WashTransaction
from motorbersih.services import transaction_service
from motorbersih.services.transaction_service import WashRequest, generate_transaction_code
from motorbersih.validation import ConflictError, NotFoundError, StorageError, ValidationError

from conftest import make_customer, make_operator, wash_request


def _reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)


def test_normal_wash_updates_every_party(db_session):
    operator = make_operator(rate="25.00")
    customer = make_customer(plate="B7500XY")
    operator_id, customer_id = operator.id, customer.id

    result = transaction_service.record_wash(
        wash_request(operator_id, plate="b 7500 xy", price=75000, payment_method="qris"),
        actor_user_id=2,
    )

    assert result.commission_amount == 18750
    body = result.to_dict()
    assert body["price"] == 75000
    assert body["original_price"] == 75000
    assert body["is_loyalty_free"] is False
    assert body["status"] == "completed"
    assert body["customer_id"] == customer_id
    assert body["payment_method"] == "qris"

    operator = _reload(Operator, operator_id)
    assert operator.total_commission == 18750
    assert operator.total_washes == 1

    customer = _reload(Customer, customer_id)
    assert customer.total_spent == 75000
    assert customer.total_washes == 1
    assert customer.loyalty_count == 1
    assert customer.last_wash_at is not None

    record = db_session.query(CommissionRecord).one()
    assert record.transaction_id == result.transaction.id
    assert record.amount == 18750
    assert record.status == "pending"

    txn = db_session.query(WashTransaction).one()
    assert txn.created_by_user_id == 2
    assert str(txn.commission_rate) == "25.00"
    assert db_session.query(ActivityEvent).filter_by(event_type="transaction.recorded").count() == 1


def test_free_wash_at_threshold(db_session):
    operator = make_operator(rate="30.00")
    customer = make_customer(plate="B4444FW", loyalty_count=4, free_wash_available=True)
    customer_id = customer.id

    result = transaction_service.record_wash(
        wash_request(operator.id, plate="B4444FW", price=50000, is_free_wash=True)
    )

    assert result.commission_amount == 15000
    assert result.transaction.price == 0
    assert result.loyalty.loyalty_count == 5
    assert result.loyalty.free_wash_available is False

    customer = _reload(Customer, customer_id)
    assert customer.loyalty_count == 5
    assert customer.free_wash_available is False
    assert customer.total_spent == 0


def test_fifth_paid_wash_grants_free_wash(db_session, operator):
    customer = make_customer(plate="B5555PW", loyalty_count=4)
    customer_id = customer.id

    result = transaction_service.record_wash(wash_request(operator.id, plate="B5555PW"))

    assert result.loyalty.free_wash_earned is True
    assert _reload(Customer, customer_id).free_wash_available is True


def test_sixth_wash_keeps_unused_free_wash(db_session, operator):
    customer = make_customer(plate="B6666KP", loyalty_count=5, free_wash_available=True)
    customer_id = customer.id

    transaction_service.record_wash(wash_request(operator.id, plate="B6666KP"))

    customer = _reload(Customer, customer_id)
    assert customer.loyalty_count == 6
    assert customer.free_wash_available is True


def test_walk_in_created_on_first_wash(db_session, operator):
    result = transaction_service.record_wash(
        wash_request(operator.id, plate="f 1 abc", customer_name="Tono", customer_phone="0877")
    )

    customer = _reload(Customer, result.transaction.customer_id)
    assert customer.license_plate == "F1ABC"
    assert customer.name == "Tono"
    assert customer.is_member is False
    assert customer.loyalty_count == 1


def test_record_by_customer_id(db_session, operator, customer):
    result = transaction_service.record_wash(
        wash_request(operator.id, plate=None, customer_id=customer.id, customer_name=None)
    )
    assert result.transaction.customer_id == customer.id


def test_missing_operator(db_session, customer):
    with pytest.raises(NotFoundError):
        transaction_service.record_wash(wash_request(9999, plate=customer.license_plate))
    assert db_session.query(WashTransaction).count() == 0


def test_inactive_operator_conflicts(db_session):
    operator = make_operator(status="inactive")
    with pytest.raises(ConflictError):
        transaction_service.record_wash(wash_request(operator.id, plate="B1NEW"))
    assert db_session.query(Customer).count() == 0


def test_new_plate_without_name_writes_nothing(db_session, operator):
    with pytest.raises(ValidationError):
        transaction_service.record_wash(wash_request(operator.id, plate="B2NEW", customer_name=None))

    assert db_session.query(Customer).count() == 0
    assert db_session.query(WashTransaction).count() == 0
    assert _reload(Operator, operator.id).total_washes == 0


def test_code_collision_rolls_back_everything(db_session, operator, customer):
    now = datetime(2026, 10, 19, 9, 30, 0)
    fixed_code = lambda _now: "TRX20261019093000-123"  # noqa: E731
    operator_id, customer_id = operator.id, customer.id

    transaction_service.record_wash(wash_request(operator_id), now=now, code_factory=fixed_code)

    with pytest.raises(ConflictError):
        transaction_service.record_wash(
            wash_request(operator_id, plate="D7777NEW", customer_name="Second"),
            now=now,
            code_factory=fixed_code,
        )

    assert db_session.query(WashTransaction).count() == 1
    assert db_session.query(CommissionRecord).count() == 1
    assert db_session.query(Customer).filter_by(license_plate="D7777NEW").count() == 0

    operator = _reload(Operator, operator_id)
    assert operator.total_washes == 1
    assert operator.total_commission == 6000
    assert _reload(Customer, customer_id).loyalty_count == 1


def test_failure_after_transaction_flush_rolls_back_everything(db_session, operator, monkeypatch):
    operator_id = operator.id

    def failing_audit(**kwargs):
        raise OperationalError("INSERT INTO activity_events", {}, Exception("disk I/O error"))

    monkeypatch.setattr(transaction_service, "append_activity_event", failing_audit)

    with pytest.raises(StorageError):
        transaction_service.record_wash(wash_request(operator_id, plate="E5555NEW", customer_name="Late Fail"))

    assert db_session.query(WashTransaction).count() == 0
    assert db_session.query(CommissionRecord).count() == 0
    assert db_session.query(Customer).filter_by(license_plate="E5555NEW").count() == 0

    operator = _reload(Operator, operator_id)
    assert operator.total_washes == 0
    assert operator.total_commission == 0


def test_generate_transaction_code_format():
    code = generate_transaction_code(datetime(2026, 1, 2, 3, 4, 5))
    assert code.startswith("TRX20260102030405-")
    suffix = code.split("-")[1]
    assert len(suffix) == 3 and 100 <= int(suffix) <= 999


class TestWashRequestPayload:
    def test_from_payload(self):
        request = WashRequest.from_payload({
            "operator_id": "3",
            "license_plate": "B1",
            "customer_name": "Ani",
            "original_price": 25000,
            "is_loyalty_free": True,
            "payment_method": "TRANSFER",
        })
        assert request.operator_id == 3
        assert request.original_price == 25000
        assert request.is_free_wash is True
        assert request.payment_method == "transfer"

    def test_defaults_to_cash(self):
        request = WashRequest.from_payload({"operator_id": 1, "customer_id": 2, "original_price": "15000"})
        assert request.payment_method == "cash"
        assert request.is_free_wash is False

    @pytest.mark.parametrize(
        "payload",
        [
            {"license_plate": "B1", "original_price": 100},
            {"operator_id": 1, "original_price": 100},
            {"operator_id": 1, "license_plate": "B1", "original_price": 0},
            {"operator_id": 1, "license_plate": "B1", "original_price": -500},
            {"operator_id": 1, "license_plate": "B1", "original_price": 100.5},
            {"operator_id": 1, "license_plate": "B1", "original_price": 100, "payment_method": "credit"},
            {"operator_id": 1.5, "license_plate": "B1", "original_price": 100},
        ],
    )
    def test_rejects_invalid(self, payload):
        with pytest.raises(ValidationError):
            WashRequest.from_payload(payload)
