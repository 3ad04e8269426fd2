"""
Customer directory tests.

Verifies:
- Plate normalization makes spacing and case irrelevant
- Walk-in customers are created once per plate, even when an insert races
- Registration, update and deletion rules
"""

import pytest

from motorbersih.models import ActivityEvent, Customer
from motorbersih.services import customer_service, transaction_service
from motorbersih.services.concurrency import unit_of_work
from motorbersih.validation import ConflictError, NotFoundError, ValidationError

from conftest import make_customer, wash_request


@pytest.mark.parametrize("raw", ["b 1234 abc", "B1234ABC", "  b1234abc ", "B 1234\tABC"])
def test_normalize_plate(raw):
    assert customer_service.normalize_plate(raw) == "B1234ABC"


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_normalize_plate_rejects_empty(raw):
    with pytest.raises(ValidationError):
        customer_service.normalize_plate(raw)


def test_normalize_plate_rejects_overlong():
    with pytest.raises(ValidationError):
        customer_service.normalize_plate("B" * 21)


def test_resolve_spelling_variants_creates_one_customer(db_session):
    first = customer_service.resolve("b 1234 abc", "Andi")
    db_session.commit()
    second = customer_service.resolve("B1234ABC", "Someone Else")
    db_session.commit()

    assert first.id == second.id
    assert db_session.query(Customer).count() == 1
    assert second.name == "Andi"
    assert second.is_member is False
    assert second.loyalty_count == 0


def test_resolve_returns_existing_unchanged(db_session):
    existing = make_customer(plate="AB123CD", name="Rina", loyalty_count=3)

    found = customer_service.resolve("ab 123 cd", "Other Name", "0800")

    assert found.id == existing.id
    assert found.name == "Rina"
    assert found.phone is None
    assert found.loyalty_count == 3


def test_resolve_new_plate_requires_name(db_session):
    with pytest.raises(ValidationError):
        customer_service.resolve("D9999XX", None)
    assert db_session.query(Customer).count() == 0


def test_resolve_by_id_missing(db_session):
    with pytest.raises(NotFoundError):
        customer_service.resolve_by_id(424242)


def test_find_by_plate(db_session, customer):
    assert customer_service.find_by_plate("b 1234 abc").id == customer.id
    assert customer_service.find_by_plate("Z0000ZZ") is None


def test_register_customer(db_session):
    customer = customer_service.register_customer(
        license_plate="l 5678 mn",
        name="  Sari ",
        phone="0812",
        motorcycle_type="motor_besar",
        actor_user_id=1,
    )

    assert customer.license_plate == "L5678MN"
    assert customer.name == "Sari"
    assert customer.is_member is True
    assert customer.motorcycle_type == "motor_besar"
    event = db_session.query(ActivityEvent).filter_by(event_type="customer.registered").one()
    assert event.entity_id == customer.id


def test_register_duplicate_plate_conflicts(db_session, customer):
    with pytest.raises(ConflictError):
        customer_service.register_customer(license_plate="b1234abc", name="Dup")


def test_register_rejects_unknown_motorcycle_type(db_session):
    with pytest.raises(ValidationError):
        customer_service.register_customer(license_plate="B1", name="X", motorcycle_type="truck")


def test_update_customer(db_session, customer):
    updated = customer_service.update_customer(
        customer.id, {"name": "Andi S", "phone": " 0813 ", "is_member": "false"}
    )
    assert updated.name == "Andi S"
    assert updated.phone == "0813"
    assert updated.is_member is False


def test_update_customer_rejects_statistics(db_session, customer):
    with pytest.raises(ValidationError):
        customer_service.update_customer(customer.id, {"loyalty_count": 99})
    db_session.expire_all()
    assert db_session.get(Customer, customer.id).loyalty_count == 0


def test_delete_customer_without_history(db_session, customer):
    customer_service.delete_customer(customer.id)
    assert db_session.get(Customer, customer.id) is None


def test_delete_customer_with_transactions_conflicts(db_session, operator, customer):
    transaction_service.record_wash(wash_request(operator.id, plate=customer.license_plate))
    with pytest.raises(ConflictError):
        customer_service.delete_customer(customer.id)
    assert db_session.get(Customer, customer.id) is not None


def test_list_customers_search_and_filter(db_session):
    make_customer(plate="B1111AA", name="Andi", is_member=True)
    make_customer(plate="B2222BB", name="Budi", is_member=False)
    make_customer(plate="D3333CC", name="Citra", is_member=True)

    rows, total = customer_service.list_customers(search="b 2222")
    assert total == 1 and rows[0].name == "Budi"

    rows, total = customer_service.list_customers(is_member=True)
    assert total == 2
    assert {c.name for c in rows} == {"Andi", "Citra"}

    rows, total = customer_service.list_customers(limit=1, offset=0)
    assert total == 3 and len(rows) == 1


def test_resolve_reuses_row_inserted_after_lookup(db_session, monkeypatch):
    """Another writer commits the same plate between the lookup and the insert."""
    real_begin = customer_service.begin_write_transaction

    def insert_competing_row():
        real_begin()
        db_session.add(
            Customer(
                license_plate="R1RACE",
                name="Winner",
                is_member=False,
                loyalty_count=0,
                free_wash_available=False,
                total_washes=0,
                total_spent=0,
            )
        )
        db_session.flush()

    monkeypatch.setattr(customer_service, "begin_write_transaction", insert_competing_row)

    with unit_of_work():
        resolved = customer_service.resolve("r1 race", "Loser")

    assert resolved.name == "Winner"
    assert db_session.query(Customer).filter_by(license_plate="R1RACE").count() == 1


@pytest.mark.parametrize("field,length", [("name", 129), ("phone", 33), ("email", 256)])
def test_update_customer_rejects_overlong_fields(db_session, customer, field, length):
    with pytest.raises(ValidationError):
        customer_service.update_customer(customer.id, {field: "x" * length})
    db_session.expire_all()
    assert getattr(db_session.get(Customer, customer.id), field) != "x" * length


def test_update_customer_rejects_blank_name(db_session, customer):
    with pytest.raises(ValidationError):
        customer_service.update_customer(customer.id, {"name": "   "})
