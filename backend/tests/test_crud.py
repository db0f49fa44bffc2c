from paybridge.db import crud, models
from sqlalchemy.orm import Session


def test_record_delivery(db: Session):
    delivery = crud.record_delivery(
        db, "payment.captured", "pay_001", "a" * 64, crud.PROCESSED
    )
    assert delivery.id is not None
    assert delivery.created_at is not None
    assert db.query(models.WebhookDelivery).count() == 1


def test_record_delivery_without_payment(db: Session):
    delivery = crud.record_delivery(db, "order.paid", None, "b" * 64, crud.IGNORED)
    assert delivery.payment_id is None


def test_find_processed(db: Session):
    crud.record_delivery(db, "payment.captured", "pay_001", "a" * 64, crud.PROCESSED)

    assert crud.find_processed(db, "pay_001", "payment.captured") is not None
    assert crud.find_processed(db, "pay_001", "payment.failed") is None
    assert crud.find_processed(db, "pay_002", "payment.captured") is None


def test_find_processed_ignores_unfinished(db: Session):
    crud.record_delivery(db, "payment.captured", "pay_001", "a" * 64, crud.PARTIAL)
    crud.record_delivery(db, "payment.captured", "pay_001", "a" * 64, crud.FAILED)

    assert crud.find_processed(db, "pay_001", "payment.captured") is None
