from paybridge.db import models
from sqlalchemy.orm import Session

PROCESSED = "processed"
IGNORED = "ignored"
PARTIAL = "partial"
FAILED = "failed"
DUPLICATE = "duplicate"


def record_delivery(
    db: Session, event: str, payment_id: str | None, sha256: str, status: str
) -> models.WebhookDelivery:
    delivery = models.WebhookDelivery(
        event=event, payment_id=payment_id, sha256=sha256, status=status
    )
    db.add(delivery)
    db.commit()
    db.refresh(delivery)
    return delivery


def find_processed(db: Session, payment_id: str, event: str):
    return (
        db.query(models.WebhookDelivery)
        .filter_by(payment_id=payment_id, event=event, status=PROCESSED)
        .first()
    )
