from datetime import datetime
from datetime import timezone as tz

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    return datetime.now(tz.utc)


class WebhookDelivery(Base):
    __tablename__ = "webhook_deliveries"
    id = Column(Integer, primary_key=True)
    event = Column(String, nullable=False)
    payment_id = Column(String, nullable=True)
    sha256 = Column(String, nullable=False)
    status = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    __table_args__ = (Index("ix_delivery_payment_event", "payment_id", "event"),)
