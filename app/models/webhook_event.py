from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class WebhookEvent(SQLModel, table=True):
    """Ledger of gateway notifications already applied."""
    __tablename__ = "webhook_event"
    __table_args__ = (
        UniqueConstraint("provider", "event_id", name="uq_webhook_event_provider_event"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    provider: str = Field(index=True)
    event_id: str
    event_type: str
    processed_at: datetime = Field(default_factory=datetime.utcnow)
