from sqlmodel import Session, select

from app.models.webhook_event import WebhookEvent


def already_processed(session: Session, provider: str, event_id: str) -> bool:
    return session.exec(
        select(WebhookEvent.id).where(
            WebhookEvent.provider == provider,
            WebhookEvent.event_id == event_id,
        )
    ).first() is not None


def record_event(session: Session, provider: str, event_id: str, event_type: str) -> WebhookEvent:
    """Stage the ledger row; it commits together with the event's side effects."""
    event = WebhookEvent(provider=provider, event_id=event_id, event_type=event_type)
    session.add(event)
    return event
