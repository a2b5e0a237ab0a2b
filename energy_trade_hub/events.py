"""
Notification Log

Append-only record of every lifecycle transition. Events are recorded as
operations run and handed to subscribers only once the outermost operation
has committed, so subscribers never see a transition that was rolled back.
"""

from typing import Callable, List, Optional

from .logging_config import logger
from .models import EnergyCertificate, EventType, LedgerEvent, SaleListing

Subscriber = Callable[[LedgerEvent], None]


class NotificationLog:
    """Ordered notifications with optional synchronous subscribers"""

    def __init__(self):
        self.events: List[LedgerEvent] = []
        self.subscribers: List[Subscriber] = []
        self._published = 0

    def subscribe(self, subscriber: Subscriber) -> None:
        self.subscribers.append(subscriber)

    def record(
        self,
        event_type: EventType,
        actor: str,
        certificate: EnergyCertificate,
        listing: SaleListing,
        seller: Optional[str] = None,
        payment: Optional[int] = None,
    ) -> LedgerEvent:
        """Append a notification carrying post-transition snapshots"""
        event = LedgerEvent(
            sequence=len(self.events) + 1,
            event_type=event_type,
            token_id=certificate.token_id,
            actor=actor,
            certificate=certificate.model_copy(deep=True),
            listing=listing.model_copy(),
            seller=seller,
            payment=payment,
        )
        self.events.append(event)
        return event

    def truncate(self, mark: int) -> None:
        """Drop every event recorded after ``mark``"""
        del self.events[mark:]
        self._published = min(self._published, mark)

    def publish(self) -> None:
        """
        Hand every committed but unpublished event to the subscribers.

        A failing subscriber is logged and does not affect the committed
        transition or the remaining subscribers.
        """
        pending = self.events[self._published:]
        self._published = len(self.events)

        for event in pending:
            for subscriber in self.subscribers:
                try:
                    subscriber(event)
                except Exception:
                    logger.exception(
                        f"Subscriber {subscriber!r} failed on {event.event_type.value} "
                        f"event #{event.sequence}"
                    )

    def for_token(self, token_id: int) -> List[LedgerEvent]:
        return [event for event in self.events if event.token_id == token_id]

    def of_type(self, event_type: EventType) -> List[LedgerEvent]:
        return [event for event in self.events if event.event_type == event_type]

    def __len__(self) -> int:
        return len(self.events)
