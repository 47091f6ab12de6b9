"""Change notifications for committed writes.

Each table gets a named blinker signal. Services publish a plain dict
snapshot of the row after their commit succeeds; subscribers filter by
column values, the same way a realtime channel keyed by table + filter
would.
"""
from blinker import Namespace

from core.imports import logging

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"

changes = Namespace()


def publish(table, event_type, record):
    changes.signal(table).send(table, event_type=event_type, record=record)


def subscribe(table, handler, event_types=None, **filters):
    """Call ``handler(event_type, record)`` for matching changes on ``table``.

    Returns a callable that removes the subscription.
    """
    signal = changes.signal(table)

    def receiver(sender, event_type, record):
        if event_types and event_type not in event_types:
            return
        for column, value in filters.items():
            if record.get(column) != value:
                return
        try:
            handler(event_type, record)
        except Exception:
            logger.exception("Subscriber %r failed on %s %s", handler, event_type, table)

    signal.connect(receiver, weak=False)

    def unsubscribe():
        signal.disconnect(receiver)

    return unsubscribe
