"""Domain events raised after a primary state change, and their dispatcher."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobStatusChanged:
    job_id: int
    old_status: str
    new_status: str
    actor: str = "system"


@dataclass(frozen=True)
class FeeSettled:
    callout_id: int
    actor: str = "system"


EventHandler = Callable[[Any], Any]


class EventDispatcher:
    """Mutable registry mapping event types to handlers, called in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = {}

    def register(self, event_type: type, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def handlers_for(self, event_type: type) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def dispatch(self, event: Any) -> list[Any]:
        """Call every handler for ``event`` and return their results.

        Handler exceptions propagate; handlers that want fail-open behavior
        catch and report on their own.
        """
        handlers = self.handlers_for(type(event))
        logger.debug(
            "events.dispatch",
            extra={"event": "events.dispatch", "event_type": type(event).__name__, "handlers": len(handlers)},
        )
        return [handler(event) for handler in handlers]


def build_default_dispatcher(db) -> EventDispatcher:
    """Wire the ledger recorder to the lifecycle events for one session."""
    from jobline.finance.recorder import FinancialTransactionRecorder

    recorder = FinancialTransactionRecorder(db)
    dispatcher = EventDispatcher()
    dispatcher.register(JobStatusChanged, recorder.on_job_status_changed)
    dispatcher.register(FeeSettled, recorder.on_fee_settled)
    return dispatcher
