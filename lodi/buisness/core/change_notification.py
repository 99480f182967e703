"""
Change notification for committed record writes

Handlers are registered per entity type ("deposit", "package", "article",
"transport_log"):
- insert handlers receive the new record
- update handlers receive (old, new)

The record store collects one RecordChange per write and hands the list to
publish() only after the transaction commits, so handlers never see state
from a failed operation. Changes are delivered in write order.

A failing handler is logged and skipped; the operation that produced the
change has already committed and is not affected.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from lodi.logger import get_logger

logger = get_logger("lodi.notifications")

INSERT = 'insert'
UPDATE = 'update'

ENTITY_TYPES = ('deposit', 'package', 'article', 'transport_log')


@dataclass(frozen=True)
class RecordChange:
    entity_type: str
    kind: str
    old: Optional[Any]
    new: Any


class ChangeNotifier:
    """Registry of insert/update handlers keyed by entity type"""

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[tuple, List[Callable]] = {}

    def _register(self, entity_type: str, kind: str, handler: Callable) -> Callable[[], None]:
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"Unknown entity type: {entity_type}")
        with self._lock:
            self._handlers.setdefault((entity_type, kind), []).append(handler)

        def unsubscribe():
            with self._lock:
                handlers = self._handlers.get((entity_type, kind), [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def on_insert(self, entity_type: str, handler: Callable[[Any], None]) -> Callable[[], None]:
        """
        Register a handler for inserts of entity_type.

        Returns:
            Callable that removes the handler again
        """
        return self._register(entity_type, INSERT, handler)

    def on_update(self, entity_type: str, handler: Callable[[Any, Any], None]) -> Callable[[], None]:
        """
        Register a handler for updates of entity_type, called with (old, new).

        Returns:
            Callable that removes the handler again
        """
        return self._register(entity_type, UPDATE, handler)

    def handler_count(self, entity_type: str, kind: str) -> int:
        with self._lock:
            return len(self._handlers.get((entity_type, kind), []))

    def publish(self, changes: Iterable[RecordChange]) -> int:
        """
        Deliver committed changes to registered handlers.

        Args:
            changes: RecordChange objects in write order

        Returns:
            int: Number of handler invocations that failed
        """
        failures = 0
        for change in changes:
            with self._lock:
                handlers = list(self._handlers.get((change.entity_type, change.kind), []))

            for handler in handlers:
                handler_name = getattr(handler, "__qualname__", repr(handler))
                try:
                    if change.kind == INSERT:
                        handler(change.new)
                    else:
                        handler(change.old, change.new)
                except Exception as exc:
                    failures += 1
                    logger.error(
                        f"Change handler {handler_name} failed for {change.kind} of {change.entity_type}: {exc}",
                        exc_info=True,
                    )
        return failures
