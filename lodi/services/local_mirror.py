"""
LocalMirror - client-side copy of the logistics tables

Seeded from a store snapshot and kept current by change notifications, the
way a UI keeps its local cache in sync. Reads never touch the store.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from lodi.buisness.core.change_notification import ENTITY_TYPES

KEY_FIELDS = {
    'deposit': 'id',
    'package': 'id',
    'article': 'article_id',
    'transport_log': 'log_id',
}


class LocalMirror:
    """Mirrored view of every table, keyed by primary key"""

    def __init__(self, store):
        self.store = store
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict] = {entity_type: {} for entity_type in ENTITY_TYPES}
        self._unsubscribers = []

    def attach(self) -> "LocalMirror":
        """
        Subscribe to changes, then load the current snapshot.

        A record delivered by a notification after subscribing is at least as
        new as the snapshot's copy, so seeding never overwrites it.
        """
        if self._unsubscribers:
            return self
        notifier = self.store.notifier
        for entity_type in ENTITY_TYPES:
            self._unsubscribers.append(notifier.on_insert(entity_type, self._inserter(entity_type)))
            self._unsubscribers.append(notifier.on_update(entity_type, self._updater(entity_type)))

        snapshot = self.store.snapshot()
        with self._lock:
            for entity_type, records in snapshot.items():
                key_field = KEY_FIELDS[entity_type]
                table = self._tables[entity_type]
                for record in records:
                    table.setdefault(getattr(record, key_field), record)
        return self

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _inserter(self, entity_type):
        key_field = KEY_FIELDS[entity_type]

        def on_insert(record):
            with self._lock:
                self._tables[entity_type][getattr(record, key_field)] = record
        return on_insert

    def _updater(self, entity_type):
        key_field = KEY_FIELDS[entity_type]

        def on_update(old, new):
            with self._lock:
                self._tables[entity_type][getattr(new, key_field)] = new
        return on_update

    def _sorted(self, entity_type) -> List:
        with self._lock:
            table = dict(self._tables[entity_type])
        return [table[key] for key in sorted(table)]

    def deposits(self) -> List:
        return self._sorted('deposit')

    def packages(self) -> List:
        return self._sorted('package')

    def articles(self) -> List:
        return self._sorted('article')

    def transport_logs(self) -> List:
        return self._sorted('transport_log')

    def get(self, entity_type: str, key) -> Optional[object]:
        with self._lock:
            return self._tables[entity_type].get(key)

    def articles_at(self, deposit_id: int) -> List:
        return [a for a in self.articles() if a.current_deposit == deposit_id]
