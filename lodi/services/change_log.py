"""Log every committed insert and update, one line per record change"""

from lodi.buisness.core.change_notification import ENTITY_TYPES
from lodi.logger import get_logger

logger = get_logger("lodi.changes")


def _describe(entity_type, record):
    if entity_type == 'deposit':
        return f"Deposit {record.id} ({record.name}) on site={list(record.packages_on_site)}"
    if entity_type == 'package':
        return f"Package {record.id} [{record.state}] {record.source_deposit} -> {record.destination_deposit}"
    if entity_type == 'article':
        return f"Article {record.article_id} at {record.current_deposit} [{record.status}]"
    return f"TransportLog {record.log_id} for {record.package_id}: {record.from_deposit} -> {record.to_deposit}"


class ChangeLogSubscriber:
    """Registers logging handlers for all entity types on a notifier"""

    def __init__(self, notifier):
        self.notifier = notifier
        self._unsubscribers = []

    def attach(self):
        for entity_type in ENTITY_TYPES:
            self._unsubscribers.append(self.notifier.on_insert(entity_type, self._log_insert(entity_type)))
            self._unsubscribers.append(self.notifier.on_update(entity_type, self._log_update(entity_type)))
        return self

    def detach(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    @staticmethod
    def _log_insert(entity_type):
        def handler(record):
            logger.info(f"created: {_describe(entity_type, record)}")
        return handler

    @staticmethod
    def _log_update(entity_type):
        def handler(old, new):
            logger.info(f"updated: {_describe(entity_type, old)} => {_describe(entity_type, new)}")
        return handler
