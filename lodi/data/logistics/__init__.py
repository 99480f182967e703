"""Logistics table models - storage only, no business logic"""

from lodi.data.logistics.deposit import DepositRow
from lodi.data.logistics.package import PackageRow
from lodi.data.logistics.article import ArticleRow
from lodi.data.logistics.transport_log import TransportLogRow

__all__ = [
    'DepositRow',
    'PackageRow',
    'ArticleRow',
    'TransportLogRow'
]
