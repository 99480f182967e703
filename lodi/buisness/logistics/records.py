"""
Immutable records for the four logistics tables.

Records reference each other by id only. Changing a record means building a
new one with dataclasses.replace() and handing it to the table's update().
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

# Auto-increment sentinel: insert assigns the next key when a record carries it
UNASSIGNED = 0


@dataclass(frozen=True)
class Deposit:
    id: int
    name: str
    packages_on_site: Tuple[str, ...] = ()
    outgoing_package_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Package:
    id: str
    max_load: int
    contents: Tuple[str, ...]
    state: str
    source_deposit: int
    destination_deposit: int


@dataclass(frozen=True)
class Article:
    article_id: str
    current_deposit: int
    status: str


@dataclass(frozen=True)
class TransportLog:
    log_id: int
    package_id: str
    from_deposit: int
    to_deposit: int
    created_time: datetime
