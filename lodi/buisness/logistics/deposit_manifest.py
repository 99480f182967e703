"""
Deposit list bookkeeping

A deposit tracks two ordered package id lists:
- packages_on_site: packages physically present
- outgoing_package_ids: packages staged for departure

Every outgoing id is also on site until the package departs. All list
mutations go through the three helpers below so that rule lives in one place.
"""

from dataclasses import replace

from lodi.buisness.logistics.records import Deposit


def _append_once(ids, package_id):
    return ids if package_id in ids else ids + (package_id,)


def _without(ids, package_id):
    return tuple(i for i in ids if i != package_id)


def stage_outgoing(deposit: Deposit, package_id: str) -> Deposit:
    """Package created at this deposit: on site and waiting to leave"""
    return replace(
        deposit,
        packages_on_site=_append_once(deposit.packages_on_site, package_id),
        outgoing_package_ids=_append_once(deposit.outgoing_package_ids, package_id),
    )


def depart(deposit: Deposit, package_id: str) -> Deposit:
    """Package left this deposit"""
    return replace(
        deposit,
        packages_on_site=_without(deposit.packages_on_site, package_id),
        outgoing_package_ids=_without(deposit.outgoing_package_ids, package_id),
    )


def arrive(deposit: Deposit, package_id: str) -> Deposit:
    """Package arrived at this deposit; it is not outgoing from here"""
    return replace(
        deposit,
        packages_on_site=_append_once(deposit.packages_on_site, package_id),
    )


def outgoing_is_subset(deposit: Deposit) -> bool:
    return set(deposit.outgoing_package_ids) <= set(deposit.packages_on_site)
