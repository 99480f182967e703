"""
Tests for post-commit change notification
"""
import logging
from dataclasses import replace

import pytest

from lodi.buisness.core.change_notification import ChangeNotifier, RecordChange, INSERT, UPDATE
from lodi.buisness.core.errors import InvalidArgumentError, InvalidTransitionError
from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.buisness.logistics.records import UNASSIGNED, Deposit


def test_insert_and_update_handlers_receive_records(store):
    inserted = []
    updated = []
    store.notifier.on_insert('deposit', inserted.append)
    store.notifier.on_update('deposit', lambda old, new: updated.append((old, new)))

    with store.transaction() as tx:
        deposit = tx.deposit.insert(Deposit(id=UNASSIGNED, name="Depot A"))
        tx.deposit.update(replace(deposit, name="Depot North"))

    assert [d.name for d in inserted] == ["Depot A"]
    assert len(updated) == 1
    old, new = updated[0]
    assert old.name == "Depot A"
    assert new.name == "Depot North"


def test_handlers_fire_only_after_commit(store):
    seen_inside = []
    store.notifier.on_insert('deposit', lambda record: seen_inside.append(record))

    with store.transaction() as tx:
        tx.deposit.insert(Deposit(id=UNASSIGNED, name="Depot A"))
        assert seen_inside == []

    assert len(seen_inside) == 1


def test_changes_are_delivered_in_write_order(initialized_store):
    events = []
    for entity_type in ('deposit', 'package', 'article', 'transport_log'):
        initialized_store.notifier.on_insert(entity_type, lambda r, t=entity_type: events.append(('insert', t)))
        initialized_store.notifier.on_update(entity_type, lambda o, n, t=entity_type: events.append(('update', t)))

    package = LogisticsEngine.create_travel_order(initialized_store, 1, 2)

    article_updates = len(package.contents)
    assert events == (
        [('update', 'article')] * article_updates
        + [('insert', 'package'), ('update', 'deposit'), ('insert', 'transport_log')]
    )


def test_no_notification_for_failed_operation(initialized_store):
    events = []
    for entity_type in ('deposit', 'package', 'article', 'transport_log'):
        initialized_store.notifier.on_insert(entity_type, lambda r: events.append(r))
        initialized_store.notifier.on_update(entity_type, lambda o, n: events.append(n))

    with pytest.raises(InvalidArgumentError):
        LogisticsEngine.create_travel_order(initialized_store, 1, 1)
    with pytest.raises(InvalidTransitionError):
        LogisticsEngine.advance_package_state(initialized_store, "PKG1", "AtDestination")

    assert events == []


def test_unsubscribe_removes_handler(store):
    seen = []
    unsubscribe = store.notifier.on_insert('deposit', seen.append)
    assert store.notifier.handler_count('deposit', INSERT) == 1

    unsubscribe()

    with store.transaction() as tx:
        tx.deposit.insert(Deposit(id=UNASSIGNED, name="Depot A"))

    assert seen == []
    assert store.notifier.handler_count('deposit', INSERT) == 0


def test_failing_handler_is_logged_and_others_still_run(caplog):
    notifier = ChangeNotifier()
    seen = []

    def broken(record):
        raise RuntimeError("handler exploded")

    notifier.on_insert('article', broken)
    notifier.on_insert('article', seen.append)

    with caplog.at_level(logging.ERROR, logger="lodi"):
        failures = notifier.publish([RecordChange('article', INSERT, None, "record")])

    assert failures == 1
    assert seen == ["record"]
    assert "handler exploded" in caplog.text


def test_update_handler_gets_old_and_new():
    notifier = ChangeNotifier()
    pairs = []
    notifier.on_update('package', lambda old, new: pairs.append((old, new)))

    notifier.publish([RecordChange('package', UPDATE, "before", "after")])

    assert pairs == [("before", "after")]


def test_unknown_entity_type_is_rejected():
    notifier = ChangeNotifier()
    with pytest.raises(ValueError):
        notifier.on_insert('truck', lambda record: None)


def test_change_log_subscriber_logs_each_change(initialized_store, caplog):
    from lodi.services.change_log import ChangeLogSubscriber

    subscriber = ChangeLogSubscriber(initialized_store.notifier).attach()
    with caplog.at_level(logging.INFO, logger="lodi"):
        LogisticsEngine.advance_package_state(initialized_store, "PKG1", "OnTheWay")
    subscriber.detach()

    assert "updated: Package PKG1 [Prepared] 1 -> 2 => Package PKG1 [OnTheWay] 1 -> 2" in caplog.text
    assert "updated: Deposit 1 (Depot A)" in caplog.text
    assert initialized_store.notifier.handler_count('package', UPDATE) == 0


def test_batches_committed_by_handlers_are_delivered_after_current_batch(initialized_store):
    seen = []

    def finish_trip(old, new):
        if new.state == "OnTheWay":
            LogisticsEngine.advance_package_state(initialized_store, new.id, "AtDestination")
            seen.append(('handler returned', new.state))

    initialized_store.notifier.on_update('package', finish_trip)
    initialized_store.notifier.on_update('package', lambda old, new: seen.append((old.state, new.state)))

    LogisticsEngine.advance_package_state(initialized_store, "PKG1", "OnTheWay")

    assert seen == [
        ('handler returned', "OnTheWay"),
        ("Prepared", "OnTheWay"),
        ("OnTheWay", "AtDestination"),
    ]
