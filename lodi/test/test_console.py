"""
Tests for the command console and the local mirror it lists from
"""
import io

import pytest

from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.buisness.logistics.state_machine import ArticleStatus, PackageStateMachine
from lodi.services.console import LodiConsole
from lodi.services.local_mirror import LocalMirror


@pytest.fixture
def mirror(initialized_store):
    mirror = LocalMirror(initialized_store).attach()
    yield mirror
    mirror.detach()


@pytest.fixture
def console(initialized_store, mirror):
    return LodiConsole(initialized_store, mirror, stdin=io.StringIO(), stdout=io.StringIO())


def _output(console):
    return console.stdout.getvalue()


# ========== LocalMirror ==========

def test_mirror_is_seeded_from_snapshot(mirror, initialized_store):
    snapshot = initialized_store.snapshot()

    assert mirror.deposits() == snapshot['deposit']
    assert mirror.packages() == snapshot['package']
    assert len(mirror.articles()) == 55
    assert len(mirror.articles_at(2)) == 25
    assert len(mirror.transport_logs()) == 1


def test_mirror_follows_committed_changes(mirror, initialized_store):
    package = LogisticsEngine.create_travel_order(initialized_store, 1, 2)

    assert mirror.get('package', package.id) == package
    assert package.id in mirror.get('deposit', 1).outgoing_package_ids
    for article_id in package.contents:
        assert mirror.get('article', article_id).status == ArticleStatus.IN_TRANSIT
    assert len(mirror.transport_logs()) == 2


def test_detached_mirror_stops_updating(mirror, initialized_store):
    mirror.detach()

    LogisticsEngine.advance_package_state(initialized_store, "PKG1", PackageStateMachine.ON_THE_WAY)

    assert mirror.get('package', "PKG1").state == PackageStateMachine.PREPARED


def test_commit_between_snapshot_and_seeding_is_kept(initialized_store, monkeypatch):
    read_snapshot = initialized_store.snapshot

    def snapshot_then_advance():
        snapshot = read_snapshot()
        LogisticsEngine.advance_package_state(initialized_store, "PKG1", PackageStateMachine.ON_THE_WAY)
        return snapshot

    monkeypatch.setattr(initialized_store, "snapshot", snapshot_then_advance)
    mirror = LocalMirror(initialized_store).attach()
    monkeypatch.undo()

    stored = initialized_store.snapshot()
    assert mirror.get('package', "PKG1").state == PackageStateMachine.ON_THE_WAY
    assert mirror.deposits() == stored['deposit']
    assert mirror.packages() == stored['package']
    mirror.detach()


def test_mirror_ends_on_latest_state_when_handler_commits(initialized_store):
    def finish_trip(old, new):
        if new.state == PackageStateMachine.ON_THE_WAY:
            LogisticsEngine.advance_package_state(initialized_store, new.id, PackageStateMachine.AT_DESTINATION)

    initialized_store.notifier.on_update('package', finish_trip)
    mirror = LocalMirror(initialized_store).attach()

    LogisticsEngine.advance_package_state(initialized_store, "PKG1", PackageStateMachine.ON_THE_WAY)

    stored = initialized_store.snapshot()
    assert mirror.get('package', "PKG1").state == PackageStateMachine.AT_DESTINATION
    assert mirror.deposits() == stored['deposit']
    assert mirror.articles() == stored['article']
    mirror.detach()


# ========== LodiConsole ==========

def test_list_deposits(console):
    assert console.handle("/list-deposits")

    assert _output(console).splitlines() == [
        "Available Deposits:",
        "ID: 1 - Depot A",
        "ID: 2 - Depot B",
    ]


def test_list_packages(console):
    assert console.handle("/list-packages")

    assert "PKG1 [Prepared] 1 -> 2 (3 articles)" in _output(console)


def test_create_travel_then_listing_shows_it(console, mirror):
    assert console.handle("/create-travel 2 1")

    [created] = [p for p in mirror.packages() if p.id != "PKG1"]
    assert f"Created travel order {created.id} from depot 2 to depot 1" in _output(console)
    console.handle("/list-packages")
    assert f"{created.id} [Preparing] 2 -> 1 (5 articles)" in _output(console)


@pytest.mark.parametrize("line", [
    "/create-travel",
    "/create-travel 1",
    "/create-travel one two",
    "/create-travel 1 2 3",
])
def test_create_travel_usage(console, initialized_store, line):
    assert not console.handle(line)

    assert "Usage: /create-travel <sourceDepotId> <destDepotId>" in _output(console)
    assert len(initialized_store.snapshot()['package']) == 1


def test_create_travel_same_deposit_reports_error(console):
    assert not console.handle("/create-travel 1 1")

    assert _output(console).startswith("Error processing command:")


def test_advance_package(console, mirror):
    assert console.handle("/advance-package PKG1 OnTheWay")

    assert "Advanced package PKG1 to state 'OnTheWay'" in _output(console)
    assert mirror.get('package', "PKG1").state == PackageStateMachine.ON_THE_WAY


def test_advance_package_invalid_transition(console, mirror):
    assert not console.handle("/advance-package PKG1 AtDestination")

    assert "Error processing command: Invalid state transition: Prepared -> AtDestination" in _output(console)
    assert mirror.get('package', "PKG1").state == PackageStateMachine.PREPARED


def test_update_article_accepts_multi_word_status(console, mirror):
    article_id = mirror.articles()[0].article_id

    assert console.handle(f"/update-article {article_id} lost in transit")

    assert mirror.get('article', article_id).status == "lost in transit"


def test_update_unknown_article(console):
    assert not console.handle("/update-article ART-missing delivered")

    assert "not found" in _output(console)


def test_unknown_command(console):
    assert not console.handle("/teleport PKG1")

    assert _output(console) == "Unknown command. Type /help for available commands.\n"


def test_run_loops_until_exit(initialized_store, mirror):
    stdin = io.StringIO("/help\n\n/list-deposits\n/EXIT\n/list-packages\n")
    stdout = io.StringIO()

    LodiConsole(initialized_store, mirror, stdin=stdin, stdout=stdout).run()

    output = stdout.getvalue()
    assert output.startswith("Lodi Package Tracking System")
    assert "ID: 2 - Depot B" in output
    assert "Packages:" not in output


def test_run_stops_at_end_of_input(initialized_store, mirror):
    stdout = io.StringIO()

    LodiConsole(initialized_store, mirror, stdin=io.StringIO("/list-deposits\n"), stdout=stdout).run()

    assert stdout.getvalue().endswith("> ")
