"""
Pytest configuration and fixtures for the logistics tests
"""
import itertools
import os
import tempfile
from datetime import datetime

os.environ.setdefault("LODI_LOG_DIR", os.path.join(tempfile.gettempdir(), "lodi-test-logs"))

import pytest

from lodi import create_app
from lodi import db as _db
from lodi.buisness.core.record_store import RecordStore
from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.buisness.logistics.records import UNASSIGNED, Article, Deposit

FIXED_TIME = datetime(2024, 5, 1, 12, 30, 0)


@pytest.fixture(scope='function')
def app():
    """Create an app backed by a fresh in-memory database"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'WORKER_STEP_DELAYS': (0, 0, 0, 0),
        'WORKER_MAX_ATTEMPTS': 2,
    })

    with app.app_context():
        _db.create_all()

    yield app

    with app.app_context():
        _db.drop_all()


@pytest.fixture
def fixed_time():
    return FIXED_TIME


@pytest.fixture(scope='function')
def store(app):
    """Empty store with a fixed clock and predictable package ids"""
    counter = itertools.count(1)
    return RecordStore.from_app(
        app,
        clock=lambda: FIXED_TIME,
        id_factory=lambda: f"PKG-TEST-{next(counter)}",
    )


@pytest.fixture(scope='function')
def initialized_store(store):
    """Store after the bootstrap ran once"""
    LogisticsEngine.initialize(store)
    return store


@pytest.fixture
def make_deposit(store):
    """Factory fixture adding a bare deposit outside the bootstrap"""
    def _make(name):
        with store.transaction() as tx:
            return tx.deposit.insert(Deposit(id=UNASSIGNED, name=name))
    return _make


@pytest.fixture
def make_article(store):
    """Factory fixture adding a single article"""
    def _make(article_id, deposit_id, status='in_stock'):
        with store.transaction() as tx:
            return tx.article.insert(Article(article_id=article_id, current_deposit=deposit_id, status=status))
    return _make
