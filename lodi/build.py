#!/usr/bin/env python3
"""
Build orchestrator for the Lodi package tracking system
Creates tables and bootstraps the demo deposits exactly once
"""

from lodi import db
from lodi.buisness.core.record_store import RecordStore
from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.logger import get_logger

logger = get_logger("lodi.build")


def check_system_initialization(store):
    """
    Check if the bootstrap data is already present

    Returns:
        bool: True if any deposit exists
    """
    with store.transaction() as tx:
        return tx.deposit.count() > 0


def build_database(app, store=None):
    """
    Create all logistics tables and run the bootstrap once

    Args:
        app: Flask app from lodi.create_app()
        store: RecordStore to bootstrap through; one is built from the app if omitted

    Returns:
        RecordStore: The store used for the build
    """
    logger.info("Creating logistics tables...")
    with app.app_context():
        db.create_all()
    logger.info("Tables created")

    store = store or RecordStore.from_app(app)

    if not app.config.get('BOOTSTRAP_ON_BUILD', True):
        logger.info("Bootstrap disabled, skipping initial data")
        return store

    if check_system_initialization(store):
        logger.info("System already initialized, skipping bootstrap")
        return store

    logger.info("Bootstrapping initial deposits and package...")
    LogisticsEngine.initialize(store)
    return store
