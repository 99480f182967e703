"""
PackageProgressionWorker - drives new packages through their lifecycle

Listens for package inserts. Every package created in Preparing gets a
background sequence:

    wait -> Prepared -> wait -> OnTheWay -> wait -> AtDestination
         -> wait -> every contained article marked delivered

Each step is a separate LogisticsEngine call. The engine keeps no session
state between calls, so a step can be retried on its own, and a step whose
target state was already reached (someone advanced the package by hand) is
skipped instead of failing the sequence.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from lodi.buisness.core.errors import InvalidTransitionError, LogisticsDomainError
from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.buisness.logistics.state_machine import ArticleStatus, PackageStateMachine
from lodi.logger import get_logger

logger = get_logger("lodi.worker")

DEFAULT_STEP_DELAYS = (2.0, 2.0, 3.0, 2.0)


class PackageProgressionWorker:
    """
    Automated collaborator that advances packages on a delay schedule.

    Args:
        store: RecordStore whose notifier announces new packages
        step_delays: Seconds to wait before Prepared, OnTheWay, AtDestination
            and article delivery respectively
        max_attempts: Attempts per step before the sequence is abandoned
        retry_delay: Seconds between attempts of the same step
    """

    def __init__(self, store, step_delays: Sequence[float] = DEFAULT_STEP_DELAYS,
                 max_attempts: int = 3, retry_delay: float = 0.5):
        if len(step_delays) != 4:
            raise ValueError("step_delays needs one delay per step (4)")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.store = store
        self.step_delays = tuple(step_delays)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._threads: Dict[str, threading.Thread] = {}
        self._unsubscribe = None

        # Outcome per package id: 'delivered', 'abandoned' or 'stopped'
        self.results: Dict[str, str] = {}

    @classmethod
    def from_app(cls, app, store) -> "PackageProgressionWorker":
        """Build a worker using the app's WORKER_* configuration"""
        return cls(
            store,
            step_delays=app.config['WORKER_STEP_DELAYS'],
            max_attempts=app.config['WORKER_MAX_ATTEMPTS'],
        )

    # ========== Lifecycle ==========

    def start(self) -> "PackageProgressionWorker":
        """Subscribe to package inserts"""
        if self._unsubscribe is None:
            self._stop.clear()
            self._unsubscribe = self.store.notifier.on_insert('package', self._on_package_insert)
            logger.info("Package progression worker subscribed to new packages")
        return self

    def stop(self) -> None:
        """Unsubscribe and cancel pending waits; running steps finish first"""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._stop.set()
        logger.info("Package progression worker stopping")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every running sequence to end.

        Returns:
            bool: True if all sequences finished within the timeout
        """
        with self._lock:
            threads = list(self._threads.values())
        for thread in threads:
            thread.join(timeout)
        return not any(thread.is_alive() for thread in threads)

    @property
    def active_packages(self):
        with self._lock:
            return sorted(pid for pid, thread in self._threads.items() if thread.is_alive())

    # ========== Notification handler ==========

    def _on_package_insert(self, package) -> None:
        logger.info(f"New package detected: {package.id} in state {package.state}")
        if package.state != PackageStateMachine.PREPARING:
            return

        thread = threading.Thread(
            target=self._run_sequence,
            args=(package.id, package.contents),
            name=f"progression-{package.id}",
            daemon=True,
        )
        with self._lock:
            self._threads[package.id] = thread
        thread.start()

    # ========== Sequence ==========

    def _wait(self, seconds: float) -> bool:
        """Sleep unless stopped; returns False when the worker was stopped"""
        return not self._stop.wait(seconds)

    def _run_sequence(self, package_id: str, contents) -> None:
        logger.info(f"Starting state progression for package {package_id}")
        try:
            self.results[package_id] = self._progress(package_id, contents)
        finally:
            with self._lock:
                self._threads.pop(package_id, None)

        if self.results[package_id] == 'delivered':
            logger.info(f"Package {package_id} delivered")

    def _progress(self, package_id: str, contents) -> str:
        """Run the steps for one package and return its outcome"""
        targets = (
            PackageStateMachine.PREPARED,
            PackageStateMachine.ON_THE_WAY,
            PackageStateMachine.AT_DESTINATION,
        )

        for delay, target in zip(self.step_delays, targets):
            if not self._wait(delay):
                return 'stopped'
            if not self._advance(package_id, target):
                return 'abandoned'

        if not self._wait(self.step_delays[3]):
            return 'stopped'

        logger.info(f"Updating articles in package {package_id} to delivered")
        for article_id in contents:
            if not self._attempt(
                f"deliver article {article_id}",
                lambda: LogisticsEngine.update_article_status(self.store, article_id, ArticleStatus.DELIVERED),
            ):
                return 'abandoned'

        return 'delivered'

    def _advance(self, package_id: str, target: str) -> bool:
        def step():
            try:
                LogisticsEngine.advance_package_state(self.store, package_id, target)
            except InvalidTransitionError:
                package = LogisticsEngine.find_package(self.store, package_id)
                if package is not None and PackageStateMachine.has_reached(package.state, target):
                    logger.info(f"Package {package_id} already at {package.state}; skipping {target}")
                    return
                raise

        logger.info(f"Advancing package {package_id} to {target}")
        return self._attempt(f"advance {package_id} to {target}", step)

    def _attempt(self, description: str, step) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                step()
                return True
            except (LogisticsDomainError, SQLAlchemyError) as exc:
                logger.warning(f"Step '{description}' failed (attempt {attempt}/{self.max_attempts}): {exc}")
            if attempt < self.max_attempts and not self._wait(self.retry_delay):
                return False
        logger.error(f"Giving up on step '{description}' after {self.max_attempts} attempts")
        return False
