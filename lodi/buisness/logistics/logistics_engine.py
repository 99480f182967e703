"""
LogisticsEngine - Business logic for deposits, packages and articles

Responsibilities:
- Bootstrap the two demo deposits with stock and one prepared package
- Create travel orders: pick in-stock articles, build a package, log it
- Advance packages through their lifecycle and apply arrival/departure effects
- Overwrite article status for out-of-band corrections

Every operation takes the store as its first argument and runs inside a
single store transaction: all writes commit together or none do, and change
notifications fire only after commit.
"""

import uuid
from dataclasses import replace

from lodi.buisness.core.errors import InvalidArgumentError, LogisticsDomainError
from lodi.buisness.logistics import deposit_manifest
from lodi.buisness.logistics.records import UNASSIGNED, Article, Deposit, Package, TransportLog
from lodi.buisness.logistics.state_machine import ArticleStatus, PackageStateMachine
from lodi.logger import get_logger

logger = get_logger("lodi.engine")

# Bootstrap layout
INITIAL_DEPOSIT_NAMES = ('Depot A', 'Depot B')
INITIAL_ARTICLE_COUNTS = (30, 25)
INITIAL_PACKAGE_ID = 'PKG1'
INITIAL_PACKAGE_SIZE = 3
INITIAL_PACKAGE_MAX_LOAD = 50

# Travel orders
TRAVEL_ORDER_SIZE = 5
TRAVEL_ORDER_MAX_LOAD = 100


def new_article_id():
    return f"ART-{uuid.uuid4()}"


class LogisticsEngine:
    """Transactional operations over the logistics record store"""

    @staticmethod
    def initialize(store):
        """
        Create the two starting deposits, their stock and package PKG1.

        Must run at most once per store; a repeat run fails on the PKG1 key
        and is rolled back.

        Args:
            store: RecordStore

        Returns:
            Package: The bootstrap package

        Raises:
            DuplicateKeyError: If the store was already initialized
        """
        with store.transaction() as tx:
            source = tx.deposit.insert(Deposit(id=UNASSIGNED, name=INITIAL_DEPOSIT_NAMES[0]))
            destination = tx.deposit.insert(Deposit(id=UNASSIGNED, name=INITIAL_DEPOSIT_NAMES[1]))

            for deposit, count in zip((source, destination), INITIAL_ARTICLE_COUNTS):
                for _ in range(count):
                    tx.article.insert(Article(
                        article_id=new_article_id(),
                        current_deposit=deposit.id,
                        status=ArticleStatus.IN_STOCK,
                    ))

            contents = []
            for article in tx.article.iterate():
                if len(contents) >= INITIAL_PACKAGE_SIZE:
                    break
                if article.current_deposit == source.id:
                    tx.article.update(replace(article, status=ArticleStatus.IN_TRANSIT))
                    contents.append(article.article_id)

            package = tx.package.insert(Package(
                id=INITIAL_PACKAGE_ID,
                max_load=INITIAL_PACKAGE_MAX_LOAD,
                contents=tuple(contents),
                state=PackageStateMachine.PREPARED,
                source_deposit=source.id,
                destination_deposit=destination.id,
            ))

            tx.deposit.update(deposit_manifest.stage_outgoing(source, package.id))

            tx.transport_log.insert(TransportLog(
                log_id=UNASSIGNED,
                package_id=package.id,
                from_deposit=source.id,
                to_deposit=destination.id,
                created_time=tx.timestamp,
            ))

        logger.info(
            f"Initialized deposits {source.id} and {destination.id} "
            f"with bootstrap package {package.id} ({len(package.contents)} articles)"
        )
        return package

    @staticmethod
    def create_travel_order(store, source_deposit_id, destination_deposit_id, package_id=None):
        """
        Create a package of in-stock articles leaving source for destination.

        Takes up to TRAVEL_ORDER_SIZE articles that are in stock at the
        source, in store iteration order, and marks them in transit. The new
        package starts in Preparing and is staged on the source deposit. The
        destination deposit is not touched until arrival.

        Args:
            store: RecordStore
            source_deposit_id: Deposit the package leaves from
            destination_deposit_id: Deposit the package travels to
            package_id: Explicit package id; generated when omitted

        Returns:
            Package: The created package

        Raises:
            InvalidArgumentError: If source and destination are the same deposit
            NotFoundError: If either deposit does not exist
            DuplicateKeyError: If an explicit package_id already exists
        """
        if source_deposit_id == destination_deposit_id:
            logger.warning(f"Rejected travel order: source and destination are both {source_deposit_id}")
            raise InvalidArgumentError("Source and destination must differ")

        try:
            with store.transaction() as tx:
                source = tx.deposit.get(source_deposit_id)
                tx.deposit.get(destination_deposit_id)

                new_id = package_id or tx.new_package_id()

                contents = []
                for article in tx.article.iterate():
                    if len(contents) >= TRAVEL_ORDER_SIZE:
                        break
                    if article.current_deposit == source.id and article.status == ArticleStatus.IN_STOCK:
                        tx.article.update(replace(article, status=ArticleStatus.IN_TRANSIT))
                        contents.append(article.article_id)

                package = tx.package.insert(Package(
                    id=new_id,
                    max_load=TRAVEL_ORDER_MAX_LOAD,
                    contents=tuple(contents),
                    state=PackageStateMachine.PREPARING,
                    source_deposit=source.id,
                    destination_deposit=destination_deposit_id,
                ))

                tx.deposit.update(deposit_manifest.stage_outgoing(source, package.id))

                tx.transport_log.insert(TransportLog(
                    log_id=UNASSIGNED,
                    package_id=package.id,
                    from_deposit=source.id,
                    to_deposit=destination_deposit_id,
                    created_time=tx.timestamp,
                ))
        except LogisticsDomainError as exc:
            logger.warning(f"Rejected travel order {source_deposit_id} -> {destination_deposit_id}: {exc}")
            raise

        logger.info(
            f"Created travel order {package.id}: {source_deposit_id} -> {destination_deposit_id} "
            f"with {len(package.contents)} articles"
        )
        return package

    @staticmethod
    def advance_package_state(store, package_id, new_state):
        """
        Move a package to the next lifecycle state.

        Side effects:
        - OnTheWay: package leaves the source deposit's site and outgoing lists
        - AtDestination: package joins the destination deposit's site list and
          every contained article moves there with status processing

        Args:
            store: RecordStore
            package_id: Package to advance
            new_state: Requested state; must be the current state's successor

        Returns:
            Package: The updated package

        Raises:
            NotFoundError: If the package (or a deposit/article it references) does not exist
            InvalidTransitionError: If new_state is not the successor of the current state
        """
        try:
            with store.transaction() as tx:
                package = tx.package.get(package_id)
                PackageStateMachine.validate_transition(package.state, new_state)

                package = tx.package.update(replace(package, state=new_state))

                if new_state == PackageStateMachine.ON_THE_WAY:
                    source = tx.deposit.get(package.source_deposit)
                    tx.deposit.update(deposit_manifest.depart(source, package.id))

                elif new_state == PackageStateMachine.AT_DESTINATION:
                    destination = tx.deposit.get(package.destination_deposit)
                    tx.deposit.update(deposit_manifest.arrive(destination, package.id))

                    for article_id in package.contents:
                        article = tx.article.get(article_id)
                        tx.article.update(replace(
                            article,
                            current_deposit=package.destination_deposit,
                            status=ArticleStatus.PROCESSING,
                        ))
        except LogisticsDomainError as exc:
            logger.warning(f"Rejected advance of package {package_id} to {new_state}: {exc}")
            raise

        logger.info(f"Package {package.id} advanced to {package.state}")
        return package

    @staticmethod
    def update_article_status(store, article_id, new_status):
        """
        Overwrite an article's status.

        No legality check is applied to new_status; this is the escape hatch
        for out-of-band corrections such as marking articles delivered.

        Args:
            store: RecordStore
            article_id: Article to update
            new_status: Status string to store

        Returns:
            Article: The updated article

        Raises:
            NotFoundError: If the article does not exist
        """
        try:
            with store.transaction() as tx:
                article = tx.article.get(article_id)
                article = tx.article.update(replace(article, status=new_status))
        except LogisticsDomainError as exc:
            logger.warning(f"Rejected status update for article {article_id}: {exc}")
            raise

        if new_status not in ArticleStatus.KNOWN:
            logger.info(f"Article {article_id} set to unrecognized status {new_status!r}")
        else:
            logger.debug(f"Article {article_id} status set to {new_status}")
        return article

    # ========== Read Helpers ==========

    @staticmethod
    def list_deposits(store):
        with store.transaction() as tx:
            return tx.deposit.iterate()

    @staticmethod
    def list_packages(store):
        with store.transaction() as tx:
            return tx.package.iterate()

    @staticmethod
    def find_package(store, package_id):
        with store.transaction() as tx:
            return tx.package.find(package_id)
