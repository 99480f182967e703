"""
State machine for the package lifecycle, plus article status codes

Encodes valid transitions. Keeps "what is allowed" separate from "how
persistence occurs" (see LogisticsEngine).
"""

from typing import Dict, Optional, Set

from lodi.buisness.core.errors import InvalidTransitionError


class PackageStateMachine:
    """
    State machine for Package.state.

    The lifecycle is strictly forward with exactly one successor per state:

        Preparing -> Prepared -> OnTheWay -> AtDestination

    Skips, same-state requests and backward moves are all rejected.
    """

    PREPARING = 'Preparing'
    PREPARED = 'Prepared'
    ON_THE_WAY = 'OnTheWay'
    AT_DESTINATION = 'AtDestination'

    ORDER = (PREPARING, PREPARED, ON_THE_WAY, AT_DESTINATION)

    TERMINAL_STATES = {AT_DESTINATION}

    # from_state -> the only allowed to_state
    TRANSITIONS: Dict[str, str] = {
        PREPARING: PREPARED,
        PREPARED: ON_THE_WAY,
        ON_THE_WAY: AT_DESTINATION,
    }

    @classmethod
    def next_state(cls, from_state: str) -> Optional[str]:
        """Successor of from_state, or None for terminal/unknown states"""
        return cls.TRANSITIONS.get(from_state)

    @classmethod
    def can_transition(cls, from_state: str, to_state: str) -> bool:
        successor = cls.next_state(from_state)
        return successor is not None and successor == to_state

    @classmethod
    def validate_transition(cls, from_state: str, to_state: str) -> None:
        """
        Raise if to_state is not the successor of from_state.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not cls.can_transition(from_state, to_state):
            raise InvalidTransitionError(from_state, to_state)

    @classmethod
    def has_reached(cls, current_state: str, target_state: str) -> bool:
        """True if current_state is target_state or later in the lifecycle"""
        if current_state not in cls.ORDER or target_state not in cls.ORDER:
            return False
        return cls.ORDER.index(current_state) >= cls.ORDER.index(target_state)

    @classmethod
    def get_allowed_transitions(cls, from_state: str) -> Set[str]:
        successor = cls.next_state(from_state)
        return {successor} if successor else set()


class ArticleStatus:
    """
    Recognized article status codes.

    update_article_status accepts any string; these are the values the
    engine itself writes.
    """

    IN_STOCK = 'in_stock'
    IN_TRANSIT = 'in_transit'
    PROCESSING = 'processing'
    DELIVERED = 'delivered'

    KNOWN = {IN_STOCK, IN_TRANSIT, PROCESSING, DELIVERED}
