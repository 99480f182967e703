"""
Domain exceptions for logistics operations

Every operation either commits completely or raises one of these and leaves
the store untouched. Callers decide whether to retry.
"""


class LogisticsDomainError(Exception):
    """Base exception for all logistics domain errors"""
    pass


class NotFoundError(LogisticsDomainError):
    """Raised when a referenced deposit, package or article does not exist"""

    def __init__(self, entity_type, key):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{entity_type} {key!r} not found")


class InvalidArgumentError(LogisticsDomainError):
    """Raised when operation arguments are inconsistent (e.g. source equals destination)"""
    pass


class InvalidTransitionError(LogisticsDomainError):
    """Raised when a requested package state is not the successor of the current one"""

    def __init__(self, current_state, requested_state):
        self.current_state = current_state
        self.requested_state = requested_state
        super().__init__(f"Invalid state transition: {current_state} -> {requested_state}")


class DuplicateKeyError(LogisticsDomainError):
    """Raised when an explicit primary key collides with an existing record"""

    def __init__(self, entity_type, key):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{entity_type} with key {key!r} already exists")
