"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ClassifierAPIError(DomainException):
    """Chat-completion API timed out, returned an error or an unexpected envelope"""

    pass


class PersistenceError(DomainException):
    """Ledger or state store could not be written"""

    pass


class CorruptedStateError(DomainException):
    """Stored conversation payload could not be decoded"""

    pass
