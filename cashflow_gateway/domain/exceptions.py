"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidProjectionIdError(DomainException):
    """Projection id does not follow proj_<sourceId>::<date>::<occurrenceId>"""

    pass


class InvalidOccurrenceIdError(DomainException):
    """Occurrence id does not encode a recognised logical period for its source"""

    pass


class InvalidRuleConfigurationError(DomainException):
    """Rule or debt configuration violates its invariants"""

    pass


class InvalidDateRangeError(DomainException):
    """Window start falls after window end"""

    pass


class SourceNotFoundError(DomainException):
    """No income source or expense rule exists for the referenced id"""

    pass


class InvalidTransactionStateError(DomainException):
    """Action does not apply to the transaction in its current state"""

    pass
