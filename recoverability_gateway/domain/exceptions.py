"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidReportRequestError(DomainException):
    """Report parameters are malformed (unknown fiscal month, inverted range)"""

    pass


class LedgerSourceError(DomainException):
    """Ledger storage is unavailable or returned unusable data"""

    pass


class ReferenceDataError(DomainException):
    """Service line reference lookup failed"""

    pass
