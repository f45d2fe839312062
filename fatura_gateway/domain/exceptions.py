"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRecordDataError(DomainException):
    """Persisted record is malformed (unparseable date, missing field, bad number)"""

    pass


class CardNotFoundError(DomainException):
    """Referenced card does not exist"""

    pass


class InstallmentNotFoundError(DomainException):
    """Referenced installment does not exist"""

    pass


class InvalidInstallmentPlanError(DomainException):
    """Installment plan request cannot be split"""

    pass


class InvalidInvoicePeriodError(DomainException):
    """Invoice month outside 1-12"""

    pass
