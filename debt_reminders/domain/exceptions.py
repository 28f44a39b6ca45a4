"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDebtTermsError(DomainException):
    """Debt terms are malformed (negative amounts, bad split count, unknown period)"""

    pass


class WorkspaceNotFoundError(DomainException):
    """Referenced workspace does not exist"""

    pass


class MailRelayError(DomainException):
    """Mail relay returned an error or is unavailable"""

    pass
