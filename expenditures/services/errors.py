"""Custom exception classes for ledger operations.

Every error aborts the whole operation; nothing it did before raising is kept.
"""


class LedgerError(Exception):
    """Base ledger error."""

    code = "ledger_error"

    def __init__(self, message: str, code: str | None = None):
        """Initialize error."""
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class PermissionDeniedError(LedgerError):
    """Account lacks the authority required in the permission domain."""

    code = "permission_denied"


class NotFoundError(LedgerError):
    """Unknown expenditure, pot, domain or skill id."""

    code = "not_found"


class NotOwnerError(LedgerError):
    """Caller is not the expenditure owner."""

    code = "expenditure_not_owner"


class NotActiveError(LedgerError):
    """Expenditure is cancelled or finalized."""

    code = "expenditure_not_active"


class NotFinalizedError(LedgerError):
    """Expenditure has not been finalized yet."""

    code = "expenditure_not_finalized"


class ExpenditureCancelledError(LedgerError):
    """Expenditure was cancelled."""

    code = "expenditure_cancelled"


class NotFundedError(LedgerError):
    """Funding pot cannot cover every committed payout."""

    code = "expenditure_not_funded"


class TooEarlyError(LedgerError):
    """Recipient claim delay has not elapsed."""

    code = "expenditure_cannot_claim"


class InvalidSkillError(LedgerError):
    """Skill does not exist or is not a global skill."""

    code = "invalid_skill"


class DeprecatedSkillError(LedgerError):
    """Global skill is deprecated."""

    code = "deprecated_skill"


class BadExpenditureStateError(LedgerError):
    """Fund movement not allowed for the expenditure's current status."""

    code = "funding_expenditure_bad_state"


class NoSuchDomainError(LedgerError):
    """Domain id does not resolve."""

    code = "domain_does_not_exist"


class BadChildSkillError(LedgerError):
    """Child skill index does not lead to the target domain."""

    code = "invalid_domain_inheritance"


class StoppedError(LedgerError):
    """Ledger is paused."""

    code = "stopped"


class InsufficientFundsError(LedgerError):
    """Pot or account balance too low for the requested movement."""

    code = "insufficient_funds"


class InvalidInputError(LedgerError):
    """Argument out of range."""

    code = "invalid_input"


class TransferFailedError(LedgerError):
    """Token collaborator refused a transfer."""

    code = "transfer_failed"


__all__ = [
    "LedgerError",
    "PermissionDeniedError",
    "NotFoundError",
    "NotOwnerError",
    "NotActiveError",
    "NotFinalizedError",
    "ExpenditureCancelledError",
    "NotFundedError",
    "TooEarlyError",
    "InvalidSkillError",
    "DeprecatedSkillError",
    "BadExpenditureStateError",
    "NoSuchDomainError",
    "BadChildSkillError",
    "StoppedError",
    "InsufficientFundsError",
    "InvalidInputError",
    "TransferFailedError",
]
