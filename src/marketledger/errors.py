"""Ledger error taxonomy. Every failing operation raises one of these."""

from __future__ import annotations


class LedgerError(Exception):
    """Base ledger error. `code` is the machine-readable kind used by the CLI and API."""

    code = "ledger_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(LedgerError):
    """Malformed creation parameters or out-of-bounds bet amount."""

    code = "invalid_argument"


class NotFound(LedgerError):
    """Reference to a non-existent market or bet."""

    code = "not_found"


class InvalidState(LedgerError):
    """Operation attempted from a disallowed lifecycle state."""

    code = "invalid_state"


class Unauthorized(LedgerError):
    """Caller lacks the authority for the operation."""

    code = "unauthorized"


class AlreadyExists(LedgerError):
    """Duplicate bet from the same participant on the same market."""

    code = "already_exists"


class AlreadyClaimed(LedgerError):
    code = "already_claimed"


class NotAWinner(LedgerError):
    code = "not_a_winner"


class TransferFailed(LedgerError):
    """The value-transfer primitive reported failure."""

    code = "transfer_failed"
