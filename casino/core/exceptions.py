"""Typed failures of a single round. None of them is fatal to the process."""


class CasinoError(Exception):
    """Base class; carries the HTTP status the API layer responds with."""

    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CasinoError):
    """Bad stake, unknown game or bet type. Rejected before any financial effect."""


class InsufficientFundsError(CasinoError):
    def __init__(self, stake, balance):
        super().__init__(f"Insufficient balance: stake {stake} exceeds balance {balance}")
        self.stake = stake
        self.balance = balance


class AccountNotFoundError(CasinoError):
    status_code = 404

    def __init__(self, account_id):
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class StateIntegrityError(CasinoError):
    """A resubmitted blackjack round token is malformed, forged, expired or already settled."""

    status_code = 409


class PersistenceError(CasinoError):
    """The account store failed; the atomic unit was rolled back."""

    status_code = 503
    retryable = True
