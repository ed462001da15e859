"""
Domain errors raised by the presale services.

Each error carries a stable `code` and the HTTP status the API renders it
with. Validation errors are never partially applied; StoreUnavailable is
retryable because purchases are idempotent on tx hash.
"""

from fastapi import status


class PresaleError(Exception):
    code = "presale_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAmount(PresaleError):
    code = "invalid_amount"


class WalletNotResolvable(PresaleError):
    code = "wallet_not_resolvable"


class InvalidStage(PresaleError):
    code = "invalid_stage"


class PresaleInactive(PresaleError):
    code = "presale_inactive"
    status_code = status.HTTP_403_FORBIDDEN


class AccountNotFound(PresaleError):
    code = "account_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class TransactionConflict(PresaleError):
    """A tx hash was re-submitted with different purchase details."""

    code = "transaction_conflict"
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailable(PresaleError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InvalidTransactionHash(PresaleError):
    code = "invalid_tx_hash"
