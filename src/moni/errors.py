"""Error classification for orchestrated operations."""

from enum import Enum
from typing import Iterable, List


class ErrorKind(str, Enum):
    """Classification attached to every failed result."""

    UNSUPPORTED_TOKEN = "UnsupportedToken"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_ADDRESS = "InvalidAddress"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    BALANCE_QUERY_FAILED = "BalanceQueryFailed"
    ALLOWANCE_QUERY_FAILED = "AllowanceQueryFailed"
    APPROVAL_FAILED = "ApprovalFailed"
    PATH_QUERY_FAILED = "PathQueryFailed"
    SUBMISSION_FAILED = "SubmissionFailed"
    TRANSACTION_REVERTED = "TransactionReverted"
    CONFIRMATION_TIMEOUT = "ConfirmationTimeout"
    MISSING_CREDENTIAL = "MissingCredential"
    STRATEGY_EXHAUSTED = "StrategyExhausted"


class MoniError(Exception):
    """Base class for classified failures."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedToken(MoniError):
    kind = ErrorKind.UNSUPPORTED_TOKEN

    def __init__(self, symbol: str, supported: Iterable[str], side: str | None = None):
        self.symbol = symbol
        self.supported = list(supported)
        label = f"{side.capitalize()} token" if side else "Token"
        super().__init__(
            f"{label} {symbol} is not supported. "
            f"Supported tokens: {', '.join(self.supported)}"
        )


class AmbiguousToken(UnsupportedToken):
    """A case variant matches more than one symbol; the exact symbol is required."""

    def __init__(self, symbol: str, candidates: Iterable[str], side: str | None = None):
        self.symbol = symbol
        self.supported = list(candidates)
        label = f"{side.capitalize()} token" if side else "Token"
        MoniError.__init__(
            self,
            f"{label} {symbol} is ambiguous. Use the exact symbol: "
            f"{', '.join(self.supported)}",
        )


class UnsupportedPair(MoniError):
    """Both tokens are known but the router does not trade them against each other."""

    kind = ErrorKind.UNSUPPORTED_TOKEN


class InvalidAmount(MoniError):
    kind = ErrorKind.INVALID_AMOUNT


class InvalidAddress(MoniError):
    kind = ErrorKind.INVALID_ADDRESS


class InsufficientFunds(MoniError):
    kind = ErrorKind.INSUFFICIENT_FUNDS


class BalanceQueryFailed(MoniError):
    kind = ErrorKind.BALANCE_QUERY_FAILED


class AllowanceQueryFailed(MoniError):
    kind = ErrorKind.ALLOWANCE_QUERY_FAILED


class ApprovalFailed(MoniError):
    kind = ErrorKind.APPROVAL_FAILED


class PathQueryFailed(MoniError):
    kind = ErrorKind.PATH_QUERY_FAILED


class SubmissionFailed(MoniError):
    kind = ErrorKind.SUBMISSION_FAILED


class TransactionReverted(MoniError):
    kind = ErrorKind.TRANSACTION_REVERTED

    def __init__(self, message: str, tx_hash: str | None = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ConfirmationTimeout(MoniError):
    """Raised when a receipt does not arrive in time.

    The transaction was already broadcast and may still be mined later.
    """

    kind = ErrorKind.CONFIRMATION_TIMEOUT

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(
            f"Transaction {tx_hash} was not confirmed within {timeout:g} seconds. "
            "It was already broadcast and may still be mined; check the explorer "
            "before retrying."
        )


class MissingCredential(MoniError):
    kind = ErrorKind.MISSING_CREDENTIAL


class StrategyExhausted(MoniError):
    kind = ErrorKind.STRATEGY_EXHAUSTED

    def __init__(self, operation: str, attempts: List[tuple[str, MoniError]]):
        self.attempts = attempts
        details = "; ".join(
            f"{method}: {error.kind.value} ({error.message})" for method, error in attempts
        )
        super().__init__(f"All {operation} strategies failed. {details}")


class CollectionNotConfigured(MoniError):
    """The collection contract exists but its initial configuration failed.

    Keeps the kind of the underlying failure and names the deployed address so
    the configuration can be retried against it.
    """

    def __init__(self, collection: str, deploy_hash: str, cause: MoniError):
        self.kind = cause.kind
        self.collection = collection
        self.deploy_hash = deploy_hash
        self.cause = cause
        super().__init__(
            f"Collection {collection} was deployed in {deploy_hash} but its initial "
            f"configuration failed: {cause.message}"
        )
