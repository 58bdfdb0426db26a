"""Structured values produced by the quote engine and the orchestrator."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Tuple

from .errors import ErrorKind, MoniError


@dataclass(frozen=True)
class SwapPath:
    """Ordered router path.

    Native endpoints are already replaced by the wrapped token address;
    ``native_in`` / ``native_out`` remember that so the caller can pick the
    value-bearing entry point.
    """

    addresses: Tuple[str, ...]
    native_in: bool = False
    native_out: bool = False
    override: bool = False

    def __post_init__(self):
        if len(self.addresses) < 2:
            raise ValueError("a swap path needs at least two addresses")
        if self.native_in and self.native_out:
            raise ValueError("a swap path cannot be native on both ends")

    @property
    def hops(self) -> int:
        return len(self.addresses) - 1


@dataclass(frozen=True)
class Quote:
    """Expected output of a swap at the time of the read."""

    source: str
    destination: str
    amount_in: Decimal
    amount_out: Decimal
    amount_in_base: int
    amount_out_base: int
    path: SwapPath

    @property
    def rate(self) -> float:
        # display only, never fed back into a transaction
        return float(self.amount_out) / float(self.amount_in)


@dataclass(frozen=True)
class ApprovalRecord:
    """What was (or would have been) granted to a spender before an action."""

    token: str
    spender: str
    policy: str
    required: int
    allowance_before: int
    amount: int | None = None
    tx_hash: str | None = None

    @property
    def skipped(self) -> bool:
        return self.tx_hash is None


@dataclass(frozen=True)
class StepRecord:
    name: str
    tx_hash: str
    block_number: int


class ResultStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    FEATURE_DISABLED = "feature_disabled"


@dataclass(frozen=True)
class OrchestrationResult:
    """Outcome of one orchestrated operation.

    Build instances through ``succeeded``, ``failed`` or ``disabled``; the
    constructor rejects mixes of success and failure fields.
    """

    action: str
    status: ResultStatus
    sender: str | None = None
    tx_hash: str | None = None
    block_number: int | None = None
    method: str | None = None
    source_token: str | None = None
    destination_token: str | None = None
    recipient: str | None = None
    amount_in: Decimal | None = None
    amount_out: Decimal | None = None
    approval: ApprovalRecord | None = None
    steps: Tuple[StepRecord, ...] = ()
    details: Mapping[str, Any] = field(default_factory=dict)
    transitions: Tuple[str, ...] = ()
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    message: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))
        has_error = self.error_kind is not None or self.error_message is not None
        has_success = any(
            value is not None
            for value in (self.tx_hash, self.block_number, self.method, self.amount_out)
        ) or bool(self.steps)

        if self.status is ResultStatus.SUCCESS:
            if has_error:
                raise ValueError("a successful result cannot carry an error")
            if self.tx_hash is None or self.block_number is None or self.method is None:
                raise ValueError("a successful result needs tx_hash, block_number and method")
        elif self.status is ResultStatus.FAILED:
            if self.error_kind is None or not self.error_message:
                raise ValueError("a failed result needs error_kind and error_message")
            if has_success or self.approval is not None:
                raise ValueError("a failed result cannot carry success fields")
        else:
            if has_error or has_success:
                raise ValueError("a disabled result only carries a message")

    @property
    def success(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    @property
    def approval_tx_hash(self) -> str | None:
        return self.approval.tx_hash if self.approval else None

    @classmethod
    def succeeded(cls, action: str, **fields) -> "OrchestrationResult":
        return cls(action=action, status=ResultStatus.SUCCESS, **fields)

    @classmethod
    def failed(
        cls,
        action: str,
        error: MoniError,
        sender: str | None = None,
        transitions: Tuple[str, ...] = (),
        message: str | None = None,
    ) -> "OrchestrationResult":
        """Build a failed result; ``message`` replaces the error's own text."""
        return cls(
            action=action,
            status=ResultStatus.FAILED,
            sender=sender,
            transitions=transitions,
            error_kind=error.kind,
            error_message=message or error.message,
        )

    @classmethod
    def disabled(cls, action: str, message: str) -> "OrchestrationResult":
        return cls(action=action, status=ResultStatus.FEATURE_DISABLED, message=message)
