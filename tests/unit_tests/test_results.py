"""Unit tests for result invariants."""

from decimal import Decimal

import pytest

from moni.errors import ErrorKind, InsufficientFunds, StrategyExhausted, TransactionReverted
from moni.results import ApprovalRecord, OrchestrationResult, Quote, ResultStatus, SwapPath


class TestOrchestrationResult:
    """Results are either fully successful, failed or disabled."""

    def test_success_requires_hash_block_and_method(self):
        with pytest.raises(ValueError):
            OrchestrationResult.succeeded("swap", tx_hash="0xabc", method="swap")

    def test_success_cannot_carry_error(self):
        with pytest.raises(ValueError):
            OrchestrationResult(
                action="swap",
                status=ResultStatus.SUCCESS,
                tx_hash="0xabc",
                block_number=1,
                method="swapExactETHForTokens",
                error_kind=ErrorKind.TRANSACTION_REVERTED,
                error_message="reverted",
            )

    def test_failed_cannot_carry_success_fields(self):
        with pytest.raises(ValueError):
            OrchestrationResult(
                action="swap",
                status=ResultStatus.FAILED,
                tx_hash="0xabc",
                error_kind=ErrorKind.TRANSACTION_REVERTED,
                error_message="reverted",
            )

    def test_failed_from_error(self):
        result = OrchestrationResult.failed("transfer", InsufficientFunds("not enough"))

        assert not result.success
        assert result.error_kind is ErrorKind.INSUFFICIENT_FUNDS
        assert result.error_message == "not enough"
        assert result.tx_hash is None

    def test_disabled_only_has_message(self):
        result = OrchestrationResult.disabled("claim", "off")

        assert result.status is ResultStatus.FEATURE_DISABLED
        assert result.message == "off"
        with pytest.raises(ValueError):
            OrchestrationResult(
                action="claim", status=ResultStatus.FEATURE_DISABLED, tx_hash="0xabc"
            )

    def test_details_are_read_only(self):
        result = OrchestrationResult.succeeded(
            "wrap", tx_hash="0xabc", block_number=1, method="deposit", details={"a": 1}
        )
        with pytest.raises(TypeError):
            result.details["a"] = 2

    def test_approval_hash(self):
        approval = ApprovalRecord(
            token="USDC", spender="0xrouter", policy="exact", required=5,
            allowance_before=0, amount=5, tx_hash="0xapprove",
        )
        result = OrchestrationResult.succeeded(
            "swap", tx_hash="0xabc", block_number=1, method="swapExactTokensForETH",
            approval=approval,
        )
        assert result.approval_tx_hash == "0xapprove"
        assert not approval.skipped


class TestValueTypes:
    def test_swap_path_needs_two_addresses(self):
        with pytest.raises(ValueError):
            SwapPath(addresses=("0xabc",))

    def test_swap_path_cannot_be_native_both_ways(self):
        with pytest.raises(ValueError):
            SwapPath(addresses=("0xa", "0xb"), native_in=True, native_out=True)

    def test_quote_rate(self):
        quote = Quote(
            source="MON", destination="USDC",
            amount_in=Decimal("4"), amount_out=Decimal("10"),
            amount_in_base=4 * 10**18, amount_out_base=10_000_000,
            path=SwapPath(addresses=("0xa", "0xb"), native_in=True),
        )
        assert quote.rate == 2.5


class TestErrors:
    def test_strategy_exhausted_lists_attempts(self):
        error = StrategyExhausted(
            "unstake",
            [
                ("withdraw", TransactionReverted("Transaction 0x1 reverted")),
                ("transfer", InsufficientFunds("no aprMON")),
            ],
        )
        assert error.kind is ErrorKind.STRATEGY_EXHAUSTED
        assert "withdraw: TransactionReverted" in error.message
        assert "transfer: InsufficientFunds (no aprMON)" in error.message

    def test_error_kind_values_are_names(self):
        assert ErrorKind.MISSING_CREDENTIAL.value == "MissingCredential"
        assert ErrorKind("PathQueryFailed") is ErrorKind.PATH_QUERY_FAILED
