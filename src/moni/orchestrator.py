"""Transaction orchestration: validate, approve if needed, act, confirm.

Every public operation returns an ``OrchestrationResult`` and never raises a
``MoniError``. Each call keeps its own state, so independent operations can
run on separate threads against one orchestrator.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from web3 import Web3

from .abis import ERC20_ABI, STAKING_ABI, SWAP_ROUTER_ABI, WMON_ABI
from .chain import ChainClient
from .config_loader import get_config
from .config_models import Config, TokenConfig
from .errors import (
    AllowanceQueryFailed,
    ApprovalFailed,
    BalanceQueryFailed,
    ConfirmationTimeout,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    MoniError,
    StrategyExhausted,
    SubmissionFailed,
    TransactionReverted,
    UnsupportedToken,
)
from .quote import QuoteEngine
from .registry import TokenRegistry, format_units, get_registry, parse_units
from .results import ApprovalRecord, OrchestrationResult, StepRecord

logger = logging.getLogger(__name__)

CLAIM_DISABLED_MESSAGE = (
    "Claiming unstaked MON is currently disabled. Unstaked MON arrives through "
    "the withdraw or transfer unstake methods."
)
PENDING_WITHDRAWALS_DISABLED_MESSAGE = (
    "Pending withdrawal lookup is currently disabled. Check your MON balance "
    "after unstaking instead."
)


class OperationState(str, Enum):
    VALIDATING = "VALIDATING"
    APPROVAL_PENDING = "APPROVAL_PENDING"
    ACTING = "ACTING"
    CONFIRMING = "CONFIRMING"
    DONE = "DONE"
    FAILED = "FAILED"


def slippage_to_bps(slippage_percent) -> int:
    """Slippage in tenths of a percent, the unit ``minimum_output`` works in.

    Finer percentages round half up, so 0.05 becomes 1 and 0.04 becomes 0.

    Raises:
        InvalidAmount: If the percentage is not in [0, 100) once rounded.
    """
    try:
        percent = Decimal(str(slippage_percent))
    except Exception:
        raise InvalidAmount(f"Invalid slippage: {slippage_percent!r}")
    if not percent.is_finite() or percent < 0:
        raise InvalidAmount(f"Slippage must be between 0 and 100 percent, got {slippage_percent}")
    bps = int((percent * 10).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if bps >= 1000:
        raise InvalidAmount(f"Slippage must be between 0 and 100 percent, got {slippage_percent}")
    return bps


def minimum_output(expected: int, slippage_bps: int) -> int:
    """Lowest acceptable output for a swap, in the destination's smallest units."""
    return expected * (1000 - slippage_bps) // 1000


class _Run:
    """Audit trail and step log for one operation."""

    def __init__(self, action: str):
        self.action = action
        self.state = OperationState.VALIDATING
        self.transitions: List[str] = [OperationState.VALIDATING.value]
        self.sender: str | None = None
        self.steps: List[StepRecord] = []
        self.approval: ApprovalRecord | None = None

    def advance(self, state: OperationState):
        logger.info(f"{self.action}: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state.value)


class TransactionOrchestrator:
    """Turns high-level requests into ordered on-chain steps."""

    def __init__(
        self,
        chain: ChainClient,
        registry: TokenRegistry | None = None,
        quotes: QuoteEngine | None = None,
        config: Config | None = None,
    ):
        config = config or get_config()
        self.chain = chain
        self.registry = registry or get_registry()
        self.quotes = quotes or QuoteEngine(chain, self.registry, config)
        self.settings = config.orchestration
        self.router = Web3.to_checksum_address(config.contracts.swap_router)
        self.staking = Web3.to_checksum_address(config.contracts.staking)

    # Public operations

    def transfer(self, token: str, amount, recipient: str) -> OrchestrationResult:
        """Send MON or a token to ``recipient``."""
        return self._execute("transfer", self._transfer, token, amount, recipient)

    def wrap(self, amount) -> OrchestrationResult:
        """Wrap MON into WMON."""
        return self._execute("wrap", self._wrap, amount)

    def unwrap(self, amount) -> OrchestrationResult:
        """Unwrap WMON back into MON."""
        return self._execute("unwrap", self._unwrap, amount)

    def swap(
        self, source: str, destination: str, amount, slippage_percent=None
    ) -> OrchestrationResult:
        """Swap ``amount`` of ``source`` for ``destination`` through the router."""
        if slippage_percent is None:
            slippage_percent = self.settings.default_slippage_percent
        return self._execute(
            "swap", self._swap, source, destination, amount, slippage_percent
        )

    def stake(self, amount) -> OrchestrationResult:
        """Stake MON for aprMON."""
        return self._execute("stake", self._stake, amount)

    def unstake(self, amount, use_swap: bool = False) -> OrchestrationResult:
        """Turn aprMON back into MON.

        Tries ``withdraw`` on the staking contract, then a plain transfer of
        aprMON to it. With ``use_swap`` both are skipped and the position is
        sold through the router instead.
        """
        return self._execute("unstake", self._unstake, amount, use_swap)

    def claim(self) -> OrchestrationResult:
        return OrchestrationResult.disabled("claim", CLAIM_DISABLED_MESSAGE)

    def pending_withdrawals(self) -> OrchestrationResult:
        return OrchestrationResult.disabled(
            "pending_withdrawals", PENDING_WITHDRAWALS_DISABLED_MESSAGE
        )

    # Boundary

    def _execute(self, action: str, body: Callable[..., Dict[str, Any]], *args):
        run = _Run(action)
        try:
            fields = body(run, *args)
        except MoniError as e:
            run.advance(OperationState.FAILED)
            logger.error(f"{action} failed ({e.kind.value}): {e.message}")
            return OrchestrationResult.failed(
                action,
                e,
                sender=run.sender,
                transitions=tuple(run.transitions),
                message=self._approval_note(run, e.message),
            )

        run.advance(OperationState.DONE)
        return OrchestrationResult.succeeded(
            action,
            sender=run.sender,
            approval=run.approval,
            steps=tuple(run.steps),
            transitions=tuple(run.transitions),
            **fields,
        )

    def _approval_note(self, run: _Run, message: str) -> str:
        """Mention a confirmed approval that outlived the failed operation."""
        approval = run.approval
        if approval is None or approval.tx_hash is None:
            return message
        decimals = self.registry.resolve(approval.token).decimals
        return (
            f"{message} Approval {approval.tx_hash} granting {approval.spender} "
            f"{format_units(approval.amount, decimals):f} {approval.token} "
            f"({approval.policy} policy) was confirmed and remains in place."
        )

    # Operation bodies. Each runs in VALIDATING on entry and returns the
    # success fields of the result.

    def _transfer(self, run: _Run, symbol: str, amount, recipient: str):
        token = self.registry.resolve(symbol)
        if not recipient or not Web3.is_address(recipient):
            raise InvalidAddress(f"Invalid recipient address: {recipient!r}")
        recipient = Web3.to_checksum_address(recipient)
        amount_base = parse_units(amount, token.decimals)
        run.sender = self.chain.address
        self._require_balance(token, run.sender, amount_base)

        run.advance(OperationState.ACTING)
        if token.is_native:
            method = "native_transfer"
            tx_hash = self._submit(lambda: self.chain.send_value(recipient, amount_base))
        else:
            method = "token_transfer"
            tx_hash = self._submit(
                lambda: self.chain.write_contract(
                    token.address, ERC20_ABI, "transfer", recipient, amount_base
                )
            )
        receipt = self._confirm(run, method, tx_hash)

        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "method": method,
            "source_token": token.symbol,
            "recipient": recipient,
            "amount_in": format_units(amount_base, token.decimals),
        }

    def _wrap(self, run: _Run, amount):
        native = self.registry.native
        wrapped = self.registry.wrapped
        amount_base = parse_units(amount, native.decimals)
        run.sender = self.chain.address
        self._require_balance(native, run.sender, amount_base)

        run.advance(OperationState.ACTING)
        tx_hash = self._submit(
            lambda: self.chain.write_contract(
                wrapped.address, WMON_ABI, "deposit", value=amount_base
            )
        )
        receipt = self._confirm(run, "deposit", tx_hash)

        human = format_units(amount_base, native.decimals)
        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "method": "deposit",
            "source_token": native.symbol,
            "destination_token": wrapped.symbol,
            "amount_in": human,
            "amount_out": human,
        }

    def _unwrap(self, run: _Run, amount):
        native = self.registry.native
        wrapped = self.registry.wrapped
        amount_base = parse_units(amount, wrapped.decimals)
        run.sender = self.chain.address
        self._require_balance(wrapped, run.sender, amount_base)

        run.advance(OperationState.ACTING)
        tx_hash = self._submit(
            lambda: self.chain.write_contract(
                wrapped.address, WMON_ABI, "withdraw", amount_base
            )
        )
        receipt = self._confirm(run, "withdraw", tx_hash)

        human = format_units(amount_base, wrapped.decimals)
        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "method": "withdraw",
            "source_token": wrapped.symbol,
            "destination_token": native.symbol,
            "amount_in": human,
            "amount_out": human,
        }

    def _swap(self, run: _Run, source: str, destination: str, amount, slippage_percent):
        source_token = self.registry.resolve(source, side="source")
        destination_token = self.registry.resolve(destination, side="destination")
        path = self.quotes.resolve_path(source_token, destination_token)
        amount_base = parse_units(amount, source_token.decimals)
        slippage_bps = slippage_to_bps(slippage_percent)
        run.sender = self.chain.address
        self._require_balance(source_token, run.sender, amount_base)

        return self._swap_leg(
            run, source_token, destination_token, amount_base, slippage_bps, path
        )

    def _swap_leg(
        self,
        run: _Run,
        source: TokenConfig,
        destination: TokenConfig,
        amount_base: int,
        slippage_bps: int,
        path=None,
    ):
        quote = self.quotes.quote_exact(source, destination, amount_base, path)
        path = quote.path
        min_out = minimum_output(quote.amount_out_base, slippage_bps)

        if not path.native_in:
            self._ensure_allowance(run, source, self.router, amount_base)

        deadline = self._deadline()
        addresses = list(path.addresses)

        run.advance(OperationState.ACTING)
        if path.native_in:
            method = "swapExactETHForTokens"
            tx_hash = self._submit(
                lambda: self.chain.write_contract(
                    self.router, SWAP_ROUTER_ABI, method,
                    min_out, addresses, run.sender, deadline,
                    value=amount_base,
                )
            )
        else:
            method = "swapExactTokensForETH" if path.native_out else "swapExactTokensForTokens"
            tx_hash = self._submit(
                lambda: self.chain.write_contract(
                    self.router, SWAP_ROUTER_ABI, method,
                    amount_base, min_out, addresses, run.sender, deadline,
                )
            )
        receipt = self._confirm(run, method, tx_hash)

        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "method": method,
            "source_token": source.symbol,
            "destination_token": destination.symbol,
            "amount_in": quote.amount_in,
            "amount_out": quote.amount_out,
            "details": {
                "expected_output": quote.amount_out_base,
                "minimum_output": min_out,
                "slippage_bps": slippage_bps,
                "path": addresses,
                "rate": quote.rate,
            },
        }

    def _stake(self, run: _Run, amount):
        native = self.registry.native
        position = self._position_token()
        amount_base = parse_units(amount, native.decimals)
        run.sender = self.chain.address
        self._require_balance(native, run.sender, amount_base)

        run.advance(OperationState.ACTING)
        tx_hash = self._submit(
            lambda: self.chain.write_contract(
                self.staking, STAKING_ABI, "deposit", amount_base, run.sender,
                value=amount_base,
            )
        )
        receipt = self._confirm(run, "deposit", tx_hash)

        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "method": "deposit",
            "source_token": native.symbol,
            "destination_token": position.symbol,
            "amount_in": format_units(amount_base, native.decimals),
        }

    def _unstake(self, run: _Run, amount, use_swap: bool):
        position = self._position_token()
        amount_base = parse_units(amount, position.decimals)
        run.sender = self.chain.address
        self._require_balance(position, run.sender, amount_base)

        if use_swap:
            slippage_bps = slippage_to_bps(self.settings.unstake_swap_slippage_percent)
            fields = self._swap_leg(
                run, position, self.registry.native, amount_base, slippage_bps
            )
            fields["details"] = {**fields["details"], "router_method": fields["method"]}
            fields["method"] = "swap"
            return fields

        strategies: List[Tuple[str, Callable[[_Run, TokenConfig, int], Dict[str, Any]]]] = [
            ("withdraw", self._unstake_withdraw),
            ("transfer", self._unstake_transfer),
        ]
        attempts: List[Tuple[str, MoniError]] = []
        for name, strategy in strategies:
            try:
                fields = strategy(run, position, amount_base)
            except ConfirmationTimeout:
                # already broadcast; a second strategy could unstake twice
                raise
            except MoniError as e:
                logger.warning(f"Unstake via {name} failed ({e.kind.value}): {e.message}")
                attempts.append((name, e))
                continue
            if attempts:
                fields["details"] = {
                    "failed_attempts": [
                        {"method": method, "error": error.kind.value, "message": error.message}
                        for method, error in attempts
                    ]
                }
            return fields

        raise StrategyExhausted("unstake", attempts)

    def _unstake_withdraw(self, run: _Run, position: TokenConfig, amount_base: int):
        self._ensure_allowance(run, position, self.staking, amount_base)

        run.advance(OperationState.ACTING)
        tx_hash = self._submit(
            lambda: self.chain.write_contract(
                self.staking, STAKING_ABI, "withdraw", amount_base, run.sender, run.sender
            )
        )
        receipt = self._confirm(run, "withdraw", tx_hash)
        return self._unstake_fields(position, amount_base, "withdraw", tx_hash, receipt)

    def _unstake_transfer(self, run: _Run, position: TokenConfig, amount_base: int):
        run.advance(OperationState.ACTING)
        tx_hash = self._submit(
            lambda: self.chain.write_contract(
                position.address, ERC20_ABI, "transfer", self.staking, amount_base
            )
        )
        receipt = self._confirm(run, "transfer", tx_hash)
        return self._unstake_fields(position, amount_base, "transfer", tx_hash, receipt)

    def _unstake_fields(self, position, amount_base, method, tx_hash, receipt):
        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "method": method,
            "source_token": position.symbol,
            "destination_token": self.registry.native.symbol,
            "amount_in": format_units(amount_base, position.decimals),
        }

    # Steps

    def _position_token(self) -> TokenConfig:
        token = self.registry.by_address(self.staking)
        if token is None:
            # the staking contract doubles as the aprMON token
            raise UnsupportedToken(self.staking, self.registry.symbols, side="staking")
        return token

    def _balance_of(self, token: TokenConfig, owner: str) -> int:
        try:
            if token.is_native:
                return self.chain.get_balance(owner)
            return self.chain.token_balance(token.address, owner)
        except Exception as e:
            raise BalanceQueryFailed(f"Could not read {token.symbol} balance of {owner}: {e}")

    def _require_balance(self, token: TokenConfig, owner: str, amount_base: int):
        balance = self._balance_of(token, owner)
        if balance < amount_base:
            raise InsufficientFunds(
                f"Insufficient {token.symbol} balance: have "
                f"{format_units(balance, token.decimals):f}, need "
                f"{format_units(amount_base, token.decimals):f}"
            )

    def _ensure_allowance(
        self, run: _Run, token: TokenConfig, spender: str, required: int
    ) -> ApprovalRecord:
        """Approve ``spender`` for ``required`` unless the allowance already covers it."""
        run.advance(OperationState.APPROVAL_PENDING)
        policy = self.settings.approval_policy
        try:
            allowance = self.chain.read_contract(
                token.address, ERC20_ABI, "allowance", run.sender, spender
            )
        except Exception as e:
            raise AllowanceQueryFailed(
                f"Could not read {token.symbol} allowance for {spender}: {e}"
            )

        if allowance >= required:
            logger.info(f"Existing {token.symbol} allowance covers {required}; skipping approve")
            run.approval = ApprovalRecord(
                token=token.symbol,
                spender=spender,
                policy=policy,
                required=required,
                allowance_before=allowance,
            )
            return run.approval

        if policy == "ceiling":
            amount = max(required, parse_units(self.settings.approval_ceiling, token.decimals))
        else:
            amount = required

        try:
            tx_hash = self._submit(
                lambda: self.chain.write_contract(
                    token.address, ERC20_ABI, "approve", spender, amount
                )
            )
            receipt = self._wait(tx_hash)
        except ConfirmationTimeout:
            raise
        except MoniError as e:
            raise ApprovalFailed(f"Approving {token.symbol} for {spender} failed: {e.message}")
        if receipt["status"] != 1:
            raise ApprovalFailed(f"Approval transaction {tx_hash} reverted")

        run.steps.append(StepRecord("approve", tx_hash, receipt["blockNumber"]))
        run.approval = ApprovalRecord(
            token=token.symbol,
            spender=spender,
            policy=policy,
            required=required,
            allowance_before=allowance,
            amount=amount,
            tx_hash=tx_hash,
        )
        return run.approval

    def _deadline(self) -> int:
        try:
            timestamp = self.chain.get_block("latest")["timestamp"]
        except Exception as e:
            raise SubmissionFailed(f"Could not read latest block for the swap deadline: {e}")
        return int(timestamp) + self.settings.swap_deadline_minutes * 60

    def _submit(self, send: Callable[[], str]) -> str:
        try:
            return send()
        except MoniError:
            raise
        except Exception as e:
            raise SubmissionFailed(f"Transaction submission failed: {e}")

    def _wait(self, tx_hash: str, confirmations: int | None = None):
        try:
            return self.chain.wait_for_receipt(
                tx_hash,
                timeout=self.settings.confirmation_timeout,
                confirmations=confirmations or self.settings.confirmations,
            )
        except MoniError:
            raise
        except Exception as e:
            # outcome unknown once broadcast, same hazard as a timeout
            logger.error(f"Lost track of {tx_hash} while waiting for its receipt: {e}")
            raise ConfirmationTimeout(tx_hash, self.settings.confirmation_timeout)

    def _confirm(self, run: _Run, step: str, tx_hash: str, confirmations: int | None = None):
        run.advance(OperationState.CONFIRMING)
        receipt = self._wait(tx_hash, confirmations)
        if receipt["status"] != 1:
            raise TransactionReverted(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
        run.steps.append(StepRecord(step, tx_hash, receipt["blockNumber"]))
        return receipt
