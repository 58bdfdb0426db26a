"""Tools that move funds: transfers, wraps, swaps and staking."""

import logging
from typing import List

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from ..formatter import format_quote, format_result
from .wallet_utils import get_orchestrator, get_quote_engine, resolve_address

logger = logging.getLogger(__name__)


class TransferInput(BaseModel):
    """Input for sending MON or a token from the agent wallet."""

    token: str = Field(default="MON", description="Token symbol to send")
    amount: str = Field(description="Amount to send, in token units (e.g. '0.5')")
    to_address: str = Field(description="Recipient address")


class AmountInput(BaseModel):
    amount: str = Field(description="Amount in token units (e.g. '0.1')")


class SwapQuoteInput(BaseModel):
    """Input for quoting a swap."""

    from_token: str = Field(description="Token symbol to sell, e.g. MON")
    to_token: str = Field(description="Token symbol to buy, e.g. USDC")
    amount: str = Field(description="Amount of from_token to sell")


class SwapInput(SwapQuoteInput):
    slippage: float | None = Field(
        default=None,
        ge=0,
        lt=100,
        description="Maximum slippage in percent. Defaults to the configured 2.0",
    )


class UnstakeInput(BaseModel):
    amount: str = Field(description="Amount of aprMON to unstake")
    use_swap: bool = Field(
        default=False,
        description="Sell aprMON through the swap router instead of withdrawing",
    )


def execute_transfer(amount: str, to_address: str, token: str = "MON") -> str:
    try:
        result = get_orchestrator().transfer(token, amount, resolve_address(to_address))
        return format_result(result)
    except Exception as e:
        return f"Error executing transfer: {str(e)}"


def execute_wrap(amount: str) -> str:
    try:
        return format_result(get_orchestrator().wrap(amount))
    except Exception as e:
        return f"Error wrapping MON: {str(e)}"


def execute_unwrap(amount: str) -> str:
    try:
        return format_result(get_orchestrator().unwrap(amount))
    except Exception as e:
        return f"Error unwrapping WMON: {str(e)}"


def get_swap_quote(from_token: str, to_token: str, amount: str) -> str:
    try:
        return format_quote(get_quote_engine().quote(from_token, to_token, amount))
    except Exception as e:
        return f"Failed to get swap quote. Error: {str(e)}"


def execute_swap(
    from_token: str, to_token: str, amount: str, slippage: float | None = None
) -> str:
    try:
        result = get_orchestrator().swap(from_token, to_token, amount, slippage)
        return format_result(result)
    except Exception as e:
        return f"Error executing swap: {str(e)}"


def execute_stake(amount: str) -> str:
    try:
        return format_result(get_orchestrator().stake(amount))
    except Exception as e:
        return f"Error staking MON: {str(e)}"


def execute_unstake(amount: str, use_swap: bool = False) -> str:
    try:
        return format_result(get_orchestrator().unstake(amount, use_swap=use_swap))
    except Exception as e:
        return f"Error unstaking aprMON: {str(e)}"


def execute_claim() -> str:
    return format_result(get_orchestrator().claim())


def get_pending_withdrawals() -> str:
    return format_result(get_orchestrator().pending_withdrawals())


execute_transfer_tool = StructuredTool(
    name="execute_transfer",
    description=(
        "Send MON or a supported token from the agent wallet to an address. "
        "Waits for confirmation and returns the explorer link."
    ),
    func=lambda **kwargs: execute_transfer(**kwargs),
    args_schema=TransferInput,
)

execute_wrap_tool = StructuredTool(
    name="execute_wrap",
    description="Wrap MON into WMON from the agent wallet.",
    func=lambda **kwargs: execute_wrap(**kwargs),
    args_schema=AmountInput,
)

execute_unwrap_tool = StructuredTool(
    name="execute_unwrap",
    description="Unwrap WMON back into MON from the agent wallet.",
    func=lambda **kwargs: execute_unwrap(**kwargs),
    args_schema=AmountInput,
)

deposit_tool = StructuredTool(
    name="deposit",
    description="Deposit MON into the WMON contract (same as execute_wrap).",
    func=lambda **kwargs: execute_wrap(**kwargs),
    args_schema=AmountInput,
)

withdraw_tool = StructuredTool(
    name="withdraw",
    description="Withdraw MON from the WMON contract (same as execute_unwrap).",
    func=lambda **kwargs: execute_unwrap(**kwargs),
    args_schema=AmountInput,
)

get_swap_quote_tool = StructuredTool(
    name="get_swap_quote",
    description=(
        "Quote how much of to_token a swap would return. Read only; ask the user "
        "to confirm before calling execute_swap."
    ),
    func=lambda **kwargs: get_swap_quote(**kwargs),
    args_schema=SwapQuoteInput,
)

execute_swap_tool = StructuredTool(
    name="execute_swap",
    description=(
        "Swap tokens through the DEX router with a slippage bound. Approves the "
        "router first when the allowance is too low."
    ),
    func=lambda **kwargs: execute_swap(**kwargs),
    args_schema=SwapInput,
)

execute_stake_tool = StructuredTool(
    name="execute_stake",
    description="Stake MON to receive aprMON (liquid staking).",
    func=lambda **kwargs: execute_stake(**kwargs),
    args_schema=AmountInput,
)

execute_unstake_tool = StructuredTool(
    name="execute_unstake",
    description=(
        "Unstake aprMON back to MON. Tries withdraw, then a transfer to the "
        "staking contract. Set use_swap to sell through the router instead."
    ),
    func=lambda **kwargs: execute_unstake(**kwargs),
    args_schema=UnstakeInput,
)

execute_claim_tool = StructuredTool.from_function(
    func=execute_claim,
    name="execute_claim",
    description="Claim unstaked MON. Currently disabled.",
)

get_pending_withdrawals_tool = StructuredTool.from_function(
    func=get_pending_withdrawals,
    name="get_pending_withdrawals",
    description="List pending aprMON withdrawals. Currently disabled.",
)

transaction_tools: List = [
    execute_transfer_tool,
    execute_wrap_tool,
    execute_unwrap_tool,
    deposit_tool,
    withdraw_tool,
    get_swap_quote_tool,
    execute_swap_tool,
]

staking_tools: List = [
    execute_stake_tool,
    execute_unstake_tool,
    execute_claim_tool,
    get_pending_withdrawals_tool,
]
