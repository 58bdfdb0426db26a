"""Read-only chain tools: balances, portfolio, blocks, transactions and gas."""

import logging
from typing import Dict, List

from langchain_core.tools import StructuredTool, tool
from pydantic import BaseModel, Field
from web3 import Web3

from ..formatter import explorer_tx_url, format_amount
from ..registry import format_units, get_registry
from .wallet_utils import get_agent_address, get_chain_client, resolve_address

logger = logging.getLogger(__name__)


class GetBalanceInput(BaseModel):
    """Input for getting a MON balance."""

    address: str = Field(
        description="Address to check. Use '0xYourWalletAddress' for the agent's wallet"
    )


class GetTokenBalanceInput(BaseModel):
    """Input for getting a token balance."""

    address: str = Field(
        description="Address to check. Use '0xYourWalletAddress' for the agent's wallet"
    )
    token: str = Field(description="Token symbol, e.g. USDC, WMON, aprMON")


class GetLatestBlocksInput(BaseModel):
    count: int = Field(default=5, ge=1, le=50, description="Number of blocks to fetch")


class GetTransactionInput(BaseModel):
    """Input for getting transaction details."""

    tx_hash: str = Field(description="Transaction hash to look up")


class TransferInstructionsInput(BaseModel):
    token: str = Field(default="MON", description="Token symbol to send")
    amount: str = Field(description="Amount to send, in token units")
    to_address: str = Field(description="Recipient address")


def get_balance(address: str, token: str = "MON") -> Dict:
    """Get the balance of one registry token for an address.

    Returns:
        Dict with address, symbol, balance (human units) and raw balance, or
        an "error" entry.
    """
    try:
        address = resolve_address(address)
        if not Web3.is_address(address):
            return {"error": f"Invalid address: {address}"}
        token_config = get_registry().resolve(token)
        client = get_chain_client()
        if token_config.is_native:
            raw = client.get_balance(address)
        else:
            raw = client.token_balance(token_config.address, address)
        return {
            "address": Web3.to_checksum_address(address),
            "symbol": token_config.symbol,
            "balance": format_units(raw, token_config.decimals),
            "balance_raw": raw,
        }
    except Exception as e:
        logger.error(f"Error getting {token} balance for {address}: {e}")
        return {"error": str(e)}


def get_portfolio(address: str) -> Dict:
    """Balances of every registry token. A failing token does not hide the rest."""
    try:
        address = resolve_address(address)
    except Exception as e:
        return {"error": str(e)}
    if not Web3.is_address(address):
        return {"error": f"Invalid address: {address}"}

    balances = {}
    errors = {}
    for symbol in get_registry().symbols:
        result = get_balance(address, symbol)
        if "error" in result:
            errors[symbol] = result["error"]
        else:
            balances[symbol] = result["balance"]
    return {
        "address": Web3.to_checksum_address(address),
        "balances": balances,
        "errors": errors,
    }


def _format_balance(result: Dict) -> str:
    if "error" in result:
        return f"Error: {result['error']}"
    return f"{format_amount(result['balance'])} {result['symbol']}"


def _format_portfolio(result: Dict) -> str:
    if "error" in result:
        return f"Error: {result['error']}"
    lines = [f"## Portfolio for {result['address']}", ""]
    held = {s: b for s, b in result["balances"].items() if b > 0}
    if not held:
        lines.append("No token balances found.")
    for symbol, balance in held.items():
        lines.append(f"- **{symbol}**: {format_amount(balance)}")
    for symbol, error in result["errors"].items():
        lines.append(f"- **{symbol}**: unavailable ({error})")
    return "\n".join(lines)


def get_mon_balance(address: str) -> str:
    return _format_balance(get_balance(address, "MON"))


def get_token_balance(address: str, token: str) -> str:
    return _format_balance(get_balance(address, token))


def get_token_portfolio(address: str) -> str:
    return _format_portfolio(get_portfolio(address))


@tool
def get_my_balance(token: str = "MON") -> str:
    """Get the balance of the agent's wallet.

    Args:
        token: Token symbol. Defaults to MON.

    Returns:
        Balance as a string with units
    """
    try:
        return _format_balance(get_balance(get_agent_address(), token))
    except Exception as e:
        return f"Error getting balance: {str(e)}"


@tool
def get_my_portfolio() -> str:
    """Get every supported token balance of the agent's wallet."""
    try:
        return _format_portfolio(get_portfolio(get_agent_address()))
    except Exception as e:
        return f"Error getting portfolio: {str(e)}"


def get_latest_blocks(count: int = 5) -> str:
    try:
        blocks = get_chain_client().latest_blocks(count)
    except Exception as e:
        return f"Error getting blocks: {str(e)}"
    lines = ["## Latest Blocks", ""]
    for block in blocks:
        lines.append(
            f"- **#{block['number']}** {block['timestamp']}, "
            f"{block['transactions']} txs, hash {block['hash']}"
        )
    return "\n".join(lines)


def get_transaction(tx_hash: str) -> str:
    try:
        details = get_chain_client().transaction_details(tx_hash)
    except Exception as e:
        return f"Error getting transaction: {str(e)}"
    value = format_units(details["value"], get_registry().native.decimals)
    return "\n".join(
        [
            "## Transaction Details",
            f"- **Hash**: {details['hash']}",
            f"- **Status**: {details['status']}",
            f"- **From**: {details['from']}",
            f"- **To**: {details['to'] or 'Contract creation'}",
            f"- **Value**: {format_amount(value)} MON",
            f"- **Block**: {details['blockNumber']}",
            f"- **Gas used**: {details['gasUsed']} / {details['gas']}",
            f"- **Explorer**: {explorer_tx_url(details['hash'])}",
        ]
    )


@tool
def get_gas_price() -> str:
    """Get the current gas price on Monad testnet."""
    try:
        gas_price_wei = get_chain_client().get_gas_price()
        return f"{Web3.from_wei(gas_price_wei, 'gwei')} Gwei"
    except Exception as e:
        return f"Error: {str(e)}"


def transfer_token(amount: str, to_address: str, token: str = "MON") -> str:
    """Explain how to send a transfer without sending anything."""
    try:
        token_config = get_registry().resolve(token)
    except Exception as e:
        return f"Error: {str(e)}"
    if not Web3.is_address(to_address):
        return f"Error: Invalid recipient address: {to_address}"
    lines = [
        f"## Transfer {amount} {token_config.symbol}",
        "",
        f"- **Recipient**: {Web3.to_checksum_address(to_address)}",
    ]
    if not token_config.is_native:
        lines.append(f"- **Token contract**: {token_config.address}")
    lines.append("")
    lines.append(
        f"To send it from the agent wallet, call execute_transfer with token "
        f"{token_config.symbol}, amount {amount} and to_address {to_address}."
    )
    return "\n".join(lines)


get_mon_balance_tool = StructuredTool(
    name="get_mon_balance",
    description="Get the MON balance of an address on Monad testnet.",
    func=lambda **kwargs: get_mon_balance(**kwargs),
    args_schema=GetBalanceInput,
)

get_token_balance_tool = StructuredTool(
    name="get_token_balance",
    description="Get the balance of a supported token (by symbol) for an address.",
    func=lambda **kwargs: get_token_balance(**kwargs),
    args_schema=GetTokenBalanceInput,
)

get_token_portfolio_tool = StructuredTool(
    name="get_token_portfolio",
    description="Get the balances of every supported token for an address.",
    func=lambda **kwargs: get_token_portfolio(**kwargs),
    args_schema=GetBalanceInput,
)

get_latest_blocks_tool = StructuredTool(
    name="get_latest_blocks",
    description="Get a summary of the most recent blocks on Monad testnet.",
    func=lambda **kwargs: get_latest_blocks(**kwargs),
    args_schema=GetLatestBlocksInput,
)

get_transaction_tool = StructuredTool(
    name="get_transaction",
    description="Get details and status of a transaction by hash.",
    func=lambda **kwargs: get_transaction(**kwargs),
    args_schema=GetTransactionInput,
)

transfer_token_tool = StructuredTool(
    name="transfer_token",
    description=(
        "Explain how to transfer tokens to an address. Does not send anything; "
        "use execute_transfer to actually send."
    ),
    func=lambda **kwargs: transfer_token(**kwargs),
    args_schema=TransferInstructionsInput,
)

blockchain_tools: List = [
    get_mon_balance_tool,
    get_token_balance_tool,
    get_token_portfolio_tool,
    get_my_balance,
    get_my_portfolio,
    get_latest_blocks_tool,
    get_transaction_tool,
    get_gas_price,
    transfer_token_tool,
]
