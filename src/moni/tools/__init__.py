"""Tools for the Monad testnet DeFi agent."""

from .blockchain import (
    blockchain_tools,
    get_gas_price,
    get_latest_blocks_tool,
    get_mon_balance_tool,
    get_my_balance,
    get_my_portfolio,
    get_token_balance_tool,
    get_token_portfolio_tool,
    get_transaction_tool,
    transfer_token_tool,
)
from .natural_language import natural_language_request_tool
from .nft import create_nft_collection_tool, generate_nft_image_tool, nft_tools
from .transactions import (
    deposit_tool,
    execute_claim_tool,
    execute_stake_tool,
    execute_swap_tool,
    execute_transfer_tool,
    execute_unstake_tool,
    execute_unwrap_tool,
    execute_wrap_tool,
    get_pending_withdrawals_tool,
    get_swap_quote_tool,
    staking_tools,
    transaction_tools,
    withdraw_tool,
)

all_tools = (
    blockchain_tools
    + transaction_tools
    + staking_tools
    + nft_tools
    + [natural_language_request_tool]
)

__all__ = [
    # Read tools
    "blockchain_tools",
    "get_gas_price",
    "get_latest_blocks_tool",
    "get_mon_balance_tool",
    "get_my_balance",
    "get_my_portfolio",
    "get_token_balance_tool",
    "get_token_portfolio_tool",
    "get_transaction_tool",
    "transfer_token_tool",
    # Transaction tools
    "deposit_tool",
    "execute_swap_tool",
    "execute_transfer_tool",
    "execute_unwrap_tool",
    "execute_wrap_tool",
    "get_swap_quote_tool",
    "transaction_tools",
    "withdraw_tool",
    # Staking tools
    "execute_claim_tool",
    "execute_stake_tool",
    "execute_unstake_tool",
    "get_pending_withdrawals_tool",
    "staking_tools",
    # NFT tools
    "create_nft_collection_tool",
    "generate_nft_image_tool",
    "nft_tools",
    # Free-text requests
    "natural_language_request_tool",
    "all_tools",
]
