"""Monad testnet DeFi assistant built as a prebuilt ReAct agent."""

import logging

from langchain_openai import ChatOpenAI
from langgraph.prebuilt import create_react_agent

from .config_loader import get_config
from .tools import all_tools

# Set up logging
logger = logging.getLogger(__name__)

system_prompt = """
You are a DeFi assistant for the Monad testnet. You can check balances, send
MON and tokens, wrap and unwrap MON, quote and execute swaps, stake MON for
aprMON, unstake, and launch NFT collections.

Your tools already know the agent wallet's private key.
All users are assumed to have address 0xYourWalletAddress unless specified otherwise.

Rules:
- Before any swap, call get_swap_quote and show the quote. Only call
  execute_swap after the user confirms.
- Amounts are in token units (e.g. "0.5" MON), never in wei.
- Token symbols must be ones the tools support; if a tool lists the supported
  symbols, pass that list on to the user.
- If a result says a transaction was not confirmed in time, tell the user it
  may still land and to check the explorer link before retrying.
- Claiming and pending withdrawals are disabled; say so instead of improvising.
"""


def build_graph():
    """Create the agent graph using the model from models.yaml."""
    model_config = get_config().models
    logger.info(f"Loading model {model_config.model_name} from {model_config.provider}")
    model = ChatOpenAI(
        model=model_config.model_name,
        max_tokens=model_config.max_tokens,
    )
    return create_react_agent(model=model, tools=all_tools, prompt=system_prompt)


graph = build_graph()
