"""Conversational DeFi tools for the Monad testnet.

The transaction orchestrator turns requests like "swap 1 MON to USDC" into
ordered on-chain steps (approve if needed, act, confirm) and reports a
structured result. The LangGraph agent lives in ``moni.premade``.
"""

from moni.chain import ChainClient
from moni.errors import ErrorKind, MoniError
from moni.orchestrator import TransactionOrchestrator
from moni.quote import QuoteEngine
from moni.registry import TokenRegistry, get_registry
from moni.results import OrchestrationResult, Quote, ResultStatus

__all__ = [
    "ChainClient",
    "ErrorKind",
    "MoniError",
    "OrchestrationResult",
    "Quote",
    "QuoteEngine",
    "ResultStatus",
    "TokenRegistry",
    "TransactionOrchestrator",
    "get_registry",
]
