"""Shared chain client, orchestrator and address helpers for the tools."""

from functools import lru_cache

from ..chain import ChainClient
from ..config_loader import get_config
from ..nft import CollectionDeployer
from ..orchestrator import TransactionOrchestrator
from ..quote import QuoteEngine

WALLET_PLACEHOLDER = "0xYourWalletAddress"


@lru_cache(maxsize=1)
def get_chain_client() -> ChainClient:
    """Process-wide client, signing with TEST_WALLET_PRIVATE_KEY when it is set."""
    return ChainClient.from_env()


@lru_cache(maxsize=1)
def get_orchestrator() -> TransactionOrchestrator:
    return TransactionOrchestrator(get_chain_client())


@lru_cache(maxsize=1)
def get_quote_engine() -> QuoteEngine:
    return get_orchestrator().quotes


@lru_cache(maxsize=1)
def get_collection_deployer() -> CollectionDeployer:
    return CollectionDeployer(get_orchestrator(), get_config().contracts.nft_launchpad)


def get_agent_address() -> str:
    """Address of the configured test wallet.

    Raises:
        MissingCredential: If TEST_WALLET_PRIVATE_KEY is not set
    """
    return get_chain_client().address


def resolve_address(address: str) -> str:
    """Resolve the "0xYourWalletAddress" placeholder to the agent's address."""
    if address.lower() == WALLET_PLACEHOLDER.lower():
        return get_agent_address()
    return address
