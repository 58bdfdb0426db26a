"""Unit tests for the agent tools."""

from unittest.mock import patch

import pytest

from conftest import COLLECTION, RECIPIENT, SENDER, NoKeyChain
from moni.nft import PLACEHOLDER_IMAGE, CollectionDeployer
from moni.orchestrator import TransactionOrchestrator
from moni.tools import all_tools
from moni.tools.blockchain import (
    get_balance,
    get_my_balance,
    get_portfolio,
    get_token_balance_tool,
    transfer_token,
)
from moni.tools.natural_language import NOT_RECOGNIZED, natural_language_request
from moni.tools.nft import create_nft_collection, create_nft_collection_tool
from moni.tools.transactions import (
    execute_claim_tool,
    execute_swap_tool,
    execute_transfer_tool,
    execute_unstake_tool,
    execute_wrap_tool,
    get_pending_withdrawals_tool,
    get_swap_quote_tool,
)


@pytest.fixture
def wired(orchestrator):
    """Route the tool singletons to the in-memory chain."""
    with patch(
        "moni.tools.transactions.get_orchestrator", return_value=orchestrator
    ), patch(
        "moni.tools.transactions.get_quote_engine", return_value=orchestrator.quotes
    ), patch(
        "moni.tools.blockchain.get_chain_client", return_value=orchestrator.chain
    ), patch(
        "moni.tools.wallet_utils.get_chain_client", return_value=orchestrator.chain
    ):
        yield orchestrator.chain


class TestReadTools:
    """Test balance and portfolio lookups."""

    def test_native_balance(self, wired):
        result = get_balance(RECIPIENT, "MON")

        assert result["symbol"] == "MON"
        assert result["balance_raw"] == 10**24
        assert str(result["balance"]) == "1000000"

    def test_placeholder_resolves_to_agent(self, wired):
        result = get_balance("0xYourWalletAddress", "WMON")

        assert result["address"] == SENDER
        assert wired.names("read") == ["balanceOf"]

    def test_invalid_address(self, wired):
        assert "error" in get_balance("0x1234", "MON")

    def test_unknown_token(self, wired):
        assert "error" in get_balance(RECIPIENT, "DOGE")

    def test_portfolio_isolates_failures(self, wired, registry):
        def token_balance(token_address, owner):
            if token_address.lower() == registry.resolve("USDC").address.lower():
                raise ConnectionError("rpc down")
            return 10**18

        wired.token_balance = token_balance

        result = get_portfolio(RECIPIENT)

        assert "USDC" in result["errors"]
        assert "USDC" not in result["balances"]
        assert "WMON" in result["balances"]

    def test_token_balance_tool(self, wired):
        text = get_token_balance_tool.invoke({"address": RECIPIENT, "token": "USDC"})

        assert text.endswith("USDC")

    def test_my_balance_without_key(self):
        with patch("moni.tools.blockchain.get_agent_address", side_effect=ValueError("no key")):
            assert "no key" in get_my_balance.invoke({})

    def test_transfer_instructions_send_nothing(self, wired):
        text = transfer_token("1", RECIPIENT, "USDC")

        assert "execute_transfer" in text
        assert wired.calls == []


class TestTransactionTools:
    """Test that write tools run the orchestrator and format its result."""

    def test_wrap(self, wired):
        text = execute_wrap_tool.invoke({"amount": "0.1"})

        assert text.startswith("## Wrap Successful")
        assert wired.names("write") == ["deposit"]

    def test_transfer(self, wired):
        text = execute_transfer_tool.invoke(
            {"token": "MON", "amount": "1", "to_address": RECIPIENT}
        )

        assert text.startswith("## Transfer Successful")
        assert RECIPIENT in text

    def test_quote_sends_nothing(self, wired):
        text = get_swap_quote_tool.invoke(
            {"from_token": "MON", "to_token": "USDC", "amount": "2"}
        )

        assert "confirm swap 2 MON to USDC" in text
        assert wired.names("write") == []

    def test_swap_with_slippage(self, wired):
        text = execute_swap_tool.invoke(
            {"from_token": "MON", "to_token": "USDC", "amount": "1", "slippage": 1.0}
        )

        assert text.startswith("## Swap Successful")
        assert "- **Slippage**: 1%" in text

    def test_unstake_via_swap(self, wired):
        text = execute_unstake_tool.invoke({"amount": "1", "use_swap": True})

        assert text.startswith("## Unstake Successful")
        assert "- **Method**: swap" in text

    def test_disabled_features(self, wired):
        assert execute_claim_tool.invoke({}).startswith("## Claim Unavailable")
        assert get_pending_withdrawals_tool.invoke({}).startswith(
            "## Pending Withdrawals Unavailable"
        )

    def test_missing_key_is_reported(self, config, registry):
        orchestrator = TransactionOrchestrator(NoKeyChain(), registry=registry, config=config)
        with patch("moni.tools.transactions.get_orchestrator", return_value=orchestrator):
            text = execute_wrap_tool.invoke({"amount": "0.1"})

        assert "## Wrap Failed" in text
        assert "MissingCredential" in text


class TestNaturalLanguage:
    """Test free-text dispatch to the same operations."""

    def test_wrap_request(self, wired):
        text = natural_language_request("wrap 0.01 MON")

        assert text.startswith("## Wrap Successful")

    def test_swap_request_only_quotes(self, wired):
        text = natural_language_request("swap 1 MON to USDC")

        assert "confirm swap 1 MON to USDC" in text
        assert wired.names("write") == []

    def test_confirmed_swap_executes(self, wired):
        text = natural_language_request("confirm swap 1 MON to USDC")

        assert text.startswith("## Swap Successful")
        assert wired.names("write") == ["swapExactETHForTokens"]

    def test_transfer_request(self, wired):
        text = natural_language_request(f"kirim 1 MON ke {RECIPIENT}")

        assert text.startswith("## Transfer Successful")
        assert wired.names("write") == ["native_transfer"]

    def test_unrecognized(self, wired):
        assert natural_language_request("what's up") == NOT_RECOGNIZED
        assert wired.calls == []


class TestNftTools:
    """Test collection creation through the tool layer."""

    def test_create_collection(self, orchestrator, config):
        deployer = CollectionDeployer(orchestrator, config.contracts.nft_launchpad)
        with patch("moni.tools.nft.get_collection_deployer", return_value=deployer):
            text = create_nft_collection_tool.invoke(
                {
                    "name": "Pond Frogs",
                    "symbol": "POND",
                    "image": PLACEHOLDER_IMAGE,
                    "royalty_percent": 5,
                }
            )

        assert text.startswith("## NFT Collection Successful")
        assert "FREE" in text
        assert "5%" in text
        assert f"https://magiceden.io/monad-testnet/marketplace/{COLLECTION}" in text

    def test_invalid_settings(self):
        text = create_nft_collection(name="", symbol="X", image=PLACEHOLDER_IMAGE)

        assert text.startswith("Invalid collection settings")


def test_tool_names_are_unique():
    names = [t.name for t in all_tools]

    assert len(names) == len(set(names))
    assert "execute_swap" in names
    assert "natural_language_request" in names
