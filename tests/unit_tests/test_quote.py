"""Unit tests for the quote engine."""

from decimal import Decimal

import pytest
from web3 import Web3

from moni.errors import InvalidAmount, PathQueryFailed, UnsupportedPair, UnsupportedToken
from moni.quote import QuoteEngine


@pytest.fixture
def engine(chain, registry, config):
    return QuoteEngine(chain, registry, config)


class TestQuoteEngine:
    """Test path resolution and router quotes."""

    def test_quote_uses_last_amount(self, engine, chain):
        chain.amount_out = 2_500_000

        quote = engine.quote("MON", "USDC", "2")

        assert quote.amount_in == Decimal("2")
        assert quote.amount_out == Decimal("2.5")
        assert quote.amount_in_base == 2 * 10**18
        assert quote.amount_out_base == 2_500_000
        assert quote.rate == pytest.approx(1.25)
        assert 0 < quote.amount_out

    def test_rate_matches_output_over_input(self, engine, chain):
        chain.amount_out = 333_333

        quote = engine.quote("MON", "USDC", "3")

        assert quote.rate == pytest.approx(float(quote.amount_out) / float(quote.amount_in))

    def test_native_endpoint_is_substituted(self, engine, chain, registry):
        quote = engine.quote("MON", "USDC", "1")

        wmon = Web3.to_checksum_address(registry.wrapped.address)
        assert quote.path.addresses[0] == wmon
        assert quote.path.native_in
        assert not quote.path.native_out
        assert not quote.path.override
        _, _, args = chain.calls[0]
        assert args[1] == list(quote.path.addresses)

    def test_override_path_for_apr_mon(self, engine, config):
        quote = engine.quote("aprMON", "MON", "1")

        expected = tuple(Web3.to_checksum_address(a) for a in config.swap_paths[0].path)
        assert quote.path.addresses == expected
        assert quote.path.override
        assert quote.path.native_out
        assert quote.path.hops == 2

    def test_override_lookup_is_case_insensitive(self, engine):
        quote = engine.quote("APRMON", "mon", "1")

        assert quote.source == "aprMON"
        assert quote.path.override

    def test_unsupported_destination(self, engine, chain):
        with pytest.raises(UnsupportedToken) as exc_info:
            engine.quote("MON", "DOGE", "1")

        assert "Destination token DOGE" in exc_info.value.message
        assert chain.calls == []

    def test_same_token_pair(self, engine):
        with pytest.raises(UnsupportedPair):
            engine.quote("USDC", "usdc", "1")

    @pytest.mark.parametrize("amount", ["0", "-0.5", "ten", "inf"])
    def test_invalid_amount_before_network(self, engine, chain, amount):
        with pytest.raises(InvalidAmount):
            engine.quote("MON", "USDC", amount)
        assert chain.calls == []

    def test_router_failure(self, engine, chain):
        chain.quote_error = ConnectionError("execution reverted")

        with pytest.raises(PathQueryFailed) as exc_info:
            engine.quote("MON", "USDC", "1")

        assert "execution reverted" in exc_info.value.message

    def test_zero_output(self, engine, chain):
        chain.amount_out = 0

        with pytest.raises(PathQueryFailed):
            engine.quote("MON", "USDC", "1")
