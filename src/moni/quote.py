"""Swap path resolution and router quotes."""

import logging
from typing import Dict, Tuple

from web3 import Web3

from .abis import SWAP_ROUTER_ABI
from .chain import ChainClient
from .config_loader import get_config
from .config_models import Config, SwapPathConfig, TokenConfig
from .errors import PathQueryFailed, UnsupportedPair
from .registry import TokenRegistry, format_units, get_registry, parse_units
from .results import Quote, SwapPath

logger = logging.getLogger(__name__)


class QuoteEngine:
    """Asks the swap router what a trade would return right now."""

    def __init__(
        self,
        chain: ChainClient,
        registry: TokenRegistry | None = None,
        config: Config | None = None,
    ):
        config = config or get_config()
        self.chain = chain
        self.registry = registry or get_registry()
        self.router = Web3.to_checksum_address(config.contracts.swap_router)
        # keyed by canonical symbol so case-colliding tokens keep separate paths
        self._overrides: Dict[Tuple[str, str], SwapPathConfig] = {
            (
                self.registry.resolve(entry.source).symbol,
                self.registry.resolve(entry.destination).symbol,
            ): entry
            for entry in config.swap_paths
        }

    def resolve_path(self, source: TokenConfig, destination: TokenConfig) -> SwapPath:
        """Pick the router path for a pair.

        Hardcoded overrides win; otherwise the direct pair is used with the
        native asset replaced by its wrapped token.

        Raises:
            UnsupportedPair: For same-token pairs and native/wrapped pairs,
                which go through wrap and unwrap instead of the router.
        """
        if source.symbol == destination.symbol:
            raise UnsupportedPair(f"Cannot swap {source.symbol} for itself")

        override = self._overrides.get((source.symbol, destination.symbol))
        if override is not None:
            logger.debug(f"Using hardcoded path for {source.symbol} -> {destination.symbol}")
            return SwapPath(
                addresses=tuple(Web3.to_checksum_address(a) for a in override.path),
                native_in=source.is_native,
                native_out=destination.is_native,
                override=True,
            )

        source_address, native_in = self.registry.path_address(source)
        destination_address, native_out = self.registry.path_address(destination)
        if source_address == destination_address:
            raise UnsupportedPair(
                f"{source.symbol} and {destination.symbol} are the same asset on the "
                "router. Use wrap or unwrap instead."
            )
        return SwapPath(
            addresses=(source_address, destination_address),
            native_in=native_in,
            native_out=native_out,
        )

    def quote(self, source: str, destination: str, amount) -> Quote:
        """Quote ``amount`` of ``source`` (human units) into ``destination``.

        Raises:
            UnsupportedToken: Naming the side that is not in the registry
            InvalidAmount: Before any network call
            PathQueryFailed: If the router read fails or returns nothing
        """
        source_token = self.registry.resolve(source, side="source")
        destination_token = self.registry.resolve(destination, side="destination")
        path = self.resolve_path(source_token, destination_token)
        amount_in_base = parse_units(amount, source_token.decimals)
        return self.quote_exact(source_token, destination_token, amount_in_base, path)

    def quote_exact(
        self,
        source: TokenConfig,
        destination: TokenConfig,
        amount_in_base: int,
        path: SwapPath | None = None,
    ) -> Quote:
        """Quote an amount already expressed in the source token's smallest units."""
        path = path or self.resolve_path(source, destination)
        try:
            amounts = self.chain.read_contract(
                self.router,
                SWAP_ROUTER_ABI,
                "getAmountsOut",
                amount_in_base,
                list(path.addresses),
            )
        except Exception as e:
            raise PathQueryFailed(
                f"Router could not quote {source.symbol} -> {destination.symbol}: {e}"
            )

        amount_out_base = int(amounts[-1]) if amounts else 0
        if amount_out_base <= 0:
            raise PathQueryFailed(
                f"No liquidity for {source.symbol} -> {destination.symbol}: "
                "router quoted zero output"
            )

        quote = Quote(
            source=source.symbol,
            destination=destination.symbol,
            amount_in=format_units(amount_in_base, source.decimals),
            amount_out=format_units(amount_out_base, destination.decimals),
            amount_in_base=amount_in_base,
            amount_out_base=amount_out_base,
            path=path,
        )
        logger.info(
            f"Quote {quote.amount_in:f} {quote.source} -> "
            f"{quote.amount_out:f} {quote.destination} over {path.hops} hop(s)"
        )
        return quote
