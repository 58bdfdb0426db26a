"""Token registry and fixed-point unit conversion."""

from decimal import Decimal, InvalidOperation, localcontext
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from web3 import Web3

from .config_loader import get_config
from .config_models import NATIVE_TOKEN_ADDRESS, TokenConfig
from .errors import AmbiguousToken, InvalidAmount, UnsupportedToken


def parse_units(amount, decimals: int, allow_zero: bool = False) -> int:
    """Convert a human amount to the token's smallest unit without floats.

    Args:
        amount: Amount as a string, int or Decimal (floats go through ``str``)
        decimals: Token precision
        allow_zero: Accept zero (mint prices); amounts to move must be positive

    Returns:
        Integer amount in smallest units

    Raises:
        InvalidAmount: If the amount is not a finite number, is negative, is
            zero when not allowed, or has more fractional digits than the
            token supports.
    """
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid amount: {amount!r} is not a number")
    if not value.is_finite():
        raise InvalidAmount(f"Invalid amount: {amount!r} is not a finite number")
    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidAmount(f"Amount must be greater than zero, got {amount}")

    with localcontext() as ctx:
        ctx.prec = 80
        scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(
            f"Amount {amount} has more than {decimals} decimal places"
        )
    return int(scaled)


def format_units(value: int, decimals: int) -> Decimal:
    """Convert a smallest-unit integer back to a human Decimal."""
    with localcontext() as ctx:
        ctx.prec = 80
        human = Decimal(int(value)).scaleb(-decimals)
        if human == human.to_integral_value():
            return human.quantize(Decimal(1))
        return human.normalize()


class TokenRegistry:
    """Read-only symbol table.

    Lookups accept case variants but always hand back the canonical symbol, so
    mixed-case tokens like ``aprMON`` round-trip exactly.
    """

    def __init__(
        self,
        tokens: Mapping[str, TokenConfig],
        native_symbol: str = "MON",
        wrapped_symbol: str | None = None,
    ):
        table: Dict[str, TokenConfig] = dict(tokens)
        if native_symbol not in table:
            table[native_symbol] = TokenConfig(
                symbol=native_symbol,
                name=native_symbol,
                address=NATIVE_TOKEN_ADDRESS,
                decimals=18,
            )
        wrapped_symbol = wrapped_symbol or f"W{native_symbol}"
        if wrapped_symbol not in table:
            raise ValueError(f"Wrapped token {wrapped_symbol} missing from token table")

        self._tokens = MappingProxyType(table)
        by_lower: Dict[str, List[str]] = {}
        for symbol in table:
            by_lower.setdefault(symbol.lower(), []).append(symbol)
        self._by_lower = MappingProxyType({k: tuple(v) for k, v in by_lower.items()})
        self._by_address = MappingProxyType(
            {
                token.address.lower(): token
                for token in table.values()
                if not token.is_native
            }
        )
        self.native_symbol = native_symbol
        self.wrapped_symbol = wrapped_symbol

    @property
    def symbols(self) -> List[str]:
        return list(self._tokens)

    @property
    def native(self) -> TokenConfig:
        return self._tokens[self.native_symbol]

    @property
    def wrapped(self) -> TokenConfig:
        return self._tokens[self.wrapped_symbol]

    def resolve(self, symbol: str, side: str | None = None) -> TokenConfig:
        """Resolve a symbol or a case variant of it.

        An exact symbol always wins. A case variant resolves only when it
        matches a single symbol.

        Raises:
            UnsupportedToken: Listing every recognised symbol.
            AmbiguousToken: If a case variant matches several symbols.
        """
        symbol = (symbol or "").strip()
        if symbol in self._tokens:
            return self._tokens[symbol]
        candidates = self._by_lower.get(symbol.lower(), ())
        if not candidates:
            raise UnsupportedToken(symbol, self.symbols, side=side)
        if len(candidates) > 1:
            raise AmbiguousToken(symbol, candidates, side=side)
        return self._tokens[candidates[0]]

    def by_address(self, address: str) -> TokenConfig | None:
        """Find a contract token by address. The native asset has no entry."""
        return self._by_address.get(address.lower())

    def path_address(self, token: TokenConfig) -> Tuple[str, bool]:
        """Address to use inside a router path, and whether it stands for native."""
        if token.is_native:
            return Web3.to_checksum_address(self.wrapped.address), True
        return Web3.to_checksum_address(token.address), False


@lru_cache(maxsize=1)
def get_registry() -> TokenRegistry:
    """Build the process-wide registry from the token configuration."""
    config = get_config()
    return TokenRegistry(config.tokens, native_symbol=config.default_chain.native_token)
