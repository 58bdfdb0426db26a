"""Regex extraction of requests like 'wrap 0.1 MON' or 'kirim 1 USDC ke 0x...'.

Matching is English plus a few Indonesian verbs (kirim = send, tukar = swap,
ke = to). The parser only extracts fields; it never touches the chain.
"""

import re
from dataclasses import dataclass
from enum import Enum

_AMOUNT = r"(?P<amount>\d+(?:\.\d+)?)"
_TOKEN = r"[a-z][a-z0-9]*"


class IntentAction(str, Enum):
    WRAP = "wrap"
    UNWRAP = "unwrap"
    TRANSFER = "transfer"
    SWAP_QUOTE = "swap_quote"
    SWAP = "swap"
    STAKE = "stake"
    UNSTAKE = "unstake"


@dataclass(frozen=True)
class Intent:
    action: IntentAction
    amount: str
    source: str | None = None
    destination: str | None = None
    recipient: str | None = None
    use_swap: bool = False


_CONFIRM_SWAP = re.compile(
    rf"\bconfirm\s+swap\s+{_AMOUNT}\s+(?P<source>{_TOKEN})\s+(?:to|ke)\s+(?P<destination>{_TOKEN})\b",
    re.IGNORECASE,
)
_UNWRAP = re.compile(rf"\b(?:unwrap|unwarp)\s+{_AMOUNT}(?:\s*w?mon)?\b", re.IGNORECASE)
_WRAP = re.compile(rf"\b(?:wrap|warp)\s+{_AMOUNT}(?:\s*mon)?\b", re.IGNORECASE)
_UNSTAKE = re.compile(
    rf"\bunstake\s+{_AMOUNT}(?:\s*aprmon)?(?P<swap>.*\b(?:via|using|with|pakai)\s+swap\b)?",
    re.IGNORECASE,
)
_STAKE = re.compile(rf"\bstake\s+{_AMOUNT}(?:\s*mon)?\b", re.IGNORECASE)
_TRANSFER = re.compile(
    rf"\b(?:kirim|transfer|send)\s+{_AMOUNT}\s*(?P<token>(?!(?:ke|to)\b){_TOKEN})?\s*(?:ke|to)?\s*"
    r"(?P<recipient>0x[0-9a-f]{40})\b",
    re.IGNORECASE,
)
_SWAP = re.compile(
    rf"\b(?:swap|tukar)\s+{_AMOUNT}\s*(?P<source>{_TOKEN})\s+(?:ke|to|for)\s+(?P<destination>{_TOKEN})\b",
    re.IGNORECASE,
)


def parse_intent(text: str) -> Intent | None:
    """Return the first recognised intent in ``text``, or None.

    Order matters: "confirm swap" before a plain swap, unwrap before wrap and
    unstake before stake.
    """
    if not text:
        return None

    match = _CONFIRM_SWAP.search(text)
    if match:
        return Intent(
            IntentAction.SWAP,
            match["amount"],
            source=match["source"],
            destination=match["destination"],
        )

    match = _UNWRAP.search(text)
    if match:
        return Intent(IntentAction.UNWRAP, match["amount"], source="WMON", destination="MON")

    match = _WRAP.search(text)
    if match:
        return Intent(IntentAction.WRAP, match["amount"], source="MON", destination="WMON")

    match = _UNSTAKE.search(text)
    if match:
        return Intent(
            IntentAction.UNSTAKE,
            match["amount"],
            source="aprMON",
            destination="MON",
            use_swap=bool(match["swap"]),
        )

    match = _STAKE.search(text)
    if match:
        return Intent(IntentAction.STAKE, match["amount"], source="MON", destination="aprMON")

    match = _TRANSFER.search(text)
    if match:
        return Intent(
            IntentAction.TRANSFER,
            match["amount"],
            source=match["token"] or "MON",
            recipient=match["recipient"],
        )

    match = _SWAP.search(text)
    if match:
        return Intent(
            IntentAction.SWAP_QUOTE,
            match["amount"],
            source=match["source"],
            destination=match["destination"],
        )

    return None
