"""Free-text requests routed to the same operations as the explicit tools."""

import logging

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from ..intent import IntentAction, parse_intent
from .transactions import (
    execute_stake,
    execute_swap,
    execute_transfer,
    execute_unstake,
    execute_unwrap,
    execute_wrap,
    get_swap_quote,
)

logger = logging.getLogger(__name__)

NOT_RECOGNIZED = (
    "Request not recognized. Try for example:\n"
    "- wrap 0.1 MON / unwrap 0.1 WMON\n"
    "- send 1 USDC to 0x...\n"
    "- swap 1 MON to USDC (quote), then confirm swap 1 MON to USDC\n"
    "- stake 1 MON / unstake 1 aprMON"
)


class NaturalLanguageInput(BaseModel):
    request: str = Field(description="The user's request in plain words")


def natural_language_request(request: str) -> str:
    intent = parse_intent(request)
    if intent is None:
        logger.info(f"Unrecognized request: {request!r}")
        return NOT_RECOGNIZED

    logger.info(f"Parsed {intent.action.value} intent from {request!r}")
    if intent.action is IntentAction.WRAP:
        return execute_wrap(intent.amount)
    if intent.action is IntentAction.UNWRAP:
        return execute_unwrap(intent.amount)
    if intent.action is IntentAction.TRANSFER:
        return execute_transfer(intent.amount, intent.recipient, token=intent.source)
    if intent.action is IntentAction.SWAP_QUOTE:
        return get_swap_quote(intent.source, intent.destination, intent.amount)
    if intent.action is IntentAction.SWAP:
        return execute_swap(intent.source, intent.destination, intent.amount)
    if intent.action is IntentAction.STAKE:
        return execute_stake(intent.amount)
    return execute_unstake(intent.amount, use_swap=intent.use_swap)


natural_language_request_tool = StructuredTool(
    name="natural_language_request",
    description=(
        "Handle a plain-language request such as 'wrap 0.01 MON', "
        "'kirim 1 USDC ke 0x...' or 'swap 1 MON to USDC'. Swaps are quoted "
        "first and run only on 'confirm swap ...'."
    ),
    func=lambda **kwargs: natural_language_request(**kwargs),
    args_schema=NaturalLanguageInput,
)
