"""Markdown rendering of quotes and orchestration results."""

from decimal import Decimal
from typing import Dict, List

from .config_loader import get_config
from .results import OrchestrationResult, Quote, ResultStatus

_TITLES = {
    "transfer": "Transfer",
    "wrap": "Wrap",
    "unwrap": "Unwrap",
    "swap": "Swap",
    "stake": "Stake",
    "unstake": "Unstake",
    "claim": "Claim",
    "pending_withdrawals": "Pending Withdrawals",
    "create_nft_collection": "NFT Collection",
}


def format_amount(value) -> str:
    """Plain decimal notation, never scientific."""
    if value is None:
        return "?"
    return f"{Decimal(value):f}"


def format_price(price) -> str:
    value = Decimal(str(price))
    if value == 0:
        return "FREE"
    return f"{format_amount(value)} MON"


def explorer_tx_url(tx_hash: str, explorer_url: str | None = None) -> str:
    if explorer_url is None:
        explorer_url = get_config().default_chain.explorer_url or ""
    return f"{explorer_url.rstrip('/')}/tx/{tx_hash}"


def format_quote(quote: Quote) -> str:
    return "\n".join(
        [
            "## Swap Quote",
            f"- **Input**: {format_amount(quote.amount_in)} {quote.source}",
            f"- **Expected output**: {format_amount(quote.amount_out)} {quote.destination}",
            f"- **Rate**: 1 {quote.source} = {quote.rate:.6g} {quote.destination}",
            f"- **Route**: {' -> '.join(quote.path.addresses)}",
            "",
            f"To execute, say: confirm swap {format_amount(quote.amount_in)} "
            f"{quote.source} to {quote.destination}",
        ]
    )


def format_result(result: OrchestrationResult, explorer_url: str | None = None) -> str:
    title = _TITLES.get(result.action, result.action.replace("_", " ").title())

    if result.status is ResultStatus.FEATURE_DISABLED:
        return f"## {title} Unavailable\n\n{result.message}"

    if result.status is ResultStatus.FAILED:
        return (
            f"## {title} Failed\n\n"
            f"- **Error**: {result.error_kind.value}\n"
            f"- **Details**: {result.error_message}"
        )

    lines = [f"## {title} Successful", ""]
    lines.extend(_summary_lines(result))
    if result.approval is not None:
        if result.approval.skipped:
            lines.append("- **Approval**: existing allowance was sufficient")
        else:
            lines.append(
                f"- **Approval**: {result.approval.policy} "
                f"([{result.approval.tx_hash}]({explorer_tx_url(result.approval.tx_hash, explorer_url)}))"
            )
    lines.append(f"- **Method**: {result.method}")
    lines.append(f"- **Block**: {result.block_number}")
    lines.append(
        f"- **Transaction**: [{result.tx_hash}]({explorer_tx_url(result.tx_hash, explorer_url)})"
    )
    return "\n".join(lines)


def _summary_lines(result: OrchestrationResult) -> List[str]:
    details: Dict = dict(result.details)
    amount_in = format_amount(result.amount_in)

    if result.action == "transfer":
        return [
            f"- **Amount**: {amount_in} {result.source_token}",
            f"- **To**: {result.recipient}",
        ]
    if result.action == "create_nft_collection":
        return [
            f"- **Name**: {details.get('name')} ({details.get('symbol')})",
            f"- **Collection**: {details.get('collection_address')}",
            f"- **Mint price**: {format_price(details.get('mint_price', 0))}",
            f"- **Royalty**: {Decimal(details.get('royalty_bps', 0)) / 100}%",
            f"- **Max supply**: {details.get('max_supply') or 'Unlimited'}",
            f"- **Metadata**: {details.get('metadata_uri')}",
            f"- **Configure tx**: {details.get('configure_tx_hash')}",
            f"- **Marketplace**: {details.get('marketplace_url')}",
        ]

    lines = [f"- **Sent**: {amount_in} {result.source_token}"]
    if result.amount_out is not None:
        label = "Expected" if result.action in ("swap", "unstake") else "Received"
        lines.append(f"- **{label}**: {format_amount(result.amount_out)} {result.destination_token}")
    elif result.destination_token:
        lines.append(f"- **Receiving**: {result.destination_token}")
    if "minimum_output" in details:
        lines.append(f"- **Slippage**: {Decimal(details['slippage_bps']) / 10}%")
    for attempt in details.get("failed_attempts", []):
        lines.append(f"- **Fallback**: {attempt['method']} failed ({attempt['error']})")
    return lines
