"""NFT collection deployment through the launchpad contract.

Metadata hosting and image generation are behind small interfaces. The
bundled implementations are offline stand-ins: the uploader derives a
content-addressed ``ipfs://`` URI without uploading anything, and the image
generator returns a placeholder image.
"""

import base64
import hashlib
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator
from web3 import Web3

from .abis import NFT_COLLECTION_ABI, NFT_LAUNCHPAD_ABI
from .errors import CollectionNotConfigured, MoniError, SubmissionFailed
from .orchestrator import OperationState, TransactionOrchestrator
from .registry import format_units, parse_units
from .results import OrchestrationResult

logger = logging.getLogger(__name__)

MARKETPLACE_URL = "https://magiceden.io/monad-testnet/marketplace/{address}"

# Supply passed to createCollection when the collection is uncapped
UNLIMITED_DEPLOY_SUPPLY = 1_000_000

DEFAULT_MINT_WINDOW = timedelta(days=30)

PLACEHOLDER_IMAGE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNk"
    "YAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class ArtType(str, Enum):
    SAME_ARTWORK = "SAME_ARTWORK"  # ERC-1155
    UNIQUE_ARTWORK = "UNIQUE_ARTWORK"  # ERC-721


class CollectionRequest(BaseModel):
    """Everything needed to launch a collection with one public mint stage."""

    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    image: str = Field(min_length=1, description="Base64 image or data URL")
    description: str | None = None
    art_type: ArtType = ArtType.SAME_ARTWORK
    mint_price: str = Field(default="0", description="Mint price in MON")
    royalty_percent: float = Field(default=0, ge=0, le=100)
    max_supply: int | None = Field(default=None, ge=1)
    mint_limit_per_wallet: int | None = Field(default=None, ge=1)
    start_time: datetime | None = None
    end_time: datetime | None = None
    allowlist: List[str] = []
    artworks: List[str] = []

    @field_validator("image")
    @classmethod
    def _image_is_decodable(cls, value: str) -> str:
        if value.startswith(("http://", "https://", "ipfs://")):
            return value
        try:
            decode_image(value)
        except ValueError as e:
            raise ValueError(f"image is not valid base64: {e}")
        return value

    @field_validator("allowlist")
    @classmethod
    def _allowlist_addresses(cls, value: List[str]) -> List[str]:
        for address in value:
            if not Web3.is_address(address):
                raise ValueError(f"invalid allowlist address: {address}")
        return value

    @model_validator(mode="after")
    def _window_is_ordered(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    def mint_window(self, now: datetime | None = None) -> tuple[int, int]:
        """Start and end of the public mint as unix seconds."""
        start = self.start_time or now or datetime.now(timezone.utc)
        end = self.end_time or start + DEFAULT_MINT_WINDOW
        return int(start.timestamp()), int(end.timestamp())

    def collection_metadata(self, fee_recipient: str) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "description": self.description
            or f"{self.name} - A unique NFT collection on Monad",
            "image": self.image,
            "art_type": self.art_type.value,
            "seller_fee_basis_points": royalty_basis_points(self.royalty_percent),
            "fee_recipient": fee_recipient,
        }


def royalty_basis_points(percent) -> int:
    return int(round(Decimal(str(percent)) * 100))


def decode_image(data: str) -> tuple[str, bytes]:
    """Split a base64 image or data URL into (mime type, raw bytes)."""
    mime_type = "image/png"
    content = data
    if data.startswith("data:"):
        header, _, content = data.partition(",")
        mime_type = header[len("data:"):].split(";")[0] or mime_type
    return mime_type, base64.b64decode(content, validate=True)


class MetadataUploader(ABC):
    @abstractmethod
    def upload(self, metadata: Dict[str, Any]) -> str:
        """Store collection metadata and return its URI."""


class SimulatedMetadataUploader(MetadataUploader):
    """Returns the URI the metadata would get, without storing it anywhere."""

    def upload(self, metadata: Dict[str, Any]) -> str:
        payload = json.dumps(metadata, sort_keys=True, separators=(",", ":")).encode()
        digest = hashlib.sha256(payload).digest()
        cid = "bafkrei" + base64.b32encode(digest).decode().lower().rstrip("=")
        logger.info(f"Simulated metadata upload for {metadata.get('name')}: ipfs://{cid}")
        return f"ipfs://{cid}"


class ImageGenerator(ABC):
    @abstractmethod
    def generate(self, description: str, style: str | None = None) -> str:
        """Return a base64 data URL for an image matching the description."""


class PlaceholderImageGenerator(ImageGenerator):
    def generate(self, description: str, style: str | None = None) -> str:
        logger.info(f"Generating placeholder image for {description!r} (style={style})")
        return PLACEHOLDER_IMAGE


class CollectionDeployer:
    """Deploys and configures a collection, reusing the orchestrator's steps."""

    def __init__(
        self,
        orchestrator: TransactionOrchestrator,
        launchpad: str,
        uploader: MetadataUploader | None = None,
    ):
        self.orchestrator = orchestrator
        self.chain = orchestrator.chain
        self.settings = orchestrator.settings
        self.launchpad = Web3.to_checksum_address(launchpad)
        self.uploader = uploader or SimulatedMetadataUploader()

    def create_collection(self, request: CollectionRequest) -> OrchestrationResult:
        return self.orchestrator._execute("create_nft_collection", self._deploy, request)

    def _deploy(self, run, request: CollectionRequest):
        native = self.orchestrator.registry.native
        mint_price = parse_units(request.mint_price, native.decimals, allow_zero=True)
        royalty_bps = royalty_basis_points(request.royalty_percent)
        start_time, end_time = request.mint_window()
        run.sender = self.chain.address

        metadata_uri = self.uploader.upload(request.collection_metadata(run.sender))

        salt = os.urandom(32)
        deploy_args = (
            request.name,
            request.symbol,
            request.max_supply or UNLIMITED_DEPLOY_SUPPLY,
            run.sender,
            salt,
        )
        try:
            predicted = self.chain.read_contract(
                self.launchpad, NFT_LAUNCHPAD_ABI, "createCollection", *deploy_args,
                caller=run.sender,
            )
        except Exception as e:
            logger.warning(f"Could not predict collection address: {e}")
            predicted = None

        run.advance(OperationState.ACTING)
        deploy_hash = self.orchestrator._submit(
            lambda: self.chain.write_contract(
                self.launchpad, NFT_LAUNCHPAD_ABI, "createCollection", *deploy_args
            )
        )
        receipt = self.orchestrator._confirm(
            run, "createCollection", deploy_hash,
            confirmations=self.settings.nft_deploy_confirmations,
        )

        collection = receipt.get("contractAddress") or predicted
        if not collection:
            raise SubmissionFailed(
                f"Collection deployed in {deploy_hash} but its address could not be "
                "determined; initial configuration was not sent"
            )
        collection = Web3.to_checksum_address(collection)

        run.advance(OperationState.ACTING)
        try:
            configure_hash = self.orchestrator._submit(
                lambda: self.chain.write_contract(
                    collection, NFT_COLLECTION_ABI, "setInitialConfig",
                    request.max_supply or 0,
                    mint_price,
                    request.mint_limit_per_wallet or 0,
                    start_time,
                    end_time,
                    royalty_bps,
                    bool(request.allowlist),
                    [Web3.to_checksum_address(a) for a in request.allowlist],
                    metadata_uri,
                    metadata_uri,
                )
            )
            self.orchestrator._confirm(run, "setInitialConfig", configure_hash)
        except MoniError as e:
            raise CollectionNotConfigured(collection, deploy_hash, e)

        logger.info(f"Collection {request.name} live at {collection}")
        return {
            "tx_hash": deploy_hash,
            "block_number": receipt["blockNumber"],
            "method": "createCollection",
            "details": {
                "name": request.name,
                "symbol": request.symbol,
                "art_type": request.art_type.value,
                "collection_address": collection,
                "configure_tx_hash": configure_hash,
                "metadata_uri": metadata_uri,
                "marketplace_url": MARKETPLACE_URL.format(address=collection),
                "mint_price": format_units(mint_price, native.decimals),
                "royalty_bps": royalty_bps,
                "max_supply": request.max_supply,
                "mint_limit_per_wallet": request.mint_limit_per_wallet,
                "start_time": start_time,
                "end_time": end_time,
            },
        }
