"""NFT collection tools."""

import logging
from typing import List

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field, ValidationError

from ..formatter import format_result
from ..nft import CollectionRequest, PlaceholderImageGenerator
from .wallet_utils import get_collection_deployer

logger = logging.getLogger(__name__)


class GenerateImageInput(BaseModel):
    description: str = Field(description="What the image should show")
    style: str | None = Field(default=None, description="Art style, e.g. pixel art")


def create_nft_collection(**kwargs) -> str:
    try:
        request = CollectionRequest(**kwargs)
    except ValidationError as e:
        return f"Invalid collection settings: {e}"
    try:
        return format_result(get_collection_deployer().create_collection(request))
    except Exception as e:
        return f"Failed to create NFT collection. Error: {str(e)}"


def generate_nft_image(description: str, style: str | None = None) -> str:
    image = PlaceholderImageGenerator().generate(description, style)
    return "\n".join(
        [
            "## NFT Image Generated",
            f"- **Based on**: {description}",
            f"- **Style**: {style or 'Default'}",
            "",
            "Pass this data as the image when calling create_nft_collection:",
            "```",
            image,
            "```",
        ]
    )


create_nft_collection_tool = StructuredTool(
    name="create_nft_collection",
    description=(
        "Deploy an NFT collection through the Magic Eden launchpad on Monad "
        "testnet and configure its public mint."
    ),
    func=lambda **kwargs: create_nft_collection(**kwargs),
    args_schema=CollectionRequest,
)

generate_nft_image_tool = StructuredTool(
    name="generate_nft_image",
    description="Generate an image for an NFT collection from a text description.",
    func=lambda **kwargs: generate_nft_image(**kwargs),
    args_schema=GenerateImageInput,
)

nft_tools: List = [create_nft_collection_tool, generate_nft_image_tool]
