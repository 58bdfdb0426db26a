"""Pydantic models for configuration schemas."""

from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"


class ChainConfig(BaseModel):
    """Configuration for a blockchain network."""

    name: str
    chain_id: int
    rpc_url: str
    explorer_url: str | None = None
    native_token: str = "MON"
    block_time: float = Field(default=1.0, description="Average block time in seconds")


class TokenConfig(BaseModel):
    """Configuration for a token.

    Instances are frozen: the token table is loaded once and shared by every
    operation.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    address: str
    decimals: int = Field(ge=0, le=36)

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_TOKEN_ADDRESS


class SwapPathConfig(BaseModel):
    """A hardcoded swap path for one (source, destination) pair."""

    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    path: List[str]
    note: str | None = None

    @field_validator("path")
    @classmethod
    def _path_has_two_hops(cls, value: List[str]) -> List[str]:
        if len(value) < 2:
            raise ValueError("a swap path needs at least two addresses")
        return value


class ContractsConfig(BaseModel):
    """Addresses of the protocol contracts the orchestrator talks to."""

    swap_router: str
    staking: str
    nft_launchpad: str


class OrchestrationConfig(BaseModel):
    """Knobs for approval, slippage and confirmation behaviour."""

    default_slippage_percent: float = Field(default=2.0, ge=0, lt=100)
    unstake_swap_slippage_percent: float = Field(default=5.0, ge=0, lt=100)
    confirmation_timeout: float = Field(
        default=60.0, gt=0, description="Seconds to wait for a receipt"
    )
    confirmations: int = Field(default=1, ge=1)
    nft_deploy_confirmations: int = Field(default=2, ge=1)
    swap_deadline_minutes: int = Field(default=20, gt=0)
    approval_policy: Literal["exact", "ceiling"] = "exact"
    approval_ceiling: str = Field(
        default="1000000000",
        description="Ceiling in human units used when approval_policy is 'ceiling'",
    )
    gas_buffer: float = Field(default=1.2, ge=1.0)
    default_gas_limit: int = Field(default=300000, gt=0)


class ModelConfig(BaseModel):
    """Configuration for LLM models."""

    provider: str = "openai"
    model_name: str = "gpt-4o-mini"
    max_tokens: int | None = None


class Config(BaseModel):
    """Main configuration container."""

    chains: Dict[str, ChainConfig] = {}
    tokens: Dict[str, TokenConfig] = {}
    contracts: ContractsConfig
    swap_paths: List[SwapPathConfig] = []
    orchestration: OrchestrationConfig = OrchestrationConfig()
    models: ModelConfig = ModelConfig()

    @property
    def default_chain(self) -> ChainConfig:
        """Get the default chain configuration (Monad testnet)."""
        return self.chains.get(
            "monad_testnet",
            ChainConfig(
                name="Monad Testnet",
                chain_id=10143,
                rpc_url="https://testnet-rpc.monad.xyz",
                explorer_url="https://testnet.monadexplorer.com",
            ),
        )
