"""Configuration loader utility for loading YAML configs into Pydantic models."""

import logging
import os
from pathlib import Path
from typing import Dict

import yaml
from dotenv import load_dotenv

from .config_models import (
    ChainConfig,
    Config,
    ContractsConfig,
    ModelConfig,
    OrchestrationConfig,
    SwapPathConfig,
    TokenConfig,
)

load_dotenv()

logger = logging.getLogger(__name__)

PRIVATE_KEY_ENV = "TEST_WALLET_PRIVATE_KEY"


class ConfigLoader:
    """Loads and manages configuration from YAML files."""

    def __init__(self, config_dir: str | Path | None = None):
        """Initialize the config loader.

        Args:
            config_dir: Path to the configuration directory.
                       Defaults to MONI_CONFIG_DIR, then the bundled 'configs'.
        """
        if config_dir is None:
            config_dir = os.getenv("MONI_CONFIG_DIR") or Path(__file__).parent / "configs"

        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ValueError(f"Configuration directory not found: {self.config_dir}")

        self._config: Config | None = None

    def load(self) -> Config:
        """Load all configuration files and return the combined config.

        Returns:
            Config: The loaded configuration object.
        """
        if self._config is not None:
            return self._config

        # Load chains
        chains = self._load_yaml("chains.yaml")
        chain_configs = {}
        if chains:
            for name, chain_data in chains.items():
                chain_configs[name] = ChainConfig(**chain_data)

        rpc_override = os.getenv("MONI_RPC_URL")
        if rpc_override and "monad_testnet" in chain_configs:
            chain_configs["monad_testnet"] = chain_configs["monad_testnet"].model_copy(
                update={"rpc_url": rpc_override}
            )

        # Load tokens; the YAML key is the canonical symbol
        tokens = self._load_yaml("tokens.yaml")
        token_configs = {}
        if tokens:
            for symbol, token_data in tokens.items():
                token_configs[symbol] = TokenConfig(symbol=symbol, **token_data)

        contracts_data = self._load_yaml("contracts.yaml")
        if not contracts_data:
            raise ValueError(f"contracts.yaml missing from {self.config_dir}")

        paths_data = self._load_yaml("swap_paths.yaml") or []
        swap_paths = [SwapPathConfig(**entry) for entry in paths_data]

        orchestration_data = self._load_yaml("orchestration.yaml")
        orchestration_config = (
            OrchestrationConfig(**orchestration_data)
            if orchestration_data
            else OrchestrationConfig()
        )

        # Load model config
        model_data = self._load_yaml("models.yaml")
        model_config = ModelConfig(**model_data) if model_data else ModelConfig()

        self._config = Config(
            chains=chain_configs,
            tokens=token_configs,
            contracts=ContractsConfig(**contracts_data),
            swap_paths=swap_paths,
            orchestration=orchestration_config,
            models=model_config,
        )
        logger.info(
            f"Loaded config from {self.config_dir}: {len(token_configs)} tokens, "
            f"{len(swap_paths)} swap path overrides"
        )

        return self._config

    def _load_yaml(self, filename: str) -> Dict | list | None:
        """Load a YAML file from the config directory.

        Args:
            filename: Name of the YAML file to load.

        Returns:
            The loaded YAML data or None if file doesn't exist.
        """
        filepath = self.config_dir / filename
        if not filepath.exists():
            return None

        with open(filepath) as f:
            return yaml.safe_load(f)

    def get_token_address(self, symbol: str) -> str | None:
        """Get token address by its canonical symbol."""
        config = self.load()
        token = config.tokens.get(symbol)
        return token.address if token else None

    def reload(self) -> Config:
        """Reload configuration from disk.

        Returns:
            Config: The reloaded configuration object.
        """
        self._config = None
        return self.load()


# Global config loader instance
_config_loader = None


def get_config_loader() -> ConfigLoader:
    """Get the global config loader instance.

    Returns:
        ConfigLoader: The global config loader.
    """
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def get_config() -> Config:
    """Get the loaded configuration.

    Returns:
        Config: The loaded configuration object.
    """
    return get_config_loader().load()


def get_private_key() -> str | None:
    """Read the signing key from the environment, normalised to 0x-prefixed hex.

    Never log the returned value.
    """
    private_key = os.getenv(PRIVATE_KEY_ENV)
    if not private_key:
        return None
    private_key = private_key.strip()
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    return private_key
