"""Run configuration for cosmwasm-deployments library.

Everything here is read once at startup and passed down explicitly; the
reconciliation modules never look at the process environment themselves.
"""

import importlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from dotenv import dotenv_values

from .constants import DEFAULT_TARGETS, DEFAULT_TIMEOUT, NETWORK_CONFIG_FIELDS
from .exceptions import ConfigurationError
from .types import DeployTarget, Environment, FailurePolicy, NetworkConfig


@dataclass
class Settings:
    """Settings for one deploy or migrate run."""

    environment: Environment
    manifest_path: Path
    artifacts_dir: Path
    targets: Tuple[DeployTarget, ...] = DEFAULT_TARGETS
    always_instantiate: bool = False
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    timeout: float = DEFAULT_TIMEOUT
    seed_phrase: Optional[str] = field(default=None, repr=False)


def load_env_file(env_file: Optional[Union[Path, str]] = None) -> Dict[str, str]:
    """
    Merge a .env file with the process environment.

    Process environment wins over the file. The process environment itself is
    not modified.

    Args:
        env_file: Path to a .env file; a missing file is ignored

    Returns:
        Dictionary of variable name -> value
    """
    values: Dict[str, str] = {}
    if env_file is not None and Path(env_file).is_file():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update(os.environ)
    return values


def load_network_config(
    path: Union[Path, str], target: str, environment: Environment
) -> NetworkConfig:
    """
    Load one network entry from network.json.

    Entries are keyed "<target>_<environment>", e.g. "neutron_testnet".

    Raises:
        ConfigurationError: If the file is missing or invalid, or the entry is
            missing or lacks a required field
    """
    path = Path(path)
    try:
        with open(path) as f:
            all_config = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Network config not found at {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Network config {path} is not valid JSON: {e}") from e

    key = f"{target}_{environment.value}"
    entry = all_config.get(key) if isinstance(all_config, dict) else None
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Network '{key}' not found in {path}")

    missing = [name for name in NETWORK_CONFIG_FIELDS if not entry.get(name)]
    if missing:
        raise ConfigurationError(
            f"Network '{key}' in {path} is missing required fields: {', '.join(missing)}"
        )

    return NetworkConfig(
        target=target,
        environment=environment,
        rpc_url=entry["rpc_url"],
        rest_url=entry["rest_url"],
        chain_id=str(entry["chain_id"]),
        denom=entry["denom"],
        addr_prefix=entry["addr_prefix"],
        gas_price=str(entry.get("gas_price", "0")),
        full_denom=entry.get("full_denom"),
    )


def load_signer_factory(spec: str) -> Callable[..., Any]:
    """
    Import a signer factory from a "module:attribute" string.

    The factory is called as ``factory(network_config, seed_phrase)`` and must
    return a Signer.

    Raises:
        ConfigurationError: If the string is malformed or the import fails
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(
            f"Signer factory must look like 'package.module:callable', got '{spec}'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import signer module '{module_name}': {e}") from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigurationError(f"'{attr}' in module '{module_name}' is not callable")
    return factory
