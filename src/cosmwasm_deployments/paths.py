"""Path management utilities for cosmwasm-deployments library."""

from pathlib import Path
from typing import Optional, Union

from .constants import (
    ARTIFACT_SUFFIX,
    ARTIFACTS_DIRNAME,
    MANIFEST_FILENAME,
    NETWORK_CONFIG_FILENAME,
)


def get_default_project_root() -> Path:
    """
    Get default project root (current working directory).

    Returns:
        Absolute path of the working directory
    """
    return Path.cwd()


def get_project_paths(
    project_root: Optional[Union[Path, str]] = None,
) -> tuple[Path, Path, Path]:
    """
    Get default deployment file paths.

    Args:
        project_root: Custom project directory (defaults to the working directory)

    Returns:
        Tuple of (manifest_path, network_config_path, artifacts_dir)
    """
    if project_root is None:
        project_root = get_default_project_root()
    else:
        project_root = Path(project_root).absolute()

    manifest_path = project_root / MANIFEST_FILENAME
    network_config_path = project_root / NETWORK_CONFIG_FILENAME
    artifacts_dir = project_root / ARTIFACTS_DIRNAME

    return (manifest_path, network_config_path, artifacts_dir)


def get_artifact_path(contract: str, artifacts_dir: Union[Path, str]) -> Path:
    """
    Get path of a contract's compiled artifact.

    Args:
        contract: Contract name, e.g. "warehouse"
        artifacts_dir: Directory holding compiled artifacts

    Returns:
        Path to <artifacts_dir>/<contract>.wasm
    """
    return Path(artifacts_dir) / f"{contract}{ARTIFACT_SUFFIX}"
