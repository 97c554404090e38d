"""Command line entry point for cosmwasm-deployments.

Usage:
    cosmwasm-deploy --action=deploy --env=testnet --signer-factory mywallet:create_signer
    cosmwasm-deploy --action=migrate --env=local
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from .chain import ChainClient, RestChainClient
from .config import Settings, load_env_file, load_network_config, load_signer_factory
from .constants import DEFAULT_TIMEOUT, SEED_PHRASE_ENV, SIGNER_FACTORY_ENV
from .exceptions import ConfigurationError
from .manifest import ManifestStore
from .orchestrator import Orchestrator
from .paths import get_project_paths
from .types import Action, Environment, FailurePolicy, NetworkConfig, RunReport

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cosmwasm-deploy",
        description="Upload, instantiate and migrate CosmWasm contracts across chains.",
    )
    parser.add_argument(
        "--action", required=True, choices=[a.value for a in Action], help="Sequence to run"
    )
    parser.add_argument(
        "--env", required=True, choices=[e.value for e in Environment], help="Target environment"
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Directory holding deploy.json, network.json and wasm/artifacts (default: cwd)",
    )
    parser.add_argument("--manifest", type=Path, default=None, help="Deploy manifest path")
    parser.add_argument("--network-config", type=Path, default=None, help="network.json path")
    parser.add_argument("--artifacts-dir", type=Path, default=None, help="Compiled .wasm directory")
    parser.add_argument("--env-file", type=Path, default=None, help=".env file (default: <root>/.env)")
    parser.add_argument(
        "--signer-factory",
        default=None,
        help=f"'module:callable' returning a Signer (default: ${SIGNER_FACTORY_ENV})",
    )
    parser.add_argument(
        "--always-instantiate",
        action="store_true",
        help="Instantiate a new contract even if the code was already uploaded",
    )
    parser.add_argument(
        "--isolate-failures",
        action="store_true",
        help="Continue with the next contract when a chain call fails",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds allowed per chain call (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def create_chain_clients(
    networks: Mapping[str, NetworkConfig],
    signer_factory: Callable[..., Any],
    settings: Settings,
) -> Dict[str, ChainClient]:
    """
    Create one REST chain client per target chain.

    Raises:
        ConfigurationError: If the signer factory fails for a network
    """
    clients: Dict[str, ChainClient] = {}
    for target, network in networks.items():
        try:
            signer = signer_factory(network, settings.seed_phrase)
        except Exception as e:
            raise ConfigurationError(f"Cannot create signer for {target}: {e}") from e
        clients[target] = RestChainClient(network.rest_url, signer, timeout=settings.timeout)
    return clients


def _log_report(report: RunReport) -> None:
    for outcome in report.outcomes:
        name = f"{outcome.target.contract} on {outcome.target.target}"
        if not outcome.ok:
            logger.info(f"{name}: failed ({outcome.error})")
            continue
        record = outcome.record
        logger.info(
            f"{name}: code id {record.code_id if record else None}, "
            f"address {record.contract_address if record else None}"
        )
    if report.aborted:
        logger.error(f"{report.action.value} stopped after {len(report.outcomes)} contract(s)")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI.

    Returns:
        0 if every contract succeeded, 1 if any failed, 2 on configuration errors
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    manifest_path, network_config_path, artifacts_dir = get_project_paths(args.project_root)
    project_root = manifest_path.parent
    environment = Environment(args.env)
    action = Action(args.action)

    try:
        env = load_env_file(args.env_file or project_root / ".env")

        settings = Settings(
            environment=environment,
            manifest_path=args.manifest or manifest_path,
            artifacts_dir=args.artifacts_dir or artifacts_dir,
            always_instantiate=args.always_instantiate,
            failure_policy=(
                FailurePolicy.ISOLATE if args.isolate_failures else FailurePolicy.FAIL_FAST
            ),
            timeout=args.timeout,
            seed_phrase=env.get(SEED_PHRASE_ENV),
        )
        if settings.timeout <= 0:
            raise ConfigurationError(f"--timeout must be positive, got {settings.timeout}")
        if not settings.seed_phrase:
            raise ConfigurationError(f"${SEED_PHRASE_ENV} is not set")

        factory_spec = args.signer_factory or env.get(SIGNER_FACTORY_ENV)
        if not factory_spec:
            raise ConfigurationError(
                f"No signer configured: pass --signer-factory or set ${SIGNER_FACTORY_ENV}"
            )
        signer_factory = load_signer_factory(factory_spec)

        networks = {
            t.target: load_network_config(
                args.network_config or network_config_path, t.target, environment
            )
            for t in settings.targets
        }
        clients = create_chain_clients(networks, signer_factory, settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    orchestrator = Orchestrator(settings, ManifestStore(settings.manifest_path), clients)
    orchestrator.log_wallets(networks)
    report = orchestrator.run(action)
    _log_report(report)

    return 0 if report.ok else 1
