"""Deploy and migrate sequences for cosmwasm-deployments library."""

import logging
from dataclasses import replace
from typing import Callable, Mapping

from .chain import ChainClient
from .config import Settings
from .exceptions import (
    ArtifactReadError,
    ChainRpcError,
    ConfigurationError,
    DeploymentError,
    InvariantViolation,
)
from .hashing import fingerprint_artifact
from .manifest import ManifestStore
from .paths import get_artifact_path
from .reconciler import decide, upload_artifact
from .types import (
    Action,
    Artifact,
    DeployRecord,
    DeployTarget,
    FailurePolicy,
    ManifestKey,
    NetworkConfig,
    PairOutcome,
    RunReport,
    UploadMode,
)

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Runs the deploy or migrate sequence over the configured contract/target pairs.

    Pairs are visited one at a time in configuration order, and every manifest
    update is persisted before the next chain call is made.

    Deploy, per pair:
        upload if changed -> instantiate if newly uploaded (or always, if
        configured, or if never instantiated) -> record the IBC port

    Migrate, per pair:
        upload unconditionally -> migrate the existing contract -> record the
        new code only once the migration succeeded
    """

    def __init__(
        self,
        settings: Settings,
        store: ManifestStore,
        clients: Mapping[str, ChainClient],
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Run settings
            store: Manifest store for the run
            clients: Chain client per target chain name (e.g. "neutron")
        """
        self.settings = settings
        self.store = store
        self.clients = clients

    def _client(self, target: DeployTarget) -> ChainClient:
        try:
            return self.clients[target.target]
        except KeyError:
            raise ConfigurationError(
                f"No chain client configured for target '{target.target}'"
            ) from None

    def _key(self, target: DeployTarget) -> ManifestKey:
        return ManifestKey(target.contract, self.settings.environment)

    def _fingerprint(self, target: DeployTarget) -> Artifact:
        return fingerprint_artifact(get_artifact_path(target.contract, self.settings.artifacts_dir))

    def log_wallets(self, networks: Mapping[str, NetworkConfig]) -> None:
        """
        Log signer address and balance for every target chain in the run.

        Warns when a signer account does not exist on chain yet.

        Args:
            networks: Network config per target chain name
        """
        seen = set()
        for target in self.settings.targets:
            if target.target in seen:
                continue
            seen.add(target.target)

            chain = self._client(target)
            network = networks.get(target.target)
            try:
                if not chain.account_exists(chain.address):
                    logger.warning(f"Account {chain.address} needs funds for executions")
                    continue
                if network is not None:
                    balance = chain.get_balance(chain.address, network.denom)
                    logger.info(
                        f"{target.target} wallet address: {chain.address}, "
                        f"balance: {balance}{network.denom}"
                    )
            except ChainRpcError as e:
                logger.warning(f"Could not query {target.target} wallet {chain.address}: {e}")

    # Deploy

    def instantiate_contract(self, target: DeployTarget, record: DeployRecord) -> DeployRecord:
        """
        Instantiate the contract from the record's code id and persist its address.

        Raises:
            InvariantViolation: If the record has no code id
            ChainRpcError: If instantiation fails or returns no address
        """
        if record.code_id is None:
            raise InvariantViolation(
                f"Contract {target.contract} needs to be uploaded before it can be instantiated"
            )

        chain = self._client(target)
        address = chain.instantiate(
            record.code_id, dict(target.init_msg), target.contract, chain.address
        )
        if not address:
            raise ChainRpcError(f"Failed to instantiate contract {target.contract}")

        if record.contract_address and record.contract_address != address:
            logger.warning(
                f"Replacing {target.contract} instance {record.contract_address} with {address}"
            )

        # A new instance gets its own port, if any
        record = replace(record, contract_address=address, ibc_port=None)
        self.store.put(self._key(target), record)
        logger.info(f"Instantiated {target.contract} at {address}")
        return record

    def set_ibc_port(self, target: DeployTarget, record: DeployRecord) -> DeployRecord:
        """
        Record the contract's IBC port, if it exposes one.

        A missing port is logged, never raised: not every contract has one.

        Raises:
            InvariantViolation: If the record has no contract address
            ChainRpcError: If the contract query fails
        """
        if not record.contract_address:
            raise InvariantViolation(
                f"Contract {target.contract} needs to be instantiated before it gets an ibc port"
            )

        metadata = self._client(target).get_contract_metadata(record.contract_address)
        if not metadata.ibc_port:
            if target.expects_ibc_port:
                logger.warning(f"Contract {target.contract} does not have an ibc port")
            else:
                logger.debug(f"Contract {target.contract} has no ibc port")
            return record

        if metadata.ibc_port == record.ibc_port:
            return record

        logger.info(f"Setting ibc port for {target.contract} to {metadata.ibc_port}")
        record = replace(record, ibc_port=metadata.ibc_port)
        self.store.put(self._key(target), record)
        return record

    def _deploy(self, target: DeployTarget, outcome: PairOutcome) -> None:
        key = self._key(target)
        chain = self._client(target)
        artifact = self._fingerprint(target)
        record = self.store.get(key)

        decision = decide(record, artifact.content_hash, UploadMode.UPLOAD_IF_CHANGED, chain)
        outcome.decision = decision

        if decision.should_upload:
            logger.info(f"Contract {target.contract} ({decision.reason}), uploading...")
            code_id = upload_artifact(chain, artifact)
            record = record.with_code(artifact.content_hash, code_id)
            self.store.put(key, record)
            outcome.uploaded = True
        else:
            logger.info(
                f"Contract {target.contract} already uploaded, code id is {record.code_id}"
            )
        outcome.record = record

        if outcome.uploaded or self.settings.always_instantiate or not record.contract_address:
            record = self.instantiate_contract(target, record)
            outcome.instantiated = True
        else:
            logger.info(
                f"Contract {target.contract} already instantiated at "
                f"{record.contract_address}, not instantiating again"
            )
        outcome.record = record

        outcome.record = self.set_ibc_port(target, record)

    def deploy_contract(self, target: DeployTarget) -> PairOutcome:
        """
        Run the deploy sequence for one pair.

        Raises:
            DeploymentError: On the first failing step; earlier steps stay persisted
        """
        outcome = PairOutcome(target=target, action=Action.DEPLOY)
        self._deploy(target, outcome)
        return outcome

    # Migrate

    def _migrate(self, target: DeployTarget, outcome: PairOutcome) -> None:
        key = self._key(target)
        chain = self._client(target)
        record = self.store.get(key)
        outcome.record = record

        # Checked before uploading so a bad invocation leaves no orphaned code
        if not record.contract_address:
            raise InvariantViolation(
                f"Contract {target.contract} has no address in "
                f"{self.settings.environment.value}; deploy it before migrating"
            )

        artifact = self._fingerprint(target)
        decision = decide(record, artifact.content_hash, UploadMode.FORCE_UPLOAD, chain)
        outcome.decision = decision

        logger.info(f"Contract {target.contract} ({decision.reason}), uploading...")
        code_id = upload_artifact(chain, artifact)
        outcome.uploaded = True

        chain.migrate(record.contract_address, code_id, dict(target.migrate_msg))
        logger.info(f"Migrated {target.contract} at {record.contract_address} to code id {code_id}")

        record = record.with_code(artifact.content_hash, code_id)
        self.store.put(key, record)
        outcome.migrated = True
        outcome.record = record

    def migrate_contract(self, target: DeployTarget) -> PairOutcome:
        """
        Run the migrate sequence for one pair.

        The manifest only changes after the chain accepted the migration.

        Raises:
            DeploymentError: On the first failing step
        """
        outcome = PairOutcome(target=target, action=Action.MIGRATE)
        self._migrate(target, outcome)
        return outcome

    # Runs

    def _is_fatal(self, error: DeploymentError) -> bool:
        if self.settings.failure_policy is FailurePolicy.FAIL_FAST:
            return True
        # Corrupt state or a misconfigured run stops everything, even when isolating
        return not isinstance(error, (ChainRpcError, ArtifactReadError))

    def _run(
        self, action: Action, step: Callable[[DeployTarget, PairOutcome], None]
    ) -> RunReport:
        report = RunReport(action=action, environment=self.settings.environment)

        for target in self.settings.targets:
            outcome = PairOutcome(target=target, action=action)
            report.outcomes.append(outcome)
            try:
                step(target, outcome)
            except DeploymentError as e:
                outcome.error = e
                if self._is_fatal(e):
                    logger.error(
                        f"{action.value} of {target.contract} on {target.target} failed, "
                        f"stopping: {e}",
                        exc_info=True,
                    )
                    report.aborted = True
                    break
                logger.error(
                    f"{action.value} of {target.contract} on {target.target} failed, "
                    f"continuing with next contract: {e}"
                )

        return report

    def deploy(self) -> RunReport:
        """Run the deploy sequence over every configured pair."""
        return self._run(Action.DEPLOY, self._deploy)

    def migrate(self) -> RunReport:
        """Run the migrate sequence over every configured pair."""
        return self._run(Action.MIGRATE, self._migrate)

    def run(self, action: Action) -> RunReport:
        """Run the sequence selected by action."""
        match action:
            case Action.DEPLOY:
                return self.deploy()
            case Action.MIGRATE:
                return self.migrate()
            case _:
                raise ValueError(f"Unknown action: {action}")
