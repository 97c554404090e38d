"""Upload reconciliation for cosmwasm-deployments library."""

import logging

from .chain import ChainClient
from .exceptions import ChainRpcError, UploadError
from .types import Artifact, DeployRecord, UploadAction, UploadDecision, UploadMode

logger = logging.getLogger(__name__)


def decide(
    record: DeployRecord, current_hash: str, mode: UploadMode, chain: ChainClient
) -> UploadDecision:
    """
    Decide whether an artifact must be uploaded.

    Decision table:
    - FORCE_UPLOAD: always upload ("forced"), no chain query
    - no recorded hash/code id: upload ("new")
    - recorded hash differs: upload ("changed")
    - hash matches and chain still has the code id: skip ("unchanged")
    - hash matches but the code id query fails or disagrees: upload ("stale code id")

    Args:
        record: Current manifest record for the contract/environment
        current_hash: Fingerprint of the artifact on disk
        mode: Upload mode for the running sequence
        chain: Client used to confirm the recorded code id

    Returns:
        UploadDecision with action and reason
    """
    if mode is UploadMode.FORCE_UPLOAD:
        return UploadDecision(UploadAction.UPLOAD, "forced")

    if not record.has_code:
        return UploadDecision(UploadAction.UPLOAD, "new")

    if record.content_hash != current_hash:
        return UploadDecision(UploadAction.UPLOAD, "changed")

    try:
        metadata = chain.get_code_metadata(record.code_id)
    except ChainRpcError as e:
        logger.info(f"Code id {record.code_id} could not be confirmed on chain: {e}")
        return UploadDecision(UploadAction.UPLOAD, "stale code id")

    if metadata.code_id != record.code_id:
        logger.info(
            f"Chain returned code id {metadata.code_id} when asked for {record.code_id}"
        )
        return UploadDecision(UploadAction.UPLOAD, "stale code id")

    return UploadDecision(UploadAction.SKIP, "unchanged")


def upload_artifact(chain: ChainClient, artifact: Artifact) -> int:
    """
    Upload an artifact and return its new code id.

    The manifest is not touched; the caller decides when the new code id
    becomes current.

    Raises:
        UploadError: If the upload fails or returns an invalid code id
    """
    code_id = chain.upload(artifact.data)
    if isinstance(code_id, bool) or not isinstance(code_id, int) or code_id < 0:
        raise UploadError(f"Upload of {artifact.path} returned invalid code id {code_id!r}")

    logger.info(f"Uploaded {artifact.path.name} with code id {code_id}")
    return code_id
