"""Deploy manifest persistence for cosmwasm-deployments library."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from .exceptions import ManifestIOError
from .types import DeployRecord, ManifestKey

logger = logging.getLogger(__name__)

Manifest = Dict[ManifestKey, DeployRecord]

# DeployRecord attribute -> manifest JSON field
_RECORD_FIELDS = {
    "content_hash": "hash",
    "code_id": "codeId",
    "contract_address": "address",
    "ibc_port": "ibcPort",
}


def record_from_json(data: Dict[str, Any]) -> DeployRecord:
    """
    Build a DeployRecord from its manifest JSON object.

    Raises:
        ManifestIOError: If a known field has the wrong type
    """
    if not isinstance(data, dict):
        raise ManifestIOError(f"Manifest record must be an object, got {type(data).__name__}")

    values: Dict[str, Any] = {}
    for attr, json_name in _RECORD_FIELDS.items():
        value = data.get(json_name)
        if value is None:
            continue
        if attr == "code_id":
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int):
                raise ManifestIOError(f"Field '{json_name}' must be an integer, got {value!r}")
        elif not isinstance(value, str):
            raise ManifestIOError(f"Field '{json_name}' must be a string, got {value!r}")
        values[attr] = value

    extra = {k: v for k, v in data.items() if k not in _RECORD_FIELDS.values()}
    return DeployRecord(**values, extra=extra)


def record_to_json(record: DeployRecord) -> Dict[str, Any]:
    """Serialize a DeployRecord, omitting unset fields."""
    result: Dict[str, Any] = dict(record.extra)
    for attr, json_name in _RECORD_FIELDS.items():
        value = getattr(record, attr)
        if value is not None:
            result[json_name] = value
    return result


class ManifestStore:
    """
    Durable store of per-contract deployment state.

    The manifest is a single JSON document mapping ``<contract>_<environment>``
    to a record. Every operation reads the whole file and every write replaces
    the whole file, so no partial manifest is ever persisted.

    Concurrent writers are not supported: a single deploy process is assumed to
    have exclusive access to the file for the duration of a run.
    """

    def __init__(self, path: Union[Path, str]):
        """
        Initialize the manifest store.

        Args:
            path: Path to the manifest JSON file (need not exist yet)
        """
        self.path = Path(path)

    def load(self) -> Manifest:
        """
        Load the whole manifest.

        Returns:
            Mapping of ManifestKey -> DeployRecord. Empty if the file doesn't exist.

        Raises:
            ManifestIOError: If the file is unreadable or malformed
            InvariantViolation: If a stored record breaks record invariants
        """
        try:
            with open(self.path) as f:
                raw = json.load(f)
        except FileNotFoundError:
            logger.debug(f"No manifest at {self.path}, starting empty")
            return {}
        except json.JSONDecodeError as e:
            raise ManifestIOError(f"Manifest {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise ManifestIOError(f"Cannot read manifest {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise ManifestIOError(f"Manifest {self.path} must contain a JSON object")

        manifest: Manifest = {}
        for key_str, data in raw.items():
            try:
                key = ManifestKey.from_str(key_str)
            except ValueError as e:
                raise ManifestIOError(f"Manifest {self.path}: {e}") from e
            record = record_from_json(data)
            record.validate()
            manifest[key] = record

        return manifest

    def save(self, manifest: Manifest) -> None:
        """
        Write the whole manifest atomically.

        Creates parent directories if they don't exist.

        Raises:
            InvariantViolation: If a record breaks record invariants (nothing is written)
            ManifestIOError: If the file cannot be written
        """
        for record in manifest.values():
            record.validate()

        document = {key.to_str(): record_to_json(record) for key, record in manifest.items()}

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(document, f, indent=2, sort_keys=True)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ManifestIOError(f"Cannot write manifest {self.path}: {e}") from e

    def get(self, key: ManifestKey) -> DeployRecord:
        """
        Get the record for a key.

        Returns:
            The stored record, or an empty record on first deployment
        """
        return self.load().get(key, DeployRecord())

    def put(self, key: ManifestKey, record: DeployRecord) -> None:
        """Replace the record for a key (load, merge, save)."""
        manifest = self.load()
        manifest[key] = record
        self.save(manifest)
        logger.debug(f"Saved {key.to_str()} to {self.path}")
