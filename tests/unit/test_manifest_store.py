"""Unit tests for the deploy manifest store."""

import json
from pathlib import Path

import pytest

from cosmwasm_deployments.exceptions import InvariantViolation, ManifestIOError
from cosmwasm_deployments.manifest import ManifestStore, record_from_json, record_to_json
from cosmwasm_deployments.types import DeployRecord, Environment, ManifestKey

WAREHOUSE = ManifestKey("warehouse", Environment.TESTNET)


class TestManifestKey:
    """Test serialization of composite manifest keys."""

    def test_to_str(self):
        """Test that keys serialize as <contract>_<environment>."""
        assert WAREHOUSE.to_str() == "warehouse_testnet"

    def test_from_str(self):
        """Test parsing a serialized key."""
        assert ManifestKey.from_str("nft_local") == ManifestKey("nft", Environment.LOCAL)

    def test_contract_name_with_underscore(self):
        """Test that underscores in contract names survive a round trip."""
        key = ManifestKey("cw20_base", Environment.TESTNET)
        assert ManifestKey.from_str(key.to_str()) == key

    @pytest.mark.parametrize("bad", ["warehouse", "_testnet", "warehouse_mainnet", ""])
    def test_rejects_malformed_keys(self, bad: str):
        """Test that keys without a known environment suffix are rejected."""
        with pytest.raises(ValueError):
            ManifestKey.from_str(bad)


class TestRecordJson:
    """Test record (de)serialization."""

    def test_maps_json_field_names(self):
        """Test that manifest field names map onto record attributes."""
        record = record_from_json(
            {"hash": "abc123", "codeId": 7, "address": "neutron1x", "ibcPort": "wasm.neutron1x"}
        )

        assert record == DeployRecord("abc123", 7, "neutron1x", "wasm.neutron1x")

    def test_omits_unset_fields(self):
        """Test that unset fields are left out of the JSON object."""
        assert record_to_json(DeployRecord(content_hash="abc123", code_id=7)) == {
            "hash": "abc123",
            "codeId": 7,
        }

    def test_preserves_unknown_fields(self):
        """Test that fields this library doesn't manage are kept."""
        record = record_from_json({"codeId": 3, "hash": "ff", "note": "by hand"})

        assert record.extra == {"note": "by hand"}
        assert record_to_json(record)["note"] == "by hand"

    @pytest.mark.parametrize(
        "data",
        [
            {"codeId": "7"},
            {"codeId": True},
            {"hash": 123},
            {"address": ["neutron1x"]},
        ],
    )
    def test_rejects_wrong_types(self, data):
        """Test that wrongly typed fields are reported as manifest corruption."""
        with pytest.raises(ManifestIOError):
            record_from_json(data)

    def test_rejects_non_object(self):
        """Test that a record must be a JSON object."""
        with pytest.raises(ManifestIOError):
            record_from_json(["abc123", 7])


class TestLoad:
    """Test ManifestStore.load()."""

    def test_loads_sample_manifest(self, temp_manifest: Path):
        """Test loading an existing manifest file."""
        manifest = ManifestStore(temp_manifest).load()

        assert manifest[WAREHOUSE].code_id == 7
        assert manifest[WAREHOUSE].content_hash == "abc123"
        assert manifest[WAREHOUSE].ibc_port == "wasm.neutron1warehouse"
        assert manifest[ManifestKey("payment", Environment.TESTNET)].contract_address is None
        assert len(manifest) == 3

    def test_missing_file_is_empty_manifest(self, tmp_path: Path):
        """Test that a missing file means a first deployment."""
        assert ManifestStore(tmp_path / "missing.json").load() == {}

    def test_corrupted_json_raises(self, tmp_path: Path):
        """Test that unparseable JSON is fatal, not treated as empty."""
        path = tmp_path / "deploy.json"
        path.write_text("{ invalid json")

        with pytest.raises(ManifestIOError):
            ManifestStore(path).load()

    def test_non_object_top_level_raises(self, tmp_path: Path):
        """Test that the top level must be a JSON object."""
        path = tmp_path / "deploy.json"
        path.write_text("[]")

        with pytest.raises(ManifestIOError):
            ManifestStore(path).load()

    def test_malformed_key_raises(self, tmp_path: Path):
        """Test that an unparseable key is reported as corruption."""
        path = tmp_path / "deploy.json"
        path.write_text(json.dumps({"warehouse": {"codeId": 1, "hash": "ff"}}))

        with pytest.raises(ManifestIOError):
            ManifestStore(path).load()

    def test_invariant_violation_on_load(self, tmp_path: Path):
        """Test that an address without a code id is rejected."""
        path = tmp_path / "deploy.json"
        path.write_text(json.dumps({"warehouse_testnet": {"address": "neutron1x"}}))

        with pytest.raises(InvariantViolation):
            ManifestStore(path).load()


class TestSave:
    """Test ManifestStore.save()."""

    def test_round_trips_through_disk(self, temp_manifest: Path, sample_manifest_json):
        """Test that load followed by save keeps the file content."""
        store = ManifestStore(temp_manifest)
        store.save(store.load())

        with open(temp_manifest) as f:
            assert json.load(f) == sample_manifest_json

    def test_creates_parent_directories(self, tmp_path: Path):
        """Test that parent directories are created if they don't exist."""
        path = tmp_path / "level1" / "level2" / "deploy.json"
        ManifestStore(path).save({WAREHOUSE: DeployRecord("abc123", 7)})

        assert path.exists()

    def test_leaves_no_temp_files(self, tmp_path: Path):
        """Test that the atomic write cleans up after itself."""
        store = ManifestStore(tmp_path / "deploy.json")
        store.save({WAREHOUSE: DeployRecord("abc123", 7)})

        assert [p.name for p in tmp_path.iterdir()] == ["deploy.json"]

    def test_invalid_record_writes_nothing(self, temp_manifest: Path):
        """Test that a record breaking invariants aborts the whole save."""
        before = temp_manifest.read_text()
        store = ManifestStore(temp_manifest)
        manifest = store.load()
        manifest[WAREHOUSE] = DeployRecord(ibc_port="wasm.orphan")

        with pytest.raises(InvariantViolation):
            store.save(manifest)

        assert temp_manifest.read_text() == before


class TestGetPut:
    """Test ManifestStore.get() and put()."""

    def test_get_absent_key_returns_empty_record(self, temp_manifest: Path):
        """Test that an unknown key yields an empty record, not an error."""
        record = ManifestStore(temp_manifest).get(ManifestKey("warehouse", Environment.LOCAL))
        assert record == DeployRecord()

    def test_put_merges_into_existing_manifest(self, temp_manifest: Path):
        """Test that put replaces one entry and keeps the others."""
        store = ManifestStore(temp_manifest)
        key = ManifestKey("nft", Environment.TESTNET)

        store.put(key, DeployRecord("deadbeef", 101))

        manifest = store.load()
        assert manifest[key] == DeployRecord("deadbeef", 101)
        assert manifest[WAREHOUSE].code_id == 7
        assert len(manifest) == 4

    def test_put_creates_file(self, tmp_path: Path):
        """Test that the first put creates the manifest."""
        store = ManifestStore(tmp_path / "deploy.json")
        store.put(WAREHOUSE, DeployRecord("abc123", 7))

        with open(store.path) as f:
            assert json.load(f) == {"warehouse_testnet": {"hash": "abc123", "codeId": 7}}
