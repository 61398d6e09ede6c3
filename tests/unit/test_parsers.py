"""Unit tests for deployment record and artifact parsers."""

import json
from pathlib import Path

import pytest

from conftest import GOVERNOR_ADDRESS, TOKEN_ADDRESS, artifact_data, create_tx, write_json
from governor_publication.exceptions import ArtifactMalformedError, ArtifactNotFoundError
from governor_publication.parsers import (
    read_contract_artifact,
    read_deployment_record,
    reduce_to_latest_creations,
)
from governor_publication.types import DeploymentRecord, Transaction


class TestReadDeploymentRecord:
    """Test the read_deployment_record function."""

    def test_parses_broadcast_record(self, record_path: Path):
        """Test parsing a Foundry broadcast file with all fields."""
        record = read_deployment_record(record_path)

        assert len(record.transactions) == 3
        assert record.source == str(record_path)

        token_tx = record.transactions[0]
        assert token_tx.transaction_type == "CREATE"
        assert token_tx.contract_name == "UngovernableERC20"
        assert token_tx.contract_address == TOKEN_ADDRESS
        assert token_tx.arguments == ["Foo Token", "FOO", "1000"]
        assert token_tx.block_number == 99

    def test_null_arguments_become_empty_list(self, record_path: Path):
        """Test that `arguments: null` is read as no arguments."""
        record = read_deployment_record(record_path)
        assert record.transactions[2].arguments == []

    def test_optional_fields_default_to_none(self, tmp_path: Path):
        """Test that only transactionType is required per transaction."""
        path = write_json(tmp_path / "run.json", {"transactions": [{"transactionType": "CALL"}]})

        tx = read_deployment_record(path).transactions[0]
        assert tx.contract_name is None
        assert tx.contract_address is None
        assert tx.arguments == []
        assert tx.block_number is None

    def test_hex_block_numbers_are_decoded(self, tmp_path: Path):
        """Test that 0x-prefixed block numbers are converted to int."""
        path = write_json(
            tmp_path / "run.json",
            {"transactions": [create_tx("A", "0xa", block="0x64")]},
        )
        assert read_deployment_record(path).transactions[0].block_number == 100

    def test_missing_file_raises_not_found(self, tmp_path: Path):
        """Test that an absent record raises ArtifactNotFoundError."""
        with pytest.raises(ArtifactNotFoundError):
            read_deployment_record(tmp_path / "missing.json")

    def test_missing_file_is_a_file_not_found_error(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_deployment_record(tmp_path / "missing.json")

    def test_invalid_json_raises_malformed(self, tmp_path: Path):
        """Test that invalid JSON raises ArtifactMalformedError."""
        path = tmp_path / "invalid.json"
        path.write_text("{ invalid json }")

        with pytest.raises(ArtifactMalformedError):
            read_deployment_record(path)

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"transactions": {}},
            [],
            {"transactions": ["CREATE"]},
            {"transactions": [{"contractName": "A"}]},
            {"transactions": [{"transactionType": "CREATE", "arguments": "x"}]},
            {"transactions": [{"transactionType": "CREATE", "blockNumber": "soon"}]},
        ],
    )
    def test_unexpected_shape_raises_malformed(self, tmp_path: Path, data):
        """Test that structurally wrong records raise ArtifactMalformedError."""
        path = tmp_path / "run.json"
        path.write_text(json.dumps(data))

        with pytest.raises(ArtifactMalformedError):
            read_deployment_record(path)


class TestReduceToLatestCreations:
    """Test the reduce_to_latest_creations function."""

    def test_maps_created_contracts_by_name(self, record_path: Path):
        """Test that each CREATE transaction yields a mapping entry."""
        creations = reduce_to_latest_creations(read_deployment_record(record_path))

        assert list(creations.keys()) == ["UngovernableERC20", "UngovernableGovernor"]
        governor = creations["UngovernableGovernor"]
        assert governor.address == GOVERNOR_ADDRESS
        assert governor.constructor_args == [TOKEN_ADDRESS]
        assert governor.block_number == 100

    def test_later_creation_overwrites_earlier(self):
        """Test that redeploying a contract keeps only the most recent instance."""
        record = DeploymentRecord(
            transactions=[
                Transaction("CREATE", "Token", "0xold", ["1"], 50),
                Transaction("CREATE", "Token", "0xnew", ["2"], 60),
            ]
        )

        creations = reduce_to_latest_creations(record)

        assert len(creations) == 1
        assert creations["Token"].address == "0xnew"
        assert creations["Token"].block_number == 60
        assert creations["Token"].constructor_args == ["2"]

    def test_greatest_index_create_wins_among_interleaved(self):
        """Test that CALLs between CREATEs do not affect which CREATE wins."""
        record = DeploymentRecord(
            transactions=[
                Transaction("CREATE", "A", "0xa1", [], 1),
                Transaction("CREATE", "B", "0xb1", [], 2),
                Transaction("CREATE", "A", "0xa2", [], 3),
                Transaction("CALL", "A", "0xa3", [], 4),
            ]
        )

        creations = reduce_to_latest_creations(record)

        assert creations["A"].address == "0xa2"
        assert creations["B"].address == "0xb1"

    def test_ignores_calls_and_unnamed_creates(self):
        """Test that only named CREATE transactions are considered."""
        record = DeploymentRecord(
            transactions=[
                Transaction("CALL", "Token", "0xcall", [], 1),
                Transaction("CREATE", None, "0xanon", [], 2),
                Transaction("CREATE2", "Factory", "0xf", [], 3),
            ]
        )

        assert reduce_to_latest_creations(record) == {}

    def test_is_idempotent(self, record_path: Path):
        """Test that re-applying the reduction yields the same mapping."""
        record = read_deployment_record(record_path)
        assert reduce_to_latest_creations(record) == reduce_to_latest_creations(record)


class TestReadContractArtifact:
    """Test the read_contract_artifact function."""

    def test_reads_compiler_metadata(self, out_dir: Path):
        """Test reading version, runs and constructor types."""
        artifact = read_contract_artifact("UngovernableERC20", out_dir)

        assert artifact.contract_name == "UngovernableERC20"
        assert artifact.compiler_version == "0.8.24+commit.e11b9ed9"
        assert artifact.optimizer_runs == 200
        assert artifact.constructor_param_types == ["string", "string", "uint256"]

    def test_optimizer_runs_absent(self, tmp_path: Path):
        """Test that artifacts without optimizer settings have runs None."""
        write_json(tmp_path / "Plain.sol" / "Plain.json", artifact_data(runs=None))

        artifact = read_contract_artifact("Plain", tmp_path)
        assert artifact.optimizer_runs is None

    def test_no_constructor_yields_empty_types(self, tmp_path: Path):
        """Test that a contract without a constructor has no parameter types."""
        write_json(tmp_path / "Plain.sol" / "Plain.json", artifact_data())

        artifact = read_contract_artifact("Plain", tmp_path)
        assert artifact.constructor_param_types == []

    def test_missing_artifact_raises_not_found(self, tmp_path: Path):
        with pytest.raises(ArtifactNotFoundError):
            read_contract_artifact("Nope", tmp_path)

    def test_missing_compiler_version_raises_malformed(self, tmp_path: Path):
        """Test that artifacts without metadata.compiler.version are rejected."""
        write_json(tmp_path / "Bad.sol" / "Bad.json", {"abi": [], "metadata": {}})

        with pytest.raises(ArtifactMalformedError):
            read_contract_artifact("Bad", tmp_path)

    def test_missing_abi_raises_malformed(self, tmp_path: Path):
        data = artifact_data()
        del data["abi"]
        write_json(tmp_path / "Bad.sol" / "Bad.json", data)

        with pytest.raises(ArtifactMalformedError):
            read_contract_artifact("Bad", tmp_path)

    @pytest.mark.parametrize(
        "metadata_settings",
        [
            {"optimizer": {"runs": "lots"}},
            {"optimizer": ["runs", 200]},
            "paris",
        ],
    )
    def test_malformed_optimizer_settings_raise_malformed(
        self, tmp_path: Path, metadata_settings
    ):
        """Test that a wrongly shaped optimizer section is an artifact error."""
        data = artifact_data()
        data["metadata"]["settings"] = metadata_settings
        write_json(tmp_path / "Bad.sol" / "Bad.json", data)

        with pytest.raises(ArtifactMalformedError, match="Malformed optimizer settings"):
            read_contract_artifact("Bad", tmp_path)
