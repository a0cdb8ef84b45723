"""
Unit tests for artifact loading and compilation.
"""

import unittest
from unittest.mock import patch
import os
import sys
import json
import shutil
import tempfile
from pathlib import Path

from solcx.exceptions import SolcNotInstalled

sys.path.append(str(Path(__file__).parent.parent.parent))

from marketplace.artifacts import ArtifactStore, ContractArtifact, compile_contract, load_artifact
from marketplace.config import CONTRACTS_DIR
from marketplace.errors import DeploymentError

MARKETPLACE_ABI = [
    {"type": "function", "name": "recipient", "inputs": [],
     "outputs": [{"name": "", "type": "address"}], "stateMutability": "view"},
    {"type": "function", "name": "setRecipient",
     "inputs": [{"name": "_recipient", "type": "address"}],
     "outputs": [], "stateMutability": "nonpayable"},
    {"type": "event", "name": "RecipientUpdated", "inputs": [], "anonymous": False},
]


class TestLoadArtifact(unittest.TestCase):
    """Test cases for Hardhat-style artifact loading."""

    def setUp(self):
        """Create an artifacts tree the way Hardhat lays it out."""
        self.temp_dir = tempfile.mkdtemp()
        contract_dir = os.path.join(self.temp_dir, "contracts", "Marketplace.sol")
        os.makedirs(contract_dir)
        self.artifact_path = os.path.join(contract_dir, "Marketplace.json")
        with open(self.artifact_path, 'w') as f:
            json.dump({
                "contractName": "Marketplace",
                "abi": MARKETPLACE_ABI,
                "bytecode": "0x608060405234801561001057600080fd5b50"
            }, f)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_load_artifact(self):
        """Test loading an artifact from a nested directory."""
        artifact = load_artifact("Marketplace", self.temp_dir)

        self.assertEqual(artifact.name, "Marketplace")
        self.assertEqual(artifact.abi, MARKETPLACE_ABI)
        self.assertTrue(artifact.bytecode.startswith("0x6080"))
        self.assertEqual(artifact.function_names(), ["recipient", "setRecipient"])

    def test_missing_artifact(self):
        """Test that an unknown contract raises DeploymentError."""
        with self.assertRaises(DeploymentError):
            load_artifact("Auction", self.temp_dir)

    def test_artifact_without_bytecode(self):
        """Test that interface-only artifacts are rejected."""
        with open(self.artifact_path, 'w') as f:
            json.dump({"abi": MARKETPLACE_ABI, "bytecode": "0x"}, f)

        with self.assertRaises(DeploymentError):
            load_artifact("Marketplace", self.temp_dir)

    def test_corrupt_artifact(self):
        """Test that an unparseable artifact is reported as a deployment failure."""
        with open(self.artifact_path, 'w') as f:
            f.write("{\"abi\": [")

        with self.assertRaises(DeploymentError) as context:
            load_artifact("Marketplace", self.temp_dir)

        self.assertIn(self.artifact_path, str(context.exception))

    def test_artifact_not_an_object(self):
        """Test that a JSON document without artifact fields is rejected."""
        with open(self.artifact_path, 'w') as f:
            json.dump(["abi", "bytecode"], f)

        with self.assertRaises(DeploymentError):
            load_artifact("Marketplace", self.temp_dir)

    def test_bytecode_prefix(self):
        """Test that raw solc output gets a 0x prefix."""
        artifact = ContractArtifact("Marketplace", [], "6080")
        self.assertEqual(artifact.bytecode, "0x6080")


class TestCompileContract(unittest.TestCase):
    """Test cases for compiling contract sources."""

    @patch('marketplace.artifacts.solcx.compile_files')
    def test_compile_contract(self, mock_compile):
        """Test compiling the bundled Marketplace source."""
        source_path = os.path.join(CONTRACTS_DIR, "Marketplace.sol")
        mock_compile.return_value = {
            f"{source_path}:Marketplace": {"abi": MARKETPLACE_ABI, "bin": "6080"}
        }

        artifact = compile_contract("Marketplace", solc_version="0.8.19")

        mock_compile.assert_called_once_with(
            [source_path], output_values=["abi", "bin"], solc_version="0.8.19"
        )
        self.assertEqual(artifact.abi, MARKETPLACE_ABI)
        self.assertEqual(artifact.bytecode, "0x6080")

    @patch('marketplace.artifacts.solcx.compile_files')
    def test_compile_contract_missing_from_output(self, mock_compile):
        """Test that a source without the named contract fails."""
        mock_compile.return_value = {"Marketplace.sol:Other": {"abi": [], "bin": "00"}}

        with self.assertRaises(DeploymentError):
            compile_contract("Marketplace")

    @patch('marketplace.artifacts.solcx.compile_files')
    def test_compiler_not_installed(self, mock_compile):
        """Test that a missing compiler surfaces as DeploymentError."""
        mock_compile.side_effect = SolcNotInstalled("solc 0.8.19 is not installed")

        with self.assertRaises(DeploymentError) as context:
            compile_contract("Marketplace", solc_version="0.8.19")

        self.assertIn("not installed", str(context.exception))

    def test_missing_source(self):
        """Test that a contract without a source file fails early."""
        with self.assertRaises(DeploymentError):
            compile_contract("Auction")


class TestArtifactStore(unittest.TestCase):
    """Test cases for ArtifactStore."""

    @patch('marketplace.artifacts.compile_contract')
    def test_compiles_once(self, mock_compile):
        """Test that repeated lookups reuse the compiled artifact."""
        mock_compile.return_value = ContractArtifact("Marketplace", MARKETPLACE_ABI, "6080")
        store = ArtifactStore(solc_version="0.8.19")

        first = store.get("Marketplace")
        second = store.get("Marketplace")

        self.assertIs(first, second)
        mock_compile.assert_called_once_with("Marketplace", CONTRACTS_DIR, "0.8.19")

    @patch('marketplace.artifacts.compile_contract')
    @patch('marketplace.artifacts.load_artifact')
    def test_prefers_artifacts_dir(self, mock_load, mock_compile):
        """Test that a configured artifacts directory skips compilation."""
        mock_load.return_value = ContractArtifact("Marketplace", MARKETPLACE_ABI, "6080")
        store = ArtifactStore(artifacts_dir="/tmp/artifacts")

        store.get("Marketplace")

        mock_load.assert_called_once_with("Marketplace", "/tmp/artifacts")
        mock_compile.assert_not_called()

    def test_registered_artifact(self):
        """Test that registered artifacts are returned as is."""
        artifact = ContractArtifact("Marketplace", [], "6080")
        store = ArtifactStore()
        store.register(artifact)

        self.assertIs(store.get("Marketplace"), artifact)


if __name__ == '__main__':
    unittest.main()
