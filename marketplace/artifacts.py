"""Contract artifact loading and compilation.

Artifacts come from two places: Hardhat-style JSON files produced by an
external build (``artifacts/contracts/<Name>.sol/<Name>.json``), or the
Solidity sources shipped in ``marketplace/contracts`` compiled on demand
with py-solc-x.
"""

import os
import json
import glob
import logging
from typing import Any, Dict, List, Optional

import solcx
from solcx.exceptions import SolcError, SolcNotInstalled

from marketplace.config import CONTRACTS_DIR
from marketplace.errors import DeploymentError

logger = logging.getLogger("marketplace.artifacts")


class ContractArtifact:
    """ABI and creation bytecode of a single contract."""

    def __init__(self, name: str, abi: List[Dict[str, Any]], bytecode: str):
        self.name = name
        self.abi = abi
        self.bytecode = bytecode if bytecode.startswith("0x") else "0x" + bytecode

    def function_names(self) -> List[str]:
        return [entry["name"] for entry in self.abi if entry.get("type") == "function"]

    def __repr__(self) -> str:
        return f"ContractArtifact(name={self.name!r}, functions={self.function_names()})"


def load_artifact(name: str, artifacts_dir: str) -> ContractArtifact:
    """Load a contract artifact from a Hardhat-style artifacts directory.

    Args:
        name: Contract name, e.g. ``Marketplace``.
        artifacts_dir: Directory searched recursively for ``<name>.json``.

    Returns:
        The loaded artifact.

    Raises:
        DeploymentError: If no usable artifact exists.
    """
    pattern = os.path.join(artifacts_dir, "**", f"{name}.json")
    matches = sorted(glob.glob(pattern, recursive=True))
    if not matches:
        raise DeploymentError(f"No artifact found for {name} in {artifacts_dir}")

    path = matches[0]
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read artifact {path}: {e}")
        raise DeploymentError(f"Unreadable artifact for {name} at {path}: {e}") from e

    # Interfaces and abstract contracts are written with bytecode "0x"
    if not isinstance(data, dict) or "abi" not in data or data.get("bytecode") in (None, "", "0x"):
        raise DeploymentError(f"Artifact {path} has no abi or bytecode")

    logger.info(f"Loaded artifact for {name} from {path}")
    return ContractArtifact(name, data["abi"], data["bytecode"])


def compile_contract(name: str, source_dir: str = CONTRACTS_DIR,
                     solc_version: Optional[str] = None) -> ContractArtifact:
    """Compile ``<source_dir>/<name>.sol`` and return the named contract.

    Raises:
        DeploymentError: If the source is missing or compilation fails.
    """
    source_path = os.path.join(source_dir, f"{name}.sol")
    if not os.path.exists(source_path):
        raise DeploymentError(f"No source found for {name} at {source_path}")

    logger.info(f"Compiling {source_path} with solc {solc_version or 'default'}")
    try:
        output = solcx.compile_files(
            [source_path],
            output_values=["abi", "bin"],
            solc_version=solc_version
        )
    except (SolcError, SolcNotInstalled) as e:
        logger.error(f"Compilation of {name} failed: {e}")
        raise DeploymentError(f"Could not compile {name}: {e}") from e

    # Keys look like "<path>:<ContractName>"
    for key, compiled in output.items():
        if key.split(":")[-1] == name:
            return ContractArtifact(name, compiled["abi"], compiled["bin"])

    raise DeploymentError(f"Contract {name} not present in {source_path}")


class ArtifactStore:
    """Resolves contract names to artifacts, caching each lookup."""

    def __init__(self, artifacts_dir: Optional[str] = None,
                 source_dir: Optional[str] = None,
                 solc_version: Optional[str] = None):
        self.artifacts_dir = artifacts_dir
        self.source_dir = source_dir or CONTRACTS_DIR
        self.solc_version = solc_version
        self._cache: Dict[str, ContractArtifact] = {}

    def register(self, artifact: ContractArtifact) -> None:
        self._cache[artifact.name] = artifact

    def get(self, name: str) -> ContractArtifact:
        """Return the artifact for ``name``, loading or compiling it once."""
        if name in self._cache:
            return self._cache[name]

        if self.artifacts_dir:
            artifact = load_artifact(name, self.artifacts_dir)
        else:
            artifact = compile_contract(name, self.source_dir, self.solc_version)

        self._cache[name] = artifact
        return artifact
