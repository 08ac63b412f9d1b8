"""
Artifact Loader
Resolves a contract name to its ABI and creation bytecode from build output
"""

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union
from web3 import Web3
from loguru import logger

from .exceptions import ArtifactMalformed, ArtifactNotFound
from .models import ContractArtifact


class ArtifactLoader:
    """
    Loads compiled contracts from a build directory

    Supported layouts:
    - Hardhat: artifacts/contracts/<Name>.sol/<Name>.json
    - solc / solcjs: <Name>.abi + <Name>.bin, or <Source>_sol_<Name>.abi + .bin
    """

    def __init__(self, artifacts_dir: Union[str, Path] = 'artifacts'):
        """
        Initialize Artifact Loader

        Args:
            artifacts_dir: Root of the compiler build output
        """
        self.artifacts_dir = Path(artifacts_dir)

    def load(self, contract_name: str) -> ContractArtifact:
        """
        Load a compiled contract by name

        Args:
            contract_name: Contract name, e.g. "Lock"

        Returns:
            ContractArtifact with non-empty bytecode

        Raises:
            ArtifactNotFound: No build output matches the name
            ArtifactMalformed: ABI or bytecode cannot be parsed
        """
        if not contract_name or '/' in contract_name or '\\' in contract_name:
            raise ArtifactNotFound(f"Invalid contract name: {contract_name!r}")

        if not self.artifacts_dir.is_dir():
            raise ArtifactNotFound(
                f"Build output directory not found: {self.artifacts_dir}. "
                "Compile the contracts first"
            )

        json_path = self._find_json_artifact(contract_name)
        if json_path is not None:
            abi, bytecode = self._read_json_artifact(json_path)
            source = json_path
        else:
            pair = self._find_abi_bin_pair(contract_name)
            if pair is None:
                raise ArtifactNotFound(
                    f"No artifact for contract '{contract_name}' in {self.artifacts_dir}"
                )
            abi_path, bin_path = pair
            abi = self._parse_abi(abi_path.read_text(encoding='utf-8'), abi_path)
            bytecode = bin_path.read_text(encoding='utf-8')
            source = bin_path

        artifact = ContractArtifact(
            name=contract_name,
            abi=abi,
            bytecode=self._parse_bytecode(bytecode, source),
            source=str(source)
        )

        logger.debug(f"Loaded artifact {contract_name} from {source} ({len(artifact.bytecode)} bytes)")
        return artifact

    def _find_json_artifact(self, contract_name: str) -> Optional[Path]:
        """Hardhat artifact JSON, preferring the <Name>.sol/<Name>.json layout"""
        candidates = sorted(
            p for p in self.artifacts_dir.rglob(f"{contract_name}.json")
            if not p.name.endswith('.dbg.json') and 'build-info' not in p.parts
        )
        if not candidates:
            return None

        for path in candidates:
            if path.parent.name == f"{contract_name}.sol":
                return path

        if len(candidates) > 1:
            logger.warning(f"Multiple artifacts named {contract_name}, using {candidates[0]}")
        return candidates[0]

    def _find_abi_bin_pair(self, contract_name: str) -> Optional[Tuple[Path, Path]]:
        """solc output pair: exact <Name>.abi or solcjs-mangled *_<Name>.abi"""
        patterns = [f"{contract_name}.abi", f"*_{contract_name}.abi"]

        for pattern in patterns:
            for abi_path in sorted(self.artifacts_dir.rglob(pattern)):
                bin_path = abi_path.with_suffix('.bin')
                if bin_path.exists():
                    return abi_path, bin_path

        return None

    def _read_json_artifact(self, path: Path) -> Tuple[List[dict], Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ArtifactMalformed(f"Invalid JSON in artifact {path}: {e}") from e

        if not isinstance(data, dict) or 'abi' not in data or 'bytecode' not in data:
            raise ArtifactMalformed(f"Artifact {path} has no 'abi'/'bytecode' fields")

        bytecode = data['bytecode']
        # solc standard JSON nests the hex under "object"
        if isinstance(bytecode, dict):
            bytecode = bytecode.get('object', '')

        return self._validate_abi(data['abi'], path), bytecode

    def _parse_abi(self, text: str, path: Path) -> List[dict]:
        try:
            abi = json.loads(text)
        except json.JSONDecodeError as e:
            raise ArtifactMalformed(f"Invalid ABI JSON in {path}: {e}") from e
        return self._validate_abi(abi, path)

    @staticmethod
    def _validate_abi(abi: Any, path: Path) -> List[dict]:
        if not isinstance(abi, list) or not all(isinstance(entry, dict) for entry in abi):
            raise ArtifactMalformed(f"ABI in {path} is not a list of entries")
        return abi

    @staticmethod
    def _parse_bytecode(bytecode: Any, path: Path) -> bytes:
        if not isinstance(bytecode, str):
            raise ArtifactMalformed(f"Bytecode in {path} is not a hex string")

        hex_code = bytecode.strip()
        if hex_code.startswith(('0x', '0X')):
            hex_code = hex_code[2:]

        if not hex_code:
            raise ArtifactMalformed(f"Bytecode in {path} is empty (abstract contract or interface?)")

        if '__' in hex_code:
            raise ArtifactMalformed(f"Bytecode in {path} has unlinked library references")

        try:
            return Web3.to_bytes(hexstr='0x' + hex_code)
        except ValueError as e:
            raise ArtifactMalformed(f"Bytecode in {path} is not valid hex: {e}") from e
