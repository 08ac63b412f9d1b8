"""
Transaction Builder
Encodes constructor arguments and constructs contract-creation intents
"""

import rlp
from typing import Any, Dict, List, Optional, Sequence
from web3 import Web3
from eth_abi import encode
from eth_abi.exceptions import EncodingError
from loguru import logger

from .exceptions import ArgumentEncodingError
from .models import ContractArtifact, TransactionIntent


def abi_type(param: Dict[str, Any]) -> str:
    """
    Canonical type string for an ABI parameter, expanding tuples

    Args:
        param: ABI input entry, e.g. {"name": "_unlockTime", "type": "uint256"}

    Returns:
        Type string accepted by eth_abi, e.g. "uint256" or "(address,uint256)[]"
    """
    param_type = param['type']
    if param_type.startswith('tuple'):
        components = ','.join(abi_type(c) for c in param.get('components', []))
        return f"({components}){param_type[len('tuple'):]}"
    return param_type


class TransactionBuilder:
    """
    Builds contract-creation transactions from compiled artifacts
    """

    def __init__(self, chain_id: int, gas_limit: Optional[int] = None):
        """
        Initialize Transaction Builder

        Args:
            chain_id: Chain id stamped on every intent
            gas_limit: Fixed gas limit (None = let the signer estimate)
        """
        self.chain_id = chain_id
        self.gas_limit = gas_limit

    def encode_constructor_args(
        self,
        artifact: ContractArtifact,
        constructor_args: Sequence[Any]
    ) -> bytes:
        """
        ABI-encode constructor arguments against the artifact's constructor

        Args:
            artifact: Compiled contract
            constructor_args: Positional constructor values

        Returns:
            Encoded argument bytes (empty for zero-argument constructors)

        Raises:
            ArgumentEncodingError: On arity or type mismatch
        """
        constructor = artifact.constructor_abi()
        inputs = constructor.get('inputs', []) if constructor else []
        args = list(constructor_args)

        if len(args) != len(inputs):
            raise ArgumentEncodingError(
                f"{artifact.name} constructor expects {len(inputs)} argument(s) "
                f"({', '.join(abi_type(p) for p in inputs) or 'none'}), got {len(args)}"
            )

        if not inputs:
            return b''

        types = [abi_type(p) for p in inputs]

        try:
            values = [self._coerce(t, v) for t, v in zip(types, args)]
            return encode(types, values)
        except (EncodingError, ValueError, TypeError, OverflowError) as e:
            raise ArgumentEncodingError(
                f"Cannot encode {artifact.name} constructor arguments as ({','.join(types)}): {e}"
            ) from e

    def build_deployment_intent(
        self,
        artifact: ContractArtifact,
        constructor_args: Sequence[Any],
        value: int = 0
    ) -> TransactionIntent:
        """
        Build the creation intent: bytecode followed by encoded arguments

        Args:
            artifact: Compiled contract
            constructor_args: Positional constructor values
            value: Wei sent to a payable constructor

        Returns:
            TransactionIntent without recipient
        """
        encoded_args = self.encode_constructor_args(artifact, constructor_args)
        payload = artifact.bytecode + encoded_args

        logger.debug(
            f"Creation payload: {len(artifact.bytecode)} bytes code + "
            f"{len(encoded_args)} bytes args"
        )

        return TransactionIntent(
            data=payload,
            chain_id=self.chain_id,
            value=value,
            gas_limit=self.gas_limit
        )

    def _coerce(self, type_str: str, value: Any) -> Any:
        """Convert JSON-style values (strings, lists) into eth_abi inputs"""
        if type_str.endswith(']'):
            if not isinstance(value, (list, tuple)):
                raise TypeError(f"expected a list for {type_str}, got {value!r}")
            inner = type_str[:type_str.rindex('[')]
            return [self._coerce(inner, v) for v in value]

        if type_str.startswith('('):
            if not isinstance(value, (list, tuple)):
                raise TypeError(f"expected a list for {type_str}, got {value!r}")
            return tuple(
                self._coerce(t, v) for t, v in zip(_split_tuple(type_str), value)
            )

        if type_str.startswith(('uint', 'int')) and isinstance(value, str):
            return int(value, 0)

        # mixed case must already carry a valid checksum
        if type_str == 'address' and isinstance(value, str):
            digits = value[2:] if value.startswith(('0x', '0X')) else value
            if digits.islower() or digits.isupper():
                return Web3.to_checksum_address(value)

        if type_str.startswith('bytes') and isinstance(value, str):
            return Web3.to_bytes(hexstr=value)

        return value


def _split_tuple(type_str: str) -> List[str]:
    """Split "(a,(b,c),d)" into ["a", "(b,c)", "d"]"""
    parts = []
    depth = 0
    current = ''
    for char in type_str[1:-1]:
        if char == ',' and depth == 0:
            parts.append(current)
            current = ''
            continue
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
        current += char
    if current:
        parts.append(current)
    return parts


def contract_address_for(sender: str, nonce: int) -> str:
    """
    Address of a contract created by `sender` with `nonce`

    keccak256(rlp([sender, nonce]))[12:], checksummed
    """
    encoded = rlp.encode([Web3.to_bytes(hexstr=sender), nonce])
    return Web3.to_checksum_address(Web3.keccak(encoded)[12:])
