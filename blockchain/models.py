"""
Deployment Models
Immutable values passed between the loader, signer and deployer
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract: ABI plus creation bytecode"""

    name: str
    abi: List[Dict[str, Any]]
    bytecode: bytes
    source: str  # file the artifact was read from

    def constructor_abi(self) -> Optional[Dict[str, Any]]:
        """Constructor entry of the ABI, None when the contract declares none"""
        for entry in self.abi:
            if entry.get('type') == 'constructor':
                return entry
        return None


@dataclass(frozen=True)
class FixedGasPrice:
    """Legacy gas price passed through verbatim (wei)"""

    wei: int


@dataclass(frozen=True)
class AutomaticGasPrice:
    """Delegate fee selection to the endpoint's estimation"""
    pass


GasPricePolicy = Union[FixedGasPrice, AutomaticGasPrice]


@dataclass(frozen=True)
class DeploymentRequest:
    """Everything one invocation needs, built once from configuration"""

    contract_name: str
    constructor_args: Tuple[Any, ...]
    endpoint_url: str
    signing_key: str = field(repr=False)
    chain_id: int = 1337
    gas_price_policy: GasPricePolicy = AutomaticGasPrice()
    gas_limit: Optional[int] = None
    confirmation_timeout: float = 120.0
    poll_interval: float = 1.0
    artifacts_dir: str = 'artifacts'


@dataclass(frozen=True)
class TransactionIntent:
    """Unsigned contract-creation transaction (no recipient)"""

    data: bytes
    chain_id: int
    value: int = 0
    gas_limit: Optional[int] = None


@dataclass(frozen=True)
class PendingTransaction:
    """A signed transaction accepted by the endpoint but not yet confirmed"""

    tx_hash: str
    nonce: int
    sender: str
    raw_transaction: bytes = field(repr=False)
    expected_address: str
    fee_params: Dict[str, int] = field(default_factory=dict)
    gas_limit: int = 0


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a confirmed deployment"""

    contract_address: str
    transaction_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    nonce: Optional[int] = None

    def to_output(self) -> Dict[str, str]:
        """Structured form printed by the CLI"""
        return {
            'address': self.contract_address,
            'transactionHash': self.transaction_hash
        }
