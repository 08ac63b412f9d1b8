"""
Shared fixtures: Lock artifact on disk and a mocked RPC transport
"""

import json
import pytest
from unittest.mock import Mock
from web3 import Web3

from blockchain.artifact_loader import ArtifactLoader
from utils.rpc_manager import RPCManager


# Hardhat / anvil default account #0
HARDHAT_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
HARDHAT_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'

# Contracts created by HARDHAT_ADDRESS at nonce 0 and 1
FIRST_CONTRACT = '0x5FbDB2315678afecb367f032d93F642f64180aa3'
SECOND_CONTRACT = '0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512'

LOCK_BYTECODE = '0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe'

LOCK_ABI = [
    {
        'inputs': [{'internalType': 'uint256', 'name': '_unlockTime', 'type': 'uint256'}],
        'stateMutability': 'payable',
        'type': 'constructor'
    },
    {
        'anonymous': False,
        'inputs': [
            {'indexed': False, 'internalType': 'uint256', 'name': 'amount', 'type': 'uint256'},
            {'indexed': False, 'internalType': 'uint256', 'name': 'when', 'type': 'uint256'}
        ],
        'name': 'Withdrawal',
        'type': 'event'
    },
    {
        'inputs': [],
        'name': 'withdraw',
        'outputs': [],
        'stateMutability': 'nonpayable',
        'type': 'function'
    }
]


@pytest.fixture
def artifacts_dir(tmp_path):
    """Hardhat build output containing Lock"""
    root = tmp_path / 'artifacts'
    lock_dir = root / 'contracts' / 'Lock.sol'
    lock_dir.mkdir(parents=True)

    (lock_dir / 'Lock.json').write_text(json.dumps({
        '_format': 'hh-sol-artifact-1',
        'contractName': 'Lock',
        'sourceName': 'contracts/Lock.sol',
        'abi': LOCK_ABI,
        'bytecode': LOCK_BYTECODE,
        'deployedBytecode': '0x6080',
        'linkReferences': {},
        'deployedLinkReferences': {}
    }))
    (lock_dir / 'Lock.dbg.json').write_text(json.dumps({'buildInfo': '../../build-info/x.json'}))

    return root


@pytest.fixture
def lock_artifact(artifacts_dir):
    """Loaded Lock artifact"""
    return ArtifactLoader(artifacts_dir).load('Lock')


@pytest.fixture
def rpc_manager():
    """Mock transport for a healthy local chain (id 1337)"""
    rpc = Mock(spec=RPCManager)
    rpc.endpoint_url = 'http://127.0.0.1:8545'
    rpc.connect.return_value = 1337
    rpc.chain_id.return_value = 1337
    rpc.get_balance.return_value = Web3.to_wei(10, 'ether')
    rpc.get_transaction_count.return_value = 0
    rpc.estimate_fee_per_gas.return_value = {
        'maxFeePerGas': Web3.to_wei(2, 'gwei'),
        'maxPriorityFeePerGas': Web3.to_wei(1, 'gwei')
    }
    rpc.estimate_gas.return_value = 250000
    rpc.send_raw_transaction.side_effect = lambda raw: Web3.to_hex(Web3.keccak(raw))
    rpc.get_transaction_receipt.side_effect = lambda tx_hash: {
        'status': 1,
        'contractAddress': None,
        'blockNumber': 1,
        'gasUsed': 200000,
        'transactionHash': tx_hash
    }
    rpc.call.return_value = None
    return rpc
