"""
Unit Tests for Transaction Builder
Constructor argument encoding and creation payloads
"""

import pytest
from eth_abi import encode
from hypothesis import given, strategies as st

from blockchain.exceptions import ArgumentEncodingError
from blockchain.models import ContractArtifact
from blockchain.transaction_builder import (
    TransactionBuilder,
    abi_type,
    contract_address_for,
)

from conftest import FIRST_CONTRACT, HARDHAT_ADDRESS, LOCK_ABI, LOCK_BYTECODE, SECOND_CONTRACT


LOCK = ContractArtifact(
    name='Lock',
    abi=LOCK_ABI,
    bytecode=bytes.fromhex(LOCK_BYTECODE[2:]),
    source='artifacts/contracts/Lock.sol/Lock.json'
)

REGISTRY = ContractArtifact(
    name='Registry',
    abi=[{
        'type': 'constructor',
        'inputs': [
            {'name': 'owner', 'type': 'address'},
            {'name': 'label', 'type': 'string'},
            {'name': 'ids', 'type': 'uint256[]'},
            {'name': 'salt', 'type': 'bytes32'},
            {
                'name': 'config',
                'type': 'tuple',
                'components': [
                    {'name': 'fee', 'type': 'uint16'},
                    {'name': 'enabled', 'type': 'bool'}
                ]
            }
        ]
    }],
    bytecode=b'\x60\x80',
    source='Registry.json'
)


class TestAbiType:
    """ABI parameter -> eth_abi type string"""

    def test_plain_type(self):
        assert abi_type({'type': 'uint256'}) == 'uint256'

    def test_tuple(self):
        param = {'type': 'tuple', 'components': [{'type': 'address'}, {'type': 'uint8'}]}
        assert abi_type(param) == '(address,uint8)'

    def test_tuple_array(self):
        param = {'type': 'tuple[]', 'components': [{'type': 'bytes32'}]}
        assert abi_type(param) == '(bytes32)[]'


class TestConstructorEncoding:
    """Encoding against the constructor signature"""

    def test_lock_unlock_time(self):
        builder = TransactionBuilder(chain_id=1337)

        encoded = builder.encode_constructor_args(LOCK, [1700000000])

        assert encoded == encode(['uint256'], [1700000000])
        assert len(encoded) == 32

    def test_arity_mismatch(self):
        builder = TransactionBuilder(chain_id=1337)

        with pytest.raises(ArgumentEncodingError, match='expects 1 argument'):
            builder.encode_constructor_args(LOCK, [])

    def test_too_many_arguments(self):
        builder = TransactionBuilder(chain_id=1337)

        with pytest.raises(ArgumentEncodingError):
            builder.encode_constructor_args(LOCK, [1, 2])

    def test_type_mismatch(self):
        builder = TransactionBuilder(chain_id=1337)

        with pytest.raises(ArgumentEncodingError):
            builder.encode_constructor_args(LOCK, ['not a number'])

    def test_negative_for_unsigned(self):
        builder = TransactionBuilder(chain_id=1337)

        with pytest.raises(ArgumentEncodingError):
            builder.encode_constructor_args(LOCK, [-1])

    def test_numeric_string_is_coerced(self):
        builder = TransactionBuilder(chain_id=1337)

        assert builder.encode_constructor_args(LOCK, ['0x10']) == encode(['uint256'], [16])

    def test_no_constructor_takes_no_arguments(self):
        artifact = ContractArtifact(name='Empty', abi=[], bytecode=b'\x60', source='Empty.json')
        builder = TransactionBuilder(chain_id=1337)

        assert builder.encode_constructor_args(artifact, []) == b''
        with pytest.raises(ArgumentEncodingError):
            builder.encode_constructor_args(artifact, [1])

    def test_json_style_values(self):
        builder = TransactionBuilder(chain_id=1337)
        args = [
            HARDHAT_ADDRESS.lower(),
            'registry',
            ['1', 2],
            '0x' + '11' * 32,
            [30, True]
        ]

        encoded = builder.encode_constructor_args(REGISTRY, args)

        expected = encode(
            ['address', 'string', 'uint256[]', 'bytes32', '(uint16,bool)'],
            [HARDHAT_ADDRESS, 'registry', [1, 2], b'\x11' * 32, (30, True)]
        )
        assert encoded == expected

    def test_invalid_address(self):
        builder = TransactionBuilder(chain_id=1337)
        args = ['0x1234', 'r', [], '0x' + '00' * 32, [0, False]]

        with pytest.raises(ArgumentEncodingError):
            builder.encode_constructor_args(REGISTRY, args)

    def test_bad_checksum_address_rejected(self):
        builder = TransactionBuilder(chain_id=1337)
        bad_checksum = '0xF39fd6e51aad88F6F4ce6aB8827279cffFb92266'
        args = [bad_checksum, 'r', [], '0x' + '00' * 32, [0, False]]

        with pytest.raises(ArgumentEncodingError):
            builder.encode_constructor_args(REGISTRY, args)

    def test_uppercase_address_is_coerced(self):
        builder = TransactionBuilder(chain_id=1337)
        args = ['0x' + HARDHAT_ADDRESS[2:].upper(), 'r', [], '0x' + '00' * 32, [0, False]]

        encoded = builder.encode_constructor_args(REGISTRY, args)

        assert encoded[:32] == encode(['address'], [HARDHAT_ADDRESS])


class TestDeploymentIntent:
    """Creation payload = bytecode + encoded arguments"""

    def test_intent_has_payload_and_chain(self):
        builder = TransactionBuilder(chain_id=1337, gas_limit=500000)

        intent = builder.build_deployment_intent(LOCK, [1700000000])

        assert intent.data == LOCK.bytecode + encode(['uint256'], [1700000000])
        assert intent.chain_id == 1337
        assert intent.value == 0
        assert intent.gas_limit == 500000

    @given(unlock_time=st.integers(min_value=0, max_value=2**256 - 1))
    def test_payload_length(self, unlock_time):
        """Payload length is bytecode length plus encoded argument length"""
        builder = TransactionBuilder(chain_id=1337)

        intent = builder.build_deployment_intent(LOCK, [unlock_time])
        encoded = encode(['uint256'], [unlock_time])

        assert len(intent.data) == len(LOCK.bytecode) + len(encoded)
        assert intent.data.startswith(LOCK.bytecode)

    @given(label=st.text(max_size=200), ids=st.lists(st.integers(min_value=0, max_value=2**64), max_size=10))
    def test_payload_length_dynamic_types(self, label, ids):
        builder = TransactionBuilder(chain_id=1337)
        args = [HARDHAT_ADDRESS, label, ids, b'\x00' * 32, (1, False)]

        intent = builder.build_deployment_intent(REGISTRY, args)
        encoded = encode(
            ['address', 'string', 'uint256[]', 'bytes32', '(uint16,bool)'], args
        )

        assert len(intent.data) == len(REGISTRY.bytecode) + len(encoded)


class TestContractAddress:
    """Creation address from sender and nonce"""

    def test_known_hardhat_addresses(self):
        assert contract_address_for(HARDHAT_ADDRESS, 0) == FIRST_CONTRACT
        assert contract_address_for(HARDHAT_ADDRESS, 1) == SECOND_CONTRACT

    def test_distinct_nonces_give_distinct_addresses(self):
        addresses = {contract_address_for(HARDHAT_ADDRESS, n) for n in range(20)}
        assert len(addresses) == 20
