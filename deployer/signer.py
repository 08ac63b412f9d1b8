"""
Signer
Holds the deployer key and submits signed transactions to the endpoint
"""

from typing import Dict, Optional
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import ValidationError as KeyValidationError
from web3 import Web3
from loguru import logger

from blockchain.exceptions import ChainIdMismatch, SigningError
from blockchain.models import AutomaticGasPrice, GasPricePolicy, PendingTransaction, TransactionIntent
from blockchain.nonce_manager import NonceManager
from blockchain.transaction_builder import contract_address_for
from utils.gas_calculator import GasCalculator
from utils.rpc_manager import RPCManager


def load_account(signing_key: str) -> LocalAccount:
    """
    Decode a private key without touching the network

    Raises:
        SigningError: Key is not a valid secp256k1 private key
    """
    try:
        return Account.from_key(signing_key)
    except (ValueError, TypeError, KeyValidationError) as e:
        # never echo the key itself
        raise SigningError(f"Invalid private key: {type(e).__name__}") from e


class Signer:
    """
    Signs deployment transactions offline and submits the raw bytes
    """

    def __init__(
        self,
        account: LocalAccount,
        rpc_manager: RPCManager,
        gas_calculator: GasCalculator
    ):
        """
        Initialize Signer

        Args:
            account: Local account holding the private key
            rpc_manager: Connected transport
            gas_calculator: Gas price policy and gas limit sizing
        """
        self.account = account
        self.rpc_manager = rpc_manager
        self.gas_calculator = gas_calculator
        self.nonce_manager = NonceManager(rpc_manager, account.address)

        logger.info(f"Deployer wallet: {self.address}")

    @classmethod
    def connect(
        cls,
        endpoint_url: str,
        signing_key: str,
        chain_id: Optional[int] = None,
        gas_price_policy: GasPricePolicy = AutomaticGasPrice(),
        rpc_manager: Optional[RPCManager] = None
    ) -> 'Signer':
        """
        Decode the key, then connect to the endpoint

        Args:
            endpoint_url: JSON-RPC endpoint
            signing_key: Hex private key
            chain_id: Expected chain id (None = accept whatever the endpoint reports)
            gas_price_policy: FixedGasPrice or AutomaticGasPrice
            rpc_manager: Pre-built transport (tests inject a mock)

        Raises:
            SigningError: Invalid key (checked before any network call)
            EndpointConnectionError: Endpoint unreachable
            ChainIdMismatch: Endpoint serves a different chain
        """
        account = load_account(signing_key)

        if rpc_manager is None:
            rpc_manager = RPCManager(endpoint_url)

        remote_chain_id = rpc_manager.connect()
        if chain_id is not None and remote_chain_id != chain_id:
            raise ChainIdMismatch(
                f"Endpoint {endpoint_url} serves chain {remote_chain_id}, configured chain is {chain_id}"
            )

        return cls(account, rpc_manager, GasCalculator(rpc_manager, gas_price_policy))

    @property
    def address(self) -> str:
        return self.account.address

    def get_balance(self) -> int:
        """Sender balance in wei"""
        return self.rpc_manager.get_balance(self.address)

    def sign_transaction(self, transaction: Dict):
        """
        Sign a transaction dict with the deployer key

        Raises:
            SigningError: Transaction fields rejected by the signer
        """
        try:
            return self.account.sign_transaction(transaction)
        except (ValueError, TypeError, KeyValidationError) as e:
            raise SigningError(f"Error signing transaction: {e}") from e

    async def sign_and_send(self, intent: TransactionIntent) -> PendingTransaction:
        """
        Assign nonce and fees, sign offline and submit

        The nonce is reserved for the whole fetch-sign-submit sequence; a
        rejected submission leaves it unconsumed.

        Args:
            intent: Contract-creation intent

        Returns:
            PendingTransaction carrying the transaction hash

        Raises:
            SubmissionRejected: Endpoint refused the transaction
            EndpointConnectionError: Endpoint unreachable
        """
        async with self.nonce_manager.reserve() as nonce:
            fee_params = self.gas_calculator.get_fee_params()
            data = Web3.to_hex(intent.data)

            gas_limit = self.gas_calculator.get_gas_limit(
                {'from': self.address, 'data': data, 'value': intent.value},
                intent.gas_limit
            )

            transaction = {
                'data': data,
                'value': intent.value,
                'nonce': nonce,
                'gas': gas_limit,
                'chainId': intent.chain_id,
                **fee_params
            }

            signed_tx = self.sign_transaction(transaction)

            logger.info(f"Sending deployment transaction (nonce {nonce}, gas limit {gas_limit})...")
            tx_hash = self.rpc_manager.send_raw_transaction(signed_tx.raw_transaction)

        logger.info(f"Transaction sent: {tx_hash}")

        return PendingTransaction(
            tx_hash=tx_hash,
            nonce=nonce,
            sender=self.address,
            raw_transaction=bytes(signed_tx.raw_transaction),
            expected_address=contract_address_for(self.address, nonce),
            fee_params=fee_params,
            gas_limit=gas_limit
        )
