"""
RPC Manager
JSON-RPC transport used by the signer and deployer
"""

from typing import Any, Callable, Dict, Optional
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3Exception
from loguru import logger

from blockchain.exceptions import (
    EndpointConnectionError,
    InsufficientFunds,
    NonceTooLow,
    SubmissionRejected,
    Underpriced,
)


DEFAULT_PRIORITY_FEE_GWEI = 1

# Endpoint rejection messages (geth, hardhat, ganache, anvil) -> exception type
REJECTION_PATTERNS = [
    ('insufficient funds', InsufficientFunds),
    ('nonce too low', NonceTooLow),
    ("nonce has already been used", NonceTooLow),
    ('underpriced', Underpriced),
    ('max fee per gas less than block base fee', Underpriced),
    ('fee cap less than block base fee', Underpriced),
]


def rejection_reason(error: Exception) -> str:
    """
    Extract the endpoint's raw reason string from a web3 error

    Args:
        error: Exception raised by a web3 call

    Returns:
        The JSON-RPC error message, or str(error)
    """
    response = getattr(error, 'rpc_response', None)
    if isinstance(response, dict) and isinstance(response.get('error'), dict):
        return str(response['error'].get('message', error))

    if error.args and isinstance(error.args[0], dict):
        return str(error.args[0].get('message', error.args[0]))

    return str(error)


def classify_rejection(reason: str) -> SubmissionRejected:
    """Map a rejection reason to its exception, keeping the reason verbatim"""
    lowered = reason.lower()
    for pattern, error_class in REJECTION_PATTERNS:
        if pattern in lowered:
            return error_class(reason)
    return SubmissionRejected(reason)


class RPCManager:
    """
    Single-endpoint JSON-RPC transport backed by web3.py
    """

    def __init__(
        self,
        endpoint_url: str,
        request_timeout: float = 30,
        w3: Optional[Web3] = None
    ):
        """
        Initialize RPC Manager

        Args:
            endpoint_url: HTTP(S) JSON-RPC endpoint
            request_timeout: Per-request timeout in seconds
            w3: Pre-built Web3 instance (tests inject a mock)
        """
        self.endpoint_url = endpoint_url

        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(endpoint_url, request_kwargs={'timeout': request_timeout}))
        self.w3 = w3

    def connect(self) -> int:
        """
        Verify the endpoint answers

        Returns:
            Chain id reported by the endpoint

        Raises:
            EndpointConnectionError: Endpoint unreachable or not a JSON-RPC node
        """
        if not self.w3.is_connected():
            raise EndpointConnectionError(f"Cannot connect to RPC endpoint {self.endpoint_url}")

        chain_id = self.chain_id()
        logger.info(f"Connected to {self.endpoint_url} (chain id {chain_id})")
        return chain_id

    def _request(self, description: str, func: Callable, *args: Any) -> Any:
        """Run a web3 call, turning transport failures into EndpointConnectionError"""
        try:
            return func(*args)
        except OSError as e:
            raise EndpointConnectionError(
                f"{description} failed, endpoint {self.endpoint_url} unreachable: {e}"
            ) from e

    def chain_id(self) -> int:
        return self._request('eth_chainId', lambda: self.w3.eth.chain_id)

    def get_balance(self, address: str) -> int:
        return self._request('eth_getBalance', self.w3.eth.get_balance, address)

    def get_transaction_count(self, address: str, block_identifier: str = 'pending') -> int:
        return self._request(
            'eth_getTransactionCount',
            self.w3.eth.get_transaction_count,
            address,
            block_identifier
        )

    def estimate_fee_per_gas(self) -> Dict[str, int]:
        """
        Fee fields chosen by the endpoint

        EIP-1559 chains: maxFeePerGas = 2 * baseFee + priority fee.
        Legacy chains: the node's eth_gasPrice.

        Returns:
            Dict with either gasPrice or maxFeePerGas/maxPriorityFeePerGas (wei)
        """
        latest_block = self._request('eth_getBlockByNumber', self.w3.eth.get_block, 'latest')
        base_fee_wei = latest_block.get('baseFeePerGas')

        if base_fee_wei is None:
            gas_price = self._request('eth_gasPrice', lambda: self.w3.eth.gas_price)
            return {'gasPrice': int(gas_price)}

        try:
            priority_fee_wei = self._request(
                'eth_maxPriorityFeePerGas', lambda: self.w3.eth.max_priority_fee
            )
        except (Web3Exception, ValueError) as e:
            logger.warning(f"Priority fee unavailable ({e}), using {DEFAULT_PRIORITY_FEE_GWEI} gwei")
            priority_fee_wei = Web3.to_wei(DEFAULT_PRIORITY_FEE_GWEI, 'gwei')

        return {
            'maxFeePerGas': int(base_fee_wei * 2 + priority_fee_wei),
            'maxPriorityFeePerGas': int(priority_fee_wei)
        }

    def estimate_gas(self, tx: Dict) -> int:
        return self._request('eth_estimateGas', self.w3.eth.estimate_gas, tx)

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """
        Submit signed transaction bytes

        Returns:
            Transaction hash as 0x-prefixed hex

        Raises:
            SubmissionRejected: Endpoint refused the transaction (reason kept verbatim)
        """
        try:
            tx_hash = self._request(
                'eth_sendRawTransaction', self.w3.eth.send_raw_transaction, raw_transaction
            )
        except (Web3Exception, ValueError) as e:
            raise classify_rejection(rejection_reason(e)) from e

        return Web3.to_hex(tx_hash)

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict]:
        """Receipt of a mined transaction, None while still pending"""
        try:
            return self._request(
                'eth_getTransactionReceipt', self.w3.eth.get_transaction_receipt, tx_hash
            )
        except TransactionNotFound:
            return None

    def call(self, tx: Dict, block_identifier: Any = 'latest') -> Optional[str]:
        """
        Replay a transaction with eth_call

        Returns:
            Revert reason if execution reverts, None otherwise
        """
        try:
            self._request('eth_call', self.w3.eth.call, tx, block_identifier)
        except ContractLogicError as e:
            return e.message or str(e)
        except (Web3Exception, ValueError) as e:
            logger.debug(f"Replay failed without revert data: {e}")
            return rejection_reason(e)
        return None
