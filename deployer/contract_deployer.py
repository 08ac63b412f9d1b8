"""
Contract Deployer
Encodes, submits and confirms a single contract-creation transaction
"""

import asyncio
from typing import Any, Optional, Sequence
from web3 import Web3
from loguru import logger

from blockchain.exceptions import ConfirmationTimeout, DeploymentReverted, EndpointConnectionError
from blockchain.models import ContractArtifact, DeploymentResult, PendingTransaction, TransactionIntent
from blockchain.transaction_builder import TransactionBuilder

from .signer import Signer


class ContractDeployer:
    """
    Deploys one contract per call through an injected Signer

    Nothing is retried: a reverted, rejected or unconfirmed deployment
    surfaces as an exception and a new deployment uses a fresh nonce.
    """

    def __init__(
        self,
        signer: Signer,
        chain_id: int,
        confirmation_timeout: float = 120.0,
        poll_interval: float = 1.0,
        gas_limit: Optional[int] = None
    ):
        """
        Initialize Contract Deployer

        Args:
            signer: Connected signer
            chain_id: Chain id stamped on the transaction
            confirmation_timeout: Seconds to wait for a receipt
            poll_interval: Seconds between receipt polls
            gas_limit: Fixed gas limit (None = estimate)
        """
        self.signer = signer
        self.tx_builder = TransactionBuilder(chain_id, gas_limit)
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval

    async def deploy(
        self,
        artifact: ContractArtifact,
        constructor_args: Sequence[Any]
    ) -> DeploymentResult:
        """
        Deploy a compiled contract

        Args:
            artifact: Loaded contract artifact
            constructor_args: Positional constructor values

        Returns:
            DeploymentResult with the contract address and transaction hash

        Raises:
            ArgumentEncodingError: Arguments do not fit the constructor (no network call made)
            SubmissionRejected: Endpoint refused the transaction
            DeploymentReverted: Mined with status 0
            ConfirmationTimeout: No receipt within confirmation_timeout
        """
        intent = self.tx_builder.build_deployment_intent(artifact, constructor_args)

        balance = self.signer.get_balance()
        logger.info(
            f"Deploying {artifact.name} from {self.signer.address} "
            f"(balance {Web3.from_wei(balance, 'ether')} ETH)"
        )

        pending = await self.signer.sign_and_send(intent)

        logger.info("Waiting for confirmation...")
        receipt = await self.wait_for_receipt(pending)

        if receipt['status'] != 1:
            reason = self._revert_reason(pending, intent, receipt)
            logger.error(f"Deployment reverted: {pending.tx_hash}")
            raise DeploymentReverted(pending.tx_hash, reason)

        contract_address = receipt.get('contractAddress') or pending.expected_address

        result = DeploymentResult(
            contract_address=Web3.to_checksum_address(contract_address),
            transaction_hash=pending.tx_hash,
            block_number=receipt.get('blockNumber'),
            gas_used=receipt.get('gasUsed'),
            nonce=pending.nonce
        )

        logger.success(f"Contract deployed at {result.contract_address}")
        logger.success(f"Transaction hash: {result.transaction_hash}")
        if result.gas_used is not None:
            logger.success(f"Gas used: {result.gas_used}")

        return result

    async def wait_for_receipt(self, pending: PendingTransaction):
        """
        Poll for the receipt until it arrives or the timeout elapses

        A timeout stops the local wait only; the submitted transaction
        can still be mined afterwards.

        Raises:
            ConfirmationTimeout: No receipt before the deadline
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirmation_timeout

        while True:
            try:
                receipt = self.signer.rpc_manager.get_transaction_receipt(pending.tx_hash)
            except EndpointConnectionError as e:
                logger.warning(f"Receipt poll for {pending.tx_hash} failed, retrying: {e}")
                receipt = None

            if receipt is not None:
                return receipt

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"No receipt for {pending.tx_hash} after {self.confirmation_timeout:g}s")
                raise ConfirmationTimeout(pending.tx_hash, self.confirmation_timeout)

            await asyncio.sleep(min(self.poll_interval, remaining))

    def _revert_reason(self, pending: PendingTransaction, intent: TransactionIntent, receipt) -> Optional[str]:
        """Replay the creation call at the receipt's block to recover a reason"""
        block = receipt.get('blockNumber')
        replay = {'from': pending.sender, 'data': Web3.to_hex(intent.data), 'value': intent.value}
        if pending.gas_limit:
            replay['gas'] = pending.gas_limit

        try:
            return self.signer.rpc_manager.call(replay, block if block is not None else 'latest')
        except EndpointConnectionError as e:
            logger.warning(f"Could not replay reverted deployment: {e}")
            return None
