"""
Nonce Manager
Serializes nonce acquisition so a signing key never reuses a nonce
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from web3 import Web3
from loguru import logger


class NonceManager:
    """
    Allocates nonces for one sender account

    The lock is held from nonce fetch until the signed transaction is
    accepted by the endpoint. A nonce is recorded as used only when the
    submission succeeds.
    """

    def __init__(self, rpc_manager, sender_address: str):
        """
        Initialize Nonce Manager

        Args:
            rpc_manager: Transport exposing get_transaction_count()
            sender_address: Account the nonces belong to
        """
        self.rpc_manager = rpc_manager
        self.sender_address = Web3.to_checksum_address(sender_address)

        self.last_used_nonce: Optional[int] = None
        self.lock = asyncio.Lock()

    def _next_nonce(self) -> int:
        """Network pending count, bumped past anything this process already sent"""
        network_nonce = self.rpc_manager.get_transaction_count(self.sender_address, 'pending')

        if self.last_used_nonce is not None and network_nonce <= self.last_used_nonce:
            logger.debug(
                f"Endpoint reports nonce {network_nonce}, "
                f"already used {self.last_used_nonce} locally"
            )
            return self.last_used_nonce + 1

        return network_nonce

    @asynccontextmanager
    async def reserve(self) -> AsyncIterator[int]:
        """
        Reserve the next nonce for a sign-and-submit sequence

        Usage:
            async with nonce_manager.reserve() as nonce:
                ...sign and submit with nonce...

        The nonce is consumed only if the block exits without an exception.
        """
        async with self.lock:
            nonce = self._next_nonce()
            logger.debug(f"Reserved nonce: {nonce}")

            yield nonce

            self.last_used_nonce = nonce
            logger.debug(f"Consumed nonce: {nonce}")
