"""
Gas Calculator
Applies the configured gas price policy and sizes the gas limit
"""

from typing import Dict, Optional
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception
from loguru import logger

from blockchain.exceptions import DeploymentWouldRevert
from blockchain.models import AutomaticGasPrice, FixedGasPrice, GasPricePolicy


DEFAULT_GAS_LIMIT = 3_000_000
GAS_LIMIT_BUFFER = 1.2  # 20% over the node's estimate


class GasCalculator:
    """
    Resolves fee fields and gas limits for a deployment transaction
    """

    def __init__(self, rpc_manager, policy: GasPricePolicy):
        """
        Initialize Gas Calculator

        Args:
            rpc_manager: Transport exposing estimate_fee_per_gas() and estimate_gas()
            policy: FixedGasPrice or AutomaticGasPrice
        """
        self.rpc_manager = rpc_manager
        self.policy = policy

    def get_fee_params(self) -> Dict[str, int]:
        """
        Fee fields for the transaction

        Returns:
            {'gasPrice': wei} for a fixed policy, otherwise whatever the endpoint estimates
        """
        if isinstance(self.policy, FixedGasPrice):
            return {'gasPrice': self.policy.wei}

        if isinstance(self.policy, AutomaticGasPrice):
            fee_params = self.rpc_manager.estimate_fee_per_gas()
            logger.debug(
                "Automatic fees: "
                + ", ".join(f"{k}={Web3.from_wei(v, 'gwei')} gwei" for k, v in fee_params.items())
            )
            return fee_params

        raise TypeError(f"Unknown gas price policy: {self.policy!r}")

    def get_gas_limit(self, tx: Dict, configured_limit: Optional[int] = None) -> int:
        """
        Gas limit for the transaction

        Args:
            tx: Transaction dict (from, data, value) used for estimation
            configured_limit: Explicit limit, used verbatim when set

        Returns:
            Gas limit

        Raises:
            DeploymentWouldRevert: The node reports that execution reverts
        """
        if configured_limit is not None:
            return configured_limit

        try:
            gas_estimate = self.rpc_manager.estimate_gas(tx)
        except ContractLogicError as e:
            raise DeploymentWouldRevert(str(e)) from e
        except (Web3Exception, ValueError) as e:
            logger.warning(f"Gas estimation failed: {e}, using default {DEFAULT_GAS_LIMIT}")
            return DEFAULT_GAS_LIMIT

        gas_limit = int(gas_estimate * GAS_LIMIT_BUFFER)
        logger.debug(f"Gas estimate: {gas_estimate} -> {gas_limit} (buffered)")
        return gas_limit
