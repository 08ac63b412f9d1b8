"""
Contract Deployer Core Package
Handles signing, submission, and confirmation of deployments
"""

from .contract_deployer import ContractDeployer
from .signer import Signer

__all__ = ['ContractDeployer', 'Signer']
