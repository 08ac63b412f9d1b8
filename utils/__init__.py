"""
Utilities Package
RPC transport, gas pricing, and environment configuration
"""

from .gas_calculator import GasCalculator
from .rpc_manager import RPCManager

__all__ = [
    'GasCalculator',
    'RPCManager'
]
