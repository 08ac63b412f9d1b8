"""
Blockchain Interaction Package
Handles artifact loading, transaction building, and nonce management
"""

from .artifact_loader import ArtifactLoader
from .transaction_builder import TransactionBuilder
from .nonce_manager import NonceManager

__all__ = ['ArtifactLoader', 'TransactionBuilder', 'NonceManager']
