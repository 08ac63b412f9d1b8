"""
Deployment Exceptions
Typed failures raised while loading, signing, submitting and confirming a deployment
"""

from typing import Optional


class DeploymentError(Exception):
    """Base exception for every failure of a deployment attempt"""
    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when environment configuration is missing or invalid"""
    pass


class ArtifactNotFound(DeploymentError, FileNotFoundError):
    """Raised when no build output matches the contract name"""
    pass


class ArtifactMalformed(DeploymentError, ValueError):
    """Raised when the ABI or bytecode of an artifact cannot be parsed"""
    pass


class ArgumentEncodingError(DeploymentError, ValueError):
    """Raised when constructor arguments do not match the constructor signature"""
    pass


class EndpointConnectionError(DeploymentError, ConnectionError):
    """Raised when the RPC endpoint is unreachable or refuses the connection"""
    pass


class ChainIdMismatch(DeploymentError, ValueError):
    """Raised when the endpoint reports a different chain id than configured"""
    pass


class SigningError(DeploymentError, ValueError):
    """Raised when the private key is invalid or signing fails"""
    pass


class SubmissionRejected(DeploymentError):
    """
    Raised when the endpoint rejects a signed transaction

    The endpoint's reason string is kept verbatim in `reason`.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InsufficientFunds(SubmissionRejected):
    """Sender cannot pay for gas * price + value"""
    pass


class NonceTooLow(SubmissionRejected):
    """Nonce was already used by a mined transaction"""
    pass


class Underpriced(SubmissionRejected):
    """Gas price is below what the endpoint accepts"""
    pass


class DeploymentReverted(DeploymentError):
    """Raised when the creation transaction was mined but execution failed"""

    def __init__(self, tx_hash: str, reason: Optional[str] = None):
        message = f"Deployment transaction {tx_hash} reverted"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.tx_hash = tx_hash
        self.reason = reason


class ConfirmationTimeout(DeploymentError, TimeoutError):
    """
    Raised when no receipt arrives before the confirmation timeout

    The transaction was already submitted and may still be mined later.
    """

    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(
            f"Transaction {tx_hash} not confirmed within {timeout:g}s. "
            f"It was submitted and may still be included later; "
            f"check the transaction hash before deploying again"
        )
        self.tx_hash = tx_hash
        self.timeout = timeout


class DeploymentWouldRevert(DeploymentError):
    """
    Raised when gas estimation shows the constructor reverts

    Nothing was signed or submitted and no nonce was consumed.
    """

    def __init__(self, reason: str):
        super().__init__(f"Deployment would revert, not sending: {reason}")
        self.reason = reason
