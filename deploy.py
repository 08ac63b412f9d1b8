"""
Contract Deployment - Main Entry Point
Deploys one compiled contract using environment configuration

Usage:
    export PRIVATE_KEY=0x...
    export CONTRACT_NAME=Lock
    export CONSTRUCTOR_ARGS='[1700000000]'
    python deploy.py
"""

import asyncio
import json
import os
import sys
from typing import Optional
from loguru import logger
from dotenv import load_dotenv

from blockchain.artifact_loader import ArtifactLoader
from blockchain.exceptions import ConfigurationError, DeploymentError
from blockchain.models import DeploymentRequest, DeploymentResult
from blockchain.transaction_builder import TransactionBuilder
from deployer.contract_deployer import ContractDeployer
from deployer.signer import Signer
from utils.config import request_from_env
from utils.rpc_manager import RPCManager


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Send logs to stderr so stdout carries only the result line"""
    try:
        logger.level(level.upper())
    except ValueError as e:
        raise ConfigurationError(f"Unknown LOG_LEVEL {level!r}") from e

    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level.upper()
    )
    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


async def run_deployment(
    request: DeploymentRequest,
    rpc_manager: Optional[RPCManager] = None
) -> DeploymentResult:
    """
    Load, validate, connect and deploy

    Args:
        request: Deployment configuration
        rpc_manager: Pre-built transport (tests inject a mock)

    Returns:
        DeploymentResult
    """
    artifact = ArtifactLoader(request.artifacts_dir).load(request.contract_name)

    # Reject bad arguments before touching the network
    TransactionBuilder(request.chain_id).encode_constructor_args(artifact, request.constructor_args)

    signer = Signer.connect(
        request.endpoint_url,
        request.signing_key,
        chain_id=request.chain_id,
        gas_price_policy=request.gas_price_policy,
        rpc_manager=rpc_manager
    )

    deployer = ContractDeployer(
        signer,
        request.chain_id,
        confirmation_timeout=request.confirmation_timeout,
        poll_interval=request.poll_interval,
        gas_limit=request.gas_limit
    )

    return await deployer.deploy(artifact, request.constructor_args)


def main() -> int:
    """
    Run one deployment

    Returns:
        Process exit code: 0 deployed, 1 any failure
    """
    load_dotenv()

    try:
        configure_logging(os.getenv("LOG_LEVEL", "INFO"), os.getenv("LOG_FILE"))
        request = request_from_env()
        logger.info(f"Deploying {request.contract_name} to {request.endpoint_url}")

        result = asyncio.run(run_deployment(request))

    except DeploymentError as e:
        logger.error(f"Deployment failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user; a submitted transaction may still be mined")
        print("Error: interrupted", file=sys.stderr)
        return 1
    except Exception as e:
        logger.opt(exception=e).error(f"Fatal error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_output()))
    return 0


def run():
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    run()
