"""
Deployment Configuration
Builds the immutable DeploymentRequest from environment variables
"""

import json
import os
from typing import Any, Dict, Mapping, Optional, Tuple
from web3 import Web3

from blockchain.exceptions import ConfigurationError
from blockchain.models import (
    AutomaticGasPrice,
    DeploymentRequest,
    FixedGasPrice,
    GasPricePolicy,
)


DEFAULT_NETWORK = 'local'

# Mirrors the networks of the hardhat configuration
NETWORK_PRESETS: Dict[str, Dict[str, Any]] = {
    'hardhat': {
        'rpc_url': 'http://127.0.0.1:8545',
        'chain_id': 1337,
        'gas_price': FixedGasPrice(Web3.to_wei(0.2, 'gwei')),
    },
    'local': {
        'rpc_url': 'http://127.0.0.1:8545',
        'chain_id': 1337,
        'gas_price': AutomaticGasPrice(),
    },
    'ganache': {
        'rpc_url': 'http://127.0.0.1:7545',
        'chain_id': 0x539,
        'gas_price': AutomaticGasPrice(),
    },
}


def parse_gas_price(value: str) -> GasPricePolicy:
    """
    Parse a gas price setting

    Args:
        value: "auto", an integer amount of wei, or "<n>gwei"

    Returns:
        AutomaticGasPrice or FixedGasPrice
    """
    text = value.strip().lower()
    if text in ('auto', 'automatic'):
        return AutomaticGasPrice()

    try:
        if text.endswith('gwei'):
            wei = Web3.to_wei(text[:-4].strip(), 'gwei')
        else:
            wei = int(text, 0)
    except (ValueError, ArithmeticError) as e:
        raise ConfigurationError(f"Invalid GAS_PRICE {value!r}: expected 'auto', wei or '<n>gwei'") from e

    if wei < 0:
        raise ConfigurationError(f"GAS_PRICE must not be negative: {value!r}")

    return FixedGasPrice(int(wei))


def parse_chain_id(value: str) -> int:
    """Chain id as decimal or 0x-prefixed hex"""
    try:
        chain_id = int(value.strip(), 0)
    except ValueError as e:
        raise ConfigurationError(f"Invalid CHAIN_ID {value!r}") from e

    if chain_id <= 0:
        raise ConfigurationError(f"CHAIN_ID must be positive: {value!r}")
    return chain_id


def parse_constructor_args(value: Optional[str]) -> Tuple[Any, ...]:
    """CONSTRUCTOR_ARGS is a JSON array of positional values"""
    if value is None or not value.strip():
        return ()

    try:
        args = json.loads(value)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"CONSTRUCTOR_ARGS is not valid JSON: {e}") from e

    if not isinstance(args, list):
        raise ConfigurationError("CONSTRUCTOR_ARGS must be a JSON array")
    return tuple(args)


def _positive_number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        number = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if number <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return number


def request_from_env(env: Optional[Mapping[str, str]] = None) -> DeploymentRequest:
    """
    Build a DeploymentRequest from environment variables

    Args:
        env: Variables to read (defaults to os.environ)

    Returns:
        DeploymentRequest

    Raises:
        ConfigurationError: Missing or invalid settings
    """
    if env is None:
        env = os.environ

    network = env.get('DEPLOY_NETWORK', DEFAULT_NETWORK)
    if network not in NETWORK_PRESETS:
        raise ConfigurationError(
            f"Unknown DEPLOY_NETWORK {network!r} (known: {', '.join(sorted(NETWORK_PRESETS))})"
        )
    preset = NETWORK_PRESETS[network]

    private_key = env.get('PRIVATE_KEY')
    contract_name = env.get('CONTRACT_NAME')

    missing = [
        name for name, value in (('PRIVATE_KEY', private_key), ('CONTRACT_NAME', contract_name))
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

    gas_limit = None
    if env.get('GAS_LIMIT'):
        try:
            gas_limit = int(env['GAS_LIMIT'], 0)
        except ValueError as e:
            raise ConfigurationError(f"Invalid GAS_LIMIT {env['GAS_LIMIT']!r}") from e
        if gas_limit <= 0:
            raise ConfigurationError(f"GAS_LIMIT must be positive, got {env['GAS_LIMIT']!r}")

    return DeploymentRequest(
        contract_name=contract_name,
        constructor_args=parse_constructor_args(env.get('CONSTRUCTOR_ARGS')),
        endpoint_url=env.get('RPC_URL') or preset['rpc_url'],
        signing_key=private_key,
        chain_id=parse_chain_id(env['CHAIN_ID']) if env.get('CHAIN_ID') else preset['chain_id'],
        gas_price_policy=(
            parse_gas_price(env['GAS_PRICE']) if env.get('GAS_PRICE') else preset['gas_price']
        ),
        gas_limit=gas_limit,
        confirmation_timeout=_positive_number(env, 'CONFIRMATION_TIMEOUT', 120.0),
        poll_interval=_positive_number(env, 'POLL_INTERVAL', 1.0),
        artifacts_dir=env.get('ARTIFACTS_DIR') or 'artifacts'
    )
