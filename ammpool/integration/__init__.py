"""
Integration layer: the pool engine and its configuration.
"""

from .config import PoolEngineConfig, config_from_env, load_config
from .pool_engine import DepositReceipt, DepositResult, PoolEngine, PoolRef

__all__ = [
    "PoolEngineConfig",
    "config_from_env",
    "load_config",
    "DepositReceipt",
    "DepositResult",
    "PoolEngine",
    "PoolRef",
]
