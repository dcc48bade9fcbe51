"""
Imperative shell: ledger adapters, config files, and the stateful controller
"""

from .config_file import config_from_mapping, load_config, load_profiles
from .incentive_engine import IncentiveController
from .ledger import InMemoryToken, TokenLedger

__all__ = [
    "config_from_mapping",
    "load_config",
    "load_profiles",
    "IncentiveController",
    "InMemoryToken",
    "TokenLedger",
]
