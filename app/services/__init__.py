"""Service layer helpers"""

from .address import is_valid_address, is_valid_tx_hash, normalize_chain, parse_chains
from .chains import NetworkConfig, NetworkRegistry, UnsupportedNetworkError
from .units import format_units, parse_quantity

__all__ = [
    "is_valid_address",
    "is_valid_tx_hash",
    "normalize_chain",
    "parse_chains",
    "NetworkConfig",
    "NetworkRegistry",
    "UnsupportedNetworkError",
    "format_units",
    "parse_quantity",
]
