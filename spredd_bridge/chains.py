"""
Chain and token registry, explorer links and unit conversion.

Squid only routes between mainnets, so there are no testnet entries here.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

# Chain IDs are strings on the Squid API
CHAIN_IDS = {
    "BASE": "8453",
    "POLYGON": "137",
}

# USDC on each supported mainnet
TOKENS = {
    "USDC_BASE": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    "USDC_POLYGON": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
}

TOKEN_DECIMALS = {
    "USDC": 6,
}

CHAIN_NAMES = {
    CHAIN_IDS["BASE"]: "Base",
    CHAIN_IDS["POLYGON"]: "Polygon",
}

BLOCK_EXPLORERS = {
    CHAIN_IDS["BASE"]: "https://basescan.org",
    CHAIN_IDS["POLYGON"]: "https://polygonscan.com",
}

# Fallback RPC endpoints when none is configured
RPC_URLS = {
    CHAIN_IDS["BASE"]: "https://mainnet.base.org",
    CHAIN_IDS["POLYGON"]: "https://polygon-rpc.com",
}


def chain_name(chain_id: str) -> str:
    """Human-readable chain name, falling back to the raw ID."""
    return CHAIN_NAMES.get(str(chain_id), f"Chain {chain_id}")


def explorer_tx_url(chain_id: str, tx_hash: str) -> Optional[str]:
    """Block explorer link for a transaction, if the chain is known."""
    base = BLOCK_EXPLORERS.get(str(chain_id))
    if base is None:
        return None
    if not tx_hash.startswith("0x"):
        tx_hash = "0x" + tx_hash
    return f"{base}/tx/{tx_hash}"


def parse_units(value: Union[int, str, Decimal], decimals: int) -> int:
    """
    Convert a human amount to the token's smallest unit.

    Uses Decimal arithmetic so "0.1" USDC is exactly 100000, never 99999.

    Examples:
        >>> parse_units("10", 6)
        10000000
        >>> parse_units("0.000001", 6)
        1
    """
    if isinstance(value, float):
        raise TypeError("pass amounts as str or Decimal, not float")

    try:
        dec_value = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e

    if not dec_value.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if dec_value < 0:
        raise ValueError(f"Amount must not be negative: {value}")

    units = dec_value.scaleb(decimals)

    if units != units.to_integral_value():
        raise ValueError(f"Amount {value} has more than {decimals} decimal places")

    return int(units)


def parse_positive_units(value: Union[int, str, Decimal], decimals: int) -> int:
    """parse_units for amounts that are about to be quoted or bridged."""
    units = parse_units(value, decimals)
    if units <= 0:
        raise ValueError(f"Amount must be positive: {value}")
    return units


def format_units(value: int, decimals: int) -> str:
    """Convert a smallest-unit integer to a plain decimal string."""
    formatted = Decimal(value).scaleb(-decimals)
    text = f"{formatted:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
