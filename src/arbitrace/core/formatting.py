"""
Display formatting for decoded values.
"""

from decimal import Decimal
from typing import Any, Optional, Sequence

from eth_utils import to_checksum_address
from web3 import Web3


def format_argument(value: Any, abi_type: Optional[str] = None) -> str:
    """Render one decoded ABI value the way the call tree shows it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        inner_type = _inner_type(abi_type)
        return "[" + ",".join(format_argument(v, inner_type) for v in value) + "]"
    if isinstance(value, str) and abi_type == "address":
        try:
            return to_checksum_address(value)
        except ValueError:
            return value
    return str(value)


def _inner_type(abi_type: Optional[str]) -> Optional[str]:
    if abi_type and abi_type.endswith("]"):
        return abi_type[:abi_type.rindex("[")]
    return None


def format_call(name: str, values: Sequence[Any], types: Sequence[str], param_names: Sequence[str]) -> str:
    """
    ``name(a=1, b=2)`` when every parameter is named, ``name(1, 2)`` otherwise.
    """
    rendered = [format_argument(v, t) for v, t in zip(values, types)]
    if param_names and all(param_names):
        rendered = [f"{n}={v}" for n, v in zip(param_names, rendered)]
    return f"{name}({', '.join(rendered)})"


def format_ether(wei: int) -> Decimal:
    return Web3.from_wei(wei, "ether")


def format_units(amount: int, decimals: Optional[int]) -> str:
    """Scale a raw token amount by ``decimals``; raw integer when unknown."""
    if decimals is None or decimals <= 0:
        return str(amount)
    whole, frac = divmod(amount, 10 ** decimals)
    if frac == 0:
        return str(whole)
    frac_str = f"{frac:0{decimals}d}".rstrip("0")
    return f"{whole}.{frac_str}"
