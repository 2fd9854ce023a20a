"""EVM address helpers."""

import re

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address: str) -> bool:
    """Return True for a 0x-prefixed, 20-byte hex address (any casing)."""
    return bool(_ADDRESS_RE.match(address or ""))


def normalize_address(address: str) -> str:
    """Lowercase an address so cache keys don't depend on checksum casing."""
    return address.strip().lower()
