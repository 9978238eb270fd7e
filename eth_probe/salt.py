"""
CREATE2 salt handling, salts are `uint256` values on the factory side.
"""

from __future__ import annotations

import re
import secrets

SALT_BYTES = 32
HEX_SALT_REGEX = re.compile(r"^0[xX][0-9a-fA-F]{1,64}$")
DECIMAL_SALT_REGEX = re.compile(r"^[0-9]+$")


def _to_hex(value: int) -> str:
    if value < 0 or value >= 2 ** (8 * SALT_BYTES):
        raise ValueError(f"Salt out of uint256 range: {value}")
    return "0x" + value.to_bytes(SALT_BYTES, "big").hex()


def normalize_salt(salt: str | int | bytes | None) -> str:
    """
    Normalize a salt to its hex form.

    hex strings pass through unchanged, decimal strings, integers and bytes
    become zero-padded 32 bytes big-endian hex. missing salts mean zero.
    """
    if salt is None:
        return _to_hex(0)
    if isinstance(salt, bool):
        raise ValueError(f"Invalid salt: {salt!r}")
    if isinstance(salt, int):
        return _to_hex(salt)
    if isinstance(salt, (bytes, bytearray)):
        if len(salt) > SALT_BYTES:
            raise ValueError(f"Salt longer than {SALT_BYTES} bytes")
        return _to_hex(int.from_bytes(salt, "big"))

    s = salt.strip()
    if not s:
        return _to_hex(0)
    if s.startswith(("0x", "0X")):
        if not HEX_SALT_REGEX.match(s):
            raise ValueError(f"Invalid hex salt: {salt!r}")
        return s
    if DECIMAL_SALT_REGEX.match(s):
        return _to_hex(int(s))
    raise ValueError(f"Invalid salt: {salt!r}")


def salt_to_int(salt: str | int | bytes | None) -> int:
    "the `uint256` value passed to the factory"
    return int(normalize_salt(salt), 16)


def random_salt() -> str:
    return _to_hex(int.from_bytes(secrets.token_bytes(SALT_BYTES), "big"))
