import os

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

ZERO_ADDRESS = to_checksum_address("0x0000000000000000000000000000000000000000")
DEFAULT_RPC_URL = "http://localhost:8545"


def get_rpc_url() -> str:
    "`$ETH_RPC_URL` or the local node"
    return os.getenv("ETH_RPC_URL", DEFAULT_RPC_URL)


def same_address(a: object, b: object) -> bool:
    """
    Case-insensitive address comparison, anything that isn't an address never
    compares equal.
    """
    if not (isinstance(a, str) and isinstance(b, str)):
        return False
    return a.lower() == b.lower()


def parse_address(value: str) -> ChecksumAddress:
    """
    Validate and checksum an address from user input.
    """
    if not is_address(value):
        raise ValueError(f"Invalid address: {value}")
    return to_checksum_address(value)

