"""
The read-only chain capability the prober depends on.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import aiohttp
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import (ContractLogicError, ProviderConnectionError,
                             Web3RPCError)
from web3.types import BlockIdentifier

from .exceptions import InterfaceMismatch, TransportFailure
from .utils import get_rpc_url

# errors meaning the node itself is unreachable
TRANSPORT_ERRORS = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ProviderConnectionError,
    OSError,
)

# json-rpc error codes nodes use for a failed execution of the call itself,
# everything else (rate limits, internal errors, unknown methods) is the node's
EXECUTION_ERROR_CODES = (3, -32000, -32015)
# -32000 is also used by geth for node-side failures
NODE_ERROR_HINTS = (
    "header not found",
    "missing trie node",
    "rate limit",
    "limit exceeded",
    "timeout",
    "timed out",
)


def is_execution_error(exc: Web3RPCError) -> bool:
    """
    Whether an rpc error response means the call itself failed, not the node.
    """
    response = getattr(exc, "rpc_response", None) or {}
    error = response.get("error")
    if not isinstance(error, dict):
        error = {}
    code = error.get("code")
    message = str(error.get("message") or exc).lower()
    if any(hint in message for hint in NODE_ERROR_HINTS):
        return False
    return code is None or code in EXECUTION_ERROR_CODES


class ChainReader(Protocol):
    async def call(self, to: ChecksumAddress, data: bytes) -> bytes: ...

    async def get_code(self, address: ChecksumAddress) -> bytes: ...

    async def get_balance(self, address: ChecksumAddress) -> int: ...


class Web3Reader:
    """
    ChainReader backed by an `AsyncWeb3` client.

    reverts and rpc error responses are raised as `InterfaceMismatch`,
    connection level failures as `TransportFailure`.
    """

    def __init__(self, w3: AsyncWeb3, block_identifier: BlockIdentifier = "latest"):
        self.w3 = w3
        self.block_identifier = block_identifier

    @classmethod
    def from_url(cls, rpc_url: str | None = None) -> Web3Reader:
        return cls(AsyncWeb3(AsyncHTTPProvider(rpc_url or get_rpc_url())))

    async def call(self, to: ChecksumAddress, data: bytes) -> bytes:
        try:
            return await self.w3.eth.call(
                {"to": to, "data": HexBytes(data)},
                block_identifier=self.block_identifier,
            )
        except ContractLogicError as exc:
            raise InterfaceMismatch(f"call reverted: {exc}", cause=exc) from exc
        except Web3RPCError as exc:
            if is_execution_error(exc):
                raise InterfaceMismatch(f"rpc error: {exc}", cause=exc) from exc
            raise TransportFailure(f"eth_call to {to} failed: {exc}", exc) from exc
        except TRANSPORT_ERRORS as exc:
            raise TransportFailure(f"eth_call to {to} failed: {exc!r}", exc) from exc

    async def get_code(self, address: ChecksumAddress) -> bytes:
        try:
            return await self.w3.eth.get_code(address, self.block_identifier)
        except TRANSPORT_ERRORS as exc:
            raise TransportFailure(
                f"eth_getCode for {address} failed: {exc!r}", exc
            ) from exc

    async def get_balance(self, address: ChecksumAddress) -> int:
        try:
            return await self.w3.eth.get_balance(address, self.block_identifier)
        except TRANSPORT_ERRORS as exc:
            raise TransportFailure(
                f"eth_getBalance for {address} failed: {exc!r}", exc
            ) from exc
