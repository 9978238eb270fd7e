"""
Read-only inspection of counterfactual smart accounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from eth_abi.exceptions import DecodingError
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from .contract import ContractFunction
from .exceptions import InterfaceMismatch
from .networks import FactoryConfig
from .predictor import predict_address
from .prober import ProbeOutcome
from .reader import ChainReader
from .salt import normalize_salt

ENTRYPOINT_BALANCE_OF = ContractFunction.from_abi(
    "function balanceOf(address account) view returns (uint256)"
)


@dataclass
class AccountInfo:
    address: ChecksumAddress
    deployed: bool
    balance: int  # wei
    salt: str
    method_used: str | None = None


async def is_account_deployed(reader: ChainReader, address: str) -> bool:
    return bool(await reader.get_code(to_checksum_address(address)))


async def account_info(
    reader: ChainReader,
    factory: str,
    owner: str,
    salt: str | int | bytes | None = 0,
    abi: Sequence[str] | ABI | None = None,
) -> AccountInfo:
    """
    Predict the account address, then read its deployment status and balance.

    raises `ExhaustedProbes` if the address can't be predicted.
    """
    outcome = await predict_address(reader, factory, owner, salt, abi)
    outcome.raise_for_outcome()
    assert outcome.address is not None
    return AccountInfo(
        address=outcome.address,
        deployed=await is_account_deployed(reader, outcome.address),
        balance=await reader.get_balance(outcome.address),
        salt=normalize_salt(salt),
        method_used=outcome.method_used,
    )


async def entry_point_deposit(
    reader: ChainReader, entry_point: str, account: str
) -> int:
    "deposit of `account` in the EntryPoint, in wei"
    fn = ENTRYPOINT_BALANCE_OF(to_checksum_address(account))
    data = await reader.call(to_checksum_address(entry_point), fn.data)
    try:
        return fn.decode(data)
    except DecodingError as exc:
        raise InterfaceMismatch(
            f"can't decode balanceOf result: {exc}", fn.name, exc
        ) from exc


async def compare_factories(
    reader: ChainReader,
    factories: Iterable[FactoryConfig],
    owner: str,
    salt: str | int | bytes | None = 0,
) -> list[tuple[FactoryConfig, ProbeOutcome]]:
    """
    Predict the address for the same owner and salt with each factory.
    """
    return [
        (f, await predict_address(reader, f.address, owner, salt, f.abi))
        for f in factories
    ]
