"""
Predict ERC-4337 smart account addresses from an account factory.

Factories deployed by different parties expose the counterfactual address under
different names and argument orders, the candidates are probed in a fixed order.
"""

from __future__ import annotations

from typing import Sequence

from eth_typing import ABI

from .prober import ArgumentOrder, Probe, ProbeOutcome, probe
from .reader import ChainReader
from .salt import salt_to_int
from .signature import normalize_abi

ADDRESS_PROBES: tuple[Probe, ...] = (
    Probe.of(
        "getCalculatedAddress(address,uint256)(address)", ArgumentOrder.OWNER_FIRST
    ),
    Probe.of("getAddress(address,uint256)(address)", ArgumentOrder.OWNER_FIRST),
    Probe.of("getAddress(uint256,address)(address)", ArgumentOrder.SALT_FIRST),
    Probe.of("getAccountAddress(address,uint256)(address)", ArgumentOrder.OWNER_FIRST),
)


def address_probes(abi: Sequence[str] | ABI | None = None) -> list[Probe]:
    """
    The candidates the factory declares in its abi, all of them if the abi is
    unknown or declares none.
    """
    if abi is None:
        return list(ADDRESS_PROBES)
    parsed = normalize_abi(abi)
    applicable = [p for p in ADDRESS_PROBES if p.is_applicable(parsed)]
    return applicable or list(ADDRESS_PROBES)


async def predict_address(
    reader: ChainReader,
    factory: str,
    owner: str,
    salt: str | int | bytes | None = 0,
    abi: Sequence[str] | ABI | None = None,
    probes: Sequence[Probe] | None = None,
) -> ProbeOutcome:
    """
    Predict the account address of `owner` with `salt`.

    salt can be a decimal string, a hex string, an int or bytes.
    """
    if probes is None:
        probes = address_probes(abi)
    return await probe(reader, factory, probes, owner=owner, salt=salt_to_int(salt))


if __name__ == "__main__":
    import argparse
    import asyncio
    import json
    import logging

    from .reader import Web3Reader
    from .utils import get_rpc_url, parse_address

    argparser = argparse.ArgumentParser(
        description="Predict the smart account address from an account factory"
    )
    argparser.add_argument("factory", type=parse_address, help="Factory address")
    argparser.add_argument("owner", type=parse_address, help="Account owner address")
    argparser.add_argument(
        "--salt",
        default="0",
        help="Salt, decimal or 0x-prefixed hex (default: 0)",
    )
    argparser.add_argument(
        "--rpc-url",
        type=str,
        default=get_rpc_url(),
        help="RPC URL to connect to the Ethereum node "
        "(default: $ETH_RPC_URL or http://localhost:8545)",
    )
    argparser.add_argument("-v", "--verbose", action="store_true")

    async def main() -> ProbeOutcome:
        args = argparser.parse_args()
        if args.verbose:
            logging.basicConfig(level=logging.DEBUG)

        reader = Web3Reader.from_url(args.rpc_url)
        outcome = await predict_address(reader, args.factory, args.owner, args.salt)
        print(json.dumps(outcome.to_dict(), indent=2))
        return outcome

    asyncio.run(main())
