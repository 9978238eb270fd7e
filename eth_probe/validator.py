"""
Validate account factories before adopting them.

A factory is considered working when it exposes a readable implementation reference
and predicts distinct addresses for distinct salts, some deployments return a
constant or their own address instead.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Sequence

from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from .exceptions import DegenerateResult
from .networks import FactoryConfig
from .predictor import predict_address
from .prober import ArgumentOrder, Probe, ProbeOutcome, probe
from .reader import ChainReader
from .utils import same_address

logger = logging.getLogger(__name__)

TEST_OWNER = to_checksum_address("0x1234567890123456789012345678901234567890")
TEST_SALTS = (12345, 67890)

IMPLEMENTATION_PROBES: tuple[Probe, ...] = (
    Probe.of("accountImplementation()(address)", ArgumentOrder.NO_ARGS),
    Probe.of("implementation()(address)", ArgumentOrder.NO_ARGS),
    Probe.of("ACCOUNT_IMPLEMENTATION()(address)", ArgumentOrder.NO_ARGS),
)

NO_CONTRACT = "no contract at address"
NO_IMPLEMENTATION = "no implementation reference"
PREDICTION_FAILED = "address prediction failed"
CONSTANT_ADDRESS = "constant address"
ECHOED_ADDRESS = "factory returns its own address"

# known SimpleAccountFactory deployments on sepolia
KNOWN_FACTORIES: tuple[FactoryConfig, ...] = (
    FactoryConfig(
        "official_v06",
        "Official SimpleAccountFactory v0.6",
        "0x9406Cc6185a346906296840746125a0E44976454",  # type: ignore
    ),
    FactoryConfig(
        "alt1",
        "Alternative SimpleAccountFactory 1",
        "0x91E60e0613810449d098b0b5Ec8b51A0FE8c8985",  # type: ignore
    ),
    FactoryConfig(
        "stackup",
        "StackUp SimpleAccountFactory",
        "0x15Ba39aff9834029815652432bf5C1e9269C55C6",  # type: ignore
    ),
    FactoryConfig(
        "biconomy",
        "Biconomy SimpleAccountFactory",
        "0x000000a56Aaca3e9a4C479ea6b6CD0DbcB6634F5",  # type: ignore
    ),
)


@dataclass
class FactoryVerdict:
    factory: ChecksumAddress
    valid: bool
    reason: str | None = None
    name: str | None = None
    implementation: ChecksumAddress | None = None
    test_address: ChecksumAddress | None = None
    method_used: str | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


def echoes(outcome: ProbeOutcome) -> bool:
    "some candidate answered with the probed contract's own address"
    return any(
        isinstance(a.outcome, DegenerateResult)
        and same_address(a.outcome.value, outcome.contract)
        for a in outcome.attempts
    )


async def validate_factory(
    reader: ChainReader,
    factory: str,
    salts: tuple[int, int] = TEST_SALTS,
    owner: str = TEST_OWNER,
    abi: Sequence[str] | ABI | None = None,
    name: str | None = None,
) -> FactoryVerdict:
    """
    Check the factory exposes an implementation reference and that two distinct
    salts yield two distinct predicted addresses.
    """
    factory = to_checksum_address(factory)

    def verdict(valid: bool, reason: str | None = None, **kwargs) -> FactoryVerdict:
        v = FactoryVerdict(factory, valid, reason, name=name, **kwargs)
        logger.info("factory %s: %s", factory, reason or "valid")
        return v

    if not await reader.get_code(factory):
        return verdict(False, NO_CONTRACT)

    impl = await probe(reader, factory, IMPLEMENTATION_PROBES)
    if not impl.accepted:
        return verdict(False, NO_IMPLEMENTATION)

    first = await predict_address(reader, factory, owner, salts[0], abi=abi)
    second = await predict_address(reader, factory, owner, salts[1], abi=abi)
    if not (first.accepted and second.accepted):
        failed = second if first.accepted else first
        reason = ECHOED_ADDRESS if echoes(failed) else PREDICTION_FAILED
        return verdict(False, reason, implementation=impl.address)
    if first.address == second.address:
        return verdict(
            False,
            CONSTANT_ADDRESS,
            implementation=impl.address,
            test_address=first.address,
            method_used=first.method_used,
        )

    return verdict(
        True,
        implementation=impl.address,
        test_address=first.address,
        method_used=first.method_used,
    )


async def validate_factories(
    reader: ChainReader, factories: Iterable[FactoryConfig] = KNOWN_FACTORIES
) -> list[FactoryVerdict]:
    "validate the factories one after another, in order"
    return [
        await validate_factory(reader, f.address, abi=f.abi, name=f.name)
        for f in factories
    ]


async def find_working_factory(
    reader: ChainReader, factories: Iterable[FactoryConfig] = KNOWN_FACTORIES
) -> FactoryVerdict | None:
    """
    The first valid factory, the caller decides whether to adopt it.
    """
    for f in factories:
        v = await validate_factory(reader, f.address, abi=f.abi, name=f.name)
        if v.valid:
            return v
    return None


if __name__ == "__main__":
    import argparse
    import asyncio
    import json

    from .reader import Web3Reader
    from .utils import get_rpc_url, parse_address

    argparser = argparse.ArgumentParser(description="Validate account factories")
    argparser.add_argument(
        "factories",
        nargs="*",
        type=parse_address,
        help="Factory addresses (default: the known sepolia factories)",
    )
    argparser.add_argument(
        "--rpc-url",
        type=str,
        default=get_rpc_url(),
        help="RPC URL to connect to the Ethereum node "
        "(default: $ETH_RPC_URL or http://localhost:8545)",
    )
    argparser.add_argument("-v", "--verbose", action="store_true")

    async def main() -> list[FactoryVerdict]:
        args = argparser.parse_args()
        if args.verbose:
            logging.basicConfig(level=logging.DEBUG)

        reader = Web3Reader.from_url(args.rpc_url)
        if args.factories:
            factories = [FactoryConfig(addr, addr, addr) for addr in args.factories]
        else:
            factories = list(KNOWN_FACTORIES)
        verdicts = await validate_factories(reader, factories)
        print(json.dumps([v.to_dict() for v in verdicts], indent=2))
        return verdicts

    asyncio.run(main())
