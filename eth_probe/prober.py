"""
Best-effort capability probing.

The exact interface of a third-party contract isn't always known up front, several
factory implementations expose the same capability under different method names or
argument orders. `probe` tries a fixed list of read-only candidate calls in order and
returns the first result accepted by a predicate.

Per-probe failures (reverts, unknown selectors, undecodable results, degenerate
values) are recorded and never raised, only a `TransportFailure` from the chain
reader aborts the operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from eth_abi.exceptions import DecodingError, EncodingError
from eth_typing import ABI, ChecksumAddress
from eth_utils import is_address, to_checksum_address

from .contract import Contract, ContractFunction
from .exceptions import (DegenerateResult, ExhaustedProbes, InterfaceMismatch,
                         ProbeError, TransportFailure)
from .reader import ChainReader
from .utils import same_address

logger = logging.getLogger(__name__)

AcceptPredicate = Callable[[Any, str], bool]


class ArgumentOrder(Enum):
    OWNER_FIRST = "owner_first"
    SALT_FIRST = "salt_first"
    SINGLE_ARG = "single_arg"  # owner only
    NO_ARGS = "no_args"

    def arrange(self, owner: str | None, salt: int) -> tuple:
        if self is ArgumentOrder.OWNER_FIRST:
            return (owner, salt)
        if self is ArgumentOrder.SALT_FIRST:
            return (salt, owner)
        if self is ArgumentOrder.SINGLE_ARG:
            return (owner,)
        return ()


@dataclass(frozen=True)
class Probe:
    fn: ContractFunction
    argument_order: ArgumentOrder = ArgumentOrder.OWNER_FIRST

    @classmethod
    def of(cls, signature: str, argument_order: ArgumentOrder) -> Probe:
        """e.g. `Probe.of("getAddress(address,uint256)(address)", ArgumentOrder.OWNER_FIRST)`"""
        probe = cls(ContractFunction.from_abi(signature), argument_order)
        expected = len(argument_order.arrange(None, 0))
        if len(probe.fn.input_types) != expected:
            raise ValueError(
                f"{probe.fn.signature} doesn't take {expected} arguments "
                f"as {argument_order.name} requires"
            )
        return probe

    @property
    def method(self) -> str:
        return self.fn.name

    def is_applicable(self, abi: ABI | None) -> bool:
        "without a declared abi every probe is worth a try"
        if abi is None:
            return True
        return Contract(abi).declares(self.fn)

    def calldata(self, owner: str | None, salt: int) -> bytes:
        return self.fn(*self.argument_order.arrange(owner, salt)).data

    def __str__(self) -> str:
        return f"{self.fn.signature}[{self.argument_order.name}]"


@dataclass
class ProbeResult:
    probe: Probe
    outcome: Any  # decoded value, or a ProbeError

    @property
    def ok(self) -> bool:
        return not isinstance(self.outcome, ProbeError)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "method": self.probe.method,
            "signature": self.probe.fn.signature,
            "argumentOrder": self.probe.argument_order.name,
        }
        if isinstance(self.outcome, ProbeError):
            d["error"] = type(self.outcome).__name__
            d["message"] = str(self.outcome)
        else:
            d["result"] = _jsonable(self.outcome)
        return d


@dataclass
class ProbeOutcome:
    contract: str
    accepted: bool = False
    address: ChecksumAddress | None = None
    method_used: str | None = None
    value: Any = None
    attempts: list[ProbeResult] = field(default_factory=list)

    def raise_for_outcome(self) -> ProbeOutcome:
        if not self.accepted:
            raise ExhaustedProbes(
                f"no probe accepted for {self.contract} "
                f"after {len(self.attempts)} attempts",
                self.contract,
                self.attempts,
            )
        return self

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"contract": self.contract, "accepted": self.accepted}
        if self.accepted:
            d["address"] = self.address
            d["methodUsed"] = self.method_used
        d["attempts"] = [a.to_dict() for a in self.attempts]
        return d


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def accept_address(value: Any, contract: str) -> bool:
    """
    The default predicate: a well-formed address that isn't the probed contract's
    own, some factories echo their own address when called through a binding that
    doesn't match their actual argument encoding.
    """
    return isinstance(value, str) and is_address(value) and not same_address(
        value, contract
    )


async def _attempt(
    reader: ChainReader,
    contract: ChecksumAddress,
    probe: Probe,
    owner: str | None,
    salt: int,
) -> Any:
    try:
        data = probe.calldata(owner, salt)
    except (EncodingError, TypeError, ValueError) as exc:
        raise InterfaceMismatch(
            f"can't encode arguments for {probe}: {exc}", probe.method, exc
        ) from exc

    try:
        return_data = await reader.call(contract, data)
    except (TransportFailure, InterfaceMismatch):
        raise
    except Exception as exc:
        raise InterfaceMismatch(f"{probe} failed: {exc}", probe.method, exc) from exc

    if not return_data:
        raise InterfaceMismatch(f"{probe} returned no data", probe.method)
    try:
        return probe.fn.decode(return_data)
    except DecodingError as exc:
        raise InterfaceMismatch(
            f"can't decode result of {probe}: {exc}", probe.method, exc
        ) from exc


async def probe(
    reader: ChainReader,
    contract: str,
    probes: Sequence[Probe],
    owner: str | None = None,
    salt: int = 0,
    accept: AcceptPredicate = accept_address,
) -> ProbeOutcome:
    """
    Try the candidate probes in order against `contract`, return the first result
    that is a well-formed address other than `contract` and that `accept` agrees
    with.

    Never raises for a mismatched or degenerate candidate, those are reported in
    `ProbeOutcome.attempts`, a `TransportFailure` aborts the remaining probes.
    """
    contract = to_checksum_address(contract)
    outcome = ProbeOutcome(contract)
    for candidate in probes:
        try:
            value = await _attempt(reader, contract, candidate, owner, salt)
        except InterfaceMismatch as exc:
            exc.method = candidate.method
            logger.debug("probe %s on %s: %s", candidate, contract, exc)
            outcome.attempts.append(ProbeResult(candidate, exc))
            continue
        except TransportFailure:
            logger.warning(
                "transport failure probing %s with %s, aborting", contract, candidate
            )
            raise

        if isinstance(value, str) and is_address(value):
            value = to_checksum_address(value)

        if not (accept_address(value, contract) and accept(value, contract)):
            logger.debug("probe %s on %s: rejected %r", candidate, contract, value)
            outcome.attempts.append(
                ProbeResult(
                    candidate,
                    DegenerateResult(
                        f"{candidate} returned unacceptable value {value!r}",
                        candidate.method,
                        value,
                    ),
                )
            )
            continue

        outcome.attempts.append(ProbeResult(candidate, value))
        outcome.accepted = True
        outcome.value = value
        outcome.method_used = candidate.method
        outcome.address = value
        logger.info("probe %s on %s accepted: %r", candidate, contract, value)
        return outcome

    logger.info(
        "no probe accepted for %s after %d attempts", contract, len(outcome.attempts)
    )
    return outcome
