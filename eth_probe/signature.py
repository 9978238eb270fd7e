"""
parse human-readable function signatures into json abi.

only the flat shapes used by account factories are supported, both the compact
form and the solidity-like form:

    getAddress(address,uint256)(address)
    function getAddress(address owner, uint256 salt) view returns (address)
"""

from __future__ import annotations

import re
from typing import Sequence, cast

from eth_abi import is_encodable_type
from eth_typing import ABI, ABIComponent, ABIFunction

IDENTIFIER = r"[a-zA-Z$_][a-zA-Z0-9$_]*"
NON_FUNCTION_PREFIX = re.compile(r"^(event|error|constructor|fallback|receive|struct)\b")

FUNCTION_REGEX = re.compile(
    rf"""^
(?P<keyword>function\s+)?
(?P<name>{IDENTIFIER})
\s* \( (?P<inputs>[^()]*) \)
(?P<modifiers>(\s+ (external|public|view|pure|payable|nonpayable) )*)
\s* (?P<returns>returns \s*)?
( \( (?P<outputs>[^()]*) \) )?
\s*$""",
    re.VERBOSE,
)

PARAMETER_REGEX = re.compile(
    rf"""^
(?P<type>[a-z]+[0-9]* (\[\d*\])* )
(\s+ payable)?
(\s+ (calldata|memory|storage) )?
(\s+ (?P<name>{IDENTIFIER}) )?
$""",
    re.VERBOSE,
)

DYNAMIC_INTEGER_REGEX = re.compile(r"^(u?int)(\[.*)?$")


def parse_parameter(param: str) -> ABIComponent:
    match = PARAMETER_REGEX.match(param.strip())
    if not match:
        raise ValueError(f"Invalid parameter: {param}")

    type_str = match.group("type")
    # `uint` and `int` are aliases of the 256 bits variants
    dyn = DYNAMIC_INTEGER_REGEX.match(type_str)
    if dyn:
        type_str = f"{dyn.group(1)}256{dyn.group(2) or ''}"

    if not is_encodable_type(type_str):
        raise ValueError(f"Unknown type: {type_str}")

    result: dict = {"type": type_str}
    if match.group("name"):
        result["name"] = match.group("name")
    return cast(ABIComponent, result)


def _parse_parameters(params: str | None) -> list[ABIComponent]:
    if not params or not params.strip():
        return []
    return [parse_parameter(p) for p in params.split(",") if p.strip()]


def parse_function(signature: str) -> ABIFunction:
    """
    Parse a single function signature into an abi dict.
    """
    match = FUNCTION_REGEX.match(signature.strip())
    if not match:
        raise ValueError(f"Invalid function signature: {signature}")

    modifiers = set(match.group("modifiers").split())
    # compact `name(inputs)(outputs)` form describes a getter
    compact_getter = match.group("outputs") is not None and not (
        match.group("keyword") or match.group("returns")
    )
    if modifiers & {"view", "pure"}:
        mutability = "view"
    elif "payable" in modifiers:
        mutability = "payable"
    elif compact_getter:
        mutability = "view"
    else:
        mutability = "nonpayable"

    return {
        "type": "function",
        "name": match.group("name"),
        "stateMutability": mutability,  # type: ignore
        "inputs": _parse_parameters(match.group("inputs")),
        "outputs": _parse_parameters(match.group("outputs")),
    }


def parse_functions(signatures: Sequence[str]) -> ABI:
    "parse a list of signatures, declarations other than functions are skipped"
    return [
        parse_function(s)
        for s in signatures
        if s.strip() and not NON_FUNCTION_PREFIX.match(s.strip())
    ]


def normalize_abi(abi: Sequence[str] | ABI) -> ABI:
    """
    Accept either a json abi or a list of human-readable signatures.
    """
    if all(isinstance(item, str) for item in abi):
        return parse_functions(cast(Sequence[str], abi))
    return cast(ABI, abi)
