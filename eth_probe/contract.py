from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from eth_abi import encode
from eth_abi.codec import ABICodec
from eth_abi.registry import registry as default_registry
from eth_typing import ABI, ABIFunction
from eth_utils import (abi_to_signature, filter_abi_by_type,
                       function_signature_to_4byte_selector,
                       get_abi_input_types, get_abi_output_types)
from eth_utils.toolz import assoc
from hexbytes import HexBytes
from typing_extensions import Unpack
from web3 import AsyncWeb3
from web3.types import BlockIdentifier, TxParams

from .signature import normalize_abi, parse_function


@dataclass
class ContractFunction:
    abi: ABIFunction
    arguments: tuple = ()

    def __post_init__(self) -> None:
        self.input_types = get_abi_input_types(self.abi)
        self.output_types = get_abi_output_types(self.abi)
        self.signature = abi_to_signature(self.abi)
        self.selector = function_signature_to_4byte_selector(self.signature)

    def __hash__(self) -> int:
        "equal functions share the abi, so selector and outputs agree"
        return hash((self.selector, tuple(self.output_types)))

    @classmethod
    def from_abi(cls, abi: str | ABIFunction) -> ContractFunction:
        """
        Build from a json abi item or a human-readable signature.
        """
        if isinstance(abi, str):
            abi = parse_function(abi)
        return cls(abi)

    @property
    def name(self) -> str:
        return self.abi["name"]

    def __call__(self, *args) -> ContractFunction:
        """
        Bind the arguments, returns a new function object so the unbound one
        can be shared freely.
        """
        return ContractFunction(self.abi, args)

    @property
    def data(self) -> HexBytes:
        return HexBytes(self.selector + encode(self.input_types, self.arguments))

    async def call(
        self,
        w3: AsyncWeb3,
        block_identifier: BlockIdentifier | None = None,
        **tx: Unpack[TxParams],
    ) -> Any:
        """
        Call the function on the contract at `tx["to"]`.
        """
        return_data = await w3.eth.call(
            transaction=assoc(tx, "data", self.data),
            block_identifier=block_identifier,
        )
        return self.decode(return_data, codec=w3.codec)

    def decode(self, data: bytes, codec=None) -> Any:
        codec = codec or ABICodec(default_registry)
        data = codec.decode(self.output_types, data)
        return data[0] if len(data) == 1 else data


@dataclass
class ContractFunctions:
    abis: Mapping[str, Sequence[ABIFunction]]

    def __getattr__(self, name: str) -> ContractFunction:
        try:
            abis = self.abis[name]
        except KeyError:
            raise AttributeError(f"No such function: {name}")

        # overloads are resolved explicitly by signature, see `Contract.sig`
        return ContractFunction(abis[0])


@dataclass
class Contract:
    abi: ABI

    def __post_init__(self) -> None:
        abis: defaultdict[str, list[ABIFunction]] = defaultdict(list)
        for fn in filter_abi_by_type("function", self.abi):
            abis[fn["name"]].append(fn)
        self.fns = ContractFunctions(dict(abis))

    @classmethod
    def from_abi(cls, abi: Sequence[str] | ABI) -> Contract:
        return cls(normalize_abi(abi))

    def sig(self, signature: str) -> ContractFunction:
        "lookup a function by its canonical signature, e.g. `getAddress(address,uint256)`"
        for abis in self.fns.abis.values():
            for abi in abis:
                if abi_to_signature(abi) == signature:
                    return ContractFunction(abi)
        raise ValueError(f"No such function signature: {signature}")

    def declares(self, fn: ContractFunction) -> bool:
        """
        check the abi declares a function with the same name and input types,
        output types are not part of the selector so they are not compared.
        """
        return any(
            get_abi_input_types(abi) == fn.input_types
            for abi in self.fns.abis.get(fn.name, ())
        )
