from __future__ import annotations

from typing import Callable

import pytest
from eth_abi import decode, encode
from eth_account import Account
from eth_account.signers.base import BaseAccount
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from eth_probe.exceptions import InterfaceMismatch

Account.enable_unaudited_hdwallet_features()
TEST_MNEMONIC = (
    "body bag bird mix language evidence what liar reunion wire lesson evolve"
)
TEST_ACCOUNTS = [
    Account.from_mnemonic(TEST_MNEMONIC, account_path=f"m/44'/60'/0'/0/{i}")
    for i in range(5)
]

FACTORY = to_checksum_address("0xfc411603d1f1e2b1e9f692e2cbbb74fd4f2fee18")
IMPLEMENTATION = to_checksum_address("0x1111111111111111111111111111111111111111")
PREDICTED = to_checksum_address("0xabcdabcdabcdabcdabcdabcdabcdabcdabcdabcd")
OTHER = to_checksum_address("0x2222222222222222222222222222222222222222")

Handler = Callable[[bytes], bytes]


def address_result(addr: str) -> bytes:
    return encode(["address"], [addr])


class FakeReader:
    """
    In-memory ChainReader, responses are keyed by `(address, selector)`, calls to
    unknown selectors revert like a contract without a fallback would.
    """

    def __init__(self) -> None:
        self.handlers: dict[tuple[str, bytes], Handler] = {}
        self.code: dict[str, bytes] = {}
        self.balances: dict[str, int] = {}
        self.calls: list[tuple[str, bytes]] = []

    def on(self, address: str, signature: str, handler: Handler) -> None:
        selector = function_signature_to_4byte_selector(signature)
        self.handlers[(address.lower(), selector)] = handler

    def returns(self, address: str, signature: str, value, type_="address") -> None:
        self.on(address, signature, lambda _: encode([type_], [value]))

    def reverts(self, address: str, signature: str, exc: Exception | None = None):
        def handler(_: bytes) -> bytes:
            raise exc or InterfaceMismatch("execution reverted")

        self.on(address, signature, handler)

    def forget(self, address: str, signature: str) -> None:
        selector = function_signature_to_4byte_selector(signature)
        del self.handlers[(address.lower(), selector)]

    def deploy(self, address: str, code: bytes = b"\x60\x80") -> None:
        self.code[address.lower()] = code

    def called(self, signature: str) -> int:
        selector = function_signature_to_4byte_selector(signature)
        return sum(1 for _, data in self.calls if data[:4] == selector)

    async def call(self, to: str, data: bytes) -> bytes:
        data = bytes(data)
        self.calls.append((to, data))
        try:
            handler = self.handlers[(to.lower(), data[:4])]
        except KeyError:
            raise InterfaceMismatch("execution reverted")
        return handler(data[4:])

    async def get_code(self, address: str) -> bytes:
        return self.code.get(address.lower(), b"")

    async def get_balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)


def predicted_for(salt: int) -> str:
    "the address the fake factories predict for a salt"
    return to_checksum_address("0x%040x" % (salt + 1))


def simple_account_factory(
    reader: FakeReader,
    factory: str = FACTORY,
    signature: str = "getAddress(address,uint256)",
) -> None:
    """
    Install a factory predicting a distinct address per `(owner, salt)`.
    """
    reader.deploy(factory)
    reader.returns(factory, "accountImplementation()", IMPLEMENTATION)
    salt_first = signature.startswith("getAddress(uint256")

    def predict(args: bytes) -> bytes:
        if salt_first:
            salt, _ = decode(["uint256", "address"], args)
        else:
            _, salt = decode(["address", "uint256"], args)
        return address_result(predicted_for(salt))

    reader.on(factory, signature, predict)


@pytest.fixture
def reader() -> FakeReader:
    return FakeReader()


@pytest.fixture(scope="session")
def test_accounts() -> list[BaseAccount]:
    return TEST_ACCOUNTS


@pytest.fixture
def owner(test_accounts) -> str:
    return test_accounts[0].address
