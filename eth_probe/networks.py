"""
Network and factory address tables.

The registry is built once and passed to whoever needs it, nothing here is mutable
module state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence

from eth_typing import ChecksumAddress
from eth_utils import is_hex_address, to_checksum_address

from .exceptions import ConfigError

SEPOLIA_CHAIN_ID = 11155111

# EntryPoint v0.6, CREATE2 deployed on all networks
ENTRYPOINT06_ADDRESS = to_checksum_address("0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789")

SIMPLE_ACCOUNT_FACTORY_ABI = (
    "function createAccount(address owner, uint256 salt) returns (address ret)",
    "function getAddress(address owner, uint256 salt) view returns (address)",
    "function accountImplementation() view returns (address)",
)

WORKING_FACTORY_ABI = (
    "function createAccount(address owner, uint256 salt) returns (address ret)",
    "function getCalculatedAddress(address owner, uint256 salt) view returns (address)",
    "function accountImplementation() view returns (address)",
    "function entryPoint() view returns (address)",
)


def _checksum(address: str, what: str) -> ChecksumAddress:
    if not is_hex_address(address):
        raise ConfigError(f"Invalid {what} address: {address}")
    return to_checksum_address(address)


@dataclass(frozen=True)
class FactoryConfig:
    key: str
    name: str
    address: ChecksumAddress
    abi: Sequence[str] | None = None
    version: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "address", _checksum(self.address, f"factory {self.key}")
        )
        if self.abi is not None:
            object.__setattr__(self, "abi", tuple(self.abi))


@dataclass(frozen=True)
class NetworkConfig:
    chain_id: int
    name: str
    short_name: str
    block_explorer: str
    entry_point: ChecksumAddress
    factories: Mapping[str, FactoryConfig] = field(default_factory=dict)
    supported: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "entry_point", _checksum(self.entry_point, f"{self.name} entrypoint")
        )
        object.__setattr__(self, "factories", MappingProxyType(dict(self.factories)))


class Registry(Mapping[int, NetworkConfig]):
    """
    Read-only lookup `chain_id -> NetworkConfig`.
    """

    def __init__(self, networks: Iterable[NetworkConfig]) -> None:
        self._networks: Mapping[int, NetworkConfig] = MappingProxyType(
            {n.chain_id: n for n in networks}
        )

    def __getitem__(self, chain_id: int) -> NetworkConfig:
        return self._networks[chain_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._networks)

    def __len__(self) -> int:
        return len(self._networks)

    def network(self, chain_id: int) -> NetworkConfig:
        try:
            network = self._networks[chain_id]
        except KeyError:
            raise ConfigError(f"Network {chain_id} is not configured")
        if not network.supported:
            raise ConfigError(f"Network {network.name} is not supported yet")
        return network

    def factory(self, chain_id: int, key: str) -> FactoryConfig:
        network = self.network(chain_id)
        try:
            return network.factories[key]
        except KeyError:
            raise ConfigError(f"Factory {key} not available on {network.name}")

    def factories(self, chain_id: int) -> list[FactoryConfig]:
        return list(self.network(chain_id).factories.values())

    def supported(self) -> list[NetworkConfig]:
        return [n for n in self._networks.values() if n.supported]

    def validate(self, chain_id: int, key: str) -> dict:
        """
        Same checks as `factory`, reported as a dict instead of raised.
        """
        try:
            factory = self.factory(chain_id, key)
        except ConfigError as exc:
            return {"valid": False, "error": str(exc)}
        return {"valid": True, "network": self._networks[chain_id], "factory": factory}

    def explorer_url(self, chain_id: int, address: str) -> str:
        network = self.network(chain_id)
        return f"{network.block_explorer}/address/{address}"


def build_registry(networks: Iterable[NetworkConfig]) -> Registry:
    networks = list(networks)
    ids = [n.chain_id for n in networks]
    if len(set(ids)) != len(ids):
        raise ConfigError(f"Duplicated chain ids: {ids}")
    return Registry(networks)


SEPOLIA = NetworkConfig(
    chain_id=SEPOLIA_CHAIN_ID,
    name="Sepolia",
    short_name="sepolia",
    block_explorer="https://sepolia.etherscan.io",
    entry_point=ENTRYPOINT06_ADDRESS,
    factories={
        "simple": FactoryConfig(
            key="simple",
            name="WorkingFactory",
            address="0xFc411603D1F1e2B1E9F692E2cBBb74Fd4f2feE18",  # type: ignore
            abi=WORKING_FACTORY_ABI,
            version="v0.6",
            description="Custom deployed factory with getCalculatedAddress function",
        ),
        "official": FactoryConfig(
            key="official",
            name="SimpleAccountFactory (Official)",
            address="0x9406Cc6185a346906296840746125a0E44976454",  # type: ignore
            abi=SIMPLE_ACCOUNT_FACTORY_ABI,
            version="v0.6",
            description="Official ERC-4337 SimpleAccountFactory",
        ),
    },
)

DEFAULT_FACTORY_KEY = "simple"


def default_registry() -> Registry:
    return build_registry([SEPOLIA])
