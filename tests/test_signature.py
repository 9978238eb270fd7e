import pytest
from eth_utils import function_signature_to_4byte_selector

from eth_probe.contract import Contract, ContractFunction
from eth_probe.networks import SIMPLE_ACCOUNT_FACTORY_ABI
from eth_probe.signature import (normalize_abi, parse_function, parse_functions,
                                 parse_parameter)


def test_parse_parameter():
    assert parse_parameter("address") == {"type": "address"}
    assert parse_parameter("address owner") == {"type": "address", "name": "owner"}
    assert parse_parameter("uint salt") == {"type": "uint256", "name": "salt"}
    assert parse_parameter("int[] xs") == {"type": "int256[]", "name": "xs"}
    assert parse_parameter("bytes calldata initCode") == {
        "type": "bytes",
        "name": "initCode",
    }
    assert parse_parameter("address payable to") == {"type": "address", "name": "to"}

    with pytest.raises(ValueError, match="Unknown type"):
        parse_parameter("uint7")
    with pytest.raises(ValueError, match="Invalid parameter"):
        parse_parameter("(address,uint256) pair")


def test_parse_compact_function():
    assert parse_function("getAddress(address,uint256)(address)") == {
        "type": "function",
        "name": "getAddress",
        "stateMutability": "view",
        "inputs": [{"type": "address"}, {"type": "uint256"}],
        "outputs": [{"type": "address"}],
    }
    assert parse_function("accountImplementation()(address)")["inputs"] == []
    # without an output tuple nothing marks it as a getter
    assert parse_function("createAccount(address,uint256)")["stateMutability"] == (
        "nonpayable"
    )


def test_parse_solidity_function():
    abi = parse_function(
        "function getAddress(address owner, uint256 salt) view returns (address)"
    )
    assert abi == {
        "type": "function",
        "name": "getAddress",
        "stateMutability": "view",
        "inputs": [
            {"type": "address", "name": "owner"},
            {"type": "uint256", "name": "salt"},
        ],
        "outputs": [{"type": "address"}],
    }

    abi = parse_function("function depositTo(address account) payable")
    assert abi["stateMutability"] == "payable"
    assert abi["outputs"] == []

    abi = parse_function(
        "function createAccount(address owner, uint256 salt) returns (address ret)"
    )
    assert abi["stateMutability"] == "nonpayable"
    assert abi["outputs"] == [{"type": "address", "name": "ret"}]


def test_parse_invalid_function():
    with pytest.raises(ValueError, match="Invalid function signature"):
        parse_function("invalid signature")
    with pytest.raises(ValueError, match="Invalid function signature"):
        parse_function("getAddress(address,(uint256,bytes))")


def test_parse_functions_skips_other_declarations():
    abi = parse_functions(
        [
            "event AccountCreated(address indexed account)",
            "error NotOwner()",
            "function entryPoint() view returns (address)",
            "",
        ]
    )
    assert [item["name"] for item in abi] == ["entryPoint"]


def test_normalize_abi():
    json_abi = [parse_function("entryPoint()(address)")]
    assert normalize_abi(json_abi) is json_abi
    assert normalize_abi(["entryPoint()(address)"]) == json_abi


def test_contract_function_selector():
    fn = ContractFunction.from_abi("getCalculatedAddress(address,uint256)(address)")
    assert fn.signature == "getCalculatedAddress(address,uint256)"
    assert fn.selector == function_signature_to_4byte_selector(fn.signature)

    # binding arguments leaves the unbound function untouched
    bound = fn("0x" + "11" * 20, 1)
    assert fn.arguments == ()
    assert bound.data[:4] == fn.selector
    assert len(bound.data) == 4 + 64


def test_contract_function_decode():
    fn = ContractFunction.from_abi("accountImplementation()(address)")
    data = bytes(12) + bytes.fromhex("11" * 20)
    assert fn.decode(data) == "0x" + "11" * 20


def test_contract_declares():
    contract = Contract.from_abi(SIMPLE_ACCOUNT_FACTORY_ABI)
    assert contract.declares(ContractFunction.from_abi("getAddress(address,uint256)"))
    assert not contract.declares(
        ContractFunction.from_abi("getAddress(uint256,address)")
    )
    assert not contract.declares(ContractFunction.from_abi("entryPoint()"))

    fn = contract.sig("accountImplementation()")
    assert fn.output_types == ["address"]
    assert contract.fns.createAccount.name == "createAccount"
    with pytest.raises(ValueError, match="No such function signature"):
        contract.sig("entryPoint()")
    with pytest.raises(AttributeError):
        contract.fns.entryPoint
    assert not hasattr(contract.fns, "entryPoint")
    assert "entryPoint" not in contract.fns.abis


def test_contract_function_hashable():
    fn = ContractFunction.from_abi("getAddress(address,uint256)(address)")
    same = ContractFunction.from_abi("getAddress(address,uint256)(address)")
    assert fn == same
    assert hash(fn) == hash(same)
    assert len({fn, same, ContractFunction.from_abi("entryPoint()(address)")}) == 2
