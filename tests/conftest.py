from __future__ import annotations

from typing import Any, Callable

import pytest
from eth_abi import decode, encode
from eth_utils import function_abi_to_4byte_selector, get_abi_input_types, to_checksum_address
from web3.exceptions import ContractLogicError

from deployless_multicall import BytecodeAssets, ContractInterface
from deployless_multicall.multicall.constants import TOKEN_GETTER_SENDER, ZERO_ADDRESS
from deployless_multicall.utils import get_output_types

MULTICALL_CODE = bytes.fromhex("6001600101")
MULTICALL_STRICT_CODE = bytes.fromhex("6002600202")
BALANCE_GETTER_CODE = bytes.fromhex("6003600303")
BALANCE_AND_ALLOWANCE_GETTER_CODE = bytes.fromhex("6004600404")

TOKEN_A = "0x1111111111111111111111111111111111111111"
TOKEN_B = "0x2222222222222222222222222222222222222222"
PAIR = "0x3333333333333333333333333333333333333333"
EOA = "0x4444444444444444444444444444444444444444"
OWNER = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
SPENDER = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"

ERC20_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]

PAIR_ABI = [
    {
        "type": "function",
        "name": "getReserves",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
    },
]


class FakeChain:
    """
    In-process stand-in for a node running the aggregator bytecodes.

    Contracts are python callables keyed by selector. A callable raising
    ContractLogicError behaves like a reverting call.
    """

    def __init__(self, block_number: int = 19_000_000):
        self.block_number = block_number
        self.contracts: dict[str, dict[bytes, Callable[[bytes], bytes]]] = {}
        self.balances: dict[tuple[str, str], int] = {}
        self.allowances: dict[tuple[str, str, str], int] = {}
        self.requests: list[tuple[bytes, str, Any]] = []

    def deploy(self, address: str, abi: list, **functions: Callable) -> None:
        interface = ContractInterface(abi)
        handlers = {}
        for name, impl in functions.items():
            fn_abi = interface.get_function(name)
            handlers[function_abi_to_4byte_selector(fn_abi)] = self._handler(fn_abi, impl)
        self.contracts[to_checksum_address(address)] = handlers

    @staticmethod
    def _handler(fn_abi, impl):
        input_types = get_abi_input_types(fn_abi)
        output_types = get_output_types(fn_abi)

        def handle(data: bytes) -> bytes:
            values = impl(*decode(input_types, data))
            if len(output_types) == 1:
                values = (values,)
            return encode(output_types, values)

        return handle

    def _call(self, target: str, data: bytes) -> bytes:
        handlers = self.contracts.get(to_checksum_address(target))
        if handlers is None:
            return b""
        handler = handlers.get(data[:4])
        if handler is None:
            raise ContractLogicError("execution reverted")
        return handler(data[4:])

    def _aggregate(self, args: bytes, strict: bool) -> bytes:
        targets, datas = decode(("address[]", "bytes[]"), args)
        results = []
        for target, data in zip(targets, datas):
            try:
                results.append(self._call(target, data))
            except ContractLogicError:
                if strict:
                    raise
                results.append(b"")
        return encode(("uint256", "bytes[]"), [self.block_number, results])

    def _balances(self, args: bytes) -> bytes:
        tokens, account = decode(("address[]", "address"), args)
        balances = [self.balances.get((token.lower(), account.lower()), 0) for token in tokens]
        return encode(("uint256", "uint256[]"), [self.block_number, balances])

    def _balances_and_allowances(self, args: bytes) -> bytes:
        tokens, owner, spender = decode(("address[]", "address", "address"), args)
        pairs = [
            [
                self.balances.get((token.lower(), owner.lower()), 0),
                self.allowances.get((token.lower(), owner.lower(), spender.lower()), 0),
            ]
            for token in tokens
        ]
        return encode(("uint256", "uint256[2][]"), [self.block_number, pairs])

    def __call__(self, payload: bytes, sender: str, block_identifier: Any = "latest") -> bytes:
        self.requests.append((payload, sender, block_identifier))
        code, args = payload[:5], payload[5:]
        if code in (MULTICALL_CODE, MULTICALL_STRICT_CODE):
            assert sender == ZERO_ADDRESS
            return self._aggregate(args, strict=code == MULTICALL_STRICT_CODE)
        assert sender == TOKEN_GETTER_SENDER
        if code == BALANCE_GETTER_CODE:
            return self._balances(args)
        if code == BALANCE_AND_ALLOWANCE_GETTER_CODE:
            return self._balances_and_allowances(args)
        raise ContractLogicError("invalid opcode")


@pytest.fixture
def bytecode():
    return BytecodeAssets.from_mapping(
        {
            "MultiCall": MULTICALL_CODE,
            "MultiCallStrict": MULTICALL_STRICT_CODE,
            "MultiTokenBalanceGetter": BALANCE_GETTER_CODE,
            "MultiTokenBalanceAndAllowanceGetter": BALANCE_AND_ALLOWANCE_GETTER_CODE,
        }
    )


@pytest.fixture
def chain():
    chain = FakeChain()
    holdings = {TOKEN_A: 1_000, TOKEN_B: 25}
    chain.deploy(
        TOKEN_A,
        ERC20_ABI,
        balanceOf=lambda account: holdings[TOKEN_A] if account.lower() == OWNER else 0,
        decimals=lambda: 18,
        symbol=lambda: "AAA",
    )
    chain.deploy(
        TOKEN_B,
        ERC20_ABI,
        balanceOf=lambda account: holdings[TOKEN_B] if account.lower() == OWNER else 0,
        decimals=lambda: 6,
        symbol=lambda: "BBB",
    )
    chain.deploy(PAIR, PAIR_ABI, getReserves=lambda: (5_000, 7_000, 1_700_000_000))
    chain.balances.update({(TOKEN_A, OWNER): 1_000, (TOKEN_B, OWNER): 25})
    chain.allowances.update({(TOKEN_A, OWNER, SPENDER): 2**256 - 1})
    return chain
