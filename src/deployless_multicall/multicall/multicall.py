"""NAME
    Multicall

DESCRIPTION
    A deployless multicall for use with pure Web3 library.
    Nothing has to be deployed on chain: the aggregator contract's creation
    bytecode is sent with eth_call, its constructor performs the calls and
    returns the block number together with every call's return data.

"""

from typing import Any, Callable, List, Optional, Sequence, Tuple

from eth_utils import to_hex
from loguru import logger
from web3 import Web3
from web3.types import BlockIdentifier

from .batch import build_request, decode_response, encode_request
from .constants import TOKEN_GETTER_SENDER, ZERO_ADDRESS, BytecodeAssets, load_bytecode
from .tokens import TokenBalances, TokenBalancesAndAllowances, decode_balances, decode_balances_and_allowances, \
    encode_balances, encode_balances_and_allowances
from ..exceptions import ExecutionFailure, MulticallError

CallExecutor = Callable[[bytes, str, BlockIdentifier], bytes]


class Web3Executor:
    """Runs the aggregator bytecode with eth_call, without a `to` address."""

    def __init__(self, w3: Web3):
        self.w3 = w3

    def __call__(self, payload: bytes, sender: str, block_identifier: BlockIdentifier = 'latest') -> bytes:
        return bytes(self.w3.eth.call({'from': sender, 'data': to_hex(payload)}, block_identifier))


class Multicall:
    """
    NAME
        Multicall

    DESCRIPTION
       The main multicall class.

    ATTRIBUTES
        w3: Web3 class instance

        executor: callable
            Replaces the web3 connection. Called as executor(payload, sender, block_identifier)
            and must return the raw return data of the simulated call.

        bytecode: BytecodeAssets
            Aggregator bytecodes. If omitted, the bytecode.json shipped with the package
            (or the file named by DEPLOYLESS_MULTICALL_BYTECODE) is used.

    """

    def __init__(
            self,
            w3: Web3 = None,
            executor: Optional[CallExecutor] = None,
            bytecode: Optional[BytecodeAssets] = None
    ):
        if w3 is None and executor is None:
            raise TypeError("__init__() missing 1 required argument: 'w3' or 'executor' (at least one required)")
        self.w3 = w3
        self._execute = executor or Web3Executor(w3)
        self.bytecode = bytecode or load_bytecode()

    def _simulate(self, payload: bytes, sender: str, block_identifier: BlockIdentifier) -> bytes:
        try:
            return self._execute(payload, sender, block_identifier)
        except MulticallError:
            raise
        except Exception as exc:
            logger.debug(f'Simulated call from {sender} failed: {exc!r}')
            raise ExecutionFailure(f'Simulated aggregator call failed: {exc}') from exc

    def multi_call(
            self,
            arg0: Any,
            arg1: Any = None,
            arg2: Optional[bool] = None,
            block_identifier: BlockIdentifier = 'latest'
    ) -> Tuple[int, List[Any]]:
        """
        Executes a multicall for the specified list of contract function calls.

        Accepts two forms:
            multi_call(interface, calls, strict=None)
            multi_call(calls, strict=None)

        Parameters:
            interface: ContractInterface | web3 contract | list | str
                ABI shared by every call that has no interface of its own

            calls: list(Call | dict)
                calls as Call objects or dicts with 'target', 'function',
                and optionally 'args' and 'interface'

            strict: bool
                if true, a reverting call makes the whole multicall fail,
                otherwise its result is None

            block_identifier: BlockIdentifier
                block identifier for web3 call

        Returns:
            block number of fetched data
            list of outputs, one per call and in the same order
        """
        request = build_request(arg0, arg1, arg2)
        encoded = encode_request(request, self.bytecode)
        logger.debug(f'Multicall of {len(request.calls)} calls (strict={request.strict}, '
                     f'{len(encoded.payload)} bytes) at {block_identifier}')
        data = self._simulate(encoded.payload, ZERO_ADDRESS, block_identifier)
        return decode_response(data, encoded)

    def get_balances(
            self,
            tokens: Sequence[str],
            account: str,
            block_identifier: BlockIdentifier = 'latest'
    ) -> Tuple[int, TokenBalances]:
        """
        Fetches the ERC20 balances of `account` for every token.

        Returns:
            block number of fetched data
            dict of token address -> balance, in the order of `tokens`
        """
        payload = encode_balances(tokens, account, self.bytecode)
        data = self._simulate(payload, TOKEN_GETTER_SENDER, block_identifier)
        return decode_balances(tokens, data)

    def get_balances_and_allowances(
            self,
            tokens: Sequence[str],
            owner: str,
            spender: str,
            block_identifier: BlockIdentifier = 'latest'
    ) -> Tuple[int, TokenBalancesAndAllowances]:
        """
        Fetches the ERC20 balances of `owner` and its allowances for `spender`.

        Returns:
            block number of fetched data
            dict of token address -> TokenBalanceAndAllowance, in the order of `tokens`
        """
        payload = encode_balances_and_allowances(tokens, owner, spender, self.bytecode)
        data = self._simulate(payload, TOKEN_GETTER_SENDER, block_identifier)
        return decode_balances_and_allowances(tokens, data)
