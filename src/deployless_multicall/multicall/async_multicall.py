"""NAME
    AsyncMulticall

DESCRIPTION
    A deployless multicall for use with AsyncWeb3.
    Same behaviour as Multicall, the simulated call being the only awaited step.

"""

from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from eth_utils import to_hex
from loguru import logger
from web3 import AsyncWeb3
from web3.types import BlockIdentifier

from .batch import build_request, decode_response, encode_request
from .constants import TOKEN_GETTER_SENDER, ZERO_ADDRESS, BytecodeAssets, load_bytecode
from .tokens import TokenBalances, TokenBalancesAndAllowances, decode_balances, decode_balances_and_allowances, \
    encode_balances, encode_balances_and_allowances
from ..exceptions import ExecutionFailure, MulticallError

AsyncCallExecutor = Callable[[bytes, str, BlockIdentifier], Awaitable[bytes]]


class AsyncWeb3Executor:
    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3

    async def __call__(self, payload: bytes, sender: str, block_identifier: BlockIdentifier = 'latest') -> bytes:
        return bytes(await self.w3.eth.call({'from': sender, 'data': to_hex(payload)}, block_identifier))


class AsyncMulticall:
    """
    NAME
        AsyncMulticall

    DESCRIPTION
       The main multicall class for asyncio code.

    ATTRIBUTES
        w3: AsyncWeb3 class instance

        executor: coroutine function
            Replaces the web3 connection. Awaited as executor(payload, sender, block_identifier).

        bytecode: BytecodeAssets
            Aggregator bytecodes, defaults to the packaged table.

    """

    def __init__(
            self,
            w3: AsyncWeb3 = None,
            executor: Optional[AsyncCallExecutor] = None,
            bytecode: Optional[BytecodeAssets] = None
    ):
        if w3 is None and executor is None:
            raise TypeError("__init__() missing 1 required argument: 'w3' or 'executor' (at least one required)")
        self.w3 = w3
        self._execute = executor or AsyncWeb3Executor(w3)
        self.bytecode = bytecode or load_bytecode()

    async def _simulate(self, payload: bytes, sender: str, block_identifier: BlockIdentifier) -> bytes:
        try:
            return await self._execute(payload, sender, block_identifier)
        except MulticallError:
            raise
        except Exception as exc:
            logger.debug(f'Simulated call from {sender} failed: {exc!r}')
            raise ExecutionFailure(f'Simulated aggregator call failed: {exc}') from exc

    async def multi_call(
            self,
            arg0: Any,
            arg1: Any = None,
            arg2: Optional[bool] = None,
            block_identifier: BlockIdentifier = 'latest'
    ) -> Tuple[int, List[Any]]:
        """
        Executes a multicall for the specified list of contract function calls.
        See Multicall.multi_call for the accepted forms.
        """
        request = build_request(arg0, arg1, arg2)
        encoded = encode_request(request, self.bytecode)
        logger.debug(f'Multicall of {len(request.calls)} calls (strict={request.strict}, '
                     f'{len(encoded.payload)} bytes) at {block_identifier}')
        data = await self._simulate(encoded.payload, ZERO_ADDRESS, block_identifier)
        return decode_response(data, encoded)

    async def get_balances(
            self,
            tokens: Sequence[str],
            account: str,
            block_identifier: BlockIdentifier = 'latest'
    ) -> Tuple[int, TokenBalances]:
        payload = encode_balances(tokens, account, self.bytecode)
        data = await self._simulate(payload, TOKEN_GETTER_SENDER, block_identifier)
        return decode_balances(tokens, data)

    async def get_balances_and_allowances(
            self,
            tokens: Sequence[str],
            owner: str,
            spender: str,
            block_identifier: BlockIdentifier = 'latest'
    ) -> Tuple[int, TokenBalancesAndAllowances]:
        payload = encode_balances_and_allowances(tokens, owner, spender, self.bytecode)
        data = await self._simulate(payload, TOKEN_GETTER_SENDER, block_identifier)
        return decode_balances_and_allowances(tokens, data)
