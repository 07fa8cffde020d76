from .async_multicall import AsyncMulticall, AsyncWeb3Executor
from .batch import BatchRequest, Call, build_request, decode_response, encode_request
from .constants import TOKEN_GETTER_SENDER, ZERO_ADDRESS, BytecodeAssets, load_bytecode
from .interface import ContractInterface
from .multicall import Multicall, Web3Executor
from .tokens import TokenBalanceAndAllowance
