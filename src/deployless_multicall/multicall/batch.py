"""NAME
    batch

DESCRIPTION
    The pieces every multicall goes through, independent of how the
    aggregator call is executed:

        build_request    overloaded arguments -> BatchRequest
        encode_request   BatchRequest -> deployment call data
        decode_response  aggregator return data -> (block number, results)

"""

from collections.abc import Mapping
from typing import Any, List, NamedTuple, Optional, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_typing import ABIFunction
from eth_utils import to_checksum_address
from loguru import logger

from .constants import MULTICALL, MULTICALL_STRICT, BytecodeAssets
from .interface import ContractInterface, is_contract
from ..exceptions import DecodeError, InvalidArgumentError, MissingInterfaceError
from ..utils import is_abi_fragment_list, to_args

REQUEST_TYPES = ('address[]', 'bytes[]')
RESPONSE_TYPES = ('uint256', 'bytes[]')


class Call(NamedTuple):
    """
    NAME
        Call

    ATTRIBUTES
        target: str
            Address of the contract to be called.

        function: str
            Function name or full signature, e.g. 'balanceOf' or 'balanceOf(address)'.

        args: tuple
            Arguments to be passed to the called function.

        interface: ContractInterface | web3 contract | list | str
            ABI of the target. May be left out when the multicall
            receives a shared interface.

    """
    target: str
    function: str
    args: tuple = ()
    interface: Any = None


class BatchRequest(NamedTuple):
    calls: Tuple[Call, ...]
    strict: bool = False


class EncodedBatch(NamedTuple):
    request: BatchRequest
    interfaces: Tuple[ContractInterface, ...]
    functions: Tuple[ABIFunction, ...]
    payload: bytes


def is_interface_source(value: Any) -> bool:
    if isinstance(value, (ContractInterface, str)):
        return True
    return is_contract(value) or is_abi_fragment_list(value)


def to_call(item: Any, position: int, interface: Any = None) -> Call:
    """Copies a call dict or Call into a new Call, filling in `interface` if it has none."""
    if isinstance(item, Call):
        call = item
    elif isinstance(item, Mapping):
        if 'target' not in item or 'function' not in item:
            raise InvalidArgumentError(f"Call #{position} must have both 'target' and 'function'")
        call = Call(item['target'], item['function'], item.get('args'), item.get('interface'))
    else:
        raise InvalidArgumentError(f'Call #{position} must be a Call or a dict, got {type(item).__name__}')
    if call.interface is None:
        call = call._replace(interface=interface)
    return call._replace(args=to_args(call.args))


def _check_strict(strict: Any) -> bool:
    if strict is None:
        return False
    if not isinstance(strict, bool):
        raise InvalidArgumentError(f'strict must be a bool, got {type(strict).__name__}')
    return strict


def build_request(arg0: Any, arg1: Any = None, arg2: Any = None) -> BatchRequest:
    """
    Resolves the two accepted call forms into a BatchRequest.

        build_request(interface, calls, strict)
        build_request(calls, strict)

    The first form shares `interface` with every call that has none of its own.
    """
    if is_interface_source(arg0):
        if not isinstance(arg1, (list, tuple)):
            raise InvalidArgumentError('second parameter must be a list of calls '
                                       'when the first parameter is an interface source')
        shared = ContractInterface.from_source(arg0)
        calls = tuple(to_call(item, i, shared) for i, item in enumerate(arg1))
        return BatchRequest(calls, _check_strict(arg2))

    if not isinstance(arg0, (list, tuple)):
        raise InvalidArgumentError('first parameter must be an interface source or a list of calls, '
                                   f'got {type(arg0).__name__}')
    if arg2 is not None:
        raise InvalidArgumentError('strict is the second parameter when no shared interface is given')
    calls = tuple(to_call(item, i) for i, item in enumerate(arg0))
    return BatchRequest(calls, _check_strict(arg1))


def encode_request(request: BatchRequest, bytecode: BytecodeAssets) -> EncodedBatch:
    """
    Encodes a BatchRequest as aggregator deployment call data.

    Parameters:
        request: BatchRequest
            every call must carry an interface

        bytecode: BytecodeAssets
            table holding the MultiCall and MultiCallStrict bytecodes

    Returns:
        EncodedBatch holding the call data and the resolved functions
        needed to decode the response
    """
    interfaces = []
    functions = []
    targets = []
    datas = []
    for i, call in enumerate(request.calls):
        if call.interface is None:
            raise MissingInterfaceError(f"Call #{i} ('{call.function}' on {call.target}) must include an interface")
        interface = ContractInterface.from_source(call.interface)
        fn_abi = interface.get_function(call.function, call.args)
        datas.append(interface.encode_abi(fn_abi, call.args))
        try:
            targets.append(to_checksum_address(call.target))
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f'Call #{i} has an invalid target address: {call.target!r}') from exc
        interfaces.append(interface)
        functions.append(fn_abi)

    code = bytecode.get(MULTICALL_STRICT if request.strict else MULTICALL)
    payload = code + encode(REQUEST_TYPES, [targets, datas])
    return EncodedBatch(request, tuple(interfaces), tuple(functions), payload)


def decode_result(interface: ContractInterface, fn_abi: ABIFunction, data: bytes, strict: bool) -> Any:
    """
    Decodes the return data of a single call.

    Returns None for empty return data in non-strict mode, the value itself
    when the function has exactly one output and the tuple of values otherwise.
    """
    if not strict and data == b'':
        return None
    values = interface.decode_function_result(fn_abi, data)
    if len(fn_abi.get('outputs', ())) == 1:
        return values[0]
    return values


def split_response(data: bytes, expected: Optional[int] = None) -> Tuple[int, Tuple[bytes, ...]]:
    try:
        block_number, raw_results = decode(RESPONSE_TYPES, data)
    except DecodingError as exc:
        raise DecodeError(f'Cannot decode the aggregator response: {exc}') from exc
    if expected is not None and len(raw_results) != expected:
        raise DecodeError(f'Aggregator returned {len(raw_results)} results for {expected} calls')
    return block_number, raw_results


def decode_response(data: bytes, encoded: EncodedBatch) -> Tuple[int, List[Any]]:
    request = encoded.request
    block_number, raw_results = split_response(data, len(request.calls))

    results = []
    for i, raw in enumerate(raw_results):
        try:
            results.append(decode_result(encoded.interfaces[i], encoded.functions[i], raw, request.strict))
        except DecodeError as exc:
            raise DecodeError(f"Call #{i} ('{request.calls[i].function}'): {exc}") from exc
    logger.debug(f'Decoded {len(results)} results at block {block_number}')
    return block_number, results
