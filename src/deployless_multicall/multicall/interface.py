"""NAME
    ContractInterface

DESCRIPTION
    Thin wrapper around a contract ABI that knows how to turn a function call
    into call data and raw return data back into Python values.
    Accepts the same interface sources as the multicall entry point:
    a ContractInterface, a web3 contract (class or instance),
    a list of ABI fragments or a JSON string of such a list.

"""

import json
from typing import Any, Optional, Sequence, Tuple, Union

from eth_abi import decoding, encoding
from eth_abi.codec import ABICodec
from eth_abi.exceptions import DecodingError, EncodingError
from eth_abi.registry import BaseEquals
from eth_typing import ABIFunction
from eth_utils import abi_to_signature, function_abi_to_4byte_selector, get_aligned_abi_inputs, \
    get_normalized_abi_inputs, is_checksum_address, is_checksum_formatted_address
from web3.contract.base_contract import BaseContract
from web3._utils.abi import build_strict_registry  # noqa
from web3.exceptions import Web3Exception
from web3.utils import get_abi_element

from ..exceptions import DecodeError, InvalidArgumentError
from ..utils import get_output_types, to_args


class ChecksumAddressEncoder(encoding.AddressEncoder):
    """Lowercase addresses pass, mixed-case ones must carry a valid EIP-55 checksum."""

    @classmethod
    def validate_value(cls, value):
        if isinstance(value, str) and is_checksum_formatted_address(value) and not is_checksum_address(value):
            cls.invalidate_value(value, msg='invalid EIP-55 checksum')
        super().validate_value(value)


def build_codec() -> ABICodec:
    registry = build_strict_registry()
    registry.unregister('address')
    registry.register(BaseEquals('address'), ChecksumAddressEncoder, decoding.AddressDecoder, label='address')
    return ABICodec(registry)


CODEC = build_codec()


def is_contract(value: Any) -> bool:
    if isinstance(value, type):
        return issubclass(value, BaseContract)
    return isinstance(value, BaseContract)


class ContractInterface:
    """
    NAME
        ContractInterface

    ATTRIBUTES
        abi: list
            The contract ABI (function, event, error ... fragments).

    """

    def __init__(self, abi: Union[str, Sequence[dict]]):
        if isinstance(abi, str):
            try:
                abi = json.loads(abi)
            except ValueError as exc:
                raise InvalidArgumentError('ABI string is not valid JSON') from exc
        if not isinstance(abi, (list, tuple)) or not all(isinstance(item, dict) for item in abi):
            raise InvalidArgumentError('ABI must be a list of fragments')
        self.abi = list(abi)
        # fragments without a type are functions
        self._functions = [{**item, 'type': 'function'} for item in self.abi
                           if item.get('type', 'function') == 'function']

    @classmethod
    def from_source(cls, source: Any) -> 'ContractInterface':
        if isinstance(source, ContractInterface):
            return source
        if is_contract(source):
            return cls(source.abi)
        return cls(source)

    def __repr__(self):
        return f'<ContractInterface functions={sorted({f["name"] for f in self._functions})}>'

    def get_function(self, fn_name: str, args: Optional[Sequence] = None) -> ABIFunction:
        """
        Finds the ABI of a function by name or by full signature.

        Overloaded names are resolved by the number and encodability of args.
        Without args a plain name must be unique in the ABI.
        """
        if '(' in fn_name:
            for item in self._functions:
                if abi_to_signature(item) == fn_name.replace(' ', ''):
                    return item
            raise InvalidArgumentError(f"The function '{fn_name}' was not found in this contract's abi.")
        if args is None:
            matches = [item for item in self._functions if item.get('name') == fn_name]
            if len(matches) != 1:
                raise InvalidArgumentError(f"Expected exactly one function named '{fn_name}' in this contract's abi, "
                                           f"found {len(matches)}. Use its full signature instead.")
            return matches[0]
        try:
            fn_abi = get_abi_element(self._functions, fn_name, *args, abi_codec=CODEC)
        except Web3Exception as exc:
            raise InvalidArgumentError(f"Could not resolve the function '{fn_name}' with {len(args)} "
                                       f"argument(s) in this contract's abi: {exc}") from exc
        return fn_abi

    def encode_function_data(self, fn_name: str, args: Any = None) -> bytes:
        args = to_args(args)
        fn_abi = self.get_function(fn_name, args)
        return self.encode_abi(fn_abi, args)

    @staticmethod
    def encode_abi(fn_abi: ABIFunction, args: Sequence) -> bytes:
        try:
            fn_inputs = get_normalized_abi_inputs(fn_abi, *args)
            arg_types, aligned_args = get_aligned_abi_inputs(fn_abi, fn_inputs)
            return function_abi_to_4byte_selector(fn_abi) + CODEC.encode(arg_types, aligned_args)
        except (TypeError, EncodingError, Web3Exception) as exc:
            raise InvalidArgumentError(f"Cannot encode arguments for '{abi_to_signature(fn_abi)}': {exc}") from exc

    def decode_function_result(self, fn: Union[str, ABIFunction], data: bytes) -> Tuple[Any, ...]:
        fn_abi = self.get_function(fn) if isinstance(fn, str) else fn
        try:
            return CODEC.decode(get_output_types(fn_abi), data)
        except (DecodingError, UnicodeDecodeError) as exc:
            raise DecodeError(f"Cannot decode the result of '{abi_to_signature(fn_abi)}': {exc}") from exc
