"""NAME
    tokens

DESCRIPTION
    Fixed-shape batches for ERC20 balances and allowances.
    They run dedicated getter contracts instead of the generic aggregator,
    so no per-token call data is built: the getter receives the token list
    and returns one entry per token, in the same order.

"""

from typing import Dict, List, NamedTuple, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address

from .constants import TOKEN_BALANCE_AND_ALLOWANCE_GETTER, TOKEN_BALANCE_GETTER, BytecodeAssets
from ..exceptions import DecodeError, InvalidArgumentError


class TokenBalanceAndAllowance(NamedTuple):
    balance: int
    allowance: int


TokenBalances = Dict[str, int]
TokenBalancesAndAllowances = Dict[str, TokenBalanceAndAllowance]


def _checksum(address: str, name: str) -> str:
    try:
        return to_checksum_address(address)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f'{name} is not a valid address: {address!r}') from exc


def _checksum_tokens(tokens: Sequence[str]) -> List[str]:
    if not isinstance(tokens, (list, tuple)):
        raise InvalidArgumentError(f'tokens must be a list of addresses, got {type(tokens).__name__}')
    return [_checksum(token, f'Token #{i}') for i, token in enumerate(tokens)]


def _decode(types: Tuple[str, ...], data: bytes, expected: int) -> Tuple[int, tuple]:
    try:
        block_number, values = decode(types, data)
    except DecodingError as exc:
        raise DecodeError(f'Cannot decode the token getter response: {exc}') from exc
    if len(values) != expected:
        raise DecodeError(f'Token getter returned {len(values)} entries for {expected} tokens')
    return block_number, values


def encode_balances(tokens: Sequence[str], account: str, bytecode: BytecodeAssets) -> bytes:
    args = [_checksum_tokens(tokens), _checksum(account, 'account')]
    return bytecode.get(TOKEN_BALANCE_GETTER) + encode(('address[]', 'address'), args)


def decode_balances(tokens: Sequence[str], data: bytes) -> Tuple[int, TokenBalances]:
    block_number, balances = _decode(('uint256', 'uint256[]'), data, len(tokens))
    return block_number, dict(zip(tokens, balances))


def encode_balances_and_allowances(tokens: Sequence[str], owner: str, spender: str,
                                   bytecode: BytecodeAssets) -> bytes:
    args = [_checksum_tokens(tokens), _checksum(owner, 'owner'), _checksum(spender, 'spender')]
    return bytecode.get(TOKEN_BALANCE_AND_ALLOWANCE_GETTER) + encode(('address[]', 'address', 'address'), args)


def decode_balances_and_allowances(tokens: Sequence[str], data: bytes) -> Tuple[int, TokenBalancesAndAllowances]:
    block_number, pairs = _decode(('uint256', 'uint256[2][]'), data, len(tokens))
    return block_number, {token: TokenBalanceAndAllowance(*pair) for token, pair in zip(tokens, pairs)}
