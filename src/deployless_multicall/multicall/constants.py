import json
import os
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from loguru import logger

from ..exceptions import BytecodeAssetError

ZERO_ADDRESS: ChecksumAddress = to_checksum_address('0x0000000000000000000000000000000000000000')
# Caller the token getter aggregators are simulated from.
TOKEN_GETTER_SENDER: ChecksumAddress = to_checksum_address('0x005f644097F8f0E9f996Dca4F4F23aBB6C1Cc8b3')

MULTICALL = 'MultiCall'
MULTICALL_STRICT = 'MultiCallStrict'
TOKEN_BALANCE_GETTER = 'MultiTokenBalanceGetter'
TOKEN_BALANCE_AND_ALLOWANCE_GETTER = 'MultiTokenBalanceAndAllowanceGetter'

BYTECODE_NAMES = (MULTICALL, MULTICALL_STRICT, TOKEN_BALANCE_GETTER, TOKEN_BALANCE_AND_ALLOWANCE_GETTER)

BYTECODE_PATH_ENV = 'DEPLOYLESS_MULTICALL_BYTECODE'
DEFAULT_BYTECODE_PATH = Path(__file__).with_name('bytecode.json')


class BytecodeAssets:
    """
    NAME
        BytecodeAssets

    DESCRIPTION
        Read-only table of the aggregator deployment bytecodes.
        Every blob is a versioned asset: the decoders in this package expect
        exactly the return shapes those contracts produce.

    ATTRIBUTES
        source: str
            Where the table was loaded from (a file path or '<memory>').

    """

    def __init__(self, blobs: Mapping[str, str], source: str = '<memory>'):
        self.source = source
        self._blobs = MappingProxyType(dict(blobs))

    @classmethod
    def from_mapping(cls, blobs: Mapping[str, Union[str, bytes]]) -> 'BytecodeAssets':
        return cls({name: value.hex() if isinstance(value, (bytes, bytearray)) else value
                    for name, value in blobs.items()})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'BytecodeAssets':
        path = Path(path).expanduser()
        try:
            blobs = json.loads(path.read_text())
        except OSError as exc:
            raise BytecodeAssetError(f'Cannot read bytecode assets from {path}') from exc
        except ValueError as exc:
            raise BytecodeAssetError(f'Bytecode assets file {path} is not valid JSON') from exc
        if not isinstance(blobs, dict):
            raise BytecodeAssetError(f'Bytecode assets file {path} must hold a JSON object')
        logger.debug(f'Loaded bytecode assets from {path}: {sorted(blobs)}')
        return cls(blobs, source=str(path))

    def __contains__(self, name: str) -> bool:
        return bool(self._blobs.get(name))

    def get(self, name: str) -> bytes:
        value = self._blobs.get(name)
        if not value:
            raise BytecodeAssetError(f'Bytecode asset `{name}` is not set in {self.source}')
        if not isinstance(value, str):
            raise BytecodeAssetError(f'Bytecode asset `{name}` must be a hex string')
        try:
            return bytes.fromhex(value[2:] if value.startswith(('0x', '0X')) else value)
        except ValueError as exc:
            raise BytecodeAssetError(f'Bytecode asset `{name}` in {self.source} is not valid hex') from exc


@lru_cache(maxsize=None)
def _load_cached(path: str) -> BytecodeAssets:
    return BytecodeAssets.from_file(path)


def load_bytecode(path: Optional[Union[str, Path]] = None) -> BytecodeAssets:
    """
    Returns the bytecode asset table.

    Parameters:
        path: str | Path
            JSON file to load. Falls back to the DEPLOYLESS_MULTICALL_BYTECODE
            environment variable, then to the bytecode.json shipped with the package.

    Returns:
        BytecodeAssets, loaded once per path
    """
    if path is None:
        path = os.getenv(BYTECODE_PATH_ENV, '').strip() or DEFAULT_BYTECODE_PATH
    return _load_cached(str(Path(path).expanduser()))
