# Deployless Multicall - Batch contract reads into a single eth_call

__author__ = "MiKO, Naveed"
__copyright__ = "Copyright (C) 2022-2024, Deus Finance <https://github.com/deusfinance>"
__credits__ = ["MiKO", "Naveed"]
__license__ = "MIT"
__version__ = "1.0.0"
__maintainer__ = "MiKO"
__email__ = "mikoronjoo@gmail.com, naveedinno@proton.me"
__status__ = "Production"

from .exceptions import (
    BytecodeAssetError,
    DecodeError,
    ExecutionFailure,
    InvalidArgumentError,
    MissingInterfaceError,
    MulticallError,
)
from .multicall import (
    AsyncMulticall,
    BytecodeAssets,
    Call,
    ContractInterface,
    Multicall,
    TokenBalanceAndAllowance,
    load_bytecode,
)

from loguru import logger

# Silent unless the application calls logger.enable("deployless_multicall")
logger.disable(__name__)
