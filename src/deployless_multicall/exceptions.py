class MulticallError(Exception):
    """Base class for every error raised by deployless_multicall."""


class InvalidArgumentError(MulticallError, TypeError):
    """Malformed call usage, detected before anything is sent to the node."""


class MissingInterfaceError(MulticallError, ValueError):
    """A call has no interface source to encode it with."""


class ExecutionFailure(MulticallError):
    """
    The simulated aggregator call failed.

    Covers transport errors, a node refusing the call and an outer revert of the
    aggregator (which is how a strict batch reports a reverting inner call).
    The original exception is kept as ``__cause__``.
    """


class DecodeError(MulticallError, ValueError):
    """Returned bytes do not match the expected ABI shape."""


class BytecodeAssetError(MulticallError):
    """An aggregator bytecode asset is missing or malformed."""
