from collections.abc import Mapping
from typing import Any, Tuple


def get_type(schema: Mapping) -> str:
    abi_type = schema['type']
    if abi_type.startswith('tuple'):
        postfix = abi_type[len('tuple'):]
        return '(' + ','.join(get_type(x) for x in schema['components']) + ')' + postfix
    return abi_type


def get_output_types(fn_abi: Mapping) -> Tuple[str, ...]:
    return tuple(get_type(schema) for schema in fn_abi.get('outputs', ()))


def to_args(args: Any) -> tuple:
    if args is None:
        return ()
    if not isinstance(args, (list, tuple)):
        return (args,)
    return tuple(args)


def is_abi_fragment_list(value: Any) -> bool:
    """
    Tell an ABI fragment list apart from a list of call dicts.

    Only the first element is looked at: a mapping carrying neither ``target``
    nor ``function`` is taken as an ABI fragment. Empty lists are call lists.
    """
    if not isinstance(value, (list, tuple)) or not value:
        return False
    first = value[0]
    if not isinstance(first, Mapping):
        return False
    return 'target' not in first and 'function' not in first
