"""
Annotree utilities shared across the package.

Contains helpers used by multiple modules to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import reprlib
from typing import Any

_repr = reprlib.Repr()
_repr.maxstring = 80
_repr.maxother = 80


# Methods --------------------------------------------------------------------------------------------------------------

def class_name(obj: Any, fully_qualified: bool = False) -> str:
    """
    Get the class name of an object or a class.

    Returns class name whether given an instance or the class itself, so both
    `class_name(10)` and `class_name(int)` return 'int'. Builtins are never qualified.

    Examples:
        >>> class_name(b"")
        'bytes'
        >>> class C: ...
        >>> class_name(C, fully_qualified=True)
        'annotree.utils.C'
    """
    cls = obj if isinstance(obj, type) else type(obj)
    if fully_qualified and cls.__module__ != "builtins":
        return f"{cls.__module__}.{cls.__qualname__}"
    return cls.__qualname__


def fmt_type(obj: Any) -> str:
    """Format type of obj for exception messages, e.g. '<int>'."""
    return f"<{class_name(obj)}>"


def fmt_value(obj: Any) -> str:
    """
    Format a value as a type-value pair for exception messages, e.g. "<str: 'x'>".

    Broken __repr__ implementations are reported instead of raised.
    """
    try:
        r = _repr.repr(obj)
    except Exception as exc:
        r = f"repr failed: {class_name(exc)}"
    return f"<{class_name(obj)}: {r}>"
