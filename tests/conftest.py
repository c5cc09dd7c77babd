#
# Pytest Fixtures
#

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any, Callable

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from annotree.annotate import Annotate, Format, MemberId
from annotree.engine import AnnotatedSerializer
from annotree.plain import PlainSerializer


# Classes --------------------------------------------------------------------------------------------------------------

class TableHook(Annotate):
    """Hook answering from lookup tables keyed by (variant, field), recording every lookup."""

    def __init__(self,
                 formats: dict[tuple[str | None, MemberId], Format] | None = None,
                 comments: dict[tuple[str | None, MemberId], str] | None = None):
        self.formats = formats or {}
        self.comments = comments or {}
        self.calls: list[tuple[str, str | None, MemberId]] = []

    def format(self, variant, field):
        self.calls.append(("format", variant, field))
        return self.formats.get((variant, field))

    def comment(self, variant, field):
        self.calls.append(("comment", variant, field))
        return self.comments.get((variant, field))


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def engine() -> AnnotatedSerializer:
    """Annotated serializer with the default root context."""
    return AnnotatedSerializer()


@pytest.fixture
def plain() -> PlainSerializer:
    """Foreign destination producing builtin Python data."""
    return PlainSerializer()


@pytest.fixture
def table_hook() -> Callable[..., TableHook]:
    """Factory of table-driven hooks."""

    def _make(formats: dict | None = None, comments: dict | None = None) -> TableHook:
        return TableHook(formats=formats, comments=comments)

    return _make
