"""
Annotree error taxonomy.

Construction failures of nested values are never wrapped: whatever a value's own
__serialize__ or hook raises reaches the caller unchanged. The classes here cover
failures that originate inside annotree itself.
"""


# Classes --------------------------------------------------------------------------------------------------------------

class AnnotreeError(Exception):
    """Base class for recoverable annotree errors."""


class SerializeError(AnnotreeError):
    """A value could not be converted by the active serializer."""

    @classmethod
    def custom(cls, msg: object) -> "SerializeError":
        """Build an error from a free-form message, for use inside __serialize__ implementations."""
        return cls(str(msg))


class UnsupportedDocumentError(SerializeError, TypeError):
    """
    A pre-built Document was handed to a serializer that is not the annotated engine.

    There is no generic way to re-express an annotated tree in a foreign output shape.
    """


class MapSequenceError(RuntimeError):
    """
    Map keys and values were not supplied in strict key-then-value order.

    Raised for a broken traversal protocol implementation, never for bad input data,
    so it is deliberately not an AnnotreeError.
    """
