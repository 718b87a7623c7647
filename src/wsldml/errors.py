"""
Error kinds raised by the LDML mapper.

Lookup failures on the attribute codec tables are not wrapped: they surface
as the plain ``KeyError`` raised by the table (a ``LookupError``).
"""


class LdmlError(Exception):
    """Base class for all mapper errors."""
    pass


class MissingArgumentError(LdmlError, ValueError):
    """Raised when a required input (path, stream, model) is None."""

    def __init__(self, argument: str):
        super().__init__(f"Missing required argument: {argument}")
        self.argument = argument


class LdmlFormatError(LdmlError):
    """Raised when a document is not well-formed LDML (e.g. wrong root element)."""
    pass


class UnsupportedConversionError(LdmlError):
    """Raised when identity tag data cannot be normalized into a valid model."""
    pass


__all__ = [
    "LdmlError",
    "MissingArgumentError",
    "LdmlFormatError",
    "UnsupportedConversionError",
]
