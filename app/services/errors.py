"""Errors raised by the conversion pipeline."""


class ConversionError(Exception):
    """Base class for failures inside a single conversion."""


class ParseFailure(ConversionError):
    """The input could not be parsed into a document."""


class ConversionFailure(ConversionError):
    """A type-specific extraction step raised an unexpected condition."""


class ConversionFailed(Exception):
    """User-facing conversion error carrying a generic, per-type message.

    The underlying :class:`ConversionError` is available as ``__cause__``.
    """

    def __init__(self, message: str, page_type: str = "generic") -> None:
        super().__init__(message)
        self.message = message
        self.page_type = page_type
