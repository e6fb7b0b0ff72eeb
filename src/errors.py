"""Domain exceptions raised by the reduction pipeline and the note operations."""

from __future__ import annotations


class NotesError(Exception):
    """Base class for every error this package raises on purpose."""


class InputMissingError(NotesError):
    """Neither a transcript nor personal notes were supplied."""


class BudgetExceededError(NotesError):
    """Condensed context still exceeds the prompt budget after the one-shot merge."""


class TemplateNotFoundError(NotesError):
    """No prompt template is registered under the requested id."""


class TemplateSyntaxError(NotesError):
    """A prompt template has unbalanced blocks or unknown flags/placeholders."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


class TranscriptFormatError(NotesError):
    """A transcript could not be parsed in its declared format."""


class GenerationConfigError(NotesError):
    """The generation client cannot be built from the current settings."""


class OperationError(NotesError):
    """A top-level operation failed; the message carries a stable prefix.

    The prefix identifies the operation (``"Failed to enhance notes"``,
    ``"Failed to get answer"``, ...) so callers can render it directly.
    The original exception is kept on ``__cause__``.
    """

    def __init__(self, prefix: str, cause: BaseException) -> None:
        self.prefix = prefix
        super().__init__(f"{prefix}: {cause}")


def operation_failure(prefix: str, error: BaseException) -> NotesError:
    """Wrap *error* for surfacing from an operation under *prefix*.

    Input and budget errors keep their type so callers can still tell them
    apart; anything else becomes an :class:`OperationError`.
    """
    if isinstance(error, OperationError):
        return error
    if isinstance(error, (InputMissingError, BudgetExceededError)):
        if str(error).startswith(f"{prefix}:"):
            return error
        return type(error)(f"{prefix}: {error}")
    return OperationError(prefix, error)
