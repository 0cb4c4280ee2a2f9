"""
Error types for reduce task execution
"""

from enum import Enum


class ErrorKind(Enum):
    """Category of a failed reduce task"""
    UNAVAILABLE_INPUT = "unavailable_input"
    MALFORMED_INPUT = "malformed_input"
    UNAVAILABLE_OUTPUT = "unavailable_output"
    REDUCE_FUNCTION = "reduce_function"


class RecordDecodeError(ValueError):
    """Raised by the record codec when the stream holds a malformed record"""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset


class ReduceTaskError(Exception):
    """Base class for fatal reduce task errors"""
    kind = None


class UnavailableInputError(ReduceTaskError):
    """An intermediate shard could not be opened"""
    kind = ErrorKind.UNAVAILABLE_INPUT

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Cannot open intermediate file {path}: {cause}")
        self.path = path


class MalformedInputError(ReduceTaskError):
    """An intermediate shard holds a malformed record (strict mode only)"""
    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, path: str, cause: RecordDecodeError):
        super().__init__(f"Malformed record in {path}: {cause}")
        self.path = path


class UnavailableOutputError(ReduceTaskError):
    """The output file could not be created"""
    kind = ErrorKind.UNAVAILABLE_OUTPUT

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Cannot create output file {path}: {cause}")
        self.path = path


def classify_error(error: Exception) -> ErrorKind:
    """Map an exception escaping a reduce task to its ErrorKind.

    Anything that is not one of the task's own I/O errors came out of the
    user's reduce function.
    """
    if isinstance(error, ReduceTaskError) and error.kind is not None:
        return error.kind
    return ErrorKind.REDUCE_FUNCTION
