"""File status state machine."""

from cnabingest.domain.entities import FileStatus
from cnabingest.domain.errors import InvalidStatusTransitionError, invalid_status_transition

ALLOWED_TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.UPLOADED: frozenset({FileStatus.PROCESSING}),
    FileStatus.PROCESSING: frozenset({FileStatus.PROCESSED, FileStatus.REJECTED}),
    FileStatus.PROCESSED: frozenset(),
    FileStatus.REJECTED: frozenset(),
}

MAX_ERROR_MESSAGE_LENGTH = 1000


def can_transition(current: FileStatus, target: FileStatus) -> bool:
    """Return True if the state machine allows current -> target."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(file_id: str, current: FileStatus, target: FileStatus) -> None:
    """Raise InvalidStatusTransitionError unless current -> target is allowed."""
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(
            invalid_status_transition(file_id, current.value, target.value)
        )


def truncate_error_message(message: str) -> str:
    """Clip an error message to the length stored on the file record."""
    if len(message) <= MAX_ERROR_MESSAGE_LENGTH:
        return message
    return message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."
