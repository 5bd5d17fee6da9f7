"""Error taxonomy shared by stores, workflows and the HTTP layer."""
from enum import StrEnum


class RadioErrorCode(StrEnum):
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    PARTIAL_MOVE = "PARTIAL_MOVE"


class RadioError(Exception):
    """Base exception; carries a stable error code and a client-facing message."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


class ConfigurationError(RadioError):
    """Missing bucket, credentials or admin password."""

    def __init__(self, message: str):
        super().__init__(RadioErrorCode.CONFIGURATION_ERROR, message)


class NotFoundError(RadioError):
    def __init__(self, message: str):
        super().__init__(RadioErrorCode.NOT_FOUND, message)


class ValidationError(RadioError):
    def __init__(self, message: str):
        super().__init__(RadioErrorCode.VALIDATION_ERROR, message)


class ConflictError(RadioError):
    """Duplicate entry, or a document changed between read and conditional write."""

    def __init__(self, message: str):
        super().__init__(RadioErrorCode.CONFLICT, message)


class UpstreamError(RadioError):
    """Object store call failed; message is passed through from the store."""

    def __init__(self, message: str, error_code: str = RadioErrorCode.UPSTREAM_ERROR):
        super().__init__(error_code, message)


class PartialMoveError(UpstreamError):
    """Approve stopped part way through copy / delete / metadata update.

    Re-running approve on the same key is safe and finishes the move.
    """

    def __init__(self, song_key: str, failed_step: str, completed_steps: list[str], reason: str):
        self.song_key = song_key
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        done = ", ".join(completed_steps) if completed_steps else "none"
        super().__init__(
            f"Approve of {song_key} failed at step '{failed_step}' "
            f"(completed: {done}): {reason}. Retry approve to finish the move.",
            error_code=RadioErrorCode.PARTIAL_MOVE,
        )


STATUS_BY_CODE = {
    RadioErrorCode.CONFIGURATION_ERROR: 500,
    RadioErrorCode.NOT_FOUND: 404,
    RadioErrorCode.VALIDATION_ERROR: 400,
    RadioErrorCode.CONFLICT: 409,
    RadioErrorCode.UPSTREAM_ERROR: 500,
    RadioErrorCode.PARTIAL_MOVE: 500,
}


def error_code_to_status(error_code: str) -> int:
    return STATUS_BY_CODE.get(error_code, 500)
