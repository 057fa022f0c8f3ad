"""Engine exception classes."""


class AppException(Exception):
    """Base engine exception."""

    def __init__(self, message: str, code: str) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# --- Transport (vendor HTTP) ---


class TransportError(AppException):
    """Vendor endpoint answered with a non-success HTTP status."""

    def __init__(self, status: int, status_text: str) -> None:
        self.status = status
        self.status_text = status_text
        super().__init__(
            message=f"API request failed: {status} {status_text}".rstrip(),
            code="TRANSPORT_ERROR",
        )


# --- Engine state ---


class CompletionInProgressError(AppException):
    """A completion is already streaming for this session."""

    def __init__(self) -> None:
        super().__init__(
            message="A completion is already in progress for this session",
            code="COMPLETION_IN_PROGRESS",
        )


class RegenerateNotAllowedError(AppException):
    """The target message cannot be regenerated."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=reason,
            code="REGENERATE_NOT_ALLOWED",
        )


class ModelNotConfiguredError(AppException):
    """No model configuration was supplied for a completion."""

    def __init__(self) -> None:
        super().__init__(
            message="No model is configured for this session",
            code="MODEL_NOT_CONFIGURED",
        )


# --- Lookup ---


class SessionNotFoundError(AppException):
    """Chat session not found."""

    def __init__(self) -> None:
        super().__init__(
            message="Session not found",
            code="SESSION_NOT_FOUND",
        )


class MessageNotFoundError(AppException):
    """Chat message not found."""

    def __init__(self) -> None:
        super().__init__(
            message="Message not found",
            code="MESSAGE_NOT_FOUND",
        )
