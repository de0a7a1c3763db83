"""Exception types shared by the scheduler and the service wrappers."""


class EchoError(Exception):
    """Base for errors raised by Evolving Echo itself."""


class PreconditionError(EchoError):
    """Raised synchronously when a user action is not valid in the current state.

    Nothing has been mutated and no external call has been made when this is raised.
    """


class ServiceError(EchoError):
    """Raised when an external service call fails or returns unusable output."""

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"[{service}] {message}")
