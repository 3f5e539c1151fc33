"""Error taxonomy for game operations.

Every failure a client can see derives from :class:`GameError`, which
carries the HTTP status the API layer answers with.
"""


class GameError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(GameError):
    status_code = 404


class AlreadyStartedError(GameError):
    status_code = 403


class InsufficientPlayersError(GameError):
    status_code = 400


class DuplicateKeyError(GameError):
    status_code = 409


class StoreIOError(GameError):
    """Transient store or network failure. Safe to retry."""
    status_code = 503


class ValidationError(GameError):
    status_code = 400


class CreationError(GameError):
    """Game could not be created; retrying draws a fresh code."""
    status_code = 503


class InvalidPhaseError(GameError):
    status_code = 409


class NotHostError(GameError):
    status_code = 403


class GameFullError(GameError):
    status_code = 403


class QuestionSupplyError(ValidationError):
    pass
