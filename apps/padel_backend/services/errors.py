"""
Error taxonomy for roster, booking, session and matchmaking commands.

Every command validates before it mutates, so any ClubError raised by the
service layer means the club state is exactly as it was before the call.
"""


class ClubError(Exception):
    """Base class for all rejected club commands."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Validation


class InvalidInputError(ClubError, ValueError):
    """Malformed command input."""

    status_code = 400


class BlankFieldError(InvalidInputError):
    pass


class PasswordTooShortError(InvalidInputError):
    pass


class InvalidSelectionError(InvalidInputError):
    """Wrong number of players for the booking mode, or a repeated player."""


class NotEnoughPlayersError(InvalidInputError):
    pass


# Conflict


class ConflictError(ClubError):
    status_code = 409


class DuplicatePhoneError(ConflictError):
    pass


class AlreadyEnrolledError(ConflictError):
    pass


# Authentication


class AuthError(ClubError):
    status_code = 401


class UnknownPhoneError(AuthError):
    pass


class WrongPasswordError(AuthError):
    pass


class SessionStepError(AuthError):
    """A login step was submitted out of order."""


class NotAuthenticatedError(AuthError):
    pass


# Permission / lookup


class ForbiddenError(ClubError):
    status_code = 403


class NotFoundError(ClubError):
    status_code = 404


# External advisor


class AdvisorError(ClubError):
    status_code = 502
