"""Custom exception classes for the NoteShare server."""


class NoteShareError(Exception):
    """
    Base exception class for all NoteShare errors.
    """
    pass


class UnauthorizedError(NoteShareError):
    """
    Raised when a request carries no verified caller identity.
    """
    pass


class InvalidCredentialsError(UnauthorizedError):
    """
    Raised when login credentials are invalid.
    """
    pass


class InvalidAPIKeyError(UnauthorizedError):
    """
    Raised when an API Key is unknown or has been rotated.
    """
    pass


class UserAlreadyExistsError(NoteShareError):
    """
    Raised when attempting to register a username that already exists.
    """
    pass


class NotFoundError(NoteShareError):
    """
    Raised when a caller, subject or file row is missing.
    """
    pass


class UserNotFoundError(NotFoundError):
    pass


class FileNotFoundError(NotFoundError):
    """
    Raised when a requested file does not exist or is not owned by the caller.
    """
    pass


class InvalidInputError(NoteShareError):
    """
    Raised when a subject, category or file reference is missing or malformed.
    """
    pass


class RemoteTransientError(NoteShareError):
    """
    Raised when the blob store or staging service fails on a call the
    caller is directly waiting on.
    """
    pass


class PersistenceError(NoteShareError):
    """
    Raised when a database write fails.
    """
    pass
