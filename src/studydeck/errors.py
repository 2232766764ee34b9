"""Exceptions raised by the record layer."""


class StudyDeckError(Exception):
    """Base class for errors the app reports back to the user."""


class NotFoundError(StudyDeckError, LookupError):
    pass


class PermissionDeniedError(StudyDeckError):
    pass


class ValidationError(StudyDeckError, ValueError):
    pass
