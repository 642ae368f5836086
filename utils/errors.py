"""
Application Errors

Typed errors carrying the HTTP status code the API answers with.
Services raise them; the error handler in app.py turns them into JSON.
"""


class AppError(Exception):
    """Base class for expected (operational) errors."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'status': 'error', 'message': self.message}


class ValidationError(AppError):
    """Raised when input is malformed or an operation is not allowed in the current state."""
    status_code = 400


class PermissionDeniedError(AppError):
    """Raised when the acting member lacks the role or membership required."""
    status_code = 403


class NotFoundError(AppError):
    """Raised when a requested row does not exist."""
    status_code = 404


class NoRecipesAvailableError(ValidationError):
    """Raised when no compliant recipe is left to fill a plan slot."""

    def __init__(self, message='No recipes available'):
        super().__init__(message)


class NoFavoritesError(ValidationError):
    """Raised when express generation has no favorite recipe to draw from."""

    def __init__(self, message='No favorite recipes found. Please mark some recipes as favorites first.'):
        super().__init__(message)
