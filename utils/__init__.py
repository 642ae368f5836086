# Utility modules for the meal planner
from .errors import (
    AppError, ValidationError, PermissionDeniedError, NotFoundError,
    NoRecipesAvailableError, NoFavoritesError
)
from .sanitizer import sanitize_text, sanitize_name
