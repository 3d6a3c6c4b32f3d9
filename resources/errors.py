"""Resource operation errors.

The API layer maps these onto HTTP status codes: ValidationError and
ForeignKeyError become 400, NotFoundError becomes 404.
"""

class ResourceError(Exception):
    """Base exception for resource operations."""
    pass

class ValidationError(ResourceError):
    """Raised when a payload is missing a required field or carries an invalid one."""
    pass

class NotFoundError(ResourceError):
    """Raised when no row matches a natural key."""
    pass

class ForeignKeyError(ResourceError):
    """Raised when a payload references a space that does not exist."""

    def __init__(self, space_id: str):
        self.space_id = space_id
        super().__init__(f"Space not found: {space_id}. Create the space first.")
