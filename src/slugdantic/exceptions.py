class SlugdanticError(Exception):
    """Base exception for slugdantic errors."""


class ConfigurationError(SlugdanticError):
    """Raised when a behavior is constructed with an unusable configuration."""


class ResolutionExhausted(SlugdanticError):
    """Raised when no free slug was found within the iteration bound.

    The save that triggered the search is aborted; retrying it later may
    succeed once conflicting records are gone.
    """

    def __init__(self, base: str, attempts: int) -> None:
        super().__init__(
            f"Could not find a unique slug for '{base}' after {attempts} attempts"
        )
        self.base = base
        self.attempts = attempts


class StoreUnavailable(SlugdanticError):
    """Raised when the backing store cannot answer an existence check."""


class UnknownFormatError(SlugdanticError):
    """Raised when a requested file format is not supported."""


class MissingPathError(SlugdanticError):
    """Raised when an operation requires a path but none is known."""


class InconsistentFormatError(SlugdanticError):
    """Raised when multiple file formats are encountered in a collection."""


class DetachedBehaviorError(SlugdanticError):
    """Raised when a behavior needs a store it was never attached to."""
