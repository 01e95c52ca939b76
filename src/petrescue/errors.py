"""Exception types shared across ingestion and query paths."""


class PetRescueError(RuntimeError):
    """Base class for petrescue errors."""


class SourceUnavailableError(PetRescueError):
    """Raised inside an adapter when its endpoint cannot be fetched or parsed."""


class PersistenceError(PetRescueError):
    """Raised when the store cannot perform a write."""


class QueryError(PetRescueError):
    """Raised when the store cannot serve a read."""


class SourcesUnavailableError(PetRescueError):
    """Raised when no source could be reached during an entire run."""


class SubscriptionError(PetRescueError):
    """Raised for invalid subscription input."""
