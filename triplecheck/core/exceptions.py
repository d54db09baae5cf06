class TripleCheckError(Exception):
    """Base exception for the fraud risk engine."""
    pass


class NarrativeServiceError(TripleCheckError):
    """The narrative completion service failed (network, timeout, non-2xx)."""
    pass


class MalformedResponseError(TripleCheckError):
    """The narrative completion service answered without a usable JSON object."""
    pass


class InsufficientDataError(TripleCheckError):
    """Training was requested with too few examples."""

    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient training data: {available} examples, need at least {required}"
        )


class ModelStoreError(TripleCheckError):
    """The model artifact could not be written or read."""
    pass


class ModelPersistenceError(ModelStoreError):
    """Training finished but the model could not be saved.

    The in-memory training run is kept on ``run`` so the caller can retry the save.
    """

    def __init__(self, message: str, run=None):
        self.run = run
        super().__init__(message)


class ListingNotFoundError(TripleCheckError):
    """No listing exists for the requested id."""

    def __init__(self, listing_id: int):
        self.listing_id = listing_id
        super().__init__(f"Property with ID {listing_id} not found")
