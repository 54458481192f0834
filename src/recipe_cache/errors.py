"""Exception hierarchy.

Only generation failures are fatal to a request. Enrichment errors are
absorbed by the pipeline, and cache errors never leave the cache layer.
"""


class RecipeCacheError(Exception):
    """Base class for all errors raised by this package."""


class UnparseableModelOutputError(RecipeCacheError):
    """The model response did not contain a usable JSON object."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class RecipeGenerationError(RecipeCacheError):
    """Ingredients and directions could not be produced for a query."""


class EnrichmentError(RecipeCacheError):
    """An enrichment step (classify, summary, macro, pairing) failed."""


class ClassificationRejectedError(EnrichmentError):
    """A classification response broke the classification rules."""


class ProviderError(RecipeCacheError):
    """An embedding or chat provider call failed (network, auth, bad response)."""
