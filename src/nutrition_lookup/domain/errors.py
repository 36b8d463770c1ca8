"""Errors raised by the nutrition lookup pipeline."""


class NutritionLookupError(Exception):
    """Base class for lookup failures."""


class QueryValidationError(NutritionLookupError):
    """The query was missing or empty."""


class NotFoodError(NutritionLookupError):
    """The search term was judged not to be a food."""

    def __init__(self, term: str) -> None:
        super().__init__(f"Not a food item: {term!r}")
        self.term = term


class NotFoundError(NutritionLookupError):
    """The external source returned no candidates."""

    def __init__(self, term: str) -> None:
        super().__init__(f"No food products found for {term!r}")
        self.term = term


class UpstreamError(NutritionLookupError):
    """Transport failure, non-2xx response or unparseable upstream body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CacheError(NutritionLookupError):
    """The cache store could not be read or written."""
