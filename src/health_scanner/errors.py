"""Error types raised across the product resolution pipeline."""


class HealthScannerError(Exception):
    """Base error for the health scanner application."""


class ProductSourceError(HealthScannerError):
    """Product database lookup did not yield usable data."""


class ProductNotFoundError(ProductSourceError):
    """The product database has no record for the barcode."""


class IncompleteProductDataError(ProductSourceError):
    """The product exists but has neither nutrients nor ingredients."""


class AnalysisFailedError(HealthScannerError):
    """AI analysis could not produce a valid product analysis."""


class MealPlanGenerationError(HealthScannerError):
    """AI meal plan generation failed."""


class PersistenceError(HealthScannerError):
    """Stored client state could not be accessed."""


class PersistenceReadError(PersistenceError):
    """Stored client state could not be read."""


class PersistenceWriteError(PersistenceError):
    """Client state could not be written back."""


class InvalidTransitionError(HealthScannerError):
    """A resolution event is not valid for the current stage."""
