"""Exceptions raised by the pricing engine."""


class PricingError(ValueError):
    """Base class for pricing failures."""


class PricingConfigurationError(PricingError):
    """A product's pricing configuration cannot be priced."""


class RateScheduleTooLargeError(PricingConfigurationError):
    """The rate periods would need more DP steps than allowed."""

    def __init__(self, steps: int, limit: int) -> None:
        super().__init__(
            f"Rate schedule needs {steps} steps which exceeds the limit of {limit}"
        )
        self.steps = steps
        self.limit = limit


class InvalidDurationError(PricingError):
    """A duration was not a positive number."""


class ProductNotFoundError(PricingError):
    """No quotable product with that id exists in the store."""
