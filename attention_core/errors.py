class AttentionConfigError(ValueError):
    """Base class for invalid attention configuration. Always raised before any math runs."""


class ShapeMismatch(AttentionConfigError):
    """Input feature width (or rank) disagrees with the projection weights."""


class HeadDivisibilityError(AttentionConfigError):
    """d_out cannot be split evenly into the requested number of heads."""


class InvalidDropoutRate(AttentionConfigError):
    """Dropout rate outside [0, 1)."""
