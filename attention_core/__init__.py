from .errors import AttentionConfigError, ShapeMismatch, HeadDivisibilityError, InvalidDropoutRate
from .config import AttentionConfig, Mode, DropoutStage
from .functional import forward, forward_with_weights

__all__ = [
    "AttentionConfig", "Mode", "DropoutStage",
    "forward", "forward_with_weights",
    "AttentionConfigError", "ShapeMismatch", "HeadDivisibilityError", "InvalidDropoutRate",
]
