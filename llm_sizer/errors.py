"""
Exception hierarchy for the sizing library
"""

from typing import Optional


class SizingError(Exception):
    """Base exception for all llm-sizer errors"""

    pass


class UnknownQuantizationError(SizingError, KeyError):
    """Raised when a quantization key is not in the catalog"""

    def __init__(self, quant: str):
        self.quant = quant
        super().__init__(f"Unknown quantization: {quant!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidVariantError(SizingError, ValueError):
    """Raised when a model variant carries unusable numeric fields.

    The estimator clamps such values by default; this is only raised in
    strict mode or when a catalog record is missing required fields.
    """

    def __init__(self, message: str, tag: Optional[str] = None):
        self.tag = tag
        full_message = message
        if tag:
            full_message += f" (variant: {tag})"
        super().__init__(full_message)


class ConfigError(SizingError, ValueError):
    """Raised when a sizing configuration file is malformed"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        full_message = message
        if path:
            full_message += f" (config: {path})"
        super().__init__(full_message)
