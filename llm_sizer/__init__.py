"""
LLM Sizer
Estimates whether a quantized language model fits in local memory
"""

__version__ = "1.0.0"

from .config import DEFAULT_CONFIG, HeadroomThresholds, SizingConfig, load_config
from .errors import ConfigError, InvalidVariantError, SizingError, UnknownQuantizationError
from .estimator import KVCacheModel, MemoryEstimator, StepKVCacheModel, estimate_memory
from .matrix import QuantCell, QuantMatrixRow, build_matrix, runnable_variants, select_best
from .models import MemoryEstimate, ModelCatalog, ModelVariant
from .platforms import PlatformClass, UsableMemory, usable_memory
from .quantization import ALL_QUANT_KEYS, QUANT_CONFIGS, QUANT_KEYS, QuantConfig, size_for_quant
from .verdict import Classification, Verdict, classify, classify_headroom, explain

__all__ = [
    "ALL_QUANT_KEYS",
    "Classification",
    "ConfigError",
    "DEFAULT_CONFIG",
    "HeadroomThresholds",
    "InvalidVariantError",
    "KVCacheModel",
    "MemoryEstimate",
    "MemoryEstimator",
    "ModelCatalog",
    "ModelVariant",
    "PlatformClass",
    "QUANT_CONFIGS",
    "QUANT_KEYS",
    "QuantCell",
    "QuantConfig",
    "QuantMatrixRow",
    "SizingConfig",
    "SizingError",
    "StepKVCacheModel",
    "UnknownQuantizationError",
    "UsableMemory",
    "Verdict",
    "build_matrix",
    "classify",
    "classify_headroom",
    "estimate_memory",
    "explain",
    "load_config",
    "runnable_variants",
    "select_best",
    "size_for_quant",
    "usable_memory",
]
