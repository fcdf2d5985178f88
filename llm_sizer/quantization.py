"""
Quantization catalog

Bytes-per-parameter figures for the GGUF quantization tiers Ollama ships.
The values include block scales and metadata, so they sit a little above
bits / 8.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import UnknownQuantizationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuantConfig:
    """Static description of one quantization scheme"""
    bytes_per_param: float
    label: str
    desc: str
    bits: int


QUANT_CONFIGS: Dict[str, QuantConfig] = {
    "Q2_K": QuantConfig(0.31, "Q2", "Extreme compression, lower quality", 2),
    "Q3_K_M": QuantConfig(0.41, "Q3", "Very small, acceptable quality", 3),
    "Q4_0": QuantConfig(0.55, "Q4_0", "Basic 4-bit", 4),
    "Q4_K_M": QuantConfig(0.55, "Q4", "Best balance (recommended)", 4),
    "Q5_K_M": QuantConfig(0.68, "Q5", "Good quality, moderate size", 5),
    "Q6_K": QuantConfig(0.78, "Q6", "High quality", 6),
    "Q8_0": QuantConfig(1.07, "Q8", "Near full precision", 8),
    "F16": QuantConfig(2.0, "F16", "Full precision", 16),
}

# Columns shown in the quantization matrix
QUANT_KEYS: Tuple[str, ...] = ("Q4_K_M", "Q5_K_M", "Q8_0", "F16")

ALL_QUANT_KEYS: Tuple[str, ...] = tuple(
    sorted(QUANT_CONFIGS, key=lambda key: (QUANT_CONFIGS[key].bits, key))
)


def _check_monotonic(configs: Dict[str, QuantConfig]) -> None:
    """Ensure more bits always means more bytes per parameter"""
    ordered = sorted(configs.items(), key=lambda item: item[1].bits)
    for (low_key, low), (high_key, high) in zip(ordered, ordered[1:]):
        if high.bits > low.bits and high.bytes_per_param <= low.bytes_per_param:
            raise ValueError(
                f"Quantization catalog is not monotonic: {high_key} ({high.bits}-bit) "
                f"must use more bytes per parameter than {low_key} ({low.bits}-bit)"
            )


_check_monotonic(QUANT_CONFIGS)


def normalize_quant(quant: str) -> str:
    """Return the canonical catalog key for a quantization name.

    Matching ignores case and surrounding whitespace, so "q4_k_m" resolves to
    "Q4_K_M".

    Raises:
        UnknownQuantizationError: If the name is not in the catalog
    """
    key = str(quant).upper().strip()
    if key not in QUANT_CONFIGS:
        raise UnknownQuantizationError(quant)
    return key


def is_known_quant(quant: str) -> bool:
    """Check whether a quantization name resolves to a catalog entry"""
    return str(quant).upper().strip() in QUANT_CONFIGS


def get_quant_config(quant: str) -> QuantConfig:
    """Look up the catalog entry for a quantization name"""
    return QUANT_CONFIGS[normalize_quant(quant)]


def size_for_quant(params_b: float, quant: str) -> float:
    """
    Estimate weight size in GB for a parameter count at a quantization.

    Args:
        params_b: Parameter count in billions
        quant: Quantization key (e.g. "Q4_K_M")

    Returns:
        params_b * bytes_per_param(quant)

    Raises:
        UnknownQuantizationError: If quant is not in the catalog
    """
    return params_b * get_quant_config(quant).bytes_per_param
