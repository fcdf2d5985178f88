"""
Quantization matrix and variant selection

The matrix is a what-if view: it sizes every parameter count at every
quantization, whether or not such a release exists. Selection works on
real catalog variants.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_CONFIG, SizingConfig
from .estimator import MemoryEstimator
from .models import ModelVariant, _clean_number
from .platforms import PlatformClass
from .quantization import QUANT_KEYS, normalize_quant, size_for_quant
from .verdict import VERDICT_RANK, Classification, Verdict, classify, ram_is_known

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuantCell:
    """Feasibility of one parameter size at one quantization"""
    verdict: Verdict
    size_gb: float
    total_memory_gb: float
    headroom_gb: Optional[float]


@dataclass(frozen=True)
class QuantMatrixRow:
    """One parameter size across the requested quantizations"""
    params_b: float
    label: str
    cells: Dict[str, QuantCell]


def params_label(params_b: float) -> str:
    """Format a parameter count, e.g. 7 -> "7B", 0.5 -> "500M" """
    if params_b < 1:
        return f"{params_b * 1000:.0f}M"
    return f"{params_b:g}B"


def unique_param_sizes(variants: Iterable[ModelVariant]) -> List[float]:
    """Distinct parameter sizes, ascending"""
    return sorted({variant.params_b for variant in variants})


def build_matrix(
    param_sizes: Iterable[float],
    quant_keys: Sequence[str] = QUANT_KEYS,
    ram_gb: Optional[float] = None,
    context: Optional[int] = None,
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
    estimator: Optional[MemoryEstimator] = None,
) -> List[QuantMatrixRow]:
    """
    Build the parameter size x quantization feasibility matrix.

    Args:
        param_sizes: Parameter counts in billions; negative or non-finite
            sizes count as 0 and duplicates are merged
        quant_keys: Column order; keys naming the same catalog entry
            (e.g. "q4_k_m" and "Q4_K_M") give a single column
        ram_gb: Installed RAM; None gives UNKNOWN cells
        context: Context length for the KV cache (default matrix_context)
        platform: Platform class of the host
        config: Sizing configuration
        estimator: Estimator to use (defaults to one built from config)

    Returns:
        One row per distinct size, ascending, each with one cell per
        distinct key

    Raises:
        UnknownQuantizationError: If any key is not in the catalog
    """
    estimator = estimator or MemoryEstimator(config)
    keys = list(dict.fromkeys(normalize_quant(key) for key in quant_keys))
    sizes = sorted({_clean_number(params_b) or 0.0 for params_b in param_sizes})

    rows = []
    for params_b in sizes:
        cells: Dict[str, QuantCell] = {}
        for key in keys:
            estimate = estimator.estimate_for_quant(params_b, key, context)
            result = classify(estimate, ram_gb, platform, config)
            cells[key] = QuantCell(
                verdict=result.verdict,
                size_gb=size_for_quant(params_b, key),
                total_memory_gb=estimate.total_gb,
                headroom_gb=result.headroom_gb,
            )
        rows.append(QuantMatrixRow(params_b=params_b, label=params_label(params_b), cells=cells))

    logger.debug(f"Built quant matrix: {len(rows)} rows x {len(keys)} columns")
    return rows


def _largest_first(variants: Iterable[ModelVariant]) -> List[ModelVariant]:
    return sorted(variants, key=lambda v: (-v.params_b, v.tag))


def _classify_all(
    variants: Iterable[ModelVariant],
    ram_gb: Optional[float],
    platform: Union[PlatformClass, str],
    config: SizingConfig,
    estimator: Optional[MemoryEstimator],
) -> List[Tuple[ModelVariant, Classification]]:
    estimator = estimator or MemoryEstimator(config)
    return [
        (variant, classify(estimator.estimate(variant), ram_gb, platform, config))
        for variant in _largest_first(variants)
    ]


def select_best(
    variants: Iterable[ModelVariant],
    ram_gb: Optional[float],
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
    estimator: Optional[MemoryEstimator] = None,
) -> Optional[Tuple[ModelVariant, Classification]]:
    """
    Pick the largest variant that plausibly runs.

    Prefers the largest COMFORTABLE variant, then the largest TIGHT or MAYBE
    one. Ties on size are broken by tag so the result is reproducible.

    Returns:
        (variant, classification), or None if RAM is unknown or nothing fits
    """
    if not ram_is_known(ram_gb):
        return None

    results = _classify_all(variants, ram_gb, platform, config, estimator)

    for variant, result in results:
        if result.verdict == Verdict.COMFORTABLE:
            return variant, result

    for variant, result in results:
        if result.verdict in (Verdict.TIGHT, Verdict.MAYBE):
            return variant, result

    return None


def runnable_variants(
    variants: Iterable[ModelVariant],
    ram_gb: Optional[float],
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
    estimator: Optional[MemoryEstimator] = None,
) -> List[Tuple[ModelVariant, Classification]]:
    """All variants that plausibly run, best verdict first, then largest first"""
    results = [
        (variant, result)
        for variant, result in _classify_all(variants, ram_gb, platform, config, estimator)
        if result.verdict.runnable
    ]
    # sort is stable, so size order holds within each verdict
    results.sort(key=lambda item: VERDICT_RANK[item[1].verdict])
    return results
