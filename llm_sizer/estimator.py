"""
Memory estimation for local LLM inference

Memory = weights + KV cache + runtime overhead.

- Weights: the download size closely matches resident weights for GGUF,
  plus a small allowance for metadata and alignment.
- KV cache: grows linearly with context; the per-token cost comes from a
  KVCacheModel.
- Runtime overhead: compute buffers, runtime context and fragmentation,
  modelled as a clamped linear function of parameter count.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from .config import DEFAULT_CONFIG, SizingConfig
from .models import MemoryEstimate, ModelVariant, _clean_number, sanitize_variant
from .quantization import get_quant_config, size_for_quant

logger = logging.getLogger(__name__)

TOKENS_PER_KV_UNIT = 1024


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def _non_negative(value: Optional[float], name: str) -> Optional[float]:
    """Clamp a negative, non-finite or non-numeric caller value to zero"""
    if value is None:
        return None
    number = _clean_number(value)
    if number is None:
        logger.warning(f"Clamping invalid {name}={value!r} to 0")
        return 0.0
    return number


class KVCacheModel(ABC):
    """Strategy for the KV cache cost of a model, in GB per 1K tokens"""

    @abstractmethod
    def gb_per_1k_tokens(self, params_b: float) -> float:
        raise NotImplementedError


class StepKVCacheModel(KVCacheModel):
    """
    Step function of parameter count.

    Approximates grouped-query attention models (8 KV heads is typical from
    Llama 3 onwards) with an FP16 cache. Layer and head counts are ignored.
    """

    def __init__(self, config: SizingConfig = DEFAULT_CONFIG):
        self.breakpoints = config.kv_breakpoints
        self.above_max_gb = config.kv_above_max_gb

    def gb_per_1k_tokens(self, params_b: float) -> float:
        for upper_bound, gb in self.breakpoints:
            if params_b <= upper_bound:
                return gb
        return self.above_max_gb


class MemoryEstimator:
    """Stateless memory estimator; safe to share between callers"""

    def __init__(
        self,
        config: SizingConfig = DEFAULT_CONFIG,
        kv_model: Optional[KVCacheModel] = None,
    ):
        self.config = config
        self.kv_model = kv_model or StepKVCacheModel(config)

    def weights_gb(self, variant: ModelVariant) -> float:
        """Weights term, preferring the variant's stated size"""
        if variant.size_gb > 0:
            return variant.size_gb * self.config.weights_allowance

        logger.debug(
            f"No size for {variant.tag or '<untagged>'}, assuming {self.config.default_quant} weights"
        )
        bytes_per_param = get_quant_config(self.config.default_quant).bytes_per_param
        return variant.params_b * bytes_per_param * self.config.weights_allowance

    def kv_cache_gb(self, params_b: float, context: float) -> float:
        return (context / TOKENS_PER_KV_UNIT) * self.kv_model.gb_per_1k_tokens(params_b)

    def runtime_overhead_gb(self, params_b: float) -> float:
        cfg = self.config
        return clamp(
            cfg.overhead_base_gb + params_b * cfg.overhead_per_param_gb,
            cfg.overhead_min_gb,
            cfg.overhead_max_gb,
        )

    def estimate(self, variant: ModelVariant, context_override: Optional[int] = None) -> MemoryEstimate:
        """
        Estimate memory needed to run a variant.

        Args:
            variant: Model variant
            context_override: Context length to size the KV cache for. When
                omitted, the variant's context capped at default_context_cap.

        Returns:
            MemoryEstimate with exact total
        """
        variant = sanitize_variant(variant)
        context_override = _non_negative(context_override, "context_override")

        if context_override is not None:
            context = context_override
        else:
            context = min(variant.context, self.config.default_context_cap)

        estimate = MemoryEstimate.from_terms(
            self.weights_gb(variant),
            self.kv_cache_gb(variant.params_b, context),
            self.runtime_overhead_gb(variant.params_b),
        )
        logger.debug(f"Estimated {variant.tag or variant.params_b}: {estimate} at {context} tokens")
        return estimate

    def estimate_for_quant(self, params_b: float, quant: str, context: Optional[int] = None) -> MemoryEstimate:
        """
        Estimate memory for a hypothetical parameter size and quantization.

        Used for what-if comparisons where no download size exists.

        Raises:
            UnknownQuantizationError: If quant is not in the catalog
        """
        params_b = _non_negative(params_b, "params_b")
        context = _non_negative(context, "context")
        if context is None:
            context = self.config.matrix_context

        return MemoryEstimate.from_terms(
            size_for_quant(params_b, quant) * self.config.weights_allowance,
            self.kv_cache_gb(params_b, context),
            self.runtime_overhead_gb(params_b),
        )

    def estimate_with_context(self, variant: ModelVariant, context: int) -> Tuple[MemoryEstimate, float]:
        """
        Estimate at a custom context and report its impact.

        Returns:
            (estimate, context_impact_gb) where the impact is the KV cache
            difference against the variant's full native context
        """
        native = self.estimate(variant, variant.context)
        custom = self.estimate(variant, context)
        return custom, custom.kv_cache_gb - native.kv_cache_gb


_default_estimator = MemoryEstimator()


def estimate_memory(variant: ModelVariant, context_override: Optional[int] = None) -> MemoryEstimate:
    """Estimate with the default configuration"""
    return _default_estimator.estimate(variant, context_override)
