"""
Model variant types and the static model catalog loader
"""

import json
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

from .errors import InvalidVariantError

logger = logging.getLogger(__name__)

DEFAULT_MODELS_FILE = Path(__file__).parent / "models.json"


@dataclass(frozen=True)
class ModelVariant:
    """One size/quantization release of a model"""
    params_b: float
    size_gb: float
    quant: str
    context: int
    tag: str = ""
    is_default: bool = False


@dataclass(frozen=True)
class MemoryEstimate:
    """Memory breakdown in GB; total is the exact sum of the three terms"""
    weights_gb: float
    kv_cache_gb: float
    runtime_overhead_gb: float
    total_gb: float

    @classmethod
    def from_terms(cls, weights_gb: float, kv_cache_gb: float, runtime_overhead_gb: float) -> "MemoryEstimate":
        return cls(
            weights_gb=weights_gb,
            kv_cache_gb=kv_cache_gb,
            runtime_overhead_gb=runtime_overhead_gb,
            total_gb=weights_gb + kv_cache_gb + runtime_overhead_gb,
        )


@dataclass
class ModelEntry:
    """A catalog model and its variants"""
    slug: str
    name: str
    variants: List[ModelVariant]
    description: str = ""
    category: str = "general"
    publisher: str = ""
    tags: List[str] = field(default_factory=list)

    @property
    def default_variant(self) -> Optional[ModelVariant]:
        for variant in self.variants:
            if variant.is_default:
                return variant
        return self.variants[0] if self.variants else None


def _clean_number(value: float) -> Optional[float]:
    """Return value if it is a finite non-negative number, else None"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def sanitize_variant(variant: ModelVariant, strict: bool = False) -> ModelVariant:
    """
    Clamp negative or non-finite numeric fields of a variant to zero.

    Args:
        variant: Variant from an upstream catalog
        strict: Raise instead of clamping

    Returns:
        The variant itself when it is valid, otherwise a clamped copy

    Raises:
        InvalidVariantError: In strict mode, if any field is invalid
    """
    params_b = _clean_number(variant.params_b)
    size_gb = _clean_number(variant.size_gb)
    context = _clean_number(variant.context)

    bad = [
        name for name, value in (("params_b", params_b), ("size_gb", size_gb), ("context", context))
        if value is None
    ]
    if not bad:
        return variant

    if strict:
        raise InvalidVariantError(f"Invalid numeric fields: {', '.join(bad)}", variant.tag)

    logger.warning(f"Clamping invalid fields {bad} to zero for variant {variant.tag or '<untagged>'}")
    return replace(
        variant,
        params_b=params_b if params_b is not None else 0.0,
        size_gb=size_gb if size_gb is not None else 0.0,
        context=int(context) if context is not None else 0,
    )


class ModelCatalog:
    """Read-only access to the static model catalog"""

    def __init__(self, models_file: Optional[Path] = None):
        self.models_file = Path(models_file) if models_file else DEFAULT_MODELS_FILE
        self.models: Dict[str, ModelEntry] = {}
        self._load_models()

    def _load_models(self) -> None:
        """Load models from JSON file"""
        try:
            with open(self.models_file, "r") as f:
                data = json.load(f)

            for slug, info in data["models"].items():
                variants = [self._parse_variant(slug, v) for v in info.get("variants", [])]
                self.models[slug] = ModelEntry(
                    slug=slug,
                    name=info.get("name", slug),
                    variants=variants,
                    description=info.get("description", ""),
                    category=info.get("category", "general"),
                    publisher=info.get("publisher", ""),
                    tags=info.get("tags", []),
                )

            logger.info(f"Loaded {len(self.models)} models from {self.models_file}")

        except FileNotFoundError:
            logger.error(f"Models file not found: {self.models_file}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in models file: {e}")
            raise

    @staticmethod
    def _parse_variant(slug: str, record: Dict) -> ModelVariant:
        try:
            return ModelVariant(
                params_b=record["params_b"],
                size_gb=record.get("size_gb", 0.0),
                quant=record.get("quant", "Q4_K_M"),
                context=record["context"],
                tag=record["tag"],
                is_default=record.get("is_default", False),
            )
        except KeyError as e:
            raise InvalidVariantError(f"Catalog record for {slug} is missing field {e}")

    def get_model(self, slug: str) -> Optional[ModelEntry]:
        """Get model by slug"""
        return self.models.get(slug)

    def get_models_by_category(self, category: str) -> Dict[str, ModelEntry]:
        """Get all models of a specific category"""
        return {
            slug: entry
            for slug, entry in self.models.items()
            if entry.category == category
        }
