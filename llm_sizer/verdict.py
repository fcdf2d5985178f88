"""
Feasibility verdicts

Compares usable RAM with an estimate and turns the signed headroom into a
discrete verdict, plus the notes and tips shown alongside it.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from .config import DEFAULT_CONFIG, HeadroomThresholds, SizingConfig
from .models import MemoryEstimate, ModelVariant
from .platforms import PlatformClass, usable_memory

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Discrete feasibility classification"""
    COMFORTABLE = "comfortable"
    TIGHT = "tight"
    MAYBE = "maybe"
    NO = "no"
    UNKNOWN = "unknown"

    @property
    def short_label(self) -> str:
        return SHORT_LABELS[self]

    @property
    def runnable(self) -> bool:
        """Whether the variant plausibly runs"""
        return self in (Verdict.COMFORTABLE, Verdict.TIGHT, Verdict.MAYBE)


SHORT_LABELS = {
    Verdict.COMFORTABLE: "Can run",
    Verdict.TIGHT: "Tight fit",
    Verdict.MAYBE: "Might work",
    Verdict.NO: "Too big",
    Verdict.UNKNOWN: "Set RAM",
}

# Best first; used to order runnable variants
VERDICT_RANK = {
    Verdict.COMFORTABLE: 0,
    Verdict.TIGHT: 1,
    Verdict.MAYBE: 2,
    Verdict.NO: 3,
    Verdict.UNKNOWN: 4,
}

# (minimum RAM in GB, max params in billions, note)
RAM_RECOMMENDATIONS: Tuple[Tuple[float, float, str], ...] = (
    (8, 3, "1-3B models only"),
    (16, 8, "7-8B models comfortably"),
    (24, 13, "13B models with headroom"),
    (32, 14, "14B comfortable, 32B tight"),
    (48, 32, "32B comfortable"),
    (64, 45, "34B comfortable, 70B tight"),
    (96, 70, "70B comfortable"),
    (128, 100, "Most models runnable"),
    (192, 200, "Large MoE models"),
    (256, 400, "Even 405B possible"),
)

UNKNOWN_RAM_TIPS = [
    "8GB RAM: 1-3B models max",
    "16GB RAM: 7-8B models comfortably",
    "32GB RAM: 13-14B models with headroom",
    "64GB RAM: 34B models, 70B tight",
    "128GB+ RAM: run almost anything",
]


@dataclass(frozen=True)
class Classification:
    """A verdict together with the numbers that produced it"""
    verdict: Verdict
    headroom_gb: Optional[float] = None
    usable_ram_gb: Optional[float] = None
    reserved_gb: Optional[float] = None
    ram_gb: Optional[float] = None


@dataclass
class VerdictDetail:
    """Human-facing explanation of a classification"""
    verdict: Verdict
    stamp: str
    one_liner: str
    notes: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)


def ram_is_known(ram_gb: Optional[float]) -> bool:
    """A RAM figure is usable only when it is a finite positive number"""
    if ram_gb is None:
        return False
    try:
        value = float(ram_gb)
    except (TypeError, ValueError):
        return False
    return not math.isnan(value) and not math.isinf(value) and value > 0


def classify_headroom(headroom_gb: float, thresholds: HeadroomThresholds = DEFAULT_CONFIG.thresholds) -> Verdict:
    """Map headroom to a verdict; every threshold is an inclusive lower bound"""
    if headroom_gb >= thresholds.comfortable:
        return Verdict.COMFORTABLE
    if headroom_gb >= thresholds.tight:
        return Verdict.TIGHT
    if headroom_gb >= thresholds.maybe:
        return Verdict.MAYBE
    return Verdict.NO


def classify(
    estimate: MemoryEstimate,
    available_ram_gb: Optional[float],
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
) -> Classification:
    """
    Classify an estimate against the host's installed RAM.

    Args:
        estimate: Memory estimate for the variant
        available_ram_gb: Installed RAM in GB; None when undetected
        platform: Platform class of the host
        config: Sizing configuration

    Returns:
        Classification; UNKNOWN with no headroom when RAM is not known
    """
    if not ram_is_known(available_ram_gb):
        return Classification(verdict=Verdict.UNKNOWN)

    ram_gb = float(available_ram_gb)
    memory = usable_memory(ram_gb, platform, config)
    headroom_gb = memory.usable_ram_gb - estimate.total_gb
    return Classification(
        verdict=classify_headroom(headroom_gb, config.thresholds),
        headroom_gb=headroom_gb,
        usable_ram_gb=memory.usable_ram_gb,
        reserved_gb=memory.reserved_gb,
        ram_gb=ram_gb,
    )


def max_runnable_params(
    ram_gb: float,
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
) -> int:
    """Rough largest model (billions of params) that fits at 4-bit"""
    memory = usable_memory(ram_gb, platform, config)
    max_params = (memory.usable_ram_gb - config.max_params_overhead_gb) / config.max_params_gb_per_b
    return max(0, math.floor(max_params))


def recommended_max_params(ram_gb: float) -> Tuple[float, str]:
    """Quick-reference max model size for an amount of RAM"""
    for min_ram, max_params, note in reversed(RAM_RECOMMENDATIONS):
        if ram_gb >= min_ram:
            return max_params, note
    return 1, "Very limited - try tiny models"


def _cpu_note(cores: int) -> str:
    if cores >= 16:
        return "CPU: Excellent (16+ cores), fast inference expected."
    if cores >= 10:
        return "CPU: Good (10-15 cores), solid performance."
    if cores >= 8:
        return "CPU: Decent (8-9 cores), reasonable speed."
    if cores >= 6:
        return "CPU: Moderate (6-7 cores), some waiting on larger models."
    return "CPU: Limited (<6 cores), stick to smaller models for speed."


def _size_note(params_b: float) -> str:
    if params_b <= 1:
        return "Tiny model (<1B): ultra-fast, fits anywhere."
    if params_b <= 3:
        return "Small model (1-3B): fast and light, good for most tasks."
    if params_b <= 8:
        return "Medium model (3-8B): sweet spot for quality/speed balance."
    if params_b <= 14:
        return "Mid-size model (8-14B): needs decent RAM."
    if params_b <= 35:
        return "Large model (14-35B): high quality, needs serious RAM."
    if params_b <= 72:
        return "Very large model (35-72B): excellent quality, 64GB+ recommended."
    return "Massive model (70B+): top-tier quality, workstation-class hardware needed."


def _run_command(model_name: str, variant: ModelVariant) -> str:
    if model_name and variant.tag:
        return f"Run: ollama run {model_name}:{variant.tag}"
    return f"Run: ollama run {model_name or variant.tag}"


def explain(
    variant: ModelVariant,
    estimate: MemoryEstimate,
    classification: Classification,
    model_name: str = "",
    cores: Optional[int] = None,
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
) -> VerdictDetail:
    """
    Build the detailed explanation for a classified variant.

    Args:
        variant: The variant that was estimated
        estimate: Its memory estimate
        classification: Result of classify()
        model_name: Catalog name used in the run command
        cores: CPU core count, if known
        platform: Platform class used for the classification
        config: Sizing configuration

    Returns:
        VerdictDetail with stamp, one-liner, notes and tips
    """
    notes: List[str] = []
    tips: List[str] = []

    if cores:
        notes.append(_cpu_note(cores))
    notes.append(_size_note(variant.params_b))
    notes.append(
        f"Memory breakdown: ~{estimate.weights_gb:.1f}GB weights + "
        f"~{estimate.kv_cache_gb:.1f}GB KV cache + "
        f"~{estimate.runtime_overhead_gb:.1f}GB overhead."
    )

    verdict = classification.verdict
    headroom = classification.headroom_gb

    if verdict == Verdict.UNKNOWN:
        notes.append("RAM could not be detected. Set an override for accurate sizing.")
        return VerdictDetail(
            verdict=verdict,
            stamp="MAYBE?",
            one_liner="Set your RAM to get an accurate verdict.",
            notes=notes,
            tips=list(UNKNOWN_RAM_TIPS),
        )

    if verdict == Verdict.COMFORTABLE:
        notes.append(f"Headroom: ~{headroom:.1f} GB available, comfortable fit.")
        tips.append(_run_command(model_name, variant))
        tips.append("You can increase context length if needed.")
        if variant.params_b >= 7:
            tips.append("For faster responses, close other memory-heavy apps.")
        return VerdictDetail(verdict, "RUN IT", "Should run smoothly on your system.", notes, tips)

    if verdict == Verdict.TIGHT:
        notes.append(f"Headroom: ~{headroom:.1f} GB, workable but tight.")
        tips.append("Close browsers before running (they use lots of RAM).")
        tips.append("Keep context length at default or lower.")
        tips.append(_run_command(model_name, variant))
        return VerdictDetail(verdict, "TIGHT FIT", "Should work, but close other apps first.", notes, tips)

    if verdict == Verdict.MAYBE:
        notes.append(f"Borderline: ~{abs(headroom):.1f} GB over ideal, but might work.")
        tips.append("Try with minimal context (e.g. 2048 tokens).")
        tips.append("Quit all other applications before running.")
        tips.append("If it crashes, try the next smaller variant.")
        return VerdictDetail(verdict, "MAYBE", "Borderline, might work with adjustments.", notes, tips)

    notes.append(f"Short by ~{abs(headroom):.1f} GB, won't fit comfortably.")
    tips.append("Try a smaller variant of this model if available.")
    needed_ram = math.ceil(estimate.total_gb + classification.reserved_gb + config.thresholds.comfortable)
    tips.append(f"You'd need ~{needed_ram}GB RAM for this model.")
    max_params = max_runnable_params(classification.ram_gb, platform, config)
    if max_params > 0:
        tips.append(f"With {classification.ram_gb:g}GB RAM, aim for models <= {max_params}B parameters.")
    return VerdictDetail(verdict, "NOT TODAY", "This model won't fit in your available RAM.", notes, tips)
