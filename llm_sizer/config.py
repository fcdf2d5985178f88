"""
Sizing configuration

Every tunable number used by the estimator lives here. The defaults are
fitted heuristics from community llama.cpp/Ollama measurements, not
physical constants; a user config file can override any of them.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError
from .quantization import is_known_quant

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".llm-sizer"
CONFIG_FILES = ("config.json", "config.yaml", "config.yml")


@dataclass(frozen=True)
class HeadroomThresholds:
    """Inclusive lower bounds (GB of headroom) for each verdict"""
    comfortable: float = 2.0
    tight: float = 0.5
    maybe: float = -1.5


@dataclass(frozen=True)
class PlatformReserve:
    """Memory the OS and background apps are assumed to hold"""
    base_reserve_gb: float
    reserve_fraction: float


DEFAULT_PLATFORM_RESERVES: Dict[str, PlatformReserve] = {
    "linux": PlatformReserve(1.5, 0.10),
    "macos": PlatformReserve(3.0, 0.15),
    "windows": PlatformReserve(3.5, 0.20),
    "mobile": PlatformReserve(2.0, 0.30),
    "default": PlatformReserve(3.0, 0.20),
}

# (upper bound in billions of params, GB of KV cache per 1K tokens)
DEFAULT_KV_BREAKPOINTS: Tuple[Tuple[float, float], ...] = (
    (1, 0.03),
    (3, 0.06),
    (8, 0.08),
    (14, 0.12),
    (35, 0.20),
    (72, 0.35),
    (200, 0.50),
)


@dataclass(frozen=True)
class SizingConfig:
    """Tunable constants for memory estimation and verdicts"""

    # Weights
    weights_allowance: float = 1.05
    default_quant: str = "Q4_K_M"

    # Context
    default_context_cap: int = 8192
    matrix_context: int = 4096

    # KV cache step function
    kv_breakpoints: Tuple[Tuple[float, float], ...] = DEFAULT_KV_BREAKPOINTS
    kv_above_max_gb: float = 0.80

    # Runtime overhead: clamp(base + params_b * per_param, min, max)
    overhead_base_gb: float = 1.2
    overhead_per_param_gb: float = 0.04
    overhead_min_gb: float = 1.0
    overhead_max_gb: float = 6.0

    # Platform reserve
    platform_reserves: Dict[str, PlatformReserve] = field(
        default_factory=lambda: dict(DEFAULT_PLATFORM_RESERVES)
    )
    reserve_min_gb: float = 2.5
    reserve_max_gb: float = 16.0
    min_usable_gb: float = 1.0

    # Verdicts
    thresholds: HeadroomThresholds = field(default_factory=HeadroomThresholds)

    # Rough inverse used for "aim for models <= N B"
    max_params_overhead_gb: float = 2.0
    max_params_gb_per_b: float = 0.7

    def validate(self) -> "SizingConfig":
        """Check internal consistency, raising ConfigError on problems"""
        t = self.thresholds
        if not (t.comfortable > t.tight > t.maybe):
            raise ConfigError(
                f"Headroom thresholds must be descending: "
                f"comfortable={t.comfortable}, tight={t.tight}, maybe={t.maybe}"
            )
        if self.overhead_min_gb < 0 or self.overhead_min_gb > self.overhead_max_gb:
            raise ConfigError(
                f"Invalid overhead bounds: [{self.overhead_min_gb}, {self.overhead_max_gb}]"
            )
        if self.reserve_min_gb < 0 or self.reserve_min_gb > self.reserve_max_gb:
            raise ConfigError(
                f"Invalid reserve bounds: [{self.reserve_min_gb}, {self.reserve_max_gb}]"
            )
        if self.weights_allowance <= 0:
            raise ConfigError("weights_allowance must be positive")
        if not is_known_quant(self.default_quant):
            raise ConfigError(f"Unknown default_quant: {self.default_quant}")
        if "default" not in self.platform_reserves:
            raise ConfigError("platform_reserves must define a 'default' entry")

        bounds = [bound for bound, _ in self.kv_breakpoints]
        costs = [cost for _, cost in self.kv_breakpoints] + [self.kv_above_max_gb]
        if bounds != sorted(bounds) or len(set(bounds)) != len(bounds):
            raise ConfigError("kv_breakpoints must have strictly ascending bounds")
        if any(b >= a for a, b in zip(costs[1:], costs)) or costs[0] <= 0:
            raise ConfigError("kv_breakpoints costs must be positive and strictly increasing")
        return self


DEFAULT_CONFIG = SizingConfig()


def _parse_thresholds(value: Any, base: HeadroomThresholds) -> HeadroomThresholds:
    if not isinstance(value, dict):
        raise ConfigError("'thresholds' must be a mapping")
    unknown = set(value) - {"comfortable", "tight", "maybe"}
    if unknown:
        raise ConfigError(f"Unknown threshold names: {sorted(unknown)}")
    return replace(base, **{k: float(v) for k, v in value.items()})


def _parse_reserves(value: Any, base: Dict[str, PlatformReserve]) -> Dict[str, PlatformReserve]:
    if not isinstance(value, dict):
        raise ConfigError("'platform_reserves' must be a mapping")
    reserves = dict(base)
    for name, entry in value.items():
        try:
            reserves[name] = PlatformReserve(
                base_reserve_gb=float(entry["base_reserve_gb"]),
                reserve_fraction=float(entry["reserve_fraction"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid platform reserve for {name!r}: {e}")
    return reserves


def _parse_breakpoints(value: Any) -> Tuple[Tuple[float, float], ...]:
    try:
        return tuple((float(bound), float(cost)) for bound, cost in value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'kv_breakpoints' must be a list of [max_params_b, gb_per_1k] pairs: {e}")


def config_from_dict(data: Dict[str, Any], base: SizingConfig = DEFAULT_CONFIG) -> SizingConfig:
    """Build a SizingConfig by overriding fields of base with data"""
    known = {f.name: f for f in fields(SizingConfig)}
    overrides: Dict[str, Any] = {}

    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue

        if key == "thresholds":
            overrides[key] = _parse_thresholds(value, base.thresholds)
        elif key == "platform_reserves":
            overrides[key] = _parse_reserves(value, base.platform_reserves)
        elif key == "kv_breakpoints":
            overrides[key] = _parse_breakpoints(value)
        elif key == "default_quant":
            overrides[key] = str(value).upper().strip()
        else:
            try:
                current = getattr(base, key)
                overrides[key] = type(current)(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {key}: {value!r} ({e})")

    return replace(base, **overrides).validate()


def find_config_file(config_dir: Optional[Path] = None) -> Optional[Path]:
    """Return the first user config file that exists, if any"""
    directory = config_dir or CONFIG_DIR
    for name in CONFIG_FILES:
        candidate = directory / name
        if candidate.exists():
            return candidate
    return None


def load_config(path: Optional[Path] = None) -> SizingConfig:
    """
    Load sizing configuration from a JSON or YAML file.

    Args:
        path: Explicit config file. When omitted, ~/.llm-sizer/config.json
            (or config.yaml) is used if present.

    Returns:
        DEFAULT_CONFIG when no file is found, otherwise the merged config

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    config_path = Path(path) if path else find_config_file()
    if config_path is None:
        logger.debug("No sizing config file found, using defaults")
        return DEFAULT_CONFIG

    try:
        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
    except FileNotFoundError:
        raise ConfigError("Config file not found", str(config_path))
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse config file: {e}", str(config_path))

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping", str(config_path))

    config = config_from_dict(data)
    logger.info(f"Loaded sizing config from {config_path}")
    return config
