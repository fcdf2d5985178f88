"""
Usable-memory model per platform

Estimates how much RAM is left for inference after the OS and typical
background apps. This is a fixed margin, not a live reading of free
memory. Desktop GUI systems and mobile devices reserve more than
headless Linux.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .config import DEFAULT_CONFIG, PlatformReserve, SizingConfig
from .estimator import clamp

logger = logging.getLogger(__name__)


class PlatformClass(str, Enum):
    """Operating system / device classes with distinct memory footprints"""
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    MOBILE = "mobile"
    DEFAULT = "default"


@dataclass(frozen=True)
class UsableMemory:
    """RAM available for inference and the reserve assumed for the OS"""
    usable_ram_gb: float
    reserved_gb: float


def get_reserve(platform: Union[PlatformClass, str], config: SizingConfig = DEFAULT_CONFIG) -> PlatformReserve:
    """Look up the reserve for a platform, falling back to the default entry"""
    name = PlatformClass(platform).value if isinstance(platform, PlatformClass) else str(platform)
    reserve = config.platform_reserves.get(name)
    if reserve is None:
        logger.debug(f"No reserve configured for platform {name!r}, using default")
        reserve = config.platform_reserves["default"]
    return reserve


def usable_memory(
    total_ram_gb: float,
    platform: Union[PlatformClass, str] = PlatformClass.DEFAULT,
    config: SizingConfig = DEFAULT_CONFIG,
) -> UsableMemory:
    """
    Estimate usable RAM after reserving space for the OS and other apps.

    reserved = clamp(base + total * fraction, reserve_min_gb, reserve_max_gb)
    usable = max(min_usable_gb, total - reserved)

    Args:
        total_ram_gb: Installed RAM in GB
        platform: Platform class of the host
        config: Sizing configuration

    Returns:
        UsableMemory
    """
    reserve = get_reserve(platform, config)
    reserved_gb = clamp(
        reserve.base_reserve_gb + total_ram_gb * reserve.reserve_fraction,
        config.reserve_min_gb,
        config.reserve_max_gb,
    )
    usable_ram_gb = max(config.min_usable_gb, total_ram_gb - reserved_gb)
    return UsableMemory(usable_ram_gb=usable_ram_gb, reserved_gb=reserved_gb)


def platform_from_os(os_name: Optional[str], is_mobile: bool = False) -> PlatformClass:
    """
    Map an OS name (as from platform.system()) to a platform class.

    Args:
        os_name: e.g. "Linux", "Darwin", "Windows", "iOS", "Android"
        is_mobile: Force the mobile class

    Returns:
        PlatformClass, DEFAULT for anything unrecognised
    """
    if is_mobile:
        return PlatformClass.MOBILE
    if not os_name:
        return PlatformClass.DEFAULT

    name = os_name.lower()
    if name in ("ios", "ipados", "android"):
        return PlatformClass.MOBILE
    if name in ("darwin", "macos", "mac os x"):
        return PlatformClass.MACOS
    if name.startswith("win") or name.startswith("cygwin"):
        return PlatformClass.WINDOWS
    if name == "linux" or name.endswith("bsd"):
        return PlatformClass.LINUX
    return PlatformClass.DEFAULT
