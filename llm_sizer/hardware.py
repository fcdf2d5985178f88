"""
Host detection: OS, CPU cores and installed RAM

Supplies the RAM figure and platform class the estimator needs. Nothing
here measures free memory; only the installed total is read.
"""

import asyncio
import json
import logging
import os
import platform
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional

# Optional dependency
try:
    import psutil
    HAS_PSUTIL = True
except ImportError:
    HAS_PSUTIL = False

from .platforms import PlatformClass, platform_from_os

logger = logging.getLogger(__name__)

CACHE_FILE = Path.home() / ".llm-sizer" / "hardware_cache.json"
CACHE_TTL_SECONDS = 86400


@dataclass
class CPUInfo:
    """CPU information"""
    name: str
    cores: Optional[int]
    arch: str


@dataclass
class SystemInfo:
    """Host information relevant to sizing"""
    os: str
    arch: str
    cpu: CPUInfo
    ram: Optional[float]


class HostDetector:
    """Detects host memory and platform with a 24h cache"""

    def __init__(self, cache_file: Optional[Path] = None):
        self._system_info: Optional[SystemInfo] = None
        self._cache_file = cache_file or CACHE_FILE

    async def detect_system_info(self, use_cache: bool = True) -> SystemInfo:
        """Detects system information with caching"""
        if self._system_info and use_cache:
            return self._system_info

        if use_cache and self._cache_file.exists():
            try:
                with open(self._cache_file, "r") as f:
                    cached_data = json.load(f)
                if time.time() - cached_data.get("timestamp", 0) < CACHE_TTL_SECONDS:
                    self._system_info = self._parse_cached_info(cached_data)
                    return self._system_info
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning(f"Failed to load hardware cache: {e}")

        logger.info("Detecting host memory...")

        cpu_task = asyncio.create_task(self._detect_cpu())
        ram_task = asyncio.create_task(self._detect_ram())
        cpu_info = await cpu_task
        ram = await ram_task

        self._system_info = SystemInfo(
            os=platform.system(),
            arch=platform.machine(),
            cpu=cpu_info,
            ram=ram,
        )

        if use_cache:
            self._cache_system_info()

        return self._system_info

    def _parse_cached_info(self, cached_data: Dict) -> SystemInfo:
        """Parse cached host information"""
        return SystemInfo(
            os=cached_data["os"],
            arch=cached_data["arch"],
            cpu=CPUInfo(**cached_data["cpu"]),
            ram=cached_data["ram"],
        )

    def _cache_system_info(self) -> None:
        """Cache host information to file"""
        try:
            self._cache_file.parent.mkdir(parents=True, exist_ok=True)
            cache_data = {"timestamp": time.time(), **asdict(self._system_info)}
            with open(self._cache_file, "w") as f:
                json.dump(cache_data, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to cache hardware info: {e}")

    def clear_cache(self) -> bool:
        """Remove the cache file; returns whether one existed"""
        self._system_info = None
        if self._cache_file.exists():
            self._cache_file.unlink()
            return True
        return False

    async def _detect_cpu(self) -> CPUInfo:
        """Detects CPU name and physical core count"""
        cpu_info = CPUInfo(
            name=platform.processor() or "Unknown",
            cores=self._get_cpu_cores(),
            arch=platform.machine(),
        )

        if platform.system() == "Linux":
            cpu_info.name = await self._get_linux_cpu_name() or cpu_info.name

        return cpu_info

    def _get_cpu_cores(self) -> Optional[int]:
        """Get CPU core count"""
        if HAS_PSUTIL:
            return psutil.cpu_count(logical=False) or psutil.cpu_count()
        return os.cpu_count()

    async def _get_linux_cpu_name(self) -> Optional[str]:
        """Get CPU name on Linux"""
        try:
            with open("/proc/cpuinfo", "r") as f:
                for line in f:
                    if "model name" in line:
                        return line.split(":")[1].strip()
        except OSError:
            pass
        return None

    async def _detect_ram(self) -> Optional[float]:
        """Detects total system RAM in GB; None if it cannot be read"""
        if HAS_PSUTIL:
            try:
                return round(psutil.virtual_memory().total / (1024**3), 1)
            except Exception as e:
                logger.warning(f"psutil RAM detection failed: {e}")

        system = platform.system()
        if system == "Darwin":
            return await self._get_macos_ram()
        if system == "Linux":
            return await self._get_linux_ram()

        logger.warning(f"No RAM detection method for {system}")
        return None

    async def _get_macos_ram(self) -> Optional[float]:
        """Get RAM on macOS"""
        try:
            proc = await asyncio.create_subprocess_exec(
                "sysctl", "-n", "hw.memsize",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await proc.communicate()
            if proc.returncode == 0:
                return round(int(stdout.decode().strip()) / (1024**3), 1)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to get macOS RAM: {e}")
        return None

    async def _get_linux_ram(self) -> Optional[float]:
        """Get RAM on Linux"""
        try:
            with open("/proc/meminfo", "r") as f:
                for line in f:
                    if "MemTotal" in line:
                        kb = int(line.split()[1])
                        return round(kb / (1024**2), 1)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to get Linux RAM: {e}")
        return None

    def platform_class(self) -> PlatformClass:
        """Platform class of the detected host"""
        if not self._system_info:
            raise RuntimeError("System info not detected. Call detect_system_info() first.")
        return platform_from_os(self._system_info.os)
