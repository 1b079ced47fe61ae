"""
Metric source reading the local host.

CPU, memory and disk come from 'psutil'; the GPU from 'nvidia-smi'; the brain
mode from a JSON status file; loaded Ollama models from its HTTP API. The
readers run concurrently and each one degrades to a fallback value on failure.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import aiohttp
import psutil

from ..alerts.evaluator import max_disk_usage
from ..models.config import SourcesConfig
from ..models.metrics import (
    BrainStatus,
    CpuMetrics,
    GpuMetrics,
    MemoryMetrics,
    MetricsSnapshot,
    OllamaStatus,
    utc_now,
)
from ..system.commands import check_nvidia_smi_installed, run_command_async
from .base import MetricSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

NVIDIA_SMI_QUERY = [
    "nvidia-smi",
    "--query-gpu=utilization.gpu,memory.used,temperature.gpu,power.draw",
    "--format=csv,noheader,nounits",
]

# Sensor chips checked in order for a CPU package temperature.
CPU_SENSOR_NAMES = ("coretemp", "k10temp", "zenpower", "cpu_thermal", "acpitz")

# Filesystems that never count towards disk usage.
IGNORED_FSTYPES = {"squashfs", "tmpfs", "devtmpfs", "overlay", "iso9660"}

_MIB = 1024 * 1024


def parse_nvidia_value(raw: str) -> Optional[float]:
    """Parse one nvidia-smi CSV field; '[N/A]' style markers become None."""
    trimmed = raw.strip()
    if trimmed in ("[N/A]", "N/A", "[Not Supported]", ""):
        return None
    try:
        return float(trimmed)
    except ValueError:
        return None


def parse_nvidia_smi_output(stdout: str) -> Optional[GpuMetrics]:
    """
    Parse the first GPU line of the nvidia-smi CSV query.

    Memory is reported in MiB and converted to bytes.
    """
    lines = [line for line in stdout.strip().splitlines() if line.strip()]
    if not lines:
        return None
    fields = lines[0].split(",")
    if len(fields) < 4:
        logger.debug(f"Unexpected nvidia-smi output: {lines[0]!r}")
        return None

    utilization, memory_used, temperature, power_draw = (parse_nvidia_value(f) for f in fields[:4])
    return GpuMetrics(
        utilization=utilization if utilization is not None else 0.0,
        memory_used=int(memory_used * _MIB) if memory_used is not None else None,
        temperature=temperature,
        power_draw=power_draw if power_draw is not None else 0.0,
    )


class SystemMetricSource(MetricSource):
    """
    Default MetricSource for a single Linux host.
    """

    def __init__(self, config: Optional[SourcesConfig] = None):
        self.config = config or SourcesConfig()
        self._session: Optional[aiohttp.ClientSession] = None
        self.has_nvidia_smi = check_nvidia_smi_installed()
        if not self.has_nvidia_smi:
            logger.warning("nvidia-smi not found on PATH, GPU metrics will be reported as absent")
        # The first cpu_percent() call always returns 0.0; prime it here so
        # the first tick reports a real value.
        psutil.cpu_percent(interval=None)

    async def capture(self) -> MetricsSnapshot:
        timestamp = utc_now()
        cpu, memory, gpu, brain, models = await asyncio.gather(
            self._guard("cpu", self._read_cpu, CpuMetrics(usage=0.0)),
            self._guard("memory", self._read_memory, MemoryMetrics(used=0, percentage=0.0)),
            self._guard("gpu", self._read_gpu, None),
            self._guard("brain", self._read_brain, BrainStatus()),
            self._guard("ollama", self._read_ollama_models, []),
        )
        return MetricsSnapshot(
            timestamp=timestamp,
            cpu=cpu,
            memory=memory,
            gpu=gpu,
            brain=brain,
            ollama=OllamaStatus(models_loaded=models),
        )

    async def disk_usage(self) -> Optional[float]:
        return await self._guard("disk", self._read_disk_usage, None)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _guard(self, name: str, reader: Callable[[], Awaitable[T]], fallback: T) -> T:
        try:
            return await reader()
        except Exception as e:
            logger.warning(f"Failed to read {name} metrics: {type(e).__name__}: {e}")
            return fallback

    async def _in_executor(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    async def _read_cpu(self) -> CpuMetrics:
        def read() -> CpuMetrics:
            return CpuMetrics(usage=float(psutil.cpu_percent(interval=None)), temperature=self._cpu_temperature())

        return await self._in_executor(read)

    def _cpu_temperature(self) -> Optional[float]:
        sensors = getattr(psutil, "sensors_temperatures", None)
        if sensors is None:
            return None
        readings = sensors()
        for name in CPU_SENSOR_NAMES:
            entries = readings.get(name)
            if entries:
                return float(entries[0].current)
        return None

    async def _read_memory(self) -> MemoryMetrics:
        vm = await self._in_executor(psutil.virtual_memory)
        return MemoryMetrics(used=int(vm.used), percentage=float(vm.percent))

    async def _read_gpu(self) -> Optional[GpuMetrics]:
        if not self.has_nvidia_smi:
            return None
        code, stdout, stderr = await run_command_async(
            NVIDIA_SMI_QUERY, timeout=self.config.command_timeout_seconds
        )
        if code != 0:
            logger.debug(f"nvidia-smi unavailable (exit {code}): {stderr.strip()}")
            return None
        return parse_nvidia_smi_output(stdout)

    async def _read_brain(self) -> BrainStatus:
        path: Path = self.config.brain_status_file

        def read() -> BrainStatus:
            if not path.exists():
                return BrainStatus()
            data: Any = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                return BrainStatus()
            return BrainStatus(active=str(data.get("active") or "code"))

        return await self._in_executor(read)

    async def _read_ollama_models(self) -> List[str]:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        timeout = aiohttp.ClientTimeout(total=self.config.command_timeout_seconds)
        async with self._session.get(f"{self.config.ollama_url}/api/ps", timeout=timeout) as resp:
            if resp.status != 200:
                logger.debug(f"Ollama API returned HTTP {resp.status}")
                return []
            payload = await resp.json()
        return [str(m.get("name")) for m in payload.get("models", []) if m.get("name")]

    async def _read_disk_usage(self) -> Optional[float]:
        def read() -> Optional[float]:
            percentages = []
            for part in psutil.disk_partitions(all=False):
                if part.fstype in IGNORED_FSTYPES:
                    continue
                try:
                    percentages.append(psutil.disk_usage(part.mountpoint).percent)
                except (PermissionError, OSError) as e:
                    logger.debug(f"Skipping {part.mountpoint}: {e}")
            return max_disk_usage(percentages)

        return await self._in_executor(read)
