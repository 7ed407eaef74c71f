"""
Tool Performance Monitor - running statistics per tool and system load sampling.
"""

import copy
import threading
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional
import logging

import psutil

from ...config import RoutingConstants
from .conversation import SystemPerformanceMetrics


@dataclass
class ToolPerformanceMetrics:
    """Aggregated performance statistics for a tool."""

    total_executions: int = 0
    successful_executions: int = 0
    total_execution_time: float = 0.0
    average_execution_time: float = 0.0
    success_rate: float = 0.0
    overall_score: float = 0.0
    availability_score: float = 1.0
    last_execution: Optional[datetime] = None

    @property
    def failed_executions(self) -> int:
        return self.total_executions - self.successful_executions

    @property
    def has_history(self) -> bool:
        return self.total_executions > 0

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["last_execution"] = self.last_execution.isoformat() if self.last_execution else None
        return data


def calculate_overall_score(metrics: ToolPerformanceMetrics, constants: RoutingConstants) -> float:
    """Weighted success, speed and reliability score."""
    speed_score = max(0.0, 1.0 - metrics.average_execution_time / constants.slow_execution_time)
    reliability_score = min(1.0, metrics.total_executions / constants.reliability_executions)

    return (metrics.success_rate * constants.success_weight +
            speed_score * constants.speed_weight +
            reliability_score * constants.reliability_weight)


class ToolPerformanceTracker:
    """
    Owns the per-tool performance records.

    Every mutation happens under one lock, so executions finishing on the event
    loop and load samples arriving from the monitoring thread are serialized.
    Readers get deep copies through `snapshot()`.
    """

    def __init__(self, constants: Optional[RoutingConstants] = None):
        self.logger = logging.getLogger("smartroute.tools.performance")
        self.constants = constants or RoutingConstants()
        self._metrics: Dict[str, ToolPerformanceMetrics] = {}
        self._lock = threading.RLock()

    def ensure_tool(self, tool_id: str) -> bool:
        """Create a zero-valued record for an unseen tool id. Returns True if created."""
        with self._lock:
            if tool_id in self._metrics:
                return False
            self._metrics[tool_id] = ToolPerformanceMetrics()
            return True

    def record(self, tool_id: str, execution_time: float, success: bool) -> ToolPerformanceMetrics:
        """Fold one completed execution into the tool's record."""
        with self._lock:
            metrics = self._metrics.setdefault(tool_id, ToolPerformanceMetrics())

            metrics.total_executions += 1
            metrics.total_execution_time += execution_time
            if success:
                metrics.successful_executions += 1

            metrics.average_execution_time = metrics.total_execution_time / metrics.total_executions
            metrics.success_rate = metrics.successful_executions / metrics.total_executions
            metrics.overall_score = calculate_overall_score(metrics, self.constants)
            metrics.last_execution = datetime.now()

            self.logger.debug(
                f"Recorded {tool_id}: success={success} time={execution_time:.3f}s "
                f"rate={metrics.success_rate:.2f} score={metrics.overall_score:.2f}"
            )
            return copy.deepcopy(metrics)

    def is_under_load(self, system_metrics: SystemPerformanceMetrics) -> bool:
        return (system_metrics.cpu_usage > self.constants.cpu_load_ceiling or
                system_metrics.memory_usage > self.constants.memory_ceiling_bytes)

    def adapt_to_system_metrics(self,
                                system_metrics: SystemPerformanceMetrics,
                                tool_ids: Optional[Iterable[str]] = None) -> bool:
        """
        Nudge availability scores for the given tools (all tracked tools by default).

        Returns True if the system was considered under load.
        """
        under_load = self.is_under_load(system_metrics)
        c = self.constants

        with self._lock:
            for tool_id in list(tool_ids) if tool_ids is not None else list(self._metrics):
                metrics = self._metrics.setdefault(tool_id, ToolPerformanceMetrics())
                if under_load:
                    metrics.availability_score = max(c.availability_floor,
                                                     metrics.availability_score - c.availability_penalty)
                else:
                    metrics.availability_score = min(c.availability_ceiling,
                                                     metrics.availability_score + c.availability_recovery)

        if under_load:
            self.logger.info(
                f"System under load (cpu={system_metrics.cpu_usage:.2f}, "
                f"memory={system_metrics.memory_usage / (1024 * 1024):.0f}MB); lowering tool availability"
            )
        return under_load

    def get(self, tool_id: str) -> Optional[ToolPerformanceMetrics]:
        with self._lock:
            metrics = self._metrics.get(tool_id)
            return copy.deepcopy(metrics) if metrics else None

    def snapshot(self) -> Dict[str, ToolPerformanceMetrics]:
        """Consistent deep copy of all records."""
        with self._lock:
            return copy.deepcopy(self._metrics)

    def reset(self) -> None:
        """Reset every record to its zero value, keeping the tool ids."""
        with self._lock:
            for tool_id in self._metrics:
                self._metrics[tool_id] = ToolPerformanceMetrics()
        self.logger.info("Performance metrics reset")

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def __contains__(self, tool_id: str) -> bool:
        with self._lock:
            return tool_id in self._metrics


class SystemMetricsSampler:
    """Samples process load with psutil, optionally on a background thread."""

    def __init__(self, interval: float = 30.0):
        self.logger = logging.getLogger("smartroute.tools.system_metrics")
        self.interval = interval
        self._process = psutil.Process()
        self._monitoring_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def monitoring_active(self) -> bool:
        return self._monitoring_thread is not None and self._monitoring_thread.is_alive()

    def sample(self) -> SystemPerformanceMetrics:
        """Current CPU fraction and resident memory."""
        cpu_fraction = psutil.cpu_percent(interval=None) / 100.0
        memory_bytes = self._process.memory_info().rss
        return SystemPerformanceMetrics(cpu_usage=cpu_fraction, memory_usage=memory_bytes)

    def start_monitoring(self, callback: Callable[[SystemPerformanceMetrics], None]) -> None:
        """Start calling `callback` with a fresh sample every interval."""
        if self.monitoring_active:
            return

        self._stop_event.clear()
        self._monitoring_thread = threading.Thread(
            target=self._background_monitor,
            args=(callback,),
            daemon=True
        )
        self._monitoring_thread.start()
        self.logger.info("System metrics monitoring started")

    def stop_monitoring(self) -> None:
        """Stop background sampling."""
        self._stop_event.set()
        if self._monitoring_thread:
            self._monitoring_thread.join(timeout=1.0)
        self._monitoring_thread = None
        self.logger.info("System metrics monitoring stopped")

    def _background_monitor(self, callback: Callable[[SystemPerformanceMetrics], None]) -> None:
        """Background monitoring loop."""
        while not self._stop_event.is_set():
            started = time.monotonic()
            try:
                callback(self.sample())
            except psutil.Error as e:
                self.logger.debug(f"System sampling error: {e}")
            except Exception as e:
                self.logger.error(f"System metrics callback failed: {e}")
            self._stop_event.wait(max(0.0, self.interval - (time.monotonic() - started)))
