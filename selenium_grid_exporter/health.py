"""
Health checks for the exporter process.

These describe the exporter itself. Reachability of the hub is
published separately as the ``selenium_grid_up`` gauge.
"""
import time
from typing import Dict, Any, Callable, List

import psutil

from .config import ExporterConfig, EXPORTER_NAME, EXPORTER_VERSION


class HealthStatus:
    """Health status constants."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


class HealthCheck:
    """Individual health check."""

    def __init__(self, name: str, check_func: Callable[[], bool],
                 description: str = "", critical: bool = True):
        self.name = name
        self.check_func = check_func
        self.description = description
        self.critical = critical
        self.last_check_time = None
        self.last_status = None
        self.last_error = None

    def run(self) -> Dict[str, Any]:
        """Run the health check. A check that raises is always unhealthy."""
        start_time = time.time()
        try:
            if self.check_func():
                status = HealthStatus.HEALTHY
            else:
                status = HealthStatus.UNHEALTHY if self.critical else HealthStatus.DEGRADED
            error = None
        except Exception as e:
            status = HealthStatus.UNHEALTHY
            error = str(e)

        duration = time.time() - start_time
        self.last_check_time = time.time()
        self.last_status = status
        self.last_error = error

        return {
            "name": self.name,
            "status": status,
            "description": self.description,
            "duration_ms": round(duration * 1000, 2),
            "timestamp": self.last_check_time,
            "error": error
        }


class HealthChecker:
    """Runs the registered checks and aggregates their status."""

    def __init__(self, config: ExporterConfig):
        self.config = config
        self.checks: List[HealthCheck] = []
        self._process = psutil.Process()
        self._setup_default_checks()

    def _setup_default_checks(self):
        self.add_check("process_memory", self._check_process_memory,
                       "Check if the exporter uses less than 50% of system memory")
        self.add_check("system_memory", self._check_system_memory,
                       "Check if system memory usage is below 95%", critical=False)
        # num_fds and rlimit are not available on every platform
        if hasattr(self._process, "num_fds") and hasattr(psutil, "RLIMIT_NOFILE"):
            self.add_check("open_files", self._check_open_files,
                           "Check if open file descriptors are below 90% of the soft limit")

    def _check_process_memory(self) -> bool:
        return self._process.memory_percent() < 50.0

    def _check_system_memory(self) -> bool:
        return psutil.virtual_memory().percent < 95.0

    def _check_open_files(self) -> bool:
        soft_limit, _ = self._process.rlimit(psutil.RLIMIT_NOFILE)
        if soft_limit == psutil.RLIM_INFINITY:
            return True
        return self._process.num_fds() < soft_limit * 0.9

    def add_check(self, name: str, check_func: Callable[[], bool],
                  description: str = "", critical: bool = True):
        """Add a health check."""
        self.checks.append(HealthCheck(name, check_func, description, critical))

    def remove_check(self, name: str):
        """Remove a health check by name."""
        self.checks = [check for check in self.checks if check.name != name]

    def run_checks(self) -> Dict[str, Any]:
        """Run all health checks."""
        results = []
        overall_status = HealthStatus.HEALTHY

        for check in self.checks:
            result = check.run()
            results.append(result)

            if result["status"] == HealthStatus.UNHEALTHY:
                overall_status = HealthStatus.UNHEALTHY
            elif result["status"] == HealthStatus.DEGRADED and overall_status == HealthStatus.HEALTHY:
                overall_status = HealthStatus.DEGRADED

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "exporter": EXPORTER_NAME,
            "version": EXPORTER_VERSION,
            "scrape_uri": self.config.scrape_uri,
            "checks": results
        }
