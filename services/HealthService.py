# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: HealthService.py
# -----------------------------------------------------------------------------
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from api.schemas.health import CheckSummary, DeepHealthResponse
from utility.logging_utils import get_class_logger


@dataclass
class HealthService:
    """
    Runs named connectivity checks (cluster ping, embedding call, ...)
    and returns DeepHealthResponse for the API layer.
    A check that raises counts as failed.
    """

    checks: Dict[str, Callable[[], bool]] = field(default_factory=dict)
    keyspace: Optional[str] = None
    logger: logging.Logger = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

    def run_all(self) -> Dict[str, bool]:
        results: Dict[str, bool] = {}
        for name, check in self.checks.items():
            try:
                results[name] = bool(check())
            except Exception as e:
                self.logger.error("Health check '%s' raised: %s", name, e, exc_info=True)
                results[name] = False
        return results

    def deep_health(self) -> DeepHealthResponse:
        results = self.run_all()

        total = len(results)
        passed = sum(1 for ok in results.values() if ok)
        failed_checks = sorted(name for name, ok in results.items() if not ok)
        failed = len(failed_checks)
        if failed:
            self.logger.warning("Deep health: %d/%d checks failed: %s", failed, total, failed_checks)

        return DeepHealthResponse(
            status="ok" if failed == 0 else "error",
            keyspace=self.keyspace,
            results=results,
            failed_checks=failed_checks,
            summary=CheckSummary(total=total, passed=passed, failed=failed),
        )
