"""
Health and metrics endpoints for the logistics service.

``/health`` and ``/health/live`` are cheap liveness probes; ``/health/ready``
checks the record store database, Redis (only when the REDIS_URL setting is set), disk
and memory; ``/health/startup`` checks migrations and configuration.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from typing import Callable, Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum
import os
import time
import redis
import psutil

from logistics.core_settings import Settings, get_settings
from .logging_config import get_logger

logger = get_logger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

class ServiceHealth:
    """
    Tracks uptime and probe counts and builds the health router.

    ``engine_provider`` is called on every probe so the router can be created
    before the app lifespan has opened the database. Redis and configuration
    checks read ``settings``, so values from ``.env`` count too.
    """

    def __init__(self, service_name: str, version: str = "1.0.0",
                 engine_provider: Optional[Callable[[], Optional[Engine]]] = None,
                 settings: Optional[Settings] = None):
        self.service_name = service_name
        self.version = version
        self.engine_provider = engine_provider or (lambda: None)
        self.settings = settings or get_settings()
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        def health_check() -> Dict[str, Any]:
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now()
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        def readiness() -> JSONResponse:
            checks = self.readiness_checks()
            overall_status = self.overall_status(checks)
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE if overall_status == HealthStatus.FAIL else status.HTTP_200_OK
            return JSONResponse(status_code=status_code, content={
                "status": overall_status.value,
                "version": self.version,
                "serviceId": self.service_name,
                "checks": checks,
                "timestamp": _now()
            })

        @router.get("/health/startup")
        def startup():
            checks = self.startup_checks()
            if self.overall_status(checks) == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks}
                )
            return {"status": "started", "checks": checks}

        @router.get("/metrics")
        def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads()
                }
            }

        return router

    def readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        checks = {"database:connectivity": self._check_database()}
        if self.settings.REDIS_URL:
            checks["cache:connectivity"] = self._check_redis(self.settings.REDIS_URL)
        checks["storage:disk_space"] = self._check_disk_space()
        checks["system:memory"] = self._check_memory()
        return checks

    def startup_checks(self) -> Dict[str, Dict[str, Any]]:
        return {
            "database:migrations": self._check_migrations(),
            "config:environment": self._check_environment(),
        }

    def _check_database(self) -> Dict[str, Any]:
        engine = self.engine_provider()
        if engine is None:
            return {"status": HealthStatus.FAIL.value, "componentType": "datastore",
                    "output": "database not initialized", "time": _now()}
        try:
            start_time = time.time()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return {
                "status": HealthStatus.PASS.value,
                "componentType": "datastore",
                "observedValue": f"{(time.time() - start_time) * 1000:.2f}ms",
                "observedUnit": "ms",
                "time": _now()
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": HealthStatus.FAIL.value, "componentType": "datastore", "output": str(e), "time": _now()}

    def _check_redis(self, redis_url: str) -> Dict[str, Any]:
        try:
            start_time = time.time()
            redis.from_url(redis_url, socket_connect_timeout=1).ping()
            return {
                "status": HealthStatus.PASS.value,
                "componentType": "cache",
                "observedValue": f"{(time.time() - start_time) * 1000:.2f}ms",
                "observedUnit": "ms",
                "time": _now()
            }
        except Exception as e:
            # Cache is optional for this service
            return {"status": HealthStatus.WARN.value, "componentType": "cache", "output": str(e), "time": _now()}

    def _check_disk_space(self) -> Dict[str, Any]:
        try:
            free_gb = psutil.disk_usage('/').free / (1024 ** 3)
        except Exception as e:
            return {"status": HealthStatus.WARN.value, "componentType": "system", "output": str(e), "time": _now()}
        if free_gb < 1:
            status_val = HealthStatus.FAIL
        elif free_gb < 5:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {"status": status_val.value, "componentType": "system",
                "observedValue": f"{free_gb:.2f}", "observedUnit": "GB", "time": _now()}

    def _check_memory(self) -> Dict[str, Any]:
        try:
            available_mb = psutil.virtual_memory().available / (1024 ** 2)
        except Exception as e:
            return {"status": HealthStatus.WARN.value, "componentType": "system", "output": str(e), "time": _now()}
        if available_mb < 100:
            status_val = HealthStatus.FAIL
        elif available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {"status": status_val.value, "componentType": "system",
                "observedValue": f"{available_mb:.2f}", "observedUnit": "MB", "time": _now()}

    def _check_migrations(self) -> Dict[str, Any]:
        engine = self.engine_provider()
        if engine is None:
            return {"status": HealthStatus.FAIL.value, "componentType": "datastore",
                    "output": "database not initialized", "time": _now()}
        try:
            tables = inspect(engine).get_table_names()
        except Exception as e:
            return {"status": HealthStatus.FAIL.value, "componentType": "datastore", "output": str(e), "time": _now()}
        if "records" not in tables:
            return {"status": HealthStatus.FAIL.value, "componentType": "datastore",
                    "output": "records table missing", "time": _now()}
        if "alembic_version" not in tables:
            return {"status": HealthStatus.WARN.value, "componentType": "datastore",
                    "output": "Migrations table not found", "time": _now()}
        return {"status": HealthStatus.PASS.value, "componentType": "datastore", "time": _now()}

    def _check_environment(self) -> Dict[str, Any]:
        if self.settings.DATABASE_URL:
            return {"status": HealthStatus.PASS.value, "componentType": "configuration", "time": _now()}
        required = ["POSTGRES_HOST", "POSTGRES_DB", "POSTGRES_USER", "POSTGRES_PASSWORD"]
        empty = [name for name in required if not getattr(self.settings, name)]
        if empty:
            return {
                "status": HealthStatus.FAIL.value,
                "componentType": "configuration",
                "output": f"Empty settings: {', '.join(empty)}",
                "time": _now()
            }
        # Neither the environment nor .env provided these
        defaulted = [name for name in required if name not in self.settings.model_fields_set]
        if defaulted:
            return {
                "status": HealthStatus.WARN.value,
                "componentType": "configuration",
                "output": f"Using defaults for: {', '.join(defaulted)}",
                "time": _now()
            }
        return {"status": HealthStatus.PASS.value, "componentType": "configuration", "time": _now()}

    @staticmethod
    def overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS.value) for check in checks.values()]
        if HealthStatus.FAIL.value in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN.value in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
