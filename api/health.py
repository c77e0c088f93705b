"""Process health report"""
import gc
import logging
import platform
import resource
import sys
from datetime import datetime, timedelta, timezone

import psycopg2

from api.schemas import HealthResponse, MemoryStats

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

_started_at = datetime.now(timezone.utc)


def memory_stats() -> MemoryStats:
    """Resident set peak and garbage collector counters for this process"""
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is kilobytes on Linux, bytes on macOS
    if sys.platform != "darwin":
        max_rss *= 1024
    return MemoryStats(
        max_rss_bytes=max_rss,
        gc_collections=sum(stats["collections"] for stats in gc.get_stats()),
        gc_pending=sum(gc.get_count()),
    )


def database_status(db_manager) -> str:
    if db_manager is None:
        return "not configured"
    try:
        return "ok" if db_manager.ping() else "unavailable"
    except (psycopg2.Error, RuntimeError) as e:
        logger.warning("Database health check failed: %s", e)
        return "unavailable"


def health_report(now: datetime = None, db_manager=None) -> HealthResponse:
    now = now or datetime.now(timezone.utc)
    uptime = timedelta(seconds=int((now - _started_at).total_seconds()))
    database = database_status(db_manager)
    return HealthResponse(
        status="degraded" if database == "unavailable" else "healthy",
        timestamp=now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        version=VERSION,
        uptime=str(uptime),
        python_version=platform.python_version(),
        database=database,
        memory=memory_stats(),
    )
