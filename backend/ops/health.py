"""
Health endpoints for load balancers and dashboards.

- /_health/live    process is up; touches nothing
- /_health/ready   default database answers
- /_health/full    every check below, 503 unless all are healthy

Full report checks:
- databases: every configured alias answers SELECT 1
- ledger_integrity: cached balances agree with a replay of approved lines
- posting_accounts: every posting role resolves to an active account
"""
import functools
import logging
import time

from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"
ERROR = "error"


def timed(check):
    """Add duration_ms to a check's result; turn a crash into status=error."""

    @functools.wraps(check)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            result = check(*args, **kwargs)
        except Exception as exc:
            logger.exception("Health check crashed", extra={"check": check.__name__})
            result = {"status": ERROR, "error": str(exc)}
        result["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
        return result

    return wrapper


@timed
def database(alias="default"):
    try:
        with connections[alias].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        logger.warning("Database unreachable", extra={"alias": alias, "error": str(exc)})
        return {"status": UNHEALTHY, "alias": alias, "error": str(exc)}
    return {"status": HEALTHY, "alias": alias}


def databases():
    results = {alias: database(alias) for alias in settings.DATABASES}
    ok = all(r["status"] == HEALTHY for r in results.values())
    return {"status": HEALTHY if ok else DEGRADED, "databases": results}


@timed
def ledger_integrity():
    from accounting.balances import verify_balances

    report = verify_balances()
    mismatched = [m["account_code"] for m in report["mismatches"]]
    return {
        "status": DEGRADED if mismatched else HEALTHY,
        "total_accounts": report["total_accounts"],
        "verified": report["verified"],
        "lines_processed": report["lines_processed"],
        # A full list is available from `manage.py rebuild_balances --verify-only`.
        "mismatched_accounts": mismatched[:10],
    }


@timed
def posting_accounts():
    from accounting.posting import PostingRules

    missing = PostingRules.from_settings().missing_roles()
    return {"status": UNHEALTHY if missing else HEALTHY, "missing_roles": missing}


CHECKS = {
    "databases": databases,
    "ledger_integrity": ledger_integrity,
    "posting_accounts": posting_accounts,
}


def overall_status(statuses) -> str:
    statuses = list(statuses)
    if all(s == HEALTHY for s in statuses):
        return HEALTHY
    if UNHEALTHY in statuses:
        return UNHEALTHY
    return DEGRADED


def full_report() -> dict:
    results = {name: check() for name, check in CHECKS.items()}
    return {
        "status": overall_status(r["status"] for r in results.values()),
        "checks": results,
        "version": getattr(settings, "VERSION", "unknown"),
        "environment": "development" if settings.DEBUG else "production",
    }


class LivenessView(View):
    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    def get(self, request):
        db = database("default")
        ready = db["status"] == HEALTHY
        return JsonResponse(
            {"status": "ready" if ready else "not_ready", "database": db},
            status=200 if ready else 503,
        )


class FullHealthView(View):
    """Unauthenticated; keep it on the internal network."""

    def get(self, request):
        report = full_report()
        return JsonResponse(report, status=200 if report["status"] == HEALTHY else 503)
