"""Readiness checks: config, packages, database, optional media host and Google login."""
import asyncio
import logging
from typing import Optional

from closecircle.infra.db.base import Database

logger = logging.getLogger(__name__)

# Result: (passed: bool, message: str)
CheckResult = tuple[bool, str]
ChecksDict = dict[str, CheckResult]


def check_config() -> CheckResult:
    """Load settings and read app_name / database_url / secret_key."""
    try:
        from closecircle.settings import get_settings
        s = get_settings()
        _ = s.app_name
        _ = s.database_url
        if not s.secret_key:
            return False, "secret_key is empty"
        return True, "ok"
    except Exception as e:
        return False, str(e)


def check_packages() -> CheckResult:
    """Import critical modules: uvicorn, sqlalchemy, httpx, closecircle.main."""
    missing = []
    try:
        import uvicorn  # noqa: F401
    except ImportError:
        missing.append("uvicorn")
    try:
        import sqlalchemy  # noqa: F401
    except ImportError:
        missing.append("sqlalchemy")
    try:
        import httpx  # noqa: F401
    except ImportError:
        missing.append("httpx")
    try:
        import closecircle.main  # noqa: F401
    except ImportError as e:
        missing.append(f"closecircle.main ({e})")
    if missing:
        return False, f"missing: {', '.join(missing)}"
    return True, "ok"


async def _check_database_async(database: Optional[Database] = None) -> CheckResult:
    """Run a trivial query, on the app's database if given, else on a throwaway engine."""
    owned = database is None
    try:
        if owned:
            from closecircle.settings import get_settings
            database = Database(get_settings().database_url)
            database.connect()
        await database.ping()
        return True, "ok"
    except Exception as e:
        return False, str(e)
    finally:
        if owned and database is not None:
            await database.dispose()


def check_database() -> CheckResult:
    """Check database connectivity using settings.database_url."""
    try:
        return asyncio.run(_check_database_async())
    except Exception as e:
        return False, str(e)


def check_media_host() -> CheckResult:
    """Cloudinary credentials present; skipped when not configured."""
    from closecircle.settings import get_settings
    if not get_settings().media_host_configured:
        return True, "skipped (not configured)"
    return True, "ok"


def check_google_oauth() -> CheckResult:
    from closecircle.settings import get_settings
    if not get_settings().google_oauth_configured:
        return True, "skipped (not configured)"
    return True, "ok"


def run_all_checks() -> ChecksDict:
    """Run all readiness checks (sync). Returns dict of check_name -> (passed, message)."""
    return {
        "config": check_config(),
        "packages": check_packages(),
        "database": check_database(),
        "media_host": check_media_host(),
        "google_oauth": check_google_oauth(),
    }


async def run_all_checks_async(database: Optional[Database] = None) -> ChecksDict:
    """Run all readiness checks (async). Use from async context (e.g. GET /ready) to avoid nested event loop."""
    db_result = await _check_database_async(database)
    return {
        "config": check_config(),
        "packages": check_packages(),
        "database": db_result,
        "media_host": check_media_host(),
        "google_oauth": check_google_oauth(),
    }


def is_ready(checks: ChecksDict | None = None) -> tuple[bool, dict[str, str]]:
    """
    True if all required checks pass. Optional checks (media host, Google login) only report.
    Returns (ready: bool, checks_summary: dict of name -> "ok" | "skipped" | error message).
    """
    if checks is None:
        checks = run_all_checks()
    required = {"config", "packages", "database"}
    summary: dict[str, str] = {}
    for name, (passed, msg) in checks.items():
        summary[name] = msg
    all_required = all(checks[n][0] for n in required if n in checks)
    return all_required, summary
