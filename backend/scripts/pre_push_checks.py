#!/usr/bin/env python3
"""
Pre-push / production readiness checks.
Run from backend dir with project venv active: python scripts/pre_push_checks.py
"""
import sys
from pathlib import Path

BACKEND = Path(__file__).resolve().parent.parent
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))


def check_imports():
    from activity_portal.main import app  # noqa: F401
    from activity_portal.services.dashboards import DASHBOARD_BUILDERS
    from activity_portal.models.types import Role
    assert set(DASHBOARD_BUILDERS) == set(Role), "every role needs a dashboard"
    return "imports"


def check_secrets():
    from activity_portal.config import DEFAULT_ADMIN_SECRET_KEY, DEFAULT_SECRET_KEY, settings
    if settings.is_production:
        assert settings.secret_key != DEFAULT_SECRET_KEY, "SECRET_KEY is the default"
        assert settings.admin_secret_key != DEFAULT_ADMIN_SECRET_KEY, "ADMIN_SECRET_KEY is the default"
    return "secrets"


def check_aggregates():
    from activity_portal.services.analytics import approval_rate
    assert approval_rate(0, 0) == 0.0
    assert approval_rate(3, 1) == 75.0
    return "aggregates"


def check_init_db():
    from activity_portal.database import init_db
    init_db()
    return "init_db"


def main():
    checks = [check_imports, check_secrets, check_aggregates, check_init_db]
    for fn in checks:
        try:
            name = fn()
            print(f"OK {name}")
        except Exception as e:
            print(f"FAIL {fn.__name__}: {e}")
            return 1
    print("All pre-push checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
