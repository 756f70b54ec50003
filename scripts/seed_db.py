"""Seed demo accounts and the default academic calendar.

Usage: python scripts/seed_db.py [ACADEMIC_YEAR]   (e.g. 2025-2026)
"""

from __future__ import annotations

import importlib
import sys
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.smart_hostel.smart_hostel.container import build_container
from src.smart_hostel.smart_hostel.core.enums import Role
from src.smart_hostel.smart_hostel.database.bootstrap import apply_seed_sql, ensure_demo_users


def _current_academic_year(today: date) -> str:
    start = today.year if today.month >= 7 else today.year - 1
    return f"{start}-{start + 1}"


def main(argv: list[str]) -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    seed_path = REPO_ROOT / "database" / "seed.sql"
    if seed_path.exists():
        apply_seed_sql(db_config, seed_path=seed_path)
    ensure_demo_users(db_config)

    container = build_container(db_config=db_config)
    admin = container.users_repo.get_by_email("admin@hostel.local")
    academic_year = argv[0] if argv else _current_academic_year(date.today())
    events = container.calendar_service.seed_defaults(
        current_role=Role.ADMIN,
        created_by=admin.user_id,
        academic_year=academic_year,
    )

    print(f"OK: demo users ready, {len(events)} calendar events created for {academic_year}")


if __name__ == "__main__":
    main(sys.argv[1:])
