from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))

from youth_admin.config import get_settings_module
from youth_admin.database.bootstrap import apply_seed_sql, ensure_admin_user
from youth_admin.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config)
    created = ensure_admin_user(
        db_config,
        email=settings.ADMIN_EMAIL,
        username=settings.ADMIN_USERNAME,
        password=settings.ADMIN_PASSWORD,
    )

    print(
        f"OK: Seeded database -> {DBConfig.from_dict(db_config).describe()} "
        f"(admin {'created' if created else 'unchanged or refreshed'})"
    )


if __name__ == "__main__":
    main()
