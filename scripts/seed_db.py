from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.pg_manager.pg_manager.database.bootstrap import DEMO_ADMINS, ensure_demo_admins


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_admins(db_config)

    print(
        "OK: Demo admins ready -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
    for name, email, _password, pg_type in DEMO_ADMINS:
        print(f"  {pg_type.value:<6} {email} ({name})")


if __name__ == "__main__":
    main()
