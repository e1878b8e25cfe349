# -*- coding: utf-8 -*-
"""
Full reset of the SQLite database plus base data, with verbose output.

Run from the project root:
  python scripts/recreate_db.py
"""

from __future__ import annotations
import os
import sys
import traceback
from pathlib import Path
from typing import Optional

# --- project path ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print(f"[recreate] ROOT={ROOT}")
if not (ROOT / "branch_console" / "__init__.py").exists():
    raise SystemExit("[recreate] error: branch_console/ not found next to scripts/")

print("[recreate] importing app…")
from branch_console import create_app  # noqa: E402
from branch_console.acl import AccessLevel, FunctionKey, dump_permissions  # noqa: E402
from branch_console.extensions import db  # noqa: E402
from branch_console.models import Department, MeetingRoom, SystemUser, UserGroup  # noqa: E402
from branch_console.system_config import seed_defaults  # noqa: E402


def _db_path_from_uri(uri: str) -> Optional[Path]:
    if uri.startswith("sqlite:///"):
        return Path(uri.replace("sqlite:///", "")).resolve()
    return None


def main() -> int:
    print("[recreate] create_app()…")
    app = create_app()
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        print(f"[recreate] SQLALCHEMY_DATABASE_URI = {uri}")

        db_path = _db_path_from_uri(uri)
        if db_path:
            db.engine.dispose()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            if db_path.exists():
                print(f"[recreate] removing db file: {db_path}")
                db_path.unlink()
            else:
                print(f"[recreate] db file does not exist yet: {db_path}")
        else:
            print("[recreate] not sqlite, dropping all tables instead")
            db.drop_all()

        print("[recreate] creating tables from models…")
        db.create_all()

        # --- groups ---
        admins = UserGroup(
            name="Administrators",
            permissions=dump_permissions({k: AccessLevel.EDIT for k in FunctionKey}),
        )
        viewers = UserGroup(
            name="Staff",
            permissions=dump_permissions({
                FunctionKey.WORK_SCHEDULES: AccessLevel.VIEW,
                FunctionKey.MEETING_SCHEDULES: AccessLevel.VIEW,
                FunctionKey.HOLIDAYS: AccessLevel.VIEW,
                FunctionKey.RESERVATIONS: AccessLevel.EDIT,
            }),
        )
        db.session.add_all([admins, viewers])
        db.session.flush()

        # --- users ---
        admin_password = os.getenv("ADMIN_PASSWORD", "admin")
        admin = SystemUser(username="admin", full_name="Administrator", user_group_id=admins.id)
        admin.set_password(admin_password)
        db.session.add(admin)

        # --- reference data ---
        code = app.config.get("BOARD_DEPARTMENT_CODE", "BGD")
        db.session.add(Department(code=code, name="Board of Directors", short_name=code))
        db.session.add(MeetingRoom(name="Main meeting room", location="Floor 1"))
        db.session.commit()
        print(f"[recreate] groups: {admins.name} id={admins.id}, {viewers.name} id={viewers.id}")

        added = seed_defaults()
        print(f"[recreate] system_config rows: {added}")

        print("\n[recreate] Done.")
        print(f"Login: admin / {'(ADMIN_PASSWORD)' if os.getenv('ADMIN_PASSWORD') else 'admin'}")
        if db_path:
            print(f"\nDB file: {db_path}")
        return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        print("\n[recreate] ERROR:")
        traceback.print_exc()
        sys.exit(1)
