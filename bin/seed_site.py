# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – writes the default site configuration row.

Run once after the initial migration:
    alembic upgrade head
    python bin/seed_site.py

The service creates the row lazily on the first settings read, so this is
only needed when the database should be populated before the first request.
The administrator account is not seeded here: logging in with ADMIN_EMAIL /
ADMIN_PASSWORD from etc/app.conf starts the first-run setup instead.
"""

import sys
import os

# bin/seed_site.py  →  ../backend
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import settings                  # noqa: E402
from database import SessionLocal                 # noqa: E402
from site_config.service import get_site_settings  # noqa: E402


def seed():
    db = SessionLocal()
    try:
        result = get_site_settings(db)
    finally:
        db.close()

    if not result.success:
        print(f"[seed_site] Could not write site configuration: {result.message}")
        sys.exit(1)

    print(f"[seed_site] Site '{result.settings.site_name}' ready.")
    if not settings.admin_email or not settings.admin_password:
        print("[seed_site] ADMIN_EMAIL or ADMIN_PASSWORD not set in etc/app.conf – first-run setup is disabled.")


if __name__ == "__main__":
    seed()
