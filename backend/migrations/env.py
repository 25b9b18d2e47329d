# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Alembic environment – runs migrations on the application's own engine.

The database URL comes from etc/app.conf (or DATABASE_URL) through the
Settings class, so the service and its migrations always target the same
database.
"""

import sys
import os

# ``backend/`` holds the top-level packages (core, models, ...); put it on the
# path so this file works when alembic is run from the project root.
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from alembic import context  # noqa: E402

from core.config import settings  # noqa: E402
from database import Base, engine  # noqa: E402

# Every table must be registered on Base.metadata for --autogenerate
import models.user           # noqa: F401, E402
import models.family_member  # noqa: F401, E402
import models.chat           # noqa: F401, E402
import models.message        # noqa: F401, E402
import models.site_setting   # noqa: F401, E402
import models.audit_log      # noqa: F401, E402


def run_migrations_online():
    with engine.connect() as conn:
        context.configure(
            connection=conn,
            target_metadata=Base.metadata,
            compare_type=True,
            # SQLite cannot ALTER most columns in place
            render_as_batch=conn.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


def run_migrations_offline():
    """Emit SQL to stdout instead of executing it (``alembic upgrade --sql``)."""
    context.configure(
        url=settings.database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
