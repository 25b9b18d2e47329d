# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""SiteSetting ORM model – the singleton site configuration document."""

from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func

from database import Base

SITE_CONFIG_ID = "site_config"


class SiteSetting(Base):
    __tablename__ = "site_settings"

    id = Column(String(64), primary_key=True, default=SITE_CONFIG_ID)
    # Only the keys an administrator has saved; defaults are layered on read
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
