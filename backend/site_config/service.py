# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Site configuration singleton.

Only the keys an administrator saved are stored.  Reads layer them over
``DEFAULT_SETTINGS`` with :func:`deep_merge`, so overriding one color or the
email subject leaves every other default in place.
"""

import copy
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from core.logger import logger
from core.results import ErrorCode, action
from models.audit_log import AuditLog
from models.site_setting import SITE_CONFIG_ID, SiteSetting
from site_config.schemas import SiteSettings, SiteSettingsResult

DEFAULT_SETTINGS = {
    "site_name": "FAMLocator",
    "copyright": "© 2024 FAMLocator. All rights reserved.",
    "icon_url": "",
    "colors": {
        "primary": "#26A69A",
        "accent": "#64B5F6",
        "background": "#F5F5F5",
    },
    "developer_credit_text": "Developed by",
    "developer_name": "RchBytec Srl",
    "developer_url": "https://rchbytec.com.ar",
    "is_chat_enabled": True,
    "email_templates": {
        "verification": {
            "subject": "FAMLocator verification code",
            "body": "Your verification code is: {{token}}",
        },
    },
}


def deep_merge(base: dict, overrides: dict) -> dict:
    """
    Return a new dict: *overrides* layered onto *base*, recursing wherever
    both sides hold a dict.  Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _load_row(db: Session) -> SiteSetting:
    row = db.get(SiteSetting, SITE_CONFIG_ID)
    if row is None:
        row = SiteSetting(id=SITE_CONFIG_ID, data=copy.deepcopy(DEFAULT_SETTINGS))
        db.add(row)
        db.commit()
        logger.info("Site configuration created with defaults")
    return row


@action("get_site_settings", SiteSettingsResult)
def get_site_settings(db: Session) -> SiteSettingsResult:
    row = _load_row(db)
    merged = deep_merge(DEFAULT_SETTINGS, row.data or {})
    return SiteSettingsResult.ok(settings=SiteSettings.model_validate(merged))


@action("save_site_settings", SiteSettingsResult)
def save_site_settings(
    db: Session,
    changes: dict,
    actor_id: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> SiteSettingsResult:
    """
    Merge *changes* into the stored document key by key (top level only)
    and return the effective settings.
    """
    row = _load_row(db)
    stored = dict(row.data or {})
    stored.update(copy.deepcopy(changes))
    # Fail before writing if the result would not be a valid document
    try:
        effective = SiteSettings.model_validate(deep_merge(DEFAULT_SETTINGS, stored))
    except ValidationError as exc:
        logger.info("Rejected site settings change (%d errors)", exc.error_count())
        return SiteSettingsResult.fail(
            ErrorCode.VALIDATION, f"Invalid site settings: {exc.errors()[0]['msg']}"
        )

    # Reassign rather than mutate so the JSON column is flagged dirty
    row.data = stored
    db.add(AuditLog(
        actor_id=actor_id,
        action="save_site_settings",
        detail=f"keys={', '.join(sorted(changes))}",
        request_ip=request_ip,
    ))
    db.commit()
    return SiteSettingsResult.ok("Settings saved.", settings=effective)
