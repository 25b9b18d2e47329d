# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Site configuration endpoints.  Reading is public, saving is admin only."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from core.config import settings
from core.security import get_client_ip, require_admin
from models.user import User
from site_config import service
from site_config.schemas import SiteSettingsResult, SiteSettingsUpdate

router = APIRouter(prefix="/site-settings", tags=["site-settings"])


@router.get("", response_model=SiteSettingsResult)
def read_settings(db: Session = Depends(get_db)):
    result = service.get_site_settings(db)
    if result.success:
        result.maps_api_key = settings.maps_api_key
    return result


@router.put("", response_model=SiteSettingsResult)
def save_settings(
    body: SiteSettingsUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return service.save_site_settings(
        db,
        body.model_dump(exclude_none=True),
        admin.id,
        get_client_ip(request),
    )
