# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic models for the site configuration document."""

from typing import Optional

from pydantic import BaseModel

from core.results import ActionResult


class Colors(BaseModel):
    primary: str
    accent: str
    background: str


class EmailTemplate(BaseModel):
    subject: str = ""
    body: str = ""


class EmailTemplates(BaseModel):
    verification: EmailTemplate = EmailTemplate()


class SiteSettings(BaseModel):
    site_name: str
    copyright: str
    icon_url: str = ""
    colors: Colors
    developer_credit_text: str = ""
    developer_name: str = ""
    developer_url: str = ""
    is_chat_enabled: bool = True
    email_templates: EmailTemplates = EmailTemplates()


class SiteSettingsUpdate(BaseModel):
    """Any subset of the top-level keys; nested objects are replaced whole."""

    site_name: Optional[str] = None
    copyright: Optional[str] = None
    icon_url: Optional[str] = None
    colors: Optional[dict] = None
    developer_credit_text: Optional[str] = None
    developer_name: Optional[str] = None
    developer_url: Optional[str] = None
    is_chat_enabled: Optional[bool] = None
    email_templates: Optional[dict] = None


class SiteSettingsResult(ActionResult):
    settings: Optional[SiteSettings] = None
    # Browser key for the map provider, from deployment configuration
    maps_api_key: Optional[str] = None
