# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Result envelope shared by every service function.

Handlers never let an exception escape to the presentation layer.  They
return an :class:`ActionResult` (or a subclass carrying a payload) whose
``error`` field names exactly one outcome from :class:`ErrorCode`, and the
:func:`action` decorator turns anything unexpected into an ``internal``
result after logging it.
"""

import functools
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from core.logger import logger
from core.mailer import MailDeliveryError


class ErrorCode(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    USER_NOT_FOUND = "user_not_found"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    NEEDS_VERIFICATION = "needs_verification"
    NEEDS_ADMIN_APPROVAL = "needs_admin_approval"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_INACTIVE = "account_inactive"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    CHAT_DISABLED = "chat_disabled"
    MAIL_FAILURE = "mail_failure"
    INTERNAL = "internal"


class ActionResult(BaseModel):
    success: bool
    error: Optional[ErrorCode] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, message: Optional[str] = None, **payload):
        return cls(success=True, message=message, **payload)

    @classmethod
    def fail(cls, error: ErrorCode, message: str, **payload):
        return cls(success=False, error=error, message=message, **payload)


_MAIL_FAIL = "Could not reach the mail server. Please try again later."
_INTERNAL_FAIL = "An unexpected error occurred."


def action(name: str, result_cls: type[ActionResult] = ActionResult):
    """
    Decorate a service function ``fn(db, ...)``.

    * ``MailDeliveryError`` → ``mail_failure`` result.  Whatever was committed
      before the send stays committed; the resend path repairs it.
    * Any other exception → session rolled back, traceback logged,
      ``internal`` result.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(db, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except MailDeliveryError:
                logger.exception("%s: verification email could not be sent", name)
                db.rollback()
                return result_cls.fail(ErrorCode.MAIL_FAILURE, _MAIL_FAIL)
            except Exception:
                logger.exception("%s failed", name)
                db.rollback()
                return result_cls.fail(ErrorCode.INTERNAL, _INTERNAL_FAIL)

        return wrapper

    return decorator
