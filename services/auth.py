import hmac
import logging

from core.config import Settings

logger = logging.getLogger(__name__)


def check_credentials(password: str | None, settings: Settings) -> bool:
    """Single shared admin password; an unset password locks the console."""
    if not settings.admin_enabled or not password:
        return False
    ok = hmac.compare_digest(password.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8"))
    if not ok:
        logger.warning("Rejected admin credentials")
    return ok
