"""App origin derivation.

Product metadata is looked up per app origin. Privileged packages declare
their origin; web packages installed from the marketplace get one derived
from their manifest URL.
"""

import re
from typing import Any

from iap_client.errors import InvalidAppOrigin
from iap_client.logging_config import get_logger
from iap_client.models.settings import PurchaseSettings

logger = get_logger(__name__)

MARKETPLACE_MANIFEST_PATTERN = re.compile(
    r"^https?://(?:marketplace|mp\.dev).*/app/([^/]+)/manifest\.webapp$"
)


def _manifest(app_self: Any) -> dict:
    manifest = getattr(app_self, "manifest", None)
    return manifest if isinstance(manifest, dict) else {}


def get_self_origin(settings: PurchaseSettings) -> str:
    """Get the origin of the calling app or website.

    Args:
        settings: Settings holding app_self and/or app_origin

    Returns:
        Origin string, e.g. "app://game.example.com" or "marketplace:<guid>"

    Raises:
        InvalidAppOrigin: If no origin can be established
    """
    app_self = settings.app_self
    if app_self is None:
        if settings.app_origin:
            return settings.app_origin
        raise InvalidAppOrigin(
            "No installed app and no app_origin configured. "
            "For local testing, use fake products."
        )

    manifest = _manifest(app_self)
    has_declared_origin = bool(manifest.get("origin"))

    if manifest.get("type") == "web" or not has_declared_origin:
        manifest_url = getattr(app_self, "manifest_url", None) or ""
        match = MARKETPLACE_MANIFEST_PATTERN.match(manifest_url)
        if not match:
            raise InvalidAppOrigin(
                f'Cannot derive marketplace GUID from "{manifest_url}". '
                "The package must be installed from the marketplace "
                "or define an origin. For local testing, use fake products."
            )
        marketplace_origin = f"marketplace:{match.group(1)}"
        logger.info(
            "marketplace_origin_derived",
            origin=marketplace_origin,
            manifest_url=manifest_url,
        )
        return marketplace_origin

    return getattr(app_self, "origin", None) or manifest["origin"]
