import logging

import httpx

from shortlink.core.config import settings

logger = logging.getLogger(__name__)

THREAT_TYPES = [
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "UNWANTED_SOFTWARE",
    "POTENTIALLY_HARMFUL_APPLICATION",
]


def is_url_safe(url: str) -> bool:
    """Ask Google Safe Browsing whether ``url`` is known to be malicious.

    Fails open: a missing API key, an error response or a network failure all
    count as safe so that link creation keeps working during an outage.
    """
    if not settings.SAFE_BROWSING_API_KEY:
        logger.debug("Safe Browsing key not configured; skipping check for %s", url[:50])
        return True

    body = {
        "client": {"clientId": "shortlink", "clientVersion": "1.0.0"},
        "threatInfo": {
            "threatTypes": THREAT_TYPES,
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }

    try:
        response = httpx.post(
            settings.SAFE_BROWSING_ENDPOINT,
            params={"key": settings.SAFE_BROWSING_API_KEY},
            json=body,
            timeout=settings.SAFE_BROWSING_TIMEOUT,
        )
    except httpx.HTTPError as e:
        logger.error(f"Failed to check URL safety: {e}")
        return True

    if not response.is_success:
        logger.error(f"Safe Browsing API error {response.status_code}: {response.text[:200]}")
        return True

    try:
        matches = response.json().get("matches") or []
    except ValueError:
        logger.error("Safe Browsing API returned a non-JSON body")
        return True

    if matches:
        logger.warning(f"Blocked malicious URL: {url} ({len(matches)} threat matches)")
        return False
    return True
