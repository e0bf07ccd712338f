"""
Alert delivery to in-app, Slack, Discord and generic webhook channels.
Each channel is attempted once; failures are logged and leave the channel undelivered.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
import httpx

from config import settings
from models.alert import SEVERITIES, Alert, AlertPreferences

logger = logging.getLogger(__name__)

SEVERITY_RANK = {s: i for i, s in enumerate(SEVERITIES)}


def meets_severity(alert: Alert, minimum: str) -> bool:
    return SEVERITY_RANK[alert.severity] >= SEVERITY_RANK[minimum]


def in_quiet_hours(prefs: AlertPreferences, now: datetime) -> bool:
    start, end = prefs.quiet_hours_start, prefs.quiet_hours_end
    if start is None or end is None or start == end:
        return False
    hour = now.hour
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end   # window wraps midnight


def _payload(alert: Alert, channel: str) -> dict:
    text = f"[{alert.severity.upper()}] {alert.title}: {alert.message}"
    if alert.recommendations:
        text += "\n" + "\n".join(f"• {r}" for r in alert.recommendations)
    if channel == "slack":
        return {"text": text}
    if channel == "discord":
        return {"content": text}
    return alert.model_dump(mode="json")


def _post(url: str, payload: dict) -> bool:
    try:
        resp = httpx.post(url, json=payload, timeout=settings.NOTIFY_TIMEOUT_SECONDS)
        resp.raise_for_status()
        return True
    except httpx.HTTPError as e:
        logger.warning("Alert delivery to %s failed: %s", url, e)
        return False


def _webhook_url(channel: str, prefs: AlertPreferences) -> Optional[str]:
    return {
        "slack": prefs.slack_webhook,
        "discord": prefs.discord_webhook,
        "webhook": prefs.custom_webhook,
    }.get(channel)


def deliver(alert: Alert, prefs: AlertPreferences, now: Optional[datetime] = None) -> Alert:
    """Return a copy of the alert with its delivered flags updated."""
    delivered = dict(alert.delivered)
    if not prefs.enabled:
        return alert.model_copy(update={"delivered": delivered})

    quiet = in_quiet_hours(prefs, now or datetime.now(timezone.utc))

    for channel in alert.channels:
        if channel == "in_app":
            delivered["in_app"] = meets_severity(alert, prefs.min_severity_in_app)
        elif channel == "email":
            # no mail transport configured; email stays undelivered
            logger.debug("Email delivery skipped for alert %s", alert.id)
        elif not quiet:
            url = _webhook_url(channel, prefs)
            if url:
                delivered[channel] = _post(url, _payload(alert, channel))

    return alert.model_copy(update={"delivered": delivered})
