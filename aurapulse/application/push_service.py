"""
Reminder delivery over Web Push.

Each user may have several devices subscribed. A reminder goes to all of
them; a device the push service reports as gone is unsubscribed.
"""
import json
import logging

from pywebpush import webpush, WebPushException
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from aurapulse.config import get_settings
from aurapulse.infrastructure.db.models import PushSubscription

logger = logging.getLogger(__name__)

EXPIRED_STATUS_CODES = (404, 410)
ENDPOINT_LOG_CHARS = 60


def _vapid_private_key(raw_key: str) -> str:
    """Bare base64url key from a configured VAPID key.

    The key may be configured as a PEM block (with real or escaped newlines)
    or as the bare key.
    """
    if "\\n" in raw_key:
        raw_key = raw_key.replace("\\n", "\n")
    if "BEGIN" in raw_key:
        body = [line.strip() for line in raw_key.strip().splitlines()
                if line.strip() and not line.strip().startswith("-----")]
        raw_key = "".join(body)
    return raw_key


def _subscription_info(device: PushSubscription) -> dict:
    return {"endpoint": device.endpoint, "keys": {"p256dh": device.p256dh, "auth": device.auth}}


def send_web_push(db: Session, device: PushSubscription, reminder: dict) -> bool:
    """
    Deliver one reminder to one subscribed device.

    reminder: {"title": "Due today: 2 tasks", "body": "...", "url": "/todos"}

    False when VAPID is not configured or delivery failed. A device answering
    404/410 is unsubscribed.
    """
    settings = get_settings()
    if not settings.VAPID_PRIVATE_KEY or not settings.VAPID_PUBLIC_KEY:
        logger.warning("Reminder for user %s not sent: VAPID keys are not configured", device.user_id)
        return False

    try:
        webpush(
            subscription_info=_subscription_info(device),
            data=json.dumps(reminder, ensure_ascii=False),
            vapid_private_key=_vapid_private_key(settings.VAPID_PRIVATE_KEY),
            vapid_claims={"sub": settings.VAPID_MAILTO},
        )
    except WebPushException as e:
        status_code = e.response.status_code if e.response is not None else 0
        if status_code in EXPIRED_STATUS_CODES:
            logger.info(
                "Device of user %s unsubscribed (HTTP %d): %s",
                device.user_id, status_code, device.endpoint[:ENDPOINT_LOG_CHARS],
            )
            db.execute(delete(PushSubscription).where(PushSubscription.id == device.id))
            db.commit()
        else:
            logger.error("Reminder delivery to user %s failed (HTTP %d): %s", device.user_id, status_code, e)
        return False
    return True


def send_push_to_user(db: Session, user_id: str, reminder: dict) -> int:
    """Deliver a reminder to every device of user_id. Returns the number of devices reached."""
    devices = list(db.scalars(select(PushSubscription).where(PushSubscription.user_id == user_id)))
    delivered = sum(1 for device in devices if send_web_push(db, device, reminder))
    logger.debug("Reminder for user %s reached %d of %d device(s)", user_id, delivered, len(devices))
    return delivered
