# Overview: Service-layer operations for web push; encapsulates business logic and database work.

"""
Push Notification Service

Fan-out sends one Web Push message per active subscription concurrently and
waits for every attempt to settle; one failing endpoint never prevents the
others from being tried.

Subscription health:
- 404 / 410 from the push service means the browser dropped the
  subscription, so it is deactivated.
- Any other failure (timeouts, 5xx, 429) is logged and the subscription stays
  active for the next send.

VAPID keys are read from config on first use, so the app boots without them;
sending without keys raises PushConfigurationError.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from flask import current_app
from pywebpush import WebPushException, webpush

from ..extensions import db
from ..models import PushSubscription
from ..validation import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TAG = "hazel"
DEFAULT_URL = "/"
PUSH_TTL_SECONDS = 24 * 60 * 60
MAX_WORKERS = 8
GONE_STATUS_CODES = (404, 410)


class PushConfigurationError(RuntimeError):
    """Raised when VAPID keys are not configured at send time."""
    pass


@dataclass(frozen=True)
class DeliveryResult:
    endpoint: str
    ok: bool
    status_code: int | None = None

    @property
    def gone(self) -> bool:
        return not self.ok and self.status_code in GONE_STATUS_CODES


def build_payload(title: str, body: str, tag: str | None = None, url: str | None = None,
                  require_interaction: bool = False) -> dict:
    if not title:
        raise ValidationError("title is required")
    return {
        "title": title,
        "body": body or "",
        "tag": tag or DEFAULT_TAG,
        "url": url or DEFAULT_URL,
        "requireInteraction": bool(require_interaction),
    }


def _vapid_settings() -> tuple[str, str]:
    private_key = current_app.config.get("VAPID_PRIVATE_KEY")
    public_key = current_app.config.get("VAPID_PUBLIC_KEY")
    if not private_key or not public_key:
        raise PushConfigurationError("VAPID keys are not configured")
    subject = current_app.config.get("VAPID_SUBJECT") or "mailto:admin@hazel.local"
    return private_key, subject


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

def subscribe(user_id: int, endpoint: str, keys: dict | None) -> dict:
    """Upsert on endpoint: a known endpoint gets the new keys/owner and is reactivated."""
    keys = keys if isinstance(keys, dict) else {}
    if not endpoint or not isinstance(endpoint, str):
        raise ValidationError("endpoint is required")
    if not keys.get("p256dh") or not keys.get("auth"):
        raise ValidationError("keys.p256dh and keys.auth are required")

    row = db.session.query(PushSubscription).filter_by(endpoint=endpoint).first()
    if row is None:
        row = PushSubscription(endpoint=endpoint)
        db.session.add(row)
    row.user_id = user_id
    row.p256dh = keys["p256dh"]
    row.auth = keys["auth"]
    row.is_active = True
    db.session.commit()
    return {"success": True}


def unsubscribe(user_id: int, endpoint: str) -> dict:
    if not endpoint:
        raise ValidationError("endpoint is required")
    db.session.query(PushSubscription).filter(
        PushSubscription.user_id == user_id,
        PushSubscription.endpoint == endpoint,
    ).update({PushSubscription.is_active: False}, synchronize_session=False)
    db.session.commit()
    return {"success": True}


def subscription_status(user_id: int) -> dict:
    active = db.session.query(PushSubscription.id).filter(
        PushSubscription.user_id == user_id,
        PushSubscription.is_active.is_(True),
    ).first()
    return {"success": True, "is_subscribed": active is not None}


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

def _deliver(subscription_info: dict, data: str, private_key: str, subject: str) -> DeliveryResult:
    endpoint = subscription_info["endpoint"]
    try:
        webpush(
            subscription_info=subscription_info,
            data=data,
            vapid_private_key=private_key,
            # pywebpush mutates the claims dict, so each call gets its own
            vapid_claims={"sub": subject},
            ttl=PUSH_TTL_SECONDS,
        )
    except WebPushException as exc:
        status_code = getattr(exc.response, "status_code", None)
        logger.warning("Push to %s failed with status %s", endpoint, status_code)
        return DeliveryResult(endpoint=endpoint, ok=False, status_code=status_code)
    except Exception:
        logger.warning("Push to %s failed", endpoint, exc_info=True)
        return DeliveryResult(endpoint=endpoint, ok=False)
    return DeliveryResult(endpoint=endpoint, ok=True)


def _fan_out(subscriptions: list[PushSubscription], payload: dict) -> dict:
    private_key, subject = _vapid_settings()
    if not subscriptions:
        return {"success": True, "sent": 0, "failed": 0}

    data = json.dumps(payload, ensure_ascii=False)
    infos = [sub.subscription_info() for sub in subscriptions]

    with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(infos))) as pool:
        results = list(pool.map(lambda info: _deliver(info, data, private_key, subject), infos))

    gone = [result.endpoint for result in results if result.gone]
    if gone:
        db.session.query(PushSubscription).filter(PushSubscription.endpoint.in_(gone)).update(
            {PushSubscription.is_active: False}, synchronize_session=False
        )
        db.session.commit()
        logger.info("Deactivated %s expired push subscription(s)", len(gone))

    sent = sum(1 for result in results if result.ok)
    return {"success": True, "sent": sent, "failed": len(results) - sent}


def send_push_to_user(user_id: int, payload: dict) -> dict:
    subscriptions = db.session.query(PushSubscription).filter(
        PushSubscription.user_id == user_id,
        PushSubscription.is_active.is_(True),
    ).all()
    return _fan_out(subscriptions, payload)


def send_push_to_all(payload: dict) -> dict:
    subscriptions = db.session.query(PushSubscription).filter(
        PushSubscription.is_active.is_(True),
    ).all()
    return _fan_out(subscriptions, payload)


def send_test_notification(user_id: int) -> dict:
    result = send_push_to_user(user_id, build_payload(
        title="Hazel test notification",
        body="Push notifications are working.",
        tag="test",
    ))
    if result["sent"] > 0:
        return {"success": True, "sent": result["sent"], "failed": result["failed"]}
    return {
        "success": False,
        "sent": 0,
        "failed": result["failed"],
        "error": "No active subscription accepted the notification",
    }
