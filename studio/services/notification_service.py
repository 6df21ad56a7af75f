"""
Notification dispatch for the studio.

Two transports sit behind ``NotificationDispatcher``:

* Web Push to every browser subscription registered through ``/api/subscribe``.
* OneSignal, used for segment broadcasts and the per-appointment reminder tags
  that drive the 24h/3h/1h reminders configured on the OneSignal side.

OneSignal is optional. Without credentials every OneSignal call is replaced by
a log line. Nothing here raises into the caller: a notification that cannot
be delivered is logged and the request that triggered it carries on.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

import requests
from flask import current_app

from ..utils.validators import PushSubscription, format_datetime
from .onesignal_client import OneSignalClient
from .web_push import SubscriptionStore, VapidKeys, WebPushSender

logger = logging.getLogger(__name__)

INACTIVE_CLIENT_TITLE = "We miss you! \U0001F485"
INACTIVE_CLIENT_MESSAGE = (
    "Hi {name}! It's been a while since your last visit. "
    "How about booking your next appointment?"
)


def reminder_tag(appointment_id: int) -> str:
    return f"appointment_{appointment_id}"


class NotificationDispatcher:
    def __init__(
        self,
        web_push: WebPushSender,
        onesignal: Optional[OneSignalClient] = None,
    ):
        self.web_push = web_push
        self.onesignal = onesignal

    @classmethod
    def from_config(cls, config) -> "NotificationDispatcher":
        keys = VapidKeys(
            key_file=config["VAPID_FILE"],
            subject=config["VAPID_SUBJECT"],
            public_key=config.get("VAPID_PUBLIC_KEY", ""),
            private_key=config.get("VAPID_PRIVATE_KEY", ""),
        )
        store = SubscriptionStore(config["SUBSCRIPTIONS_FILE"])

        onesignal = None
        if config.get("ONESIGNAL_APP_ID") and config.get("ONESIGNAL_API_KEY"):
            onesignal = OneSignalClient(
                config["ONESIGNAL_APP_ID"], config["ONESIGNAL_API_KEY"]
            )
            logger.info("OneSignal initialized")
        else:
            logger.warning(
                "OneSignal credentials not configured; reminder tags and segment "
                "pushes will only be logged. Set ONESIGNAL_APP_ID and "
                "ONESIGNAL_API_KEY to enable them."
            )
        return cls(WebPushSender(keys, store), onesignal)

    @property
    def public_key(self) -> str:
        return self.web_push.keys.public_key

    # -- subscriptions ------------------------------------------------------

    def register_subscription(self, subscription: PushSubscription) -> bool:
        created = self.web_push.store.save(subscription)
        if created:
            logger.info("New push subscription saved")
        return created

    # -- delivery -----------------------------------------------------------

    def broadcast(self, title: str, body: str) -> List[Dict]:
        """Send to every Web Push subscriber and, if configured, OneSignal."""
        try:
            results = self.web_push.send_to_all(title, body)
        except Exception:
            logger.exception("Web Push broadcast failed")
            results = []

        if self.onesignal is None:
            logger.info("[mock] Would send OneSignal notification: %s - %s", title, body)
            return results

        try:
            notification_id = self.onesignal.create_notification(title, body)
            logger.info("OneSignal notification sent, id=%s", notification_id)
        except requests.RequestException as e:
            logger.error("Error sending OneSignal notification: %s", e)
        return results

    def send_inactive_client_notification(self, client_name: str) -> List[Dict]:
        return self.broadcast(
            INACTIVE_CLIENT_TITLE, INACTIVE_CLIENT_MESSAGE.format(name=client_name)
        )

    # -- reminder tags ------------------------------------------------------

    def tag_appointment_reminder(
        self, appointment_id: int, date_time: datetime, user_id: int
    ) -> None:
        tag = reminder_tag(appointment_id)
        value = format_datetime(date_time)
        if self.onesignal is None:
            logger.info("[mock] Would add appointment tag: %s = %s", tag, value)
            return
        try:
            self.onesignal.update_tags(str(user_id), {tag: value})
            logger.info("Tag %s set to %s", tag, value)
        except requests.RequestException as e:
            logger.error("Error adding appointment tag %s: %s", tag, e)

    def untag_appointment_reminder(self, appointment_id: int, user_id: int) -> None:
        tag = reminder_tag(appointment_id)
        if self.onesignal is None:
            logger.info("[mock] Would remove appointment tag: %s", tag)
            return
        try:
            self.onesignal.update_tags(str(user_id), {tag: ""})
            logger.info("Tag %s removed", tag)
        except requests.RequestException as e:
            logger.error("Error removing appointment tag %s: %s", tag, e)


def get_dispatcher() -> NotificationDispatcher:
    """The dispatcher built by ``create_app`` for the current application."""
    return current_app.extensions["notifications"]
