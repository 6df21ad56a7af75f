"""
Web Push delivery.

VAPID keys and browser subscriptions live in two small JSON files. The key
pair is generated on first use and reused afterwards unless both keys are
supplied through the environment.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional

import requests
from py_vapid import Vapid01 as Vapid
from py_vapid.utils import b64urlencode
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from pywebpush import WebPushException, webpush

from ..utils.validators import PushSubscription

logger = logging.getLogger(__name__)

_file_lock = threading.Lock()


def _read_json(path: Path, default):
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2)
    os.replace(tmp, path)


def generate_vapid_keys() -> Dict[str, str]:
    """Return a fresh key pair as url-safe base64 (public: uncompressed point)."""
    vapid = Vapid()
    vapid.generate_keys()
    public_raw = vapid.public_key.public_bytes(
        Encoding.X962, PublicFormat.UncompressedPoint
    )
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return {
        "publicKey": b64urlencode(public_raw),
        "privateKey": b64urlencode(private_raw),
    }


class VapidKeys:
    def __init__(
        self,
        key_file: str,
        subject: str,
        public_key: str = "",
        private_key: str = "",
    ):
        self.key_file = Path(key_file)
        self.subject = subject
        self._env_public = public_key
        self._env_private = private_key
        self._loaded: Optional[Dict[str, str]] = None

    def _ensure(self) -> Dict[str, str]:
        if self._env_public and self._env_private:
            return {"publicKey": self._env_public, "privateKey": self._env_private}
        if self._loaded is not None:
            return self._loaded

        with _file_lock:
            stored = _read_json(self.key_file, None)
            if not stored:
                stored = generate_vapid_keys()
                stored["subject"] = self.subject
                _write_json(self.key_file, stored)
                logger.info("Generated new VAPID keys and saved to %s", self.key_file)
        self._loaded = stored
        return stored

    @property
    def public_key(self) -> str:
        return self._ensure()["publicKey"]

    @property
    def private_key(self) -> str:
        return self._ensure()["privateKey"]


class SubscriptionStore:
    """Push subscriptions kept in a JSON list, unique by endpoint."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load_all(self) -> List[PushSubscription]:
        with _file_lock:
            raw = _read_json(self.path, [])
        subs = []
        for item in raw:
            keys = item.get("keys") or {}
            subs.append(
                PushSubscription(
                    endpoint=item.get("endpoint", ""),
                    p256dh=keys.get("p256dh", ""),
                    auth=keys.get("auth", ""),
                )
            )
        return subs

    def save(self, subscription: PushSubscription) -> bool:
        """Store ``subscription``; returns False when the endpoint is known."""
        with _file_lock:
            raw = _read_json(self.path, [])
            if any(item.get("endpoint") == subscription.endpoint for item in raw):
                return False
            raw.append(subscription.to_dict())
            _write_json(self.path, raw)
        return True


class WebPushSender:
    def __init__(self, keys: VapidKeys, store: SubscriptionStore, ttl: int = 86400):
        self.keys = keys
        self.store = store
        self.ttl = ttl

    def send_to_all(self, title: str, body: str, url: str = "/") -> List[Dict]:
        """Best-effort fan-out; one dead endpoint never stops the others."""
        payload = json.dumps({"title": title, "body": body, "url": url})
        results = []
        for sub in self.store.load_all():
            if not sub.p256dh or not sub.auth:
                results.append(
                    {"endpoint": sub.endpoint, "ok": False, "error": "Invalid subscription keys"}
                )
                continue
            try:
                webpush(
                    subscription_info=sub.to_dict(),
                    data=payload,
                    vapid_private_key=self.keys.private_key,
                    # webpush adds aud/exp to the claims dict, so pass a new one
                    vapid_claims={"sub": self.keys.subject},
                    ttl=self.ttl,
                )
                results.append({"endpoint": sub.endpoint, "ok": True})
                logger.info("Notification sent to %s...", sub.endpoint[:50])
            except (WebPushException, requests.RequestException, ValueError) as e:
                results.append({"endpoint": sub.endpoint, "ok": False, "error": str(e)})
                logger.error("Failed to send notification to %s: %s", sub.endpoint[:50], e)
        return results
