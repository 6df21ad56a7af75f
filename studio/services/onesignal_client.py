import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

ONESIGNAL_API_URL = "https://api.onesignal.com"


class OneSignalClient:
    """Thin wrapper over the OneSignal REST API (notifications + user tags)."""

    def __init__(self, app_id: str, api_key: str, timeout: float = 10.0):
        self.app_id = app_id
        self.api_key = api_key
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Key {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def create_notification(
        self, title: str, message: str, filters: Optional[List[Dict]] = None
    ) -> Optional[str]:
        body = {
            "app_id": self.app_id,
            "headings": {"en": title},
            "contents": {"en": message},
        }
        if filters:
            body["filters"] = filters
        else:
            body["included_segments"] = ["All"]

        resp = self.session.post(
            f"{ONESIGNAL_API_URL}/notifications", json=body, timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json().get("id")

    def update_tags(self, external_id: str, tags: Dict[str, str]) -> None:
        """Set tags on a user; an empty string value deletes that tag."""
        resp = self.session.patch(
            f"{ONESIGNAL_API_URL}/apps/{self.app_id}/users/by/external_id/{external_id}",
            json={"properties": {"tags": tags}},
            timeout=self.timeout,
        )
        resp.raise_for_status()
