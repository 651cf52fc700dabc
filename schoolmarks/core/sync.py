import httpx
from typing import Optional

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.config import settings

log = get_logger("sync")


class WebhookSyncHook:
    """
    Notifies an external student-records system that a student has new marks.
    Best effort: every failure is logged and swallowed.
    """

    def __init__(self, url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self.client = client

    def __call__(self, student_id: str) -> None:
        payload = {"event": "marks.submitted", "student_id": student_id}
        try:
            if self.client is not None:
                response = self.client.post(self.url, json=payload, timeout=self.timeout)
            else:
                response = httpx.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            log.info("Synced marks for student %s", student_id)
        except httpx.HTTPStatusError as e:
            log.warning(
                "Sync webhook rejected student %s. Status code: %s",
                student_id, e.response.status_code,
            )
        except httpx.HTTPError as e:
            log.warning("Sync webhook failed for student %s: %s", student_id, e)


def build_sync_hook() -> Optional[WebhookSyncHook]:
    if not settings.SYNC_WEBHOOK_URL:
        return None
    return WebhookSyncHook(settings.SYNC_WEBHOOK_URL, timeout=settings.SYNC_TIMEOUT_SECONDS)
