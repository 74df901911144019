from __future__ import annotations

from fastapi import Depends

from upload_relay.core.settings import RelaySettings, get_settings
from upload_relay.services.notifier import WebhookNotifier
from upload_relay.services.relay import UploadRelay
from upload_relay.services.storage_client import BunnyStorageClient


# Per request opgebouwd: de clients openen per call hun eigen AsyncClient.
def get_storage_client(settings: RelaySettings = Depends(get_settings)) -> BunnyStorageClient:
    return BunnyStorageClient(timeout=settings.HTTP_TIMEOUT_SECONDS)


def get_notifier(settings: RelaySettings = Depends(get_settings)) -> WebhookNotifier:
    return WebhookNotifier(timeout=settings.HTTP_TIMEOUT_SECONDS)


def get_upload_relay(
    settings: RelaySettings = Depends(get_settings),
    storage: BunnyStorageClient = Depends(get_storage_client),
    notifier: WebhookNotifier = Depends(get_notifier),
) -> UploadRelay:
    """Per request opgebouwd; settings worden expliciet doorgegeven."""
    return UploadRelay(settings=settings, storage=storage, notifier=notifier)
