"""Settings management module."""

from vidpipe.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from vidpipe.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    BucketSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    QueueSettings,
    Settings,
    SigningSettings,
    TelemetrySettings,
    UploadSettings,
    WorkerSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Pipeline
    "UploadSettings",
    "QueueSettings",
    "WorkerSettings",
    "SigningSettings",
    # Telemetry
    "TelemetrySettings",
]
