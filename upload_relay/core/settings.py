# upload_relay/core/settings.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from upload_relay.schemas.uploads import StorageTarget

DEFAULT_UPLOAD_FOLDER = "1_APPEAL_REQUEST_UPLOADS"


class RelaySettings(BaseSettings):
    # === Storage (edge storage zone + pull zone) ===
    STORAGE_ZONE: Optional[str] = None
    STORAGE_HOST: Optional[str] = None
    STORAGE_ACCESS_KEY: Optional[str] = None
    PULL_ZONE_HOST: Optional[str] = None
    UPLOAD_FOLDER: Optional[str] = None

    # === Webhook (leeg = uit) ===
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None
    METADATA_FIELDS: str = "submission_id,slot"

    # === Upload limits / outbound ===
    UPLOAD_MAX_BYTES: int = 25 * 1024 * 1024
    HTTP_TIMEOUT_SECONDS: Optional[float] = None

    # === App ===
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = ""  # leeg = geen CORS

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def metadata_field_names(self) -> List[str]:
        return [f.strip() for f in self.METADATA_FIELDS.split(",") if f.strip()]

    @property
    def allowed_origin_list(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def upload_folder(self) -> str:
        return (self.UPLOAD_FOLDER or "").strip() or DEFAULT_UPLOAD_FOLDER

    @property
    def webhook_url(self) -> Optional[str]:
        url = (self.NOTIFICATION_WEBHOOK_URL or "").strip()
        return url or None

    def missing_storage_params(self) -> List[str]:
        """Namen van verplichte storage-variabelen die leeg of niet gezet zijn."""
        required = {
            "STORAGE_ZONE": self.STORAGE_ZONE,
            "STORAGE_HOST": self.STORAGE_HOST,
            "STORAGE_ACCESS_KEY": self.STORAGE_ACCESS_KEY,
            "PULL_ZONE_HOST": self.PULL_ZONE_HOST,
        }
        return [name for name, value in required.items() if not (value or "").strip()]

    def storage_target(self) -> StorageTarget:
        return StorageTarget(
            zone=self.STORAGE_ZONE.strip(),
            host=self.STORAGE_HOST.strip(),
            access_key=self.STORAGE_ACCESS_KEY.strip(),
            pull_zone_host=self.PULL_ZONE_HOST.strip(),
            upload_folder=self.upload_folder,
        )


def get_settings() -> RelaySettings:
    """Leest de omgeving per request (geen cache), zodat env-wijzigingen direct gelden."""
    return RelaySettings()
