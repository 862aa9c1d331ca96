from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AssetState(str, Enum):
    PENDING = "pending"
    DOWNLOADING = "downloading"
    STORED = "stored"
    FAILED = "failed"
    REMOVING = "removing"
    ABSENT = "absent"


class AssetDescriptor(BaseModel):
    """
    Asset payload as delivered by the sync engine.

    Unknown fields are kept so that patterns can reference any metadata key.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uid: str | None = None
    filename: str | None = None
    url: str | None = None
    locale: str | None = None
    download_id: str | None = None

    internal_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("internal_url", "_internal_url"),
    )
    public_url: str | None = None

    # filled from the source url when it points at the CDN
    api_version: str | None = Field(default=None, alias="apiVersion")
    api_key: str | None = Field(default=None, alias="apiKey")
    cdn_download_id: str | None = Field(default=None, alias="downloadId")

    def lookup(self, key: str) -> Any:
        for name, field in type(self).model_fields.items():
            if key == name or key == field.alias:
                return getattr(self, name)
        return (self.model_extra or {}).get(key)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, data: dict) -> "AssetDescriptor":
        return cls.model_validate(data)
