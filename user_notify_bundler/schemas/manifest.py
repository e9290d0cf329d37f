"""Pydantic model describing a package's Info.plist."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USAGE_DESCRIPTION = "This app sends test notifications to verify notification delivery."


class InfoPlist(BaseModel):
    bundle_identifier: str = Field(..., alias="CFBundleIdentifier")
    executable: str = Field(..., alias="CFBundleExecutable")
    name: str = Field(..., alias="CFBundleName")
    display_name: str = Field(..., alias="CFBundleDisplayName")
    package_type: str = Field(default="APPL", alias="CFBundlePackageType")
    version: str = Field(default="1", alias="CFBundleVersion")
    short_version: str = Field(default="1.0", alias="CFBundleShortVersionString")
    info_dictionary_version: str = Field(default="6.0", alias="CFBundleInfoDictionaryVersion")
    minimum_system_version: str = Field(default="10.14", alias="LSMinimumSystemVersion")
    high_resolution_capable: bool = Field(default=True, alias="NSHighResolutionCapable")
    notifications_usage_description: str = Field(
        default=DEFAULT_USAGE_DESCRIPTION,
        alias="NSUserNotificationsUsageDescription",
        description="Usage string shown when notification permission is requested.",
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    @field_validator("bundle_identifier", "executable")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        if "/" in value:
            raise ValueError(f"must not contain '/' (got '{value}')")
        return value

    def to_plist(self) -> Dict[str, Any]:
        """Return the plist dictionary keyed by Apple key names."""

        return self.model_dump(by_alias=True)
