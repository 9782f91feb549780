"""
Configuration data models for showcase.

These models define the structure of .showcase.json and
~/.config/showcase/config.json files, with validation via Pydantic.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

StoreBackendName = Literal["json", "memory", "http"]


class StoreConfig(BaseModel):
    """
    Record store selection and connection settings.

    The json backend reads a single data file; the http backend talks to a
    REST document API; the memory backend keeps everything in-process.
    """
    backend: StoreBackendName = Field(
        default="json",
        description="Store backend: json, memory or http"
    )
    path: Path = Field(
        default=Path("showcase-data.json"),
        description="Data file used by the json backend (relative to project dir)"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the REST document API (http backend)"
    )
    token: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the REST document API"
    )
    poll_interval: float = Field(
        default=2.0,
        gt=0,
        description="Seconds between change checks for polling subscriptions"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.rstrip("/") or None


class ServerConfig(BaseModel):
    """Settings for `showcase dashboard serve`."""
    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8080, ge=1, le=65535, description="Port to listen on")


class ShowcaseConfig(BaseModel):
    """
    Complete showcase configuration.

    Merged from defaults, user config, project config and environment.
    Unknown top-level keys are ignored so newer config files still load.
    """
    model_config = ConfigDict(extra="ignore")

    store: StoreConfig = Field(default_factory=StoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
