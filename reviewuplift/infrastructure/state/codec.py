"""
State Codec - LinkConfiguration <-> Shareable Token
===================================================

Token format: camelCase JSON wrapped in URL-safe base64, padding stripped.
The token is produced and consumed by this application only, so it only
needs to be reversible.

FAILURE POLICY:
- encode never raises, it returns "" instead
- decode never raises, it returns the default configuration instead
  (deeply nested payloads included)
- the review link must be an http(s) URL
- token contents are never logged
"""

import base64
import binascii
import json
import logging
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError, field_validator

from ...domain.link_config import DEFAULT_CONFIG, LinkConfiguration, MAX_RATING

logger = logging.getLogger(__name__)


class LinkConfigPayload(BaseModel):
    """Wire shape of a token. Missing keys fall back to the default configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    business_name: StrictStr = Field(DEFAULT_CONFIG.business_name, alias="businessName")
    preview_text: StrictStr = Field(DEFAULT_CONFIG.preview_text, alias="previewText")
    welcome_title: StrictStr = Field(DEFAULT_CONFIG.welcome_title, alias="welcomeTitle")
    welcome_text: StrictStr = Field(DEFAULT_CONFIG.welcome_text, alias="welcomeText")
    preview_image: Optional[StrictStr] = Field(DEFAULT_CONFIG.preview_image, alias="previewImage")
    logo_image: Optional[StrictStr] = Field(DEFAULT_CONFIG.logo_image, alias="logoImage")
    review_link_url: StrictStr = Field(DEFAULT_CONFIG.review_link_url, alias="reviewLinkUrl")
    is_review_gating_enabled: StrictBool = Field(
        DEFAULT_CONFIG.is_review_gating_enabled, alias="isReviewGatingEnabled"
    )
    rating: StrictInt = Field(DEFAULT_CONFIG.rating, ge=0, le=MAX_RATING)

    @field_validator("review_link_url")
    @classmethod
    def _web_address_only(cls, value: str) -> str:
        # Visitors are redirected here, so only http(s) links with a host are accepted
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("review link must be an http(s) URL")
        return value

    @classmethod
    def from_config(cls, config: LinkConfiguration) -> "LinkConfigPayload":
        return cls(
            business_name=config.business_name,
            preview_text=config.preview_text,
            welcome_title=config.welcome_title,
            welcome_text=config.welcome_text,
            preview_image=config.preview_image,
            logo_image=config.logo_image,
            review_link_url=config.review_link_url,
            is_review_gating_enabled=config.is_review_gating_enabled,
            rating=config.rating,
        )

    def to_config(self) -> LinkConfiguration:
        return LinkConfiguration(**self.model_dump())


def config_to_dict(config: LinkConfiguration, include_rating: bool = True) -> dict:
    """camelCase dict, as sent to browsers."""
    data = LinkConfigPayload.from_config(config).model_dump(by_alias=True)
    if not include_rating:
        data.pop("rating")
    return data


def encode(config: LinkConfiguration) -> str:
    """Serialize a configuration to a token. Returns "" if that is not possible."""
    try:
        payload = LinkConfigPayload.from_config(config).model_dump(by_alias=True)
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    except (TypeError, ValueError, ValidationError) as e:
        logger.warning(f"Could not encode link configuration: {type(e).__name__}")
        return ""


def try_decode(token: str) -> Optional[LinkConfiguration]:
    """Parse a token, or None when it is unreadable."""
    if not token:
        return None
    try:
        padded = token + "=" * (-len(token) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("token payload is not an object")
        return LinkConfigPayload.model_validate(data).to_config()
    except (binascii.Error, UnicodeError, ValueError, ValidationError, TypeError, RecursionError) as e:
        logger.debug(f"Discarding unreadable state token: {type(e).__name__}")
        return None


def decode(token: str) -> LinkConfiguration:
    """Parse a token, falling back to the default configuration."""
    config = try_decode(token)
    return config if config is not None else DEFAULT_CONFIG
