"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclass for safety and clarity
- Single source of truth for all configurable values

EXTENSIBILITY:
- To switch identity backend: set IDENTITY_PROVIDER=firebase and FIREBASE_API_KEY
- Set SECRET_KEY in production so sessions survive restarts
- To add a plan: extend PaymentSettings.plans
"""

import os
import secrets
from dataclasses import dataclass, field
from typing import Dict, Optional
from pathlib import Path
from functools import lru_cache

# Load .env file if present (development convenience)
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv is optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class ReviewLinkSettings:
    """Review link editor settings."""

    # Public review links are this base plus the business slug
    link_base: str = field(
        default_factory=lambda: os.getenv("REVIEW_LINK_BASE", "https://go.reviewuplift.com/")
    )

    # Uploaded preview/logo images are embedded as data URLs in the state token
    max_image_bytes: int = field(
        default_factory=lambda: _env_int("MAX_IMAGE_BYTES", 2 * 1024 * 1024)
    )


@dataclass(frozen=True)
class FeedbackSettings:
    """Private feedback intake settings."""

    # Artificial delay standing in for a hosted backend round trip
    submit_delay_seconds: float = field(
        default_factory=lambda: _env_float("FEEDBACK_SUBMIT_DELAY", 1.0)
    )


# Signs sessions when SECRET_KEY is unset; they end when the process restarts
_PROCESS_SECRET = secrets.token_hex(32)


@dataclass(frozen=True)
class SessionSettings:
    """Signed session cookie settings."""

    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", ""))
    lifetime_hours: int = field(default_factory=lambda: _env_int("SESSION_HOURS", 12))

    @property
    def signing_key(self) -> str:
        return self.secret_key or _PROCESS_SECRET


@dataclass(frozen=True)
class IdentitySettings:
    """Identity provider settings (local SQLite or Firebase Auth REST)."""

    provider: str = field(
        default_factory=lambda: os.getenv("IDENTITY_PROVIDER", "local").lower()
    )
    firebase_api_key: str = field(default_factory=lambda: os.getenv("FIREBASE_API_KEY", ""))
    firebase_api_url: str = "https://identitytoolkit.googleapis.com/v1"
    timeout_seconds: int = field(default_factory=lambda: _env_int("FIREBASE_TIMEOUT", 15))

    # One-time phone verification codes
    code_length: int = 6


@dataclass(frozen=True)
class Plan:
    """Subscription plan shown on the pricing page."""
    name: str
    amount_minor_units: Optional[int]  # None = custom pricing, contact sales
    features: tuple = ()

    @property
    def display_price(self) -> str:
        if self.amount_minor_units is None:
            return "Custom"
        return f"${self.amount_minor_units // 100}"


DEFAULT_PLANS = (
    Plan("Starter", 4900, ("1 location", "Review link with gating", "Email support")),
    Plan("Professional", 9900, ("Up to 5 locations", "Private feedback inbox", "Team members")),
    Plan("Enterprise", None, ("Unlimited locations", "Admin console", "Dedicated manager")),
)


@dataclass(frozen=True)
class PaymentSettings:
    """Checkout settings."""

    currency: str = field(default_factory=lambda: os.getenv("PAYMENT_CURRENCY", "USD"))
    plans: tuple = DEFAULT_PLANS

    # Methods offered on the payment page
    methods: Dict[str, str] = field(default_factory=lambda: {
        "gpay": "Google Pay",
        "paytm": "Paytm",
        "phonepe": "PhonePe",
        "netbanking": "Net Banking",
    })

    def get_plan(self, name: str) -> Optional[Plan]:
        for plan in self.plans:
            if plan.name.lower() == (name or "").lower():
                return plan
        return None


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from reviewuplift.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.review_link.link_base)
    """

    # Sub-settings groups
    review_link: ReviewLinkSettings = field(default_factory=ReviewLinkSettings)
    feedback: FeedbackSettings = field(default_factory=FeedbackSettings)
    identity: IdentitySettings = field(default_factory=IdentitySettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    payment: PaymentSettings = field(default_factory=PaymentSettings)

    debug: bool = field(
        default_factory=lambda: os.getenv("APP_DEBUG", "false").lower() == "true"
    )

    # File paths
    database_file: Path = field(
        default_factory=lambda: Path(os.getenv("DATABASE_FILE", "reviewuplift.db"))
    )

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if self.identity.provider not in ("local", "firebase"):
            issues.append(
                f"WARNING: Unknown IDENTITY_PROVIDER '{self.identity.provider}'. "
                "Falling back to local accounts."
            )

        if self.identity.provider == "firebase" and not self.identity.firebase_api_key:
            issues.append(
                "WARNING: IDENTITY_PROVIDER=firebase but FIREBASE_API_KEY not set. "
                "Sign in will fail."
            )

        if not self.session.secret_key:
            issues.append(
                "WARNING: SECRET_KEY not set. Using a temporary key, "
                "so everyone is signed out when the server restarts."
            )

        parent = self.database_file.parent
        if str(parent) not in ("", ".") and not parent.exists():
            issues.append(
                f"WARNING: Database directory not found: {parent}. "
                "Create it before starting the server."
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
