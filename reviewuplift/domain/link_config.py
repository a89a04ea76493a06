"""
Link Configuration - Review Page Settings
=========================================

The editable settings backing a business's public review-collection page.

DESIGN:
- Immutable dataclass: every edit produces a new value via ``dataclasses.replace``
- Rating is visitor-local state (0 = nothing selected yet)
- A fixed default exists so a page always has something sensible to show
"""

from dataclasses import dataclass, replace
from typing import Optional

MAX_RATING = 5


@dataclass(frozen=True)
class LinkConfiguration:
    """Configurable state of a single business's review-collection page."""

    business_name: str = "DONER HUT"
    preview_text: str = "How was your experience with Doner Hut?"
    welcome_title: str = "We value your opinion!"
    welcome_text: str = "Share your dining experience and help us serve you better"
    preview_image: Optional[str] = None
    logo_image: Optional[str] = None
    review_link_url: str = "https://go.reviewuplift.com/doner-hut"
    is_review_gating_enabled: bool = True
    rating: int = 0

    def __post_init__(self):
        if isinstance(self.rating, bool) or not isinstance(self.rating, int):
            raise ValueError(f"rating must be an integer, got {self.rating!r}")
        if not 0 <= self.rating <= MAX_RATING:
            raise ValueError(f"rating must be between 0 and {MAX_RATING}, got {self.rating}")

    # ── Editor operations ──────────────────────────────────────────

    def with_preview(self, business_name: str, preview_text: str,
                     welcome_title: str, welcome_text: str) -> "LinkConfiguration":
        """Commit the preview text group in one edit."""
        return replace(
            self,
            business_name=business_name,
            preview_text=preview_text,
            welcome_title=welcome_title,
            welcome_text=welcome_text,
        )

    def with_link_slug(self, slug: str, base_url: str) -> "LinkConfiguration":
        """Point the review link at ``base_url`` + ``slug``."""
        return replace(self, review_link_url=f"{base_url}{slug.strip().strip('/')}")

    def with_preview_image(self, data_url: Optional[str]) -> "LinkConfiguration":
        return replace(self, preview_image=data_url)

    def with_logo_image(self, data_url: Optional[str]) -> "LinkConfiguration":
        return replace(self, logo_image=data_url)

    def with_gating(self, enabled: bool) -> "LinkConfiguration":
        return replace(self, is_review_gating_enabled=enabled)

    def with_rating(self, rating: int) -> "LinkConfiguration":
        return replace(self, rating=rating)


DEFAULT_CONFIG = LinkConfiguration()


def slug_of(url: str, base_url: str) -> str:
    """Extract the editable slug from a review link URL."""
    if url.startswith(base_url):
        return url[len(base_url):]
    return url
