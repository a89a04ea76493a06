"""
Review Gating - Rating Routing Policy
=====================================

Decides where a visitor goes after rating a business:
- gating disabled: always the public review site
- gating enabled:  4-5 stars -> public review site, 1-3 stars -> private feedback

ReviewSession wraps the decision in the visitor flow used by the review page:
the first "Leave review" on a low rating reveals the feedback form inline, the
second one submits it once the form's own validation passes.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from .feedback import FeedbackForm, FeedbackIntake, FeedbackSubmission
from .link_config import LinkConfiguration, MAX_RATING

logger = logging.getLogger(__name__)

POSITIVE_THRESHOLD = 4

ACKNOWLEDGEMENT = "We're sorry to hear about your experience. Thank you for your feedback."


class GatingOutcome(Enum):
    """Where a rating sends the visitor."""
    PUBLIC_REDIRECT = "public_redirect"
    PRIVATE_FEEDBACK = "private_feedback"


def decide(rating: int, gating_enabled: bool) -> GatingOutcome:
    """
    Pure gating decision.

    Raises:
        ValueError: gating is enabled and no valid rating (1-5) was selected.
    """
    if not gating_enabled:
        return GatingOutcome.PUBLIC_REDIRECT

    if not 1 <= rating <= MAX_RATING:
        raise ValueError(f"gating needs a rating between 1 and {MAX_RATING}, got {rating}")

    if rating >= POSITIVE_THRESHOLD:
        return GatingOutcome.PUBLIC_REDIRECT
    return GatingOutcome.PRIVATE_FEEDBACK


class GateAction(Enum):
    """What the review page should do after a "Leave review" click."""
    NONE = "none"
    REDIRECT = "redirect"
    SHOW_FORM = "show_form"
    INVALID = "invalid"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class GateResult:
    action: GateAction
    url: Optional[str] = None
    errors: Dict[str, bool] = field(default_factory=dict)
    submission: Optional[FeedbackSubmission] = None


class ReviewSession:
    """
    One visitor's pass through the review page.

    USAGE:
        session = ReviewSession(config, intake)
        session.select_rating(2)
        await session.leave_review()   # GateAction.SHOW_FORM
        session.form.update("name", "Ali")
        ...
        await session.leave_review()   # GateAction.SUBMITTED or INVALID
    """

    def __init__(self, config: LinkConfiguration, intake: FeedbackIntake,
                 rating: int = 0, form_visible: bool = False,
                 form: Optional[FeedbackForm] = None):
        self.config = config
        self.intake = intake
        self.rating = 0
        self.form_visible = form_visible
        self.form = form or FeedbackForm()
        self.submitted = False
        self.message = ""
        if rating:
            self.select_rating(rating)

    def select_rating(self, rating: int) -> None:
        if not 1 <= rating <= MAX_RATING:
            raise ValueError(f"rating must be between 1 and {MAX_RATING}, got {rating}")
        self.rating = rating

    @property
    def needs_form(self) -> bool:
        """True when the inline feedback form should be on screen."""
        return (
            self.form_visible
            and not self.submitted
            and self.rating > 0
            and decide(self.rating, self.config.is_review_gating_enabled) is GatingOutcome.PRIVATE_FEEDBACK
        )

    async def leave_review(self) -> GateResult:
        if self.rating == 0:
            return GateResult(GateAction.NONE)

        outcome = decide(self.rating, self.config.is_review_gating_enabled)
        if outcome is GatingOutcome.PUBLIC_REDIRECT:
            return GateResult(GateAction.REDIRECT, url=self.config.review_link_url)

        if not self.form_visible:
            self.form_visible = True
            return GateResult(GateAction.SHOW_FORM)

        submission = await self.intake.submit(self.form, self.rating, self.config.business_name)
        if submission is None:
            return GateResult(GateAction.INVALID, errors=dict(self.form.errors))

        self.submitted = True
        self.message = ACKNOWLEDGEMENT
        return GateResult(GateAction.SUBMITTED, submission=submission)

    def reset(self) -> None:
        """Back to a fresh page: no rating, form hidden and empty."""
        self.rating = 0
        self.form_visible = False
        self.submitted = False
        self.message = ""
        self.form.reset()
