"""
Feedback Intake - Private Feedback Collection
=============================================

Collects and validates the private feedback a visitor leaves when review
gating diverts a low rating away from the public review site.

VALIDATION:
- Every required field must be non-empty after trimming whitespace
- No format checks (email/phone format is left to the browser form)
- A failed validation flags fields but never clears what the visitor typed
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from .. import ReviewUpliftError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "phone", "email", "branch_name", "review_text")


class FeedbackSubmissionError(ReviewUpliftError):
    """Raised when a validated submission could not be handed off."""
    pass


@dataclass(frozen=True)
class FeedbackSubmission:
    """Visitor-supplied record captured when a low rating is gated."""
    name: str
    phone: str
    email: str
    branch_name: str
    review_text: str
    rating: int
    business_name: str


def _no_errors() -> Dict[str, bool]:
    return {name: False for name in REQUIRED_FIELDS}


@dataclass
class FeedbackForm:
    """Field values plus per-field error flags."""
    name: str = ""
    phone: str = ""
    email: str = ""
    branch_name: str = ""
    review_text: str = ""
    errors: Dict[str, bool] = field(default_factory=_no_errors)

    def update(self, field_name: str, value: str) -> None:
        """Set a field and clear its error flag (the visitor is fixing it)."""
        if field_name not in REQUIRED_FIELDS:
            raise KeyError(field_name)
        setattr(self, field_name, value)
        self.errors[field_name] = False

    def validate(self) -> bool:
        self.errors = {
            name: not getattr(self, name).strip()
            for name in REQUIRED_FIELDS
        }
        return not any(self.errors.values())

    @property
    def has_errors(self) -> bool:
        return any(self.errors.values())

    def reset(self) -> None:
        for name in REQUIRED_FIELDS:
            setattr(self, name, "")
        self.errors = _no_errors()

    def to_submission(self, rating: int, business_name: str) -> FeedbackSubmission:
        return FeedbackSubmission(
            name=self.name.strip(),
            phone=self.phone.strip(),
            email=self.email.strip(),
            branch_name=self.branch_name.strip(),
            review_text=self.review_text.strip(),
            rating=rating,
            business_name=business_name,
        )


class FeedbackIntake:
    """
    Validates and hands off feedback submissions.

    USAGE:
        intake = FeedbackIntake(sink=save_feedback, delay_seconds=1.0)
        submission = await intake.submit(form, rating=2, business_name="Doner Hut")
        if submission is None:
            ...  # form.errors tells which fields are missing

    The sink is where a submission goes once validated (the web app stores it
    as a private review). Without a sink the submission is only acknowledged.
    """

    def __init__(
        self,
        sink: Optional[Callable[[FeedbackSubmission], None]] = None,
        delay_seconds: float = 1.0,
    ):
        self._sink = sink
        self._delay = delay_seconds

    async def submit(self, form: FeedbackForm, rating: int, business_name: str) -> Optional[FeedbackSubmission]:
        if not form.validate():
            missing = [name for name, flagged in form.errors.items() if flagged]
            logger.debug(f"Feedback for {business_name} blocked, missing: {missing}")
            return None

        submission = form.to_submission(rating, business_name)

        # Stand-in for the network round trip of a hosted backend
        if self._delay > 0:
            await asyncio.sleep(self._delay)

        if self._sink is not None:
            try:
                self._sink(submission)
            except Exception as e:
                logger.exception(f"Feedback hand-off failed for {business_name}: {e}")
                raise FeedbackSubmissionError("Could not submit feedback, please try again.") from e

        logger.info(f"Private feedback received for {business_name} ({rating} stars)")
        form.reset()
        return submission
