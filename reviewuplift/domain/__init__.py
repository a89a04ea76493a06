# Domain Layer
# ============
# Pure business logic with no external dependencies:
# - link_config: the editable review page configuration
# - gating: rating -> public review site or private feedback
# - feedback: private feedback form validation and intake
# - sync: reconciling a preview with externally published edits

from .link_config import LinkConfiguration, DEFAULT_CONFIG
from .gating import GatingOutcome, GateAction, GateResult, ReviewSession, decide
from .feedback import (
    FeedbackForm,
    FeedbackIntake,
    FeedbackSubmission,
    FeedbackSubmissionError,
    REQUIRED_FIELDS,
)
from .sync import PreviewSync

__all__ = [
    "LinkConfiguration",
    "DEFAULT_CONFIG",
    "GatingOutcome",
    "GateAction",
    "GateResult",
    "ReviewSession",
    "decide",
    "FeedbackForm",
    "FeedbackIntake",
    "FeedbackSubmission",
    "FeedbackSubmissionError",
    "REQUIRED_FIELDS",
    "PreviewSync",
]
