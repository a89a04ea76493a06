import pytest

from reviewuplift.domain import (
    DEFAULT_CONFIG,
    FeedbackIntake,
    GateAction,
    GatingOutcome,
    ReviewSession,
    decide,
)
from reviewuplift.domain.gating import ACKNOWLEDGEMENT


@pytest.mark.parametrize("rating,expected", [
    (1, GatingOutcome.PRIVATE_FEEDBACK),
    (2, GatingOutcome.PRIVATE_FEEDBACK),
    (3, GatingOutcome.PRIVATE_FEEDBACK),
    (4, GatingOutcome.PUBLIC_REDIRECT),
    (5, GatingOutcome.PUBLIC_REDIRECT),
])
def test_gating_enabled_splits_at_four_stars(rating, expected):
    assert decide(rating, True) is expected


@pytest.mark.parametrize("rating", [0, 1, 3, 5])
def test_gating_disabled_always_redirects(rating):
    assert decide(rating, False) is GatingOutcome.PUBLIC_REDIRECT


@pytest.mark.parametrize("rating", [0, 6, -2])
def test_gating_enabled_needs_a_valid_rating(rating):
    with pytest.raises(ValueError):
        decide(rating, True)


def fill(form):
    for name, value in (
        ("name", "Ali"),
        ("phone", "+923001234567"),
        ("email", "ali@example.com"),
        ("branch_name", "Gulberg"),
        ("review_text", "Food was cold"),
    ):
        form.update(name, value)


@pytest.mark.asyncio
async def test_no_rating_does_nothing(intake):
    session = ReviewSession(DEFAULT_CONFIG, intake)
    result = await session.leave_review()
    assert result.action is GateAction.NONE
    assert session.form_visible is False


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [4, 5])
async def test_high_ratings_go_to_the_public_review_link(intake, rating):
    session = ReviewSession(DEFAULT_CONFIG, intake)
    session.select_rating(rating)
    result = await session.leave_review()
    assert result.action is GateAction.REDIRECT
    assert result.url == "https://go.reviewuplift.com/doner-hut"


@pytest.mark.asyncio
async def test_low_rating_with_gating_off_still_redirects(intake):
    session = ReviewSession(DEFAULT_CONFIG.with_gating(False), intake, rating=1)
    result = await session.leave_review()
    assert result.action is GateAction.REDIRECT


@pytest.mark.asyncio
async def test_low_rating_reveals_form_then_submits(intake):
    session = ReviewSession(DEFAULT_CONFIG, intake, rating=2)

    first = await session.leave_review()
    assert first.action is GateAction.SHOW_FORM
    assert session.needs_form

    fill(session.form)
    second = await session.leave_review()
    assert second.action is GateAction.SUBMITTED
    assert second.submission.rating == 2
    assert second.submission.business_name == "DONER HUT"
    assert session.message == ACKNOWLEDGEMENT
    assert session.submitted and not session.needs_form


@pytest.mark.asyncio
async def test_incomplete_form_flags_missing_fields_and_keeps_values(intake):
    session = ReviewSession(DEFAULT_CONFIG, intake, rating=3, form_visible=True)
    session.form.update("name", "Ali")
    session.form.update("email", "   ")

    result = await session.leave_review()
    assert result.action is GateAction.INVALID
    assert result.errors == {
        "name": False,
        "phone": True,
        "email": True,
        "branch_name": True,
        "review_text": True,
    }
    assert session.form.name == "Ali"
    assert not session.submitted


@pytest.mark.asyncio
async def test_reset_returns_to_a_fresh_page(intake):
    session = ReviewSession(DEFAULT_CONFIG, intake, rating=1, form_visible=True)
    fill(session.form)
    await session.leave_review()

    session.reset()
    assert session.rating == 0
    assert not session.form_visible and not session.submitted
    assert session.form.name == ""


def test_select_rating_rejects_out_of_range(intake):
    session = ReviewSession(DEFAULT_CONFIG, intake)
    with pytest.raises(ValueError):
        session.select_rating(0)
    with pytest.raises(ValueError):
        ReviewSession(DEFAULT_CONFIG, intake, rating=7)


def test_session_uses_a_configured_intake():
    intake = FeedbackIntake(delay_seconds=0)
    assert ReviewSession(DEFAULT_CONFIG, intake).intake is intake
