import base64
import json

from reviewuplift.domain import DEFAULT_CONFIG
from reviewuplift.infrastructure.persistence import AccountStatus
from reviewuplift.infrastructure.state import encode

FEEDBACK = {
    "name": "Ali",
    "phone": "+923001234567",
    "email": "ali@example.com",
    "branch_name": "Gulberg",
    "review_text": "Food was cold",
}


def test_review_page_renders_configuration(client, owner):
    resp = client.get(f"/review/{owner.business_id}")
    assert resp.status_code == 200
    assert "DONER HUT" in resp.text
    assert "How was your experience with Doner Hut?" in resp.text
    assert "Rate your experience" in resp.text


def test_review_page_for_missing_or_inactive_business(client, owner, web):
    assert client.get("/review/999").status_code == 404
    web.db.set_business_status(owner.business_id, AccountStatus.INACTIVE)
    assert client.get(f"/review/{owner.business_id}").status_code == 404


def test_token_in_address_wins(client, owner):
    token = encode(DEFAULT_CONFIG.with_preview("Token Kebab", "a", "b", "c"))
    resp = client.get(f"/review/{owner.business_id}", params={"state": token})
    assert "Token Kebab" in resp.text


def test_rating_selection_is_shown(client, owner):
    resp = client.get(f"/review/{owner.business_id}", params={"rating": 3})
    assert "You selected 3 stars" in resp.text


def test_five_stars_redirect_to_public_review_link(client, owner):
    resp = client.post(f"/review/{owner.business_id}", data={"rating": "5"}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "https://go.reviewuplift.com/doner-hut"


def test_without_rating_nothing_happens(client, owner):
    resp = client.post(f"/review/{owner.business_id}", data={"rating": "0"}, follow_redirects=False)
    assert resp.status_code == 200
    assert 'name="branch_name"' not in resp.text


def test_low_rating_reveals_feedback_form(client, owner):
    resp = client.post(f"/review/{owner.business_id}", data={"rating": "2"})
    assert resp.status_code == 200
    assert 'name="branch_name"' in resp.text
    assert 'name="form_visible" value="1"' in resp.text
    assert "Submit Your Feedback" in resp.text


def test_incomplete_feedback_flags_fields(client, owner, web):
    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "2", "form_visible": "1", "name": "Ali"},
    )
    assert "Phone Number is required" in resp.text
    assert ">Name is required" not in resp.text
    assert 'value="Ali"' in resp.text
    assert web.db.get_reviews(owner.business_id) == []


def test_feedback_is_stored_as_private_review(client, owner, web):
    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "2", "form_visible": "1", **FEEDBACK},
    )
    assert "Thank You!" in resp.text
    assert "Thank you for your feedback." in resp.text

    reviews = web.db.get_reviews(owner.business_id)
    assert len(reviews) == 1
    assert reviews[0].rating == 2
    assert reviews[0].branch == "Gulberg"
    assert reviews[0].source == "private"


def test_gating_off_sends_low_ratings_to_public_link(client, owner):
    token = encode(DEFAULT_CONFIG.with_gating(False))
    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "1", "state": token},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == DEFAULT_CONFIG.review_link_url


def test_editor_changes_reach_the_review_page(client, owner):
    client.post("/review-link/url", data={"slug": "donerhut-gulberg"})
    resp = client.post(f"/review/{owner.business_id}", data={"rating": "4"}, follow_redirects=False)
    assert resp.headers["location"] == "https://go.reviewuplift.com/donerhut-gulberg"


def test_reset_returns_to_fresh_page(client, owner):
    resp = client.post(
        f"/review/{owner.business_id}",
        data={"action": "reset", "rating": "2"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == f"/review/{owner.business_id}"


def test_failed_hand_off_keeps_the_form(client, owner, web, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(web.db, "add_review", broken)
    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "1", "form_visible": "1", **FEEDBACK},
    )
    assert resp.status_code == 200
    assert "Could not submit feedback" in resp.text
    assert 'value="ali@example.com"' in resp.text


def test_deeply_nested_token_falls_back_to_default(client, owner):
    token = base64.urlsafe_b64encode(b"[" * 3000).decode("ascii").rstrip("=")
    resp = client.get(f"/review/{owner.business_id}", params={"state": token})
    assert resp.status_code == 200
    assert "DONER HUT" in resp.text


def test_token_cannot_redirect_outside_the_web(client, owner):
    raw = json.dumps({"reviewLinkUrl": "javascript:alert(1)", "businessName": "Evil"}).encode("utf-8")
    token = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "5", "state": token},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == DEFAULT_CONFIG.review_link_url


def test_branch_is_chosen_from_active_locations(client, owner, web):
    web.db.add_location(owner.business_id, "Gulberg", "12 Main Blvd")
    closed = web.db.add_location(owner.business_id, "DHA", "5 Phase 6")
    web.db.toggle_location(closed)

    resp = client.post(f"/review/{owner.business_id}", data={"rating": "2"})
    assert '<select name="branch_name"' in resp.text
    assert '<option value="Gulberg"' in resp.text
    assert '<option value="DHA"' not in resp.text

    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "2", "form_visible": "1", **dict(FEEDBACK, branch_name="DHA")},
    )
    assert "Branch Name is required" in resp.text
    assert web.db.get_reviews(owner.business_id) == []

    resp = client.post(
        f"/review/{owner.business_id}",
        data={"rating": "2", "form_visible": "1", **FEEDBACK},
    )
    assert "Thank You!" in resp.text
    assert web.db.get_reviews(owner.business_id)[0].branch == "Gulberg"
