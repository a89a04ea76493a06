import time
from urllib.parse import parse_qs, urlsplit

import jwt
from fastapi.testclient import TestClient

from reviewuplift.infrastructure.persistence import AccountStatus
from reviewuplift.web.session import SESSION_COOKIE, decode_session_token

from conftest import login, signup


def test_landing_page_lists_plans(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Starter" in resp.text and "$49" in resp.text
    assert "Professional" in resp.text and "$99" in resp.text
    assert "Contact sales" in resp.text


def test_signup_sends_owner_to_business_form(client, web):
    resp = signup(client)
    assert resp.status_code == 303
    assert resp.headers["location"].startswith("/business-form")

    user = web.db.get_user_by_username("owner")
    assert user.role == "owner"
    assert user.business_id is None


def test_signup_rejects_taken_username_and_email(client):
    signup(client)
    resp = signup(client, email="other@donerhut.com")
    assert "Username already taken" in resp.text

    resp = signup(client, username="other")
    assert "Email already registered" in resp.text


def test_signup_rejects_short_password(client):
    resp = signup(client, password="123")
    assert "at least 6 characters" in resp.text


def test_business_form_creates_business(client, owner, web):
    business = web.db.get_business(owner.business_id)
    assert business.name == "Doner Hut"
    assert business.contact_phone == "+923001234567"

    resp = client.get("/dashboard")
    assert resp.status_code == 200
    assert "Doner Hut" in resp.text


def test_business_form_other_type(client, owner, web):
    client.post("/business-form", data={
        "name": "Doner Hut",
        "business_type": "Other",
        "custom_business_type": "Food Truck",
        "contact_email": "owner@donerhut.com",
        "contact_phone": "+923001234567",
    })
    assert web.db.get_business(owner.business_id).business_type == "Food Truck"


def test_login_by_username_or_email(client, owner):
    client.get("/logout")

    resp = login(client, "owner", "secret123")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/dashboard"

    resp = login(client, "Owner@DonerHut.com", "secret123")
    assert resp.headers["location"] == "/dashboard"


def test_login_without_business_goes_to_business_form(client):
    signup(client)
    client.get("/logout")
    resp = login(client, "owner", "secret123")
    assert resp.headers["location"] == "/business-form"


def test_login_failures(client, owner):
    client.get("/logout")
    assert "User not found" in login(client, "ghost", "secret123").text
    assert "Invalid password" in login(client, "owner", "wrong-password").text


def test_deactivated_user_cannot_sign_in(client, owner, web):
    web.db.set_user_status(owner.id, AccountStatus.INACTIVE)
    client.get("/logout")
    assert "Account is deactivated" in login(client, "owner", "secret123").text


def test_pages_require_login(client):
    for path in ("/dashboard", "/reviews", "/review-link", "/business-form"):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code in (303, 307)
        assert resp.headers["location"] == "/login"


def test_phone_verification(client, owner, web):
    resp = client.post("/business-form/send-code", data={"phone": "+923001234567"}, follow_redirects=False)
    query = parse_qs(urlsplit(resp.headers["location"]).query)
    handle = query["code_handle"][0]

    code = web.identity.peek_code(handle)
    resp = client.post(
        "/business-form/verify-code",
        data={"handle": handle, "code": code, "phone": "+923001234567"},
        follow_redirects=False,
    )
    assert "Phone+number+verified" in resp.headers["location"]
    assert web.db.get_user_by_id(owner.id).phone_verified is True


def test_wrong_phone_code(client, owner, web):
    resp = client.post("/business-form/send-code", data={"phone": "+923001234567"}, follow_redirects=False)
    handle = parse_qs(urlsplit(resp.headers["location"]).query)["code_handle"][0]

    resp = client.post("/business-form/verify-code", data={"handle": handle, "code": "xxxxxx", "phone": "+923001234567"})
    assert "Invalid verification code" in resp.text
    assert web.db.get_user_by_id(owner.id).phone_verified is False


def test_session_cookie_is_signed(client, owner):
    token = client.cookies.get(SESSION_COOKIE)
    assert token and token != str(owner.id)
    assert decode_session_token(token) == owner.id
    assert "user_id" not in client.cookies


def test_forged_session_is_sent_to_login(client, admin_credentials, web):
    admin = web.db.get_user_by_username("admin")
    forger = TestClient(web.app)

    forger.cookies.set("user_id", str(admin.id))
    assert forger.get("/admin", follow_redirects=False).headers["location"] == "/login"

    forged = jwt.encode({"sub": str(admin.id), "role": "admin"}, "guessed-key", algorithm="HS256")
    forger.cookies.set(SESSION_COOKIE, forged)
    assert forger.get("/admin", follow_redirects=False).headers["location"] == "/login"


def test_expired_session_is_sent_to_login(client, admin_credentials, web):
    admin = web.db.get_user_by_username("admin")
    expired = jwt.encode(
        {"sub": str(admin.id), "role": "admin", "exp": int(time.time()) - 60},
        "test-secret-key",
        algorithm="HS256",
    )
    visitor = TestClient(web.app)
    visitor.cookies.set(SESSION_COOKIE, expired)
    assert visitor.get("/admin", follow_redirects=False).headers["location"] == "/login"


def test_logout_clears_the_session(client, owner):
    client.get("/logout")
    resp = client.get("/dashboard", follow_redirects=False)
    assert resp.headers["location"] == "/login"
