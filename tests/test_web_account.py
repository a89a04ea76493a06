from conftest import login


def change_password(client, current, new, confirm):
    return client.post("/settings/account/password", data={
        "current_password": current, "new_password": new, "confirm_password": confirm,
    })


def test_account_page_needs_sign_in(client):
    resp = client.get("/settings/account", follow_redirects=False)
    assert resp.headers["location"] == "/login"


def test_account_page_shows_password_form(client, owner):
    resp = client.get("/settings/account")
    assert resp.status_code == 200
    assert "Change Password" in resp.text
    assert "owner@donerhut.com" in resp.text


def test_password_change_validation(client, owner):
    resp = change_password(client, "", "", "")
    assert "Current password is required" in resp.text
    assert "New password is required" in resp.text
    assert "Please confirm your password" in resp.text

    resp = change_password(client, "secret123", "short", "short")
    assert "Password must be at least 8 characters" in resp.text

    resp = change_password(client, "secret123", "newsecret1", "newsecret2")
    assert "Passwords do not match" in resp.text


def test_wrong_current_password_is_refused(client, owner):
    resp = change_password(client, "not-my-password", "newsecret1", "newsecret1")
    assert "Failed to update password: Invalid password" in resp.text

    client.get("/logout")
    assert login(client, "owner", "secret123").headers["location"] == "/dashboard"


def test_password_change_takes_effect(client, owner):
    resp = change_password(client, "secret123", "newsecret1", "newsecret1")
    assert "Password updated successfully" in resp.text

    client.get("/logout")
    assert "Invalid password" in login(client, "owner", "secret123").text
    assert login(client, "owner", "newsecret1").headers["location"] == "/dashboard"
