import pytest

from conftest import login


@pytest.fixture()
def admin(client, owner, admin_credentials, web):
    client.get("/logout")
    resp = login(client, *admin_credentials)
    assert resp.headers["location"] == "/admin"
    return web.db.get_user_by_username("admin")


def test_admin_console_is_admin_only(client, owner):
    for path in ("/admin", "/admin/users"):
        resp = client.get(path, follow_redirects=False)
        assert resp.headers["location"] == "/dashboard"


def test_admin_dashboard_shows_platform_stats(client, admin, owner, web):
    web.db.add_review(owner.business_id, name="Ali", rating=4, message="Nice")
    resp = client.get("/admin")
    assert resp.status_code == 200
    assert "Total Businesses" in resp.text
    assert "Doner Hut" in resp.text


def test_admin_business_list_and_detail(client, admin, owner):
    resp = client.get("/admin/businesses", params={"q": "doner"})
    assert "Doner Hut" in resp.text

    resp = client.get("/admin/businesses", params={"q": "sushi"})
    assert "No businesses found" in resp.text

    resp = client.get(f"/admin/businesses/{owner.business_id}")
    assert "Kebabs and wraps" in resp.text
    assert "owner@donerhut.com" in resp.text

    assert client.get("/admin/businesses/999").status_code == 404


def test_admin_deactivates_business(client, admin, owner, web):
    client.post(f"/admin/businesses/{owner.business_id}/status", data={"status": "inactive"})
    assert web.db.get_business(owner.business_id).status == "inactive"
    assert client.get(f"/review/{owner.business_id}").status_code == 404

    resp = client.post(f"/admin/businesses/{owner.business_id}/status", data={"status": "sleeping"})
    assert resp.status_code == 400


def test_admin_deletes_business(client, admin, owner, web):
    resp = client.post(f"/admin/businesses/{owner.business_id}/delete")
    assert "Business deleted" in resp.text
    assert web.db.get_business(owner.business_id) is None
    assert web.db.get_user_by_id(owner.id).business_id is None


def test_admin_creates_user(client, admin, owner, web):
    resp = client.post("/admin/users", data={
        "username": "staff9",
        "email": "staff9@donerhut.com",
        "password": "secret123",
        "role": "staff",
        "status": "active",
        "business_id": str(owner.business_id),
    })
    assert "User staff9 created" in resp.text

    user = web.db.get_user_by_username("staff9")
    assert user.business_id == owner.business_id
    assert user.status == "active"


def test_admin_create_user_validation(client, admin):
    resp = client.post("/admin/users", data={
        "username": "x", "email": "x@x.com", "password": "secret123", "role": "emperor",
    })
    assert "Unknown role" in resp.text

    resp = client.post("/admin/users", data={
        "username": "owner", "email": "new@x.com", "password": "secret123", "role": "staff",
    })
    assert "Username already taken" in resp.text


def test_admin_user_status_and_delete(client, admin, owner, web):
    client.post(f"/admin/users/{owner.id}/status", data={"status": "inactive"})
    assert web.db.get_user_by_id(owner.id).status == "inactive"

    resp = client.post(f"/admin/users/{owner.id}/delete")
    assert "Delete the user&#x27;s business first" in resp.text

    client.post(f"/admin/businesses/{owner.business_id}/delete")
    resp = client.post(f"/admin/users/{owner.id}/delete")
    assert "User owner deleted" in resp.text
    assert web.db.get_user_by_id(owner.id) is None


def test_admin_cannot_remove_themselves(client, admin, web):
    resp = client.post(f"/admin/users/{admin.id}/delete")
    assert "You cannot delete yourself" in resp.text
    assert web.db.get_user_by_id(admin.id) is not None


def test_admin_platform_stats_api(client, admin):
    stats = client.get("/api/stats").json()
    assert stats["businesses"] == 1
    assert stats["users"] == 2


def edit_user(client, user, **fields):
    data = {
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "business_id": str(user.business_id or ""),
    }
    data.update(fields)
    return client.post(f"/admin/users/{user.id}", data=data)


def test_admin_edit_form_is_prefilled(client, admin, owner):
    resp = client.get("/admin/users", params={"edit": owner.id})
    assert "Edit User" in resp.text
    assert f'action="/admin/users/{owner.id}"' in resp.text
    assert 'value="owner@donerhut.com"' in resp.text


def test_admin_edits_user(client, admin, owner, web):
    resp = edit_user(client, owner, username="kebabking", email="King@DonerHut.com", role="manager")
    assert "User kebabking updated" in resp.text

    user = web.db.get_user_by_id(owner.id)
    assert user.username == "kebabking"
    assert user.email == "king@donerhut.com"
    assert user.role == "manager"
    assert user.business_id == owner.business_id

    client.get("/logout")
    assert login(client, "king@donerhut.com", "secret123").headers["location"] == "/dashboard"


def test_admin_edit_user_validation(client, admin, owner, web):
    assert "Username is required" in edit_user(client, owner, username=" ").text
    assert "Email is invalid" in edit_user(client, owner, email="not-an-email").text
    assert "Unknown role" in edit_user(client, owner, role="emperor").text
    assert "Username already taken" in edit_user(client, owner, username="admin").text
    assert "Email already registered" in edit_user(client, owner, email="admin@reviewuplift.com").text
    assert "Business not found" in edit_user(client, owner, business_id="999").text

    assert web.db.get_user_by_id(owner.id).username == "owner"
    assert client.post("/admin/users/999", data={"role": "staff"}).status_code == 404


def test_admin_cannot_change_own_role(client, admin, web):
    resp = edit_user(client, admin, role="owner")
    assert "You cannot change your own role" in resp.text
    assert web.db.get_user_by_id(admin.id).role == "admin"
