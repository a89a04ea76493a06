"""
FastAPI Web Application - ReviewUplift Dashboard
================================================

Marketing site, business dashboard, public review pages and admin console.
Each business only sees its own reviews, team and review link.

The review link configuration of a business is loaded and saved through a
StateStore: the token in ``?state=`` wins, then the shared database slot, then
the default. Saves are published on a StateChannel so open review pages
receive them over ``/ws/review/{business_id}``.
"""

import asyncio
import base64
import logging
import re
import uuid
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlencode

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from ..domain import (
    FeedbackForm,
    FeedbackIntake,
    FeedbackSubmission,
    FeedbackSubmissionError,
    GateAction,
    PreviewSync,
    ReviewSession,
)
from ..domain.link_config import MAX_RATING
from ..infrastructure.config import get_settings
from ..infrastructure.identity import IdentityError, IdentityProvider, get_identity_provider
from ..infrastructure.payments import PaymentError, SimulatedPaymentGateway
from ..infrastructure.persistence import (
    AccountStatus,
    Business,
    Database,
    ReviewSource,
    User,
    UserRole,
    init_database,
)
from ..infrastructure.state import (
    STATE_PARAM,
    DatabaseSlot,
    PageAddress,
    StateChannel,
    StateStore,
    config_to_dict,
    encode,
)
from .pages import (
    render_account_page,
    render_admin_business_detail,
    render_admin_businesses,
    render_admin_dashboard,
    render_admin_users,
    render_business_form,
    render_dashboard,
    render_landing_page,
    render_locations_page,
    render_login_page,
    render_payment_page,
    render_pricing_page,
    render_review_link_editor,
    render_review_page,
    render_reviews_page,
    render_signup_page,
    render_team_page,
)
from .session import end_session, session_user_id, start_session

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ── Globals ────────────────────────────────────────────────────────
db: Optional[Database] = None
identity: Optional[IdentityProvider] = None
channel = StateChannel()
payments = SimulatedPaymentGateway()

SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


# ── Lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    global db, identity
    settings = get_settings()
    for issue in settings.validate():
        logger.warning(issue)

    db = init_database(settings.database_file)
    identity = get_identity_provider(settings, db)
    logger.info(f"Database ready, identity provider: {type(identity).__name__}")
    yield


app = FastAPI(title="ReviewUplift", description="Review collection with review gating", lifespan=lifespan)


# ── Helpers ────────────────────────────────────────────────────────

def _redirect(url: str, **params) -> RedirectResponse:
    """303 redirect with ``message``/``error`` style query params appended."""
    params = {k: v for k, v in params.items() if v not in (None, "")}
    if params:
        url += ("&" if "?" in url else "?") + urlencode(params)
    return RedirectResponse(url=url, status_code=303)


def _get_current_user(request: Request) -> Optional[User]:
    """Get logged-in user from the signed session cookie, or None."""
    user_id = session_user_id(request)
    if user_id is None:
        return None
    user = db.get_user_by_id(user_id)
    if user and user.status == AccountStatus.INACTIVE.value:
        return None
    return user


def _business_context(request: Request):
    """(user, business) for dashboard pages, or the redirect to send instead."""
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")
    if user.is_admin:
        return _redirect("/admin")

    business = db.get_business(user.business_id) if user.business_id else None
    if not business:
        if user.is_owner:
            return _redirect("/business-form", message="Please complete your business details")
        return _redirect("/login", message="Your account is not linked to a business")
    return user, business


def _require_admin(request: Request):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")
    if not user.is_admin:
        return _redirect("/dashboard")
    return user


def _address(path: str, token: str) -> PageAddress:
    return PageAddress(path, ((STATE_PARAM, token),) if token else ())


def _state_store(business_id: int, path: str, token: str = "") -> StateStore:
    return StateStore(DatabaseSlot(db), str(business_id), _address(path, token), channel)


def _review_page_url(business_id: int, token: str = "") -> str:
    return _address(f"/review/{business_id}", token).url


def _feedback_intake(business_id: int) -> FeedbackIntake:
    def store_private_review(submission: FeedbackSubmission):
        db.add_review(
            business_id,
            name=submission.name,
            rating=submission.rating,
            message=submission.review_text,
            email=submission.email,
            phone=submission.phone,
            branch=submission.branch_name,
            source=ReviewSource.PRIVATE,
        )

    return FeedbackIntake(
        sink=store_private_review,
        delay_seconds=get_settings().feedback.submit_delay_seconds,
    )


def _login_response(user: User) -> RedirectResponse:
    db.touch_last_login(user.id)
    if user.is_admin:
        url = "/admin"
    elif not user.business_id and user.is_owner:
        url = "/business-form"
    else:
        url = "/dashboard"
    return start_session(RedirectResponse(url=url, status_code=303), user.id, user.role)


def _create_account(email: str, username: str, password: str, role: UserRole,
                    status: AccountStatus = AccountStatus.ACTIVE,
                    business_id: Optional[int] = None) -> int:
    """Credentials through the identity provider, then the profile row."""
    email = email.strip().lower()
    username = username.strip()
    if not email or not username:
        raise IdentityError("Email and username are required")
    if db.get_user_by_username(username):
        raise IdentityError("Username already taken")
    if db.get_user_by_email(email):
        raise IdentityError("Email already registered")

    auth = identity.sign_up(email, password)
    user_id = db.create_user(auth.uid, email, username, role=role.value,
                             status=status.value, business_id=business_id)
    if not user_id:
        identity.delete_account(auth.uid)
        raise IdentityError("Failed to create user")
    logger.info(f"User {user_id} created with role {role.value}")
    return user_id


# ── Marketing ──────────────────────────────────────────────────

@app.get("/", response_class=HTMLResponse)
async def landing(request: Request):
    return render_landing_page(get_settings().payment.plans, _get_current_user(request))


@app.get("/pricing", response_class=HTMLResponse)
async def pricing(request: Request):
    user = _get_current_user(request)
    if not user or user.is_admin:
        return _redirect("/#pricing")
    return render_pricing_page(user, get_settings().payment.plans)


# ── Auth routes ────────────────────────────────────────────────

@app.get("/login", response_class=HTMLResponse)
async def login_page(message: str = ""):
    return render_login_page(message)


@app.post("/login")
async def login(email: str = Form(...), password: str = Form(...)):
    identifier = email.strip()
    user = db.get_user_by_email_or_username(identifier) or db.get_user_by_email(identifier.lower())
    if not user:
        return HTMLResponse(render_login_page(message="User not found"))

    try:
        auth = identity.sign_in(user.email, password)
    except IdentityError as e:
        return HTMLResponse(render_login_page(message=str(e)))

    if auth.uid != user.uid:
        logger.warning(f"Identity uid mismatch for user {user.id}")
        return HTMLResponse(render_login_page(message="Invalid password"))
    if user.status == AccountStatus.INACTIVE.value:
        return HTMLResponse(render_login_page(message="Account is deactivated"))

    logger.info(f"User {user.id} signed in")
    return _login_response(user)


@app.get("/signup", response_class=HTMLResponse)
async def signup_page():
    return render_signup_page()


@app.post("/signup")
async def signup(
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...)
):
    try:
        user_id = _create_account(email, username, password, UserRole.OWNER)
    except IdentityError as e:
        return HTMLResponse(render_signup_page(message=str(e)))

    response = _redirect("/business-form", message="Account created! Tell us about your business.")
    return start_session(response, user_id, UserRole.OWNER.value)


@app.get("/logout")
async def logout():
    return end_session(RedirectResponse(url="/login", status_code=303))


# ── Business profile ───────────────────────────────────────────

@app.get("/business-form", response_class=HTMLResponse)
async def business_form_page(request: Request, message: str = "", error: str = "",
                             code_handle: str = "", phone: str = ""):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")
    if not user.is_owner:
        return _redirect("/dashboard")
    business = db.get_business_by_owner(user.id)
    return HTMLResponse(render_business_form(user, business, message, error, code_handle, phone))


@app.post("/business-form")
async def save_business_form(
    request: Request,
    name: str = Form(...),
    business_type: str = Form(""),
    custom_business_type: str = Form(""),
    contact_email: str = Form(...),
    contact_phone: str = Form(...),
    branch_count: int = Form(1),
    description: str = Form("")
):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")
    if not user.is_owner:
        return _redirect("/dashboard")

    name = name.strip()
    if not name:
        return _redirect("/business-form", error="Business name is required")
    if business_type == "Other":
        business_type = custom_business_type.strip() or "Other"

    details = dict(
        business_type=business_type,
        contact_email=contact_email.strip(),
        contact_phone=contact_phone.strip(),
        branch_count=max(1, branch_count),
        description=description.strip(),
    )
    business = db.get_business_by_owner(user.id)
    if business:
        db.update_business(business.id, name=name, **details)
    else:
        db.create_business(user.id, name, **details)
    return _redirect("/dashboard", message="Business details saved successfully!")


@app.post("/business-form/send-code")
async def send_phone_code(request: Request, phone: str = Form(...)):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")

    try:
        handle = identity.send_code(phone.strip())
    except IdentityError as e:
        return _redirect("/business-form", error=str(e))
    return _redirect("/business-form", message="Verification code sent", code_handle=handle, phone=phone.strip())


@app.post("/business-form/verify-code")
async def verify_phone_code(request: Request, handle: str = Form(...), code: str = Form(...),
                            phone: str = Form(...)):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")

    if not identity.confirm_code(handle, code):
        return _redirect("/business-form", error="Invalid verification code", code_handle=handle, phone=phone)

    db.update_user(user.id, phone=phone.strip(), phone_verified=1)
    return _redirect("/business-form", message="Phone number verified")


# ── Dashboard ──────────────────────────────────────────────────

@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, message: str = ""):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    stats = db.get_business_stats(business.id)
    recent = db.get_reviews(business.id)[:5]
    return render_dashboard(user, business, stats, recent, _review_page_url(business.id), message)


# ── Review link editor ─────────────────────────────────────────

@app.get("/review-link", response_class=HTMLResponse)
async def review_link_page(request: Request, state: str = "", edit: str = "",
                           confirm_gating: int = 0, message: str = "", error: str = ""):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    store = _state_store(business.id, "/review-link", state)
    config = store.load()
    token = state or encode(config)
    return render_review_link_editor(
        user, config, token,
        link_base=get_settings().review_link.link_base,
        review_page_url=_review_page_url(business.id, token),
        edit=edit,
        confirm_gating=bool(confirm_gating),
        message=message,
        error=error,
    )


def _save_config(store: StateStore, config, message: str) -> RedirectResponse:
    store.save(config)
    logger.info(f"Review link configuration saved for business {store.key}")
    return _redirect(store.address.url, message=message)


@app.post("/review-link/url")
async def update_review_link_url(request: Request, state: str = Form(""), slug: str = Form(...)):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    store = _state_store(business.id, "/review-link", state)
    slug = slug.strip().strip("/")
    if not SLUG_PATTERN.match(slug):
        return _redirect(store.address.url, edit="url",
                         error="Link may only contain letters, numbers, dashes and underscores")

    config = store.load().with_link_slug(slug, get_settings().review_link.link_base)
    return _save_config(store, config, "Review link updated")


@app.post("/review-link/preview")
async def update_review_preview(
    request: Request,
    state: str = Form(""),
    business_name: str = Form(...),
    preview_text: str = Form(...),
    welcome_title: str = Form(...),
    welcome_text: str = Form(...)
):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    store = _state_store(business.id, "/review-link", state)
    values = [v.strip() for v in (business_name, preview_text, welcome_title, welcome_text)]
    if not all(values):
        return _redirect(store.address.url, edit="preview", error="All preview fields are required")

    config = store.load().with_preview(*values)
    return _save_config(store, config, "Preview updated")


async def _upload_image(request: Request, kind: str, state: str, file: UploadFile):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    store = _state_store(business.id, "/review-link", state)
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        return _redirect(store.address.url, error="Please upload an image file")

    data = await file.read()
    if not data:
        return _redirect(store.address.url, error="Uploaded file is empty")
    limit = get_settings().review_link.max_image_bytes
    if len(data) > limit:
        return _redirect(store.address.url, error=f"Image is too large (max {limit // 1024} KB)")

    data_url = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
    config = store.load()
    if kind == "logo":
        config = config.with_logo_image(data_url)
    else:
        config = config.with_preview_image(data_url)
    return _save_config(store, config, f"{kind.capitalize()} uploaded")


async def _delete_image(request: Request, kind: str, state: str):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    store = _state_store(business.id, "/review-link", state)
    config = store.load()
    if kind == "logo":
        config = config.with_logo_image(None)
    else:
        config = config.with_preview_image(None)
    return _save_config(store, config, f"{kind.capitalize()} removed")


@app.post("/review-link/image")
async def upload_preview_image(request: Request, state: str = Form(""), file: UploadFile = File(...)):
    return await _upload_image(request, "image", state, file)


@app.post("/review-link/image/delete")
async def delete_preview_image(request: Request, state: str = Form("")):
    return await _delete_image(request, "image", state)


@app.post("/review-link/logo")
async def upload_logo_image(request: Request, state: str = Form(""), file: UploadFile = File(...)):
    return await _upload_image(request, "logo", state, file)


@app.post("/review-link/logo/delete")
async def delete_logo_image(request: Request, state: str = Form("")):
    return await _delete_image(request, "logo", state)


@app.post("/review-link/gating")
async def update_review_gating(request: Request, state: str = Form(""), enabled: str = Form(...),
                               confirm: str = Form("")):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    store = _state_store(business.id, "/review-link", state)
    turn_on = enabled.lower() in ("true", "1", "on", "yes")
    if not turn_on and confirm != "yes":
        return _redirect(store.address.url, confirm_gating=1)

    config = store.load().with_gating(turn_on)
    return _save_config(store, config, f"Review gating {'enabled' if turn_on else 'disabled'}")


# ── Reviews inbox ──────────────────────────────────────────────

@app.get("/reviews", response_class=HTMLResponse)
async def reviews_page(request: Request, q: str = "", filter_option: str = Query("All", alias="filter"),
                       reply: Optional[int] = None, message: str = ""):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    reviews = db.get_reviews(business.id, search=q.strip(), filter_option=filter_option)
    return render_reviews_page(user, reviews, q, filter_option, reply, message)


def _owned_review(business: Business, review_id: int):
    review = db.get_review(review_id)
    if not review or review.business_id != business.id:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@app.post("/reviews/{review_id}/toggle-replied")
async def toggle_review_replied(request: Request, review_id: int):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    _owned_review(business, review_id)
    db.toggle_replied(review_id)
    return _redirect("/reviews", message="Review updated")


@app.post("/reviews/{review_id}/reply")
async def reply_to_review(request: Request, review_id: int, reply_text: str = Form(...)):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    _owned_review(business, review_id)
    if not reply_text.strip():
        return _redirect("/reviews", reply=review_id)
    db.reply_to_review(review_id, reply_text.strip())
    return _redirect("/reviews", message="Reply saved")


@app.post("/reviews/{review_id}/delete")
async def delete_review(request: Request, review_id: int):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    _owned_review(business, review_id)
    db.delete_review(review_id)
    return _redirect("/reviews", message="Review deleted")


# ── Team ───────────────────────────────────────────────────────

@app.get("/settings/users", response_class=HTMLResponse)
async def team_page(request: Request, message: str = "", error: str = ""):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx
    if not user.is_owner:
        raise HTTPException(status_code=403, detail="Only the business owner can manage users")

    return render_team_page(user, business, db.get_users(business_id=business.id), message, error)


@app.post("/settings/users")
async def add_team_member(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    role: str = Form("staff")
):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx
    if not user.is_owner:
        raise HTTPException(status_code=403, detail="Only the business owner can manage users")

    if role not in (UserRole.MANAGER.value, UserRole.STAFF.value):
        return _redirect("/settings/users", error="Role must be manager or staff")

    try:
        _create_account(email, username, password, UserRole(role), business_id=business.id)
    except IdentityError as e:
        return _redirect("/settings/users", error=str(e))
    return _redirect("/settings/users", message=f"User {username.strip()} added")


@app.post("/settings/users/{member_id}/delete")
async def remove_team_member(request: Request, member_id: int):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx
    if not user.is_owner:
        raise HTTPException(status_code=403, detail="Only the business owner can manage users")

    member = db.get_user_by_id(member_id)
    if not member or member.business_id != business.id:
        raise HTTPException(status_code=404, detail="User not found")
    if member.id == user.id:
        return _redirect("/settings/users", error="You cannot remove yourself")

    db.delete_user(member.id)
    identity.delete_account(member.uid)
    return _redirect("/settings/users", message=f"User {member.username} removed")


# ── Locations ──────────────────────────────────────────────────

def _location_context(request: Request):
    """(user, business) for location pages; staff may not manage locations."""
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx
    if user.role not in (UserRole.OWNER.value, UserRole.MANAGER.value):
        raise HTTPException(status_code=403, detail="Only owners and managers can manage locations")
    return ctx


def _owned_location(business: Business, location_id: int):
    location = db.get_location(location_id)
    if not location or location.business_id != business.id:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


@app.get("/settings/locations", response_class=HTMLResponse)
async def locations_page(request: Request, q: str = "", edit: Optional[int] = None,
                         message: str = "", error: str = ""):
    ctx = _location_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    locations = db.get_locations(business.id, search=q.strip())
    total = len(db.get_locations(business.id))
    return render_locations_page(user, locations, total, q, edit, message, error)


@app.post("/settings/locations")
async def add_location(request: Request, name: str = Form(""), address: str = Form("")):
    ctx = _location_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    name, address = name.strip(), address.strip()
    if not name or not address:
        return _redirect("/settings/locations", error="Location name and address are required")
    db.add_location(business.id, name, address)
    return _redirect("/settings/locations", message=f"Location {name} added")


@app.post("/settings/locations/{location_id}")
async def edit_location(request: Request, location_id: int, name: str = Form(""), address: str = Form("")):
    ctx = _location_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    location = _owned_location(business, location_id)
    if not location.is_active:
        return _redirect("/settings/locations", error="Activate the location to edit it")
    name, address = name.strip(), address.strip()
    if not name or not address:
        return _redirect("/settings/locations", edit=location_id,
                         error="Location name and address are required")
    db.update_location(location_id, name, address)
    return _redirect("/settings/locations", message="Location updated")


@app.post("/settings/locations/{location_id}/toggle")
async def toggle_location(request: Request, location_id: int):
    ctx = _location_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    location = _owned_location(business, location_id)
    db.toggle_location(location_id)
    state = "deactivated" if location.is_active else "activated"
    return _redirect("/settings/locations", message=f"Location {location.name} {state}")


@app.post("/settings/locations/{location_id}/delete")
async def delete_location(request: Request, location_id: int):
    ctx = _location_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    location = _owned_location(business, location_id)
    db.delete_location(location_id)
    return _redirect("/settings/locations", message=f"Location {location.name} deleted")


# ── Account ────────────────────────────────────────────────────

MIN_PASSWORD_LENGTH = 8


def _password_errors(new_password: str, confirm_password: str) -> dict:
    errors = {}
    if not new_password:
        errors["new_password"] = "New password is required"
    elif len(new_password) < MIN_PASSWORD_LENGTH:
        errors["new_password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

    if not confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif new_password != confirm_password:
        errors["confirm_password"] = "Passwords do not match"
    return errors


@app.get("/settings/account", response_class=HTMLResponse)
async def account_page(request: Request, message: str = ""):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")
    return render_account_page(user, message=message)


@app.post("/settings/account/password")
async def change_password(
    request: Request,
    current_password: str = Form(""),
    new_password: str = Form(""),
    confirm_password: str = Form("")
):
    user = _get_current_user(request)
    if not user:
        return _redirect("/login")

    errors = _password_errors(new_password, confirm_password)
    if not current_password:
        errors["current_password"] = "Current password is required"
    if errors:
        return HTMLResponse(render_account_page(user, errors=errors))

    try:
        identity.change_password(user.email, current_password, new_password)
    except IdentityError as e:
        logger.info(f"Password change refused for user {user.id}: {e}")
        return HTMLResponse(render_account_page(user, error=f"Failed to update password: {e}"))

    logger.info(f"User {user.id} changed their password")
    return _redirect("/settings/account", message="Password updated successfully")


# ── Payment ────────────────────────────────────────────────────

@app.get("/payment", response_class=HTMLResponse)
async def payment_page(request: Request, plan: str = "", error: str = ""):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    settings = get_settings()
    selected = settings.payment.get_plan(plan)
    if not selected or selected.amount_minor_units is None:
        return _redirect("/pricing")
    return render_payment_page(user, selected, settings.payment.methods, settings.payment.currency, error)


@app.post("/payment")
async def pay(request: Request, plan: str = Form(...), method: str = Form(...)):
    ctx = _business_context(request)
    if isinstance(ctx, Response):
        return ctx
    user, business = ctx

    settings = get_settings().payment
    selected = settings.get_plan(plan)
    if not selected:
        raise HTTPException(status_code=404, detail="Plan not found")
    if selected.amount_minor_units is None:
        return _redirect("/pricing")
    if method not in settings.methods:
        return _redirect("/payment", plan=selected.name, error="Please choose a payment method")

    try:
        checkout = payments.create_checkout(selected.amount_minor_units, settings.currency)
        receipt = checkout.handler(f"{method}_{uuid.uuid4().hex[:12]}")
    except PaymentError as e:
        logger.warning(f"Payment failed for business {business.id}: {e}")
        return _redirect("/payment", plan=selected.name, error=f"Payment failed: {e}")

    db.update_business(business.id, plan=selected.name)
    logger.info(f"Business {business.id} subscribed to {selected.name} ({receipt.order_id})")
    return _redirect(
        "/dashboard",
        message=f"Payment successful with {settings.methods[method]} for {selected.name} plan",
    )


# ── Visitor review page ────────────────────────────────────────

def _find_public_business(business_id: int) -> Optional[Business]:
    """Business whose review page is live, or None."""
    business = db.get_business(business_id)
    if not business or business.status == AccountStatus.INACTIVE.value:
        return None
    return business


def _public_business(business_id: int) -> Business:
    business = _find_public_business(business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


def _branch_names(business_id: int) -> list:
    return [loc.name for loc in db.get_locations(business_id, active_only=True)]


@app.get("/review/{business_id}", response_class=HTMLResponse)
async def review_page(business_id: int, state: str = "", rating: int = 0):
    _public_business(business_id)
    config = _state_store(business_id, f"/review/{business_id}", state).load()
    rating = rating if 1 <= rating <= MAX_RATING else config.rating
    session = ReviewSession(config, _feedback_intake(business_id), rating=rating)
    return render_review_page(business_id, session, state, branches=_branch_names(business_id))


@app.post("/review/{business_id}")
async def leave_review(
    business_id: int,
    state: str = Form(""),
    rating: int = Form(0),
    form_visible: str = Form("0"),
    action: str = Form("leave"),
    name: str = Form(""),
    phone: str = Form(""),
    email: str = Form(""),
    branch_name: str = Form(""),
    review_text: str = Form("")
):
    _public_business(business_id)
    if action == "reset":
        return _redirect(_review_page_url(business_id, state))

    branches = _branch_names(business_id)
    if branches and branch_name not in branches:
        branch_name = ""

    config = _state_store(business_id, f"/review/{business_id}", state).load()
    form = FeedbackForm(name=name, phone=phone, email=email, branch_name=branch_name, review_text=review_text)
    session = ReviewSession(
        config,
        _feedback_intake(business_id),
        rating=rating if 1 <= rating <= MAX_RATING else 0,
        form_visible=form_visible == "1",
        form=form,
    )

    try:
        result = await session.leave_review()
    except FeedbackSubmissionError as e:
        return HTMLResponse(render_review_page(business_id, session, state, error=str(e), branches=branches))

    if result.action is GateAction.REDIRECT:
        logger.info(f"Business {business_id}: {session.rating} stars sent to public review link")
        return RedirectResponse(url=result.url, status_code=303)
    return HTMLResponse(render_review_page(business_id, session, state, branches=branches))


@app.websocket("/ws/review/{business_id}")
async def review_sync(websocket: WebSocket, business_id: int):
    """Push review link edits to an open review page."""
    if not _find_public_business(business_id):
        await websocket.close(code=1008)
        return

    await websocket.accept()
    key = str(business_id)
    token = websocket.query_params.get(STATE_PARAM, "")
    sync = PreviewSync(_state_store(business_id, f"/review/{business_id}", token).load())

    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = channel.subscribe(key, queue.put_nowait)

    async def forward_updates():
        while True:
            config = await queue.get()
            if sync.apply(config):
                await websocket.send_json({"type": "config", "config": config_to_dict(sync.config, include_rating=False)})

    await websocket.send_json({"type": "config", "config": config_to_dict(sync.config, include_rating=False)})
    forwarder = asyncio.create_task(forward_updates())
    try:
        while True:
            message = await websocket.receive_json()
            rating = message.get("rating") if isinstance(message, dict) else None
            if isinstance(rating, int) and not isinstance(rating, bool) and 0 <= rating <= MAX_RATING:
                sync.select_rating(rating)
                await websocket.send_json({"type": "rating", "rating": sync.config.rating})
    except WebSocketDisconnect:
        logger.debug(f"Review page for business {business_id} disconnected")
    finally:
        unsubscribe()
        forwarder.cancel()


# ── Admin console ──────────────────────────────────────────────

@app.get("/admin", response_class=HTMLResponse)
async def admin_dashboard(request: Request):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    return render_admin_dashboard(admin, db.get_platform_stats(), db.get_businesses()[:5])


@app.get("/admin/businesses", response_class=HTMLResponse)
async def admin_businesses(request: Request, q: str = "", message: str = ""):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    return render_admin_businesses(admin, db.get_businesses(search=q.strip()), q, message)


@app.get("/admin/businesses/{business_id}", response_class=HTMLResponse)
async def admin_business_detail(request: Request, business_id: int):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    business = db.get_business(business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return render_admin_business_detail(
        admin, business, db.get_users(business_id=business_id), db.get_reviews(business_id)
    )


def _parse_status(status: str) -> AccountStatus:
    try:
        return AccountStatus(status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")


@app.post("/admin/businesses/{business_id}/status")
async def admin_set_business_status(request: Request, business_id: int, status: str = Form(...)):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    if not db.set_business_status(business_id, _parse_status(status)):
        raise HTTPException(status_code=404, detail="Business not found")
    logger.info(f"Admin {admin.id} set business {business_id} to {status}")
    return _redirect("/admin/businesses", message="Business status updated")


@app.post("/admin/businesses/{business_id}/delete")
async def admin_delete_business(request: Request, business_id: int):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    if not db.delete_business(business_id):
        raise HTTPException(status_code=404, detail="Business not found")
    logger.info(f"Admin {admin.id} deleted business {business_id}")
    return _redirect("/admin/businesses", message="Business deleted")


@app.get("/admin/users", response_class=HTMLResponse)
async def admin_users(request: Request, q: str = "", edit: Optional[int] = None,
                      message: str = "", error: str = ""):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    editing = db.get_user_by_id(edit) if edit else None
    return render_admin_users(admin, db.get_users(search=q.strip()), db.get_businesses(), q, message, error,
                              editing=editing)


@app.post("/admin/users")
async def admin_create_user(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    role: str = Form("staff"),
    status: str = Form("pending"),
    business_id: str = Form("")
):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin

    try:
        user_role = UserRole(role)
    except ValueError:
        return _redirect("/admin/users", error=f"Unknown role: {role}")
    linked = int(business_id) if business_id.isdigit() else None
    if linked is not None and not db.get_business(linked):
        return _redirect("/admin/users", error="Business not found")

    try:
        _create_account(email, username, password, user_role, _parse_status(status), linked)
    except IdentityError as e:
        return _redirect("/admin/users", error=str(e))
    return _redirect("/admin/users", message=f"User {username.strip()} created")


EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


@app.post("/admin/users/{user_id}")
async def admin_edit_user(
    request: Request,
    user_id: int,
    username: str = Form(""),
    email: str = Form(""),
    role: str = Form(...),
    business_id: str = Form("")
):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin

    user = db.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    def invalid(message: str) -> RedirectResponse:
        return _redirect("/admin/users", edit=user_id, error=message)

    username = username.strip()
    email = email.strip().lower()
    if not username:
        return invalid("Username is required")
    if not EMAIL_PATTERN.match(email):
        return invalid("Email is invalid")
    try:
        user_role = UserRole(role)
    except ValueError:
        return invalid(f"Unknown role: {role}")
    if user.id == admin.id and user_role is not UserRole.ADMIN:
        return invalid("You cannot change your own role")

    taken = db.get_user_by_username(username)
    if taken and taken.id != user.id:
        return invalid("Username already taken")
    taken = db.get_user_by_email(email)
    if taken and taken.id != user.id:
        return invalid("Email already registered")

    linked = int(business_id) if business_id.isdigit() else None
    if linked is not None and not db.get_business(linked):
        return invalid("Business not found")

    if email != user.email:
        try:
            identity.update_email(user.uid, email)
        except IdentityError as e:
            return invalid(str(e))

    db.update_user(user.id, username=username, email=email, role=user_role.value, business_id=linked)
    logger.info(f"Admin {admin.id} updated user {user.id}")
    return _redirect("/admin/users", message=f"User {username} updated")


@app.post("/admin/users/{user_id}/status")
async def admin_set_user_status(request: Request, user_id: int, status: str = Form(...)):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    if user_id == admin.id:
        return _redirect("/admin/users", error="You cannot change your own status")
    if not db.set_user_status(user_id, _parse_status(status)):
        raise HTTPException(status_code=404, detail="User not found")
    return _redirect("/admin/users", message="User status updated")


@app.post("/admin/users/{user_id}/delete")
async def admin_delete_user(request: Request, user_id: int):
    admin = _require_admin(request)
    if isinstance(admin, Response):
        return admin
    if user_id == admin.id:
        return _redirect("/admin/users", error="You cannot delete yourself")

    user = db.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.is_owner and db.get_business_by_owner(user.id):
        return _redirect("/admin/users", error="Delete the user's business first")

    db.delete_user(user.id)
    identity.delete_account(user.uid)
    logger.info(f"Admin {admin.id} deleted user {user.id}")
    return _redirect("/admin/users", message=f"User {user.username} deleted")


# ── API Endpoints ──────────────────────────────────────────────

@app.get("/api/review-link/{business_id}")
async def api_review_link(business_id: int):
    _public_business(business_id)
    config = _state_store(business_id, f"/review/{business_id}").load()
    return {"business_id": business_id, "token": encode(config), "config": config_to_dict(config)}


@app.get("/api/stats")
async def api_stats(request: Request):
    user = _get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not signed in")
    if user.is_admin:
        return db.get_platform_stats()
    if not user.business_id:
        raise HTTPException(status_code=404, detail="No business")
    return db.get_business_stats(user.business_id)
