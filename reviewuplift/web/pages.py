"""
HTML Page Renderers - ReviewUplift Web UI
=========================================

Server-rendered pages for the marketing site, business dashboard, visitor
review page and admin console. Every user-supplied value goes through ``_e``.
"""

import html
from typing import Dict, List, Optional, Sequence

from ..domain import FeedbackForm, LinkConfiguration, ReviewSession
from ..domain.feedback import REQUIRED_FIELDS
from ..domain.link_config import MAX_RATING, slug_of
from ..infrastructure.config import Plan
from ..infrastructure.persistence import Business, Location, Review, User, UserRole, REVIEW_FILTERS


def _e(value) -> str:
    return html.escape("" if value is None else str(value), quote=True)


# ══════════════════════════════════════════════════════════════════
#  SHARED CSS, reused across all pages
# ══════════════════════════════════════════════════════════════════

SHARED_CSS = """
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700;800&display=swap');

    :root {
        --bg: #f7f8fa;
        --bg-card: #ffffff;
        --border: #e5e7eb;
        --border-hover: rgba(234,88,12,0.4);
        --text: #1f2937;
        --text-muted: #6b7280;
        --accent-1: #ea580c;
        --accent-2: #f97316;
        --gradient: linear-gradient(135deg, #ea580c 0%, #f97316 100%);
    }

    * { margin: 0; padding: 0; box-sizing: border-box; }

    body {
        font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
        background: var(--bg);
        min-height: 100vh;
        color: var(--text);
    }

    @keyframes fadeInUp {
        from { opacity: 0; transform: translateY(20px); }
        to   { opacity: 1; transform: translateY(0); }
    }

    .card {
        background: var(--bg-card);
        border: 1px solid var(--border);
        border-radius: 16px;
        padding: 28px;
        animation: fadeInUp 0.4s ease-out both;
    }

    .btn {
        background: var(--gradient);
        color: #fff;
        border: none;
        padding: 10px 22px;
        border-radius: 10px;
        font-weight: 600;
        font-size: 14px;
        cursor: pointer;
        text-decoration: none;
        display: inline-flex;
        align-items: center;
        gap: 8px;
        font-family: inherit;
    }
    .btn:hover { opacity: 0.9; }
    .btn:disabled { opacity: 0.4; cursor: not-allowed; }
    .btn-ghost { background: #fff; border: 1px solid var(--border); color: var(--text); }
    .btn-danger { background: #dc2626; }
    .btn-sm { padding: 6px 12px; font-size: 12px; }

    .badge {
        padding: 4px 10px;
        border-radius: 6px;
        font-size: 10px;
        font-weight: 600;
        text-transform: uppercase;
        letter-spacing: 0.4px;
    }
    .badge.active   { background: #dcfce7; color: #15803d; }
    .badge.pending  { background: #fef9c3; color: #a16207; }
    .badge.inactive { background: #f3f4f6; color: #6b7280; }
    .badge.private  { background: #fee2e2; color: #b91c1c; }
    .badge.public   { background: #dbeafe; color: #1d4ed8; }

    input[type="text"], input[type="password"], input[type="email"], input[type="tel"],
    input[type="number"], select, textarea {
        background: #fff;
        border: 1px solid var(--border);
        padding: 10px 14px;
        border-radius: 10px;
        color: var(--text);
        font-size: 14px;
        font-family: inherit;
        width: 100%;
    }
    input:focus, select:focus, textarea:focus {
        outline: none;
        border-color: var(--accent-1);
        box-shadow: 0 0 0 3px rgba(234,88,12,0.15);
    }
    .field-error { border-color: #ef4444 !important; }
    .error-text { color: #ef4444; font-size: 12px; margin-top: 4px; }

    .form-group { margin-bottom: 14px; }
    .form-group label {
        display: block; font-size: 12px; color: var(--text-muted); margin-bottom: 5px;
        font-weight: 500; text-transform: uppercase; letter-spacing: 0.5px;
    }

    .alert { padding: 14px 20px; border-radius: 12px; margin-bottom: 20px; font-size: 14px; text-align: center; }
    .alert-success { background: #dcfce7; border: 1px solid #86efac; color: #15803d; }
    .alert-error   { background: #fee2e2; border: 1px solid #fca5a5; color: #b91c1c; }

    a { color: var(--accent-1); text-decoration: none; }

    table { width: 100%; border-collapse: collapse; font-size: 14px; }
    th, td { text-align: left; padding: 10px 8px; border-bottom: 1px solid var(--border); }
    th { font-size: 11px; text-transform: uppercase; color: var(--text-muted); letter-spacing: 0.5px; }

    .layout { display: flex; min-height: 100vh; }
    .sidebar { width: 240px; background: #fff; border-right: 1px solid var(--border); padding: 24px 16px; }
    .sidebar h2 { font-size: 20px; font-weight: 800; color: var(--accent-1); margin-bottom: 24px; }
    .sidebar a { display: block; padding: 10px 12px; border-radius: 8px; color: var(--text); font-size: 14px; }
    .sidebar a:hover { background: #fff7ed; }
    .main { flex: 1; padding: 32px; max-width: 1100px; }
    .main h1 { font-size: 28px; font-weight: 800; margin-bottom: 20px; }
    .stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 16px; margin-bottom: 24px; }
    .stat .value { font-size: 28px; font-weight: 800; }
    .stat .label { font-size: 12px; color: var(--text-muted); text-transform: uppercase; }
    .grid-2 { display: grid; grid-template-columns: repeat(auto-fit, minmax(340px, 1fr)); gap: 24px; }
    .stars { color: #facc15; letter-spacing: 2px; }
    .stars .off { color: #d1d5db; }
    .row { display: flex; gap: 8px; align-items: center; flex-wrap: wrap; }
    .muted { color: var(--text-muted); font-size: 13px; }
"""


# ══════════════════════════════════════════════════════════════════
#  LAYOUT HELPERS
# ══════════════════════════════════════════════════════════════════

def _page(title: str, body: str, extra_css: str = "", scripts: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{_e(title)} - ReviewUplift</title>
    <style>
        {SHARED_CSS}
        {extra_css}
    </style>
</head>
<body>
{body}
{scripts}
</body>
</html>"""


def _alerts(message: str = "", error: str = "") -> str:
    out = ""
    if message:
        out += f'<div class="alert alert-success">{_e(message)}</div>'
    if error:
        out += f'<div class="alert alert-error">{_e(error)}</div>'
    return out


def _sidebar(user: User) -> str:
    if user.is_admin:
        links = [
            ("/admin", "Dashboard"),
            ("/admin/businesses", "Businesses"),
            ("/admin/users", "Users"),
        ]
    else:
        links = [
            ("/dashboard", "Dashboard"),
            ("/reviews", "Reviews"),
            ("/review-link", "Review Link"),
            ("/business-form", "Business Details"),
        ]
        if user.role in (UserRole.OWNER.value, UserRole.MANAGER.value):
            links.append(("/settings/locations", "Locations"))
        if user.is_owner:
            links.append(("/settings/users", "Team"))
        links.append(("/pricing", "Plans"))
    links.append(("/settings/account", "Account"))
    items = "".join(f'<a href="{href}">{label}</a>' for href, label in links)
    return f"""
    <nav class="sidebar">
        <h2>ReviewUplift</h2>
        {items}
        <a href="/logout" style="margin-top: 24px; color: var(--text-muted);">Sign out ({_e(user.username)})</a>
    </nav>"""


def _app_page(title: str, user: User, content: str, message: str = "", error: str = "",
              extra_css: str = "", scripts: str = "") -> str:
    body = f"""
<div class="layout">
    {_sidebar(user)}
    <main class="main">
        <h1>{_e(title)}</h1>
        {_alerts(message, error)}
        {content}
    </main>
</div>"""
    return _page(title, body, extra_css, scripts)


def render_stars(rating: int) -> str:
    on = "★" * rating
    off = "★" * (MAX_RATING - rating)
    return f'<span class="stars" aria-label="{rating} out of 5 stars">{on}<span class="off">{off}</span></span>'


def _status_badge(status: str) -> str:
    return f'<span class="badge {_e(status)}">{_e(status)}</span>'


# ══════════════════════════════════════════════════════════════════
#  MARKETING + AUTH
# ══════════════════════════════════════════════════════════════════

HOW_IT_WORKS = (
    ("Create your review link", "Set your business name, welcome text and where happy customers should leave a review."),
    ("Share it with customers", "Send the link by SMS, email or a QR code at the counter."),
    ("Gate the feedback", "4-5 stars go to your public review site, 1-3 stars come to you privately."),
)

FAQ = (
    ("What is review gating?",
     "Customers who rate you low are asked for private feedback instead of being sent to a public review site, "
     "so you can fix the problem first."),
    ("Can I turn gating off?",
     "Yes. With gating off every customer is sent to your public review link regardless of rating."),
    ("Is there a free trial?", "Every account starts on a 14-day trial."),
)


def _pricing_cards(plans: tuple) -> str:
    cards = ""
    for plan in plans:
        features = "".join(f"<li>{_e(f)}</li>" for f in plan.features)
        if plan.amount_minor_units is None:
            action = '<a class="btn btn-ghost" href="mailto:sales@reviewuplift.com">Contact sales</a>'
            price = '<div class="value">Custom</div>'
        else:
            action = f'<a class="btn" href="/payment?plan={_e(plan.name)}">Choose {_e(plan.name)}</a>'
            price = f'<div class="value">{_e(plan.display_price)}<span class="muted"> /month</span></div>'
        cards += f"""
        <div class="card stat">
            <div class="label">{_e(plan.name)}</div>
            {price}
            <ul style="margin: 16px 0 20px 18px; font-size: 14px; line-height: 1.8;">{features}</ul>
            {action}
        </div>"""
    return f'<div class="stats">{cards}</div>'


def render_landing_page(plans: tuple, user: Optional[User] = None) -> str:
    if user:
        cta = f'<a class="btn" href="{"/admin" if user.is_admin else "/dashboard"}">Go to dashboard</a>'
    else:
        cta = '<a class="btn" href="/signup">Start free trial</a> <a class="btn btn-ghost" href="/login">Sign in</a>'

    steps = "".join(
        f'<div class="card"><h3>{i}. {_e(title)}</h3><p class="muted" style="margin-top: 8px;">{_e(text)}</p></div>'
        for i, (title, text) in enumerate(HOW_IT_WORKS, start=1)
    )
    faq = "".join(
        f'<details class="card" style="margin-bottom: 12px;"><summary><b>{_e(q)}</b></summary>'
        f'<p class="muted" style="margin-top: 8px;">{_e(a)}</p></details>'
        for q, a in FAQ
    )
    body = f"""
<div style="max-width: 1000px; margin: 0 auto; padding: 48px 24px;">
    <section style="text-align: center; margin-bottom: 56px;">
        <h1 style="font-size: 44px; font-weight: 800;">More 5-star reviews. Fewer public surprises.</h1>
        <p class="muted" style="font-size: 17px; margin: 16px 0 28px;">
            ReviewUplift sends happy customers to your review site and brings unhappy ones to you first.
        </p>
        <div class="row" style="justify-content: center;">{cta}</div>
    </section>
    <h2 style="margin-bottom: 16px;">How it works</h2>
    <section class="stats">{steps}</section>
    <h2 id="pricing" style="margin: 32px 0 16px;">Pricing</h2>
    {_pricing_cards(plans)}
    <h2 style="margin: 32px 0 16px;">FAQ</h2>
    {faq}
</div>"""
    return _page("Home", body)


def _auth_page(title: str, subtitle: str, message: str, form: str, footer: str) -> str:
    body = f"""
<div style="display: flex; justify-content: center; align-items: center; min-height: 100vh; padding: 20px;">
    <div class="card" style="width: 100%; max-width: 430px; padding: 40px 36px;">
        <div style="text-align: center; margin-bottom: 28px;">
            <h1 style="font-size: 28px; font-weight: 800; color: var(--accent-1);">{_e(title)}</h1>
            <p class="muted" style="margin-top: 6px;">{_e(subtitle)}</p>
        </div>
        {_alerts(error=message)}
        {form}
        <div class="muted" style="text-align: center; margin-top: 24px;">{footer}</div>
    </div>
</div>"""
    return _page(title, body)


def render_login_page(message: str = "") -> str:
    form = """
        <form method="post" action="/login">
            <div class="form-group">
                <label>Email or Username</label>
                <input type="text" name="email" placeholder="you@business.com" required>
            </div>
            <div class="form-group">
                <label>Password</label>
                <input type="password" name="password" placeholder="Enter password" required>
            </div>
            <button type="submit" class="btn" style="width: 100%; justify-content: center;">Sign In</button>
        </form>"""
    return _auth_page("ReviewUplift", "Sign in to your dashboard", message, form,
                      'Don\'t have an account? <a href="/signup">Create one</a>')


def render_signup_page(message: str = "") -> str:
    form = """
        <form method="post" action="/signup">
            <div class="form-group">
                <label>Email</label>
                <input type="email" name="email" placeholder="you@business.com" required>
            </div>
            <div class="form-group">
                <label>Username</label>
                <input type="text" name="username" placeholder="Your name" required>
            </div>
            <div class="form-group">
                <label>Password</label>
                <input type="password" name="password" placeholder="At least 6 characters" required>
            </div>
            <button type="submit" class="btn" style="width: 100%; justify-content: center;">Create Account</button>
        </form>"""
    return _auth_page("Create your account", "Start your 14-day trial", message, form,
                      'Already have an account? <a href="/login">Sign in</a>')


BUSINESS_TYPES = ("Restaurant", "Retail", "Healthcare", "Salon & Spa", "Automotive", "Hotel", "Other")


def render_business_form(user: User, business: Optional[Business], message: str = "", error: str = "",
                         code_handle: str = "", phone: str = "") -> str:
    b = business
    current_type = b.business_type if b else ""
    known_type = current_type in BUSINESS_TYPES
    options = "".join(
        f'<option value="{_e(t)}" {"selected" if (t == current_type or (t == "Other" and current_type and not known_type)) else ""}>{_e(t)}</option>'
        for t in BUSINESS_TYPES
    )
    custom_type = current_type if current_type and not known_type else ""

    phone_value = phone or user.phone or (b.contact_phone if b else "")
    if user.phone_verified:
        verify = f'<p class="muted">Phone {_e(user.phone)} verified ✓</p>'
    elif code_handle:
        verify = f"""
        <form method="post" action="/business-form/verify-code" class="row">
            <input type="hidden" name="handle" value="{_e(code_handle)}">
            <input type="hidden" name="phone" value="{_e(phone_value)}">
            <input type="text" name="code" placeholder="6-digit code" style="max-width: 160px;" required>
            <button type="submit" class="btn btn-sm">Verify</button>
        </form>"""
    else:
        verify = f"""
        <form method="post" action="/business-form/send-code" class="row">
            <input type="tel" name="phone" value="{_e(phone_value)}" placeholder="+1 555 0100" style="max-width: 220px;" required>
            <button type="submit" class="btn btn-sm btn-ghost">Send verification code</button>
        </form>"""

    content = f"""
    <div class="grid-2">
        <div class="card">
            <form method="post" action="/business-form">
                <div class="form-group"><label>Business Name</label>
                    <input type="text" name="name" value="{_e(b.name if b else '')}" required></div>
                <div class="form-group"><label>Business Type</label>
                    <select name="business_type">{options}</select></div>
                <div class="form-group"><label>Other type (if Other)</label>
                    <input type="text" name="custom_business_type" value="{_e(custom_type)}"></div>
                <div class="form-group"><label>Contact Email</label>
                    <input type="email" name="contact_email" value="{_e(b.contact_email if b else user.email)}" required></div>
                <div class="form-group"><label>Contact Phone</label>
                    <input type="tel" name="contact_phone" value="{_e(b.contact_phone if b else phone_value)}" required></div>
                <div class="form-group"><label>Number of Branches</label>
                    <input type="number" name="branch_count" min="1" value="{_e(b.branch_count if b else 1)}"></div>
                <div class="form-group"><label>Description</label>
                    <textarea name="description" rows="3">{_e(b.description if b else '')}</textarea></div>
                <button type="submit" class="btn">{"Update" if b else "Save"} Business Details</button>
            </form>
        </div>
        <div class="card">
            <h3 style="margin-bottom: 12px;">Phone verification</h3>
            {verify}
        </div>
    </div>"""
    return _app_page("Business Details", user, content, message, error)


# ══════════════════════════════════════════════════════════════════
#  BUSINESS DASHBOARD
# ══════════════════════════════════════════════════════════════════

def render_dashboard(user: User, business: Business, stats: dict, recent: List[Review],
                     review_page_url: str, message: str = "") -> str:
    cards = "".join(
        f'<div class="card stat"><div class="label">{label}</div><div class="value">{_e(value)}</div></div>'
        for label, value in (
            ("Total Reviews", stats["total"]),
            ("Average Rating", stats["avg_rating"] or "-"),
            ("Private Feedback", stats["private"]),
            ("Reply Rate", f'{stats["reply_rate"]}%'),
        )
    )
    rows = "".join(
        f"<tr><td>{_e(r.name)}</td><td>{render_stars(r.rating)}</td><td>{_e(r.message[:80])}</td>"
        f"<td>{_e(r.created_at)}</td></tr>"
        for r in recent
    ) or '<tr><td colspan="4" class="muted">No reviews yet. Share your review link to get started!</td></tr>'

    content = f"""
    <p class="muted" style="margin-bottom: 20px;">{_e(business.name)} · Plan: <b>{_e(business.plan)}</b> ·
        Public review page: <a href="{_e(review_page_url)}" target="_blank">{_e(review_page_url)}</a></p>
    <div class="stats">{cards}</div>
    <div class="card">
        <h3 style="margin-bottom: 12px;">Recent feedback</h3>
        <table><thead><tr><th>Name</th><th>Rating</th><th>Message</th><th>Date</th></tr></thead>
        <tbody>{rows}</tbody></table>
    </div>"""
    return _app_page("Dashboard", user, content, message)


def _preview_card(config: LinkConfiguration) -> str:
    logo = (f'<img src="{_e(config.logo_image)}" alt="Logo" style="max-height: 48px; margin-bottom: 12px;">'
            if config.logo_image else "")
    image = (f'<img src="{_e(config.preview_image)}" alt="Business Preview" style="max-width: 100%; max-height: 160px; border-radius: 8px;">'
             if config.preview_image else '<div style="font-size: 40px;">⛰</div>')
    return f"""
        <div style="text-align: center; padding: 24px; border: 1px solid var(--border); border-radius: 12px;">
            {logo}
            <h4>{_e(config.welcome_title)}</h4>
            <p class="muted" style="margin-bottom: 12px;">{_e(config.welcome_text)}</p>
            {image}
            <h3 style="margin-top: 12px;">{_e(config.business_name)}</h3>
            <p class="muted">{_e(config.preview_text)}</p>
            <div style="font-size: 28px; margin: 12px 0;">{render_stars(config.rating)}</div>
            <p class="muted" style="font-size: 11px;">Powered by ReviewUplift</p>
        </div>"""


def render_review_link_editor(user: User, config: LinkConfiguration, token: str, link_base: str,
                              review_page_url: str, edit: str = "", confirm_gating: bool = False,
                              message: str = "", error: str = "") -> str:
    state_input = f'<input type="hidden" name="state" value="{_e(token)}">'
    editor_url = f"/review-link?state={_e(token)}" if token else "/review-link"

    if edit == "url":
        url_block = f"""
        <form method="post" action="/review-link/url" class="row">
            {state_input}
            <span class="muted">{_e(link_base)}</span>
            <input type="text" name="slug" value="{_e(slug_of(config.review_link_url, link_base))}" style="max-width: 240px;" required>
            <button type="submit" class="btn btn-sm">Save</button>
        </form>"""
    else:
        url_block = f"""
        <div class="row">
            <code>{_e(config.review_link_url)}</code>
            <a class="btn btn-sm btn-ghost" href="{editor_url}{'&' if token else '?'}edit=url">Edit</a>
        </div>"""

    if edit == "preview":
        preview_block = f"""
        <form method="post" action="/review-link/preview">
            {state_input}
            <div class="form-group"><label>Business Name</label>
                <input type="text" name="business_name" value="{_e(config.business_name)}" required></div>
            <div class="form-group"><label>Preview Text</label>
                <input type="text" name="preview_text" value="{_e(config.preview_text)}" required></div>
            <div class="form-group"><label>Welcome Title</label>
                <input type="text" name="welcome_title" value="{_e(config.welcome_title)}" required></div>
            <div class="form-group"><label>Welcome Text</label>
                <textarea name="welcome_text" rows="2" required>{_e(config.welcome_text)}</textarea></div>
            <button type="submit" class="btn btn-sm">Save Preview</button>
        </form>"""
    else:
        preview_block = f"""
        <p class="muted" style="margin-bottom: 12px;">Click "Edit Preview" to customize your review collection page.</p>
        <a class="btn btn-sm btn-ghost" href="{editor_url}{'&' if token else '?'}edit=preview">Edit Preview</a>"""

    def image_block(kind: str, label: str, current: Optional[str]) -> str:
        delete = ""
        if current:
            delete = f"""
            <form method="post" action="/review-link/{kind}/delete">
                {state_input}<button type="submit" class="btn btn-sm btn-danger">Delete {label}</button>
            </form>"""
        return f"""
        <div style="margin-bottom: 16px;">
            <form method="post" action="/review-link/{kind}" enctype="multipart/form-data" class="row">
                {state_input}
                <input type="file" name="file" accept="image/*" required>
                <button type="submit" class="btn btn-sm btn-ghost">Upload {label}</button>
            </form>
            {delete}
        </div>"""

    if confirm_gating:
        gating_block = f"""
        <div class="alert alert-error">
            Disabling review gating sends every customer, whatever their rating, to your public review site.
            <form method="post" action="/review-link/gating" class="row" style="justify-content: center; margin-top: 12px;">
                {state_input}
                <input type="hidden" name="enabled" value="false">
                <input type="hidden" name="confirm" value="yes">
                <button type="submit" class="btn btn-sm btn-danger">Disable gating</button>
                <a class="btn btn-sm btn-ghost" href="{editor_url}">Cancel</a>
            </form>
        </div>"""
    else:
        target = "false" if config.is_review_gating_enabled else "true"
        gating_block = f"""
        <form method="post" action="/review-link/gating" class="row">
            {state_input}
            <input type="hidden" name="enabled" value="{target}">
            <span>Review gating is <b>{"ON" if config.is_review_gating_enabled else "OFF"}</b></span>
            <button type="submit" class="btn btn-sm btn-ghost">{"Disable" if config.is_review_gating_enabled else "Enable"}</button>
        </form>"""

    content = f"""
    <p class="muted" style="margin-bottom: 20px;">Customize the behavior, text and images of your review link.</p>
    <div class="grid-2">
        <div>
            <div class="card" style="margin-bottom: 20px;"><h3 style="margin-bottom: 12px;">Review Link</h3>{url_block}</div>
            <div class="card" style="margin-bottom: 20px;"><h3 style="margin-bottom: 12px;">Review Gating</h3>{gating_block}
                <p class="muted" style="margin-top: 8px;">With gating on, 1-3 star ratings are asked for private feedback.</p></div>
            <div class="card" style="margin-bottom: 20px;"><h3 style="margin-bottom: 12px;">Desktop Preview</h3>{preview_block}</div>
            <div class="card"><h3 style="margin-bottom: 12px;">Images</h3>
                {image_block("image", "Image", config.preview_image)}
                {image_block("logo", "Logo", config.logo_image)}</div>
        </div>
        <div class="card">
            <h3>Live Preview</h3>
            <p class="muted" style="margin-bottom: 16px;">How customers will see your review page</p>
            {_preview_card(config)}
            <div style="margin-top: 16px;"><a class="btn btn-sm" href="{_e(review_page_url)}" target="_blank">Open full preview</a></div>
        </div>
    </div>"""
    return _app_page("Review Link", user, content, message, error)


def render_reviews_page(user: User, reviews: List[Review], search: str = "", filter_option: str = "All",
                        reply_to: Optional[int] = None, message: str = "") -> str:
    options = "".join(
        f'<option value="{_e(f)}" {"selected" if f == filter_option else ""}>{_e(f)}</option>'
        for f in REVIEW_FILTERS
    )
    rows = ""
    for r in reviews:
        contact = " · ".join(_e(x) for x in (r.email, r.phone, r.branch) if x)
        reply_form = ""
        if reply_to == r.id:
            reply_form = f"""
            <form method="post" action="/reviews/{r.id}/reply" style="margin-top: 8px;">
                <textarea name="reply_text" rows="2" required placeholder="Write your reply..."></textarea>
                <button type="submit" class="btn btn-sm" style="margin-top: 6px;">Send Reply</button>
            </form>"""
        reply_shown = f'<div class="muted" style="margin-top: 6px;">↳ {_e(r.reply_text)}</div>' if r.reply_text else ""
        rows += f"""
        <tr>
            <td><b>{_e(r.name)}</b><div class="muted">{contact}</div></td>
            <td>{render_stars(r.rating)}</td>
            <td>{_e(r.message)}{reply_shown}{reply_form}</td>
            <td><span class="badge {_e(r.source)}">{_e(r.source)}</span></td>
            <td>{_e(r.created_at)}</td>
            <td class="row">
                <a class="btn btn-sm btn-ghost" href="/reviews?reply={r.id}">Reply</a>
                <form method="post" action="/reviews/{r.id}/toggle-replied">
                    <button type="submit" class="btn btn-sm btn-ghost">{"Mark unreplied" if r.replied else "Mark replied"}</button>
                </form>
                <form method="post" action="/reviews/{r.id}/delete">
                    <button type="submit" class="btn btn-sm btn-danger">Delete</button>
                </form>
            </td>
        </tr>"""
    if not rows:
        rows = '<tr><td colspan="6" class="muted">No reviews match.</td></tr>'

    content = f"""
    <form method="get" action="/reviews" class="row" style="margin-bottom: 20px;">
        <input type="text" name="q" value="{_e(search)}" placeholder="Search reviews..." style="max-width: 280px;">
        <select name="filter" style="max-width: 180px;">{options}</select>
        <button type="submit" class="btn btn-sm">Apply</button>
    </form>
    <div class="card">
        <table><thead><tr><th>Customer</th><th>Rating</th><th>Message</th><th>Source</th><th>Date</th><th></th></tr></thead>
        <tbody>{rows}</tbody></table>
    </div>"""
    return _app_page("Your Reviews", user, content, message)


def render_team_page(user: User, business: Business, members: List[User],
                     message: str = "", error: str = "") -> str:
    rows = ""
    for m in members:
        action = ""
        if m.id != user.id:
            action = f"""
            <form method="post" action="/settings/users/{m.id}/delete">
                <button type="submit" class="btn btn-sm btn-danger">Remove</button>
            </form>"""
        rows += (f"<tr><td>{_e(m.username)}</td><td>{_e(m.email)}</td><td>{_e(m.role)}</td>"
                 f"<td>{_status_badge(m.status)}</td><td>{action}</td></tr>")

    content = f"""
    <div class="grid-2">
        <div class="card">
            <h3 style="margin-bottom: 12px;">{_e(business.name)} users</h3>
            <table><thead><tr><th>Name</th><th>Email</th><th>Role</th><th>Status</th><th></th></tr></thead>
            <tbody>{rows}</tbody></table>
        </div>
        <div class="card">
            <h3 style="margin-bottom: 12px;">Add user</h3>
            <form method="post" action="/settings/users">
                <div class="form-group"><label>Name</label><input type="text" name="username" required></div>
                <div class="form-group"><label>Email</label><input type="email" name="email" required></div>
                <div class="form-group"><label>Temporary Password</label><input type="password" name="password" required></div>
                <div class="form-group"><label>Role</label>
                    <select name="role"><option value="manager">Location Manager</option><option value="staff">Staff</option></select></div>
                <button type="submit" class="btn">Add User</button>
            </form>
        </div>
    </div>"""
    return _app_page("Team", user, content, message, error)


def render_locations_page(user: User, locations: List[Location], total: int, search: str = "",
                          edit: Optional[int] = None, message: str = "", error: str = "") -> str:
    cards = ""
    for loc in locations:
        status = "active" if loc.is_active else "inactive"
        toggle_label = "Deactivate" if loc.is_active else "Activate"
        if edit == loc.id and loc.is_active:
            body = f"""
            <form method="post" action="/settings/locations/{loc.id}" class="row">
                <input type="text" name="name" value="{_e(loc.name)}" required style="max-width: 220px;">
                <input type="text" name="address" value="{_e(loc.address)}" required>
                <button type="submit" class="btn btn-sm">Save</button>
                <a class="btn btn-sm btn-ghost" href="/settings/locations">Cancel</a>
            </form>"""
        else:
            edit_link = (f'<a class="btn btn-sm btn-ghost" href="/settings/locations?edit={loc.id}">Edit</a>'
                         if loc.is_active else '<span class="muted">Activate to edit</span>')
            body = f"""
            <div class="row" style="justify-content: space-between;">
                <div>
                    <b>{_e(loc.name)}</b> {_status_badge(status)}
                    <div class="muted">{_e(loc.address)}</div>
                    <div class="muted" style="font-size: 12px;">Added on {_e(loc.created_at)} · ID {loc.id}</div>
                </div>
                <div class="row">
                    {edit_link}
                    <form method="post" action="/settings/locations/{loc.id}/toggle">
                        <button type="submit" class="btn btn-sm btn-ghost">{toggle_label}</button>
                    </form>
                    <form method="post" action="/settings/locations/{loc.id}/delete">
                        <button type="submit" class="btn btn-sm btn-danger">Delete</button>
                    </form>
                </div>
            </div>"""
        cards += f'<div class="card" style="margin-bottom: 12px;">{body}</div>'

    if not cards:
        empty = "No locations match your search" if search else "No locations added yet"
        cards = f'<div class="card muted" style="text-align: center;">{empty}</div>'

    content = f"""
    <p class="muted" style="margin-bottom: 16px;">Manage your business locations ·
        <b>{total}</b> {"Location" if total == 1 else "Locations"}</p>
    <form method="get" action="/settings/locations" class="row" style="margin-bottom: 20px;">
        <input type="text" name="q" value="{_e(search)}" placeholder="Search locations..." style="max-width: 280px;">
        <button type="submit" class="btn btn-sm">Search</button>
    </form>
    <div class="card" style="margin-bottom: 20px;">
        <h3 style="margin-bottom: 12px;">Add New Location</h3>
        <form method="post" action="/settings/locations" class="row">
            <input type="text" name="name" placeholder="Enter location name" required style="max-width: 220px;">
            <input type="text" name="address" placeholder="Enter full address" required>
            <button type="submit" class="btn btn-sm">Add Location</button>
        </form>
    </div>
    {cards}"""
    return _app_page("Locations", user, content, message, error)


def _password_field(name: str, label: str, errors: Dict[str, str]) -> str:
    problem = errors.get(name, "")
    css = ' class="field-error"' if problem else ""
    note = f'<div class="error-text">{_e(problem)}</div>' if problem else ""
    return (f'<div class="form-group"><label for="{name}">{label}</label>'
            f'<input type="password" name="{name}" id="{name}"{css}>{note}</div>')


def render_account_page(user: User, errors: Optional[Dict[str, str]] = None,
                        message: str = "", error: str = "") -> str:
    errors = errors or {}
    content = f"""
    <div class="card" style="max-width: 620px; margin-bottom: 20px;">
        <h3 style="margin-bottom: 8px;">Your Account</h3>
        <p class="muted">{_e(user.username)} · {_e(user.email)} · {_e(user.role)}</p>
    </div>
    <div class="card" style="max-width: 620px;">
        <h3 style="margin-bottom: 12px;">Change Password</h3>
        <form method="post" action="/settings/account/password">
            {_password_field("current_password", "Current Password", errors)}
            {_password_field("new_password", "New Password", errors)}
            {_password_field("confirm_password", "Confirm Password", errors)}
            <button type="submit" class="btn">Update Password</button>
        </form>
    </div>"""
    return _app_page("Account", user, content, message, error)


def render_payment_page(user: User, plan: Plan, methods: dict, currency: str, error: str = "") -> str:
    options = "".join(
        f'<label class="card" style="padding: 14px; cursor: pointer;">'
        f'<input type="radio" name="method" value="{_e(key)}" {"checked" if i == 0 else ""}> {_e(name)}</label>'
        for i, (key, name) in enumerate(methods.items())
    )
    content = f"""
    <div class="card" style="max-width: 620px;">
        <h2>Subscribe to {_e(plan.name)} Plan</h2>
        <p class="muted" style="margin: 8px 0 16px;">Your 14-day trial includes everything. Choose a payment method below.</p>
        <div class="value" style="font-size: 24px; font-weight: 700; margin-bottom: 16px;">
            {_e(plan.display_price)} {_e(currency)} / month</div>
        <form method="post" action="/payment">
            <input type="hidden" name="plan" value="{_e(plan.name)}">
            <div class="stats">{options}</div>
            <button type="submit" class="btn" style="width: 100%; justify-content: center;">Proceed to Pay</button>
        </form>
    </div>"""
    return _app_page("Payment", user, content, error=error)


def render_pricing_page(user: User, plans: tuple) -> str:
    return _app_page("Plans", user, _pricing_cards(plans))


# ══════════════════════════════════════════════════════════════════
#  VISITOR REVIEW PAGE
# ══════════════════════════════════════════════════════════════════

FIELD_LABELS = {
    "name": ("Name", "text"),
    "phone": ("Phone Number", "tel"),
    "email": ("Email", "email"),
    "branch_name": ("Branch Name", "text"),
    "review_text": ("Your Feedback", "textarea"),
}


def _feedback_fields(form: FeedbackForm, branches: Sequence[str] = ()) -> str:
    out = ""
    for name in REQUIRED_FIELDS:
        label, kind = FIELD_LABELS[name]
        flagged = form.errors.get(name, False)
        css = ' class="field-error"' if flagged else ""
        value = getattr(form, name)
        if name == "branch_name" and branches:
            options = '<option value="">Select a branch</option>' + "".join(
                f'<option value="{_e(b)}" {"selected" if b == value else ""}>{_e(b)}</option>' for b in branches
            )
            widget = f'<select name="{name}" id="{name}"{css}>{options}</select>'
        elif kind == "textarea":
            widget = f'<textarea name="{name}" id="{name}" rows="4"{css}>{_e(value)}</textarea>'
        else:
            widget = f'<input type="{kind}" name="{name}" id="{name}" value="{_e(value)}"{css}>'
        error = f'<div class="error-text">{label} is required</div>' if flagged else ""
        out += f'<div class="form-group"><label for="{name}">{label}</label>{widget}{error}</div>'
    return out


REVIEW_PAGE_SCRIPT = """
<script>
(function () {
    var root = document.getElementById('review-root');
    if (!root || !window.WebSocket) return;
    var proto = location.protocol === 'https:' ? 'wss://' : 'ws://';
    var url = proto + location.host + '/ws/review/' + root.dataset.business + '?state=' + encodeURIComponent(root.dataset.state || '');
    var ws = new WebSocket(url);
    ws.onopen = function () { ws.send(JSON.stringify({rating: parseInt(root.dataset.rating || '0', 10)})); };
    ws.onmessage = function (event) {
        var msg = JSON.parse(event.data);
        if (msg.type !== 'config') return;
        var c = msg.config;
        var set = function (id, text) { var el = document.getElementById(id); if (el) el.textContent = text; };
        set('rv-business', c.businessName);
        set('rv-preview', c.previewText);
        set('rv-welcome-title', c.welcomeTitle);
        set('rv-welcome-text', c.welcomeText);
        var img = document.getElementById('rv-image');
        if (img) { img.style.display = c.previewImage ? '' : 'none'; if (c.previewImage) img.src = c.previewImage; }
        var logo = document.getElementById('rv-logo');
        if (logo) { logo.style.display = c.logoImage ? '' : 'none'; if (c.logoImage) logo.src = c.logoImage; }
        root.dataset.gating = c.isReviewGatingEnabled ? '1' : '0';
    };
})();
</script>"""


def render_review_page(business_id: int, session: ReviewSession, token: str, error: str = "",
                       branches: Sequence[str] = ()) -> str:
    config = session.config
    hidden = (
        f'<input type="hidden" name="state" value="{_e(token)}">'
        f'<input type="hidden" name="rating" value="{session.rating}">'
    )

    if session.submitted:
        inner = f"""
            <h2 style="margin-bottom: 12px;">Thank You!</h2>
            <p>{_e(session.message)}</p>
            <form method="post" action="/review/{business_id}" style="margin-top: 20px;">
                {hidden}
                <input type="hidden" name="action" value="reset">
                <button type="submit" class="btn btn-ghost">Leave another review</button>
            </form>"""
    else:
        star_links = ""
        for star in range(1, MAX_RATING + 1):
            on = star <= session.rating
            href = f"/review/{business_id}?rating={star}" + (f"&state={_e(token)}" if token else "")
            star_links += (f'<a href="{href}" aria-label="{star} star{"s" if star != 1 else ""}" '
                           f'style="font-size: 36px; color: {"#facc15" if on else "#d1d5db"};">★</a>')
        caption = (f"You selected {session.rating} star{'s' if session.rating != 1 else ''}"
                   if session.rating else "Rate your experience")

        form_html = ""
        if session.needs_form:
            form_html = f'<div style="text-align: left; margin-top: 20px;">{_feedback_fields(session.form, branches)}</div>'

        if session.rating == 0:
            label = "Leave Review"
        elif not session.needs_form and (session.rating >= 4 or not config.is_review_gating_enabled):
            label = "Continue to Review"
        elif session.needs_form:
            label = "Submit Your Feedback"
        else:
            label = "Continue to Feedback"

        image = f'<img id="rv-image" src="{_e(config.preview_image or "")}" alt="Business Preview" ' \
                f'style="max-width: 100%; max-height: 160px; border-radius: 8px; {"" if config.preview_image else "display: none;"}">'
        logo = f'<img id="rv-logo" src="{_e(config.logo_image or "")}" alt="Logo" ' \
               f'style="max-height: 56px; margin-bottom: 12px; {"" if config.logo_image else "display: none;"}">'

        inner = f"""
            {logo}
            <h4 id="rv-welcome-title">{_e(config.welcome_title)}</h4>
            <p id="rv-welcome-text" class="muted" style="margin-bottom: 16px;">{_e(config.welcome_text)}</p>
            {image}
            <h2 id="rv-business" style="margin-top: 12px;">{_e(config.business_name)}</h2>
            <p id="rv-preview" class="muted">{_e(config.preview_text)}</p>
            <div role="group" aria-label="Rate your experience" style="margin: 16px 0 4px;">{star_links}</div>
            <p class="muted">{caption}</p>
            <form method="post" action="/review/{business_id}">
                {hidden}
                <input type="hidden" name="form_visible" value="{"1" if session.form_visible else "0"}">
                <input type="hidden" name="action" value="leave">
                {form_html}
                <button type="submit" class="btn" style="margin-top: 16px;" {"disabled" if session.rating == 0 else ""}>{label}</button>
            </form>
            <p class="muted" style="font-size: 11px; margin-top: 16px;">Powered by ReviewUplift</p>"""

    body = f"""
<div style="display: flex; justify-content: center; align-items: center; min-height: 100vh; padding: 20px;">
    <div id="review-root" class="card" style="width: 100%; max-width: 460px; text-align: center;"
         data-business="{business_id}" data-state="{_e(token)}" data-rating="{session.rating}"
         data-gating="{1 if config.is_review_gating_enabled else 0}">
        {_alerts(error=error)}
        {inner}
    </div>
</div>"""
    return _page(config.business_name, body, scripts=REVIEW_PAGE_SCRIPT)


# ══════════════════════════════════════════════════════════════════
#  ADMIN CONSOLE
# ══════════════════════════════════════════════════════════════════

def render_admin_dashboard(user: User, stats: dict, recent: List[Business]) -> str:
    cards = "".join(
        f'<div class="card stat"><div class="label">{label}</div><div class="value">{_e(value)}</div></div>'
        for label, value in (
            ("Total Businesses", stats["businesses"]),
            ("Active Businesses", stats["active_businesses"]),
            ("Total Users", stats["users"]),
            ("Reviews Collected", stats["reviews"]),
            ("Avg. Rating", stats["avg_rating"] or "-"),
        )
    )
    rows = "".join(
        f'<tr><td><a href="/admin/businesses/{b.id}">{_e(b.name)}</a></td><td>{_status_badge(b.status)}</td>'
        f"<td>{b.user_count}</td><td>{b.review_count}</td><td>{_e(b.created_at)}</td></tr>"
        for b in recent
    ) or '<tr><td colspan="5" class="muted">No businesses yet.</td></tr>'
    content = f"""
    <div class="stats">{cards}</div>
    <div class="card"><h3 style="margin-bottom: 12px;">Newest businesses</h3>
        <table><thead><tr><th>Name</th><th>Status</th><th>Users</th><th>Reviews</th><th>Created</th></tr></thead>
        <tbody>{rows}</tbody></table></div>"""
    return _app_page("Admin Dashboard", user, content)


def _status_forms(action: str, status: str) -> str:
    out = ""
    for target, label in (("active", "Activate"), ("inactive", "Deactivate")):
        if status != target:
            out += f"""
            <form method="post" action="{action}">
                <input type="hidden" name="status" value="{target}">
                <button type="submit" class="btn btn-sm btn-ghost">{label}</button>
            </form>"""
    return out


def render_admin_businesses(user: User, businesses: List[Business], search: str = "",
                            message: str = "") -> str:
    rows = ""
    for b in businesses:
        rows += f"""
        <tr>
            <td><a href="/admin/businesses/{b.id}">{_e(b.name)}</a><div class="muted">{_e(b.business_type)}</div></td>
            <td>{_status_badge(b.status)}</td>
            <td>{b.user_count}</td><td>{b.review_count}</td><td>{b.avg_rating or "-"}</td><td>{_e(b.plan)}</td>
            <td class="row">
                {_status_forms(f"/admin/businesses/{b.id}/status", b.status)}
                <form method="post" action="/admin/businesses/{b.id}/delete">
                    <button type="submit" class="btn btn-sm btn-danger">Delete</button>
                </form>
            </td>
        </tr>"""
    if not rows:
        rows = '<tr><td colspan="7" class="muted">No businesses found.</td></tr>'
    content = f"""
    <form method="get" action="/admin/businesses" class="row" style="margin-bottom: 20px;">
        <input type="text" name="q" value="{_e(search)}" placeholder="Search businesses..." style="max-width: 280px;">
        <button type="submit" class="btn btn-sm">Search</button>
    </form>
    <div class="card">
        <table><thead><tr><th>Business</th><th>Status</th><th>Users</th><th>Reviews</th><th>Avg</th><th>Plan</th><th></th></tr></thead>
        <tbody>{rows}</tbody></table>
    </div>"""
    return _app_page("Businesses", user, content, message)


def render_admin_business_detail(user: User, business: Business, members: List[User],
                                 reviews: List[Review]) -> str:
    member_rows = "".join(
        f"<tr><td>{_e(m.username)}</td><td>{_e(m.email)}</td><td>{_e(m.role)}</td>"
        f"<td>{_status_badge(m.status)}</td><td>{_e(m.last_login or 'Never')}</td></tr>"
        for m in members
    ) or '<tr><td colspan="5" class="muted">No users.</td></tr>'
    review_rows = "".join(
        f"<tr><td>{_e(r.name)}</td><td>{render_stars(r.rating)}</td><td>{_e(r.message[:100])}</td>"
        f"<td>{_e(r.created_at)}</td></tr>"
        for r in reviews
    ) or '<tr><td colspan="4" class="muted">No reviews.</td></tr>'
    content = f"""
    <p class="muted" style="margin-bottom: 20px;"><a href="/admin/businesses">← Back to Businesses</a>
        · {_status_badge(business.status)} · Created on {_e(business.created_at)}</p>
    <div class="stats">
        <div class="card stat"><div class="label">Total Users</div><div class="value">{business.user_count}</div></div>
        <div class="card stat"><div class="label">Total Reviews</div><div class="value">{business.review_count}</div></div>
        <div class="card stat"><div class="label">Average Rating</div><div class="value">{business.avg_rating or "-"}</div></div>
    </div>
    <div class="card" style="margin-bottom: 20px;">
        <h3 style="margin-bottom: 8px;">Details</h3>
        <p class="muted">{_e(business.business_type)} · {_e(business.contact_email)} · {_e(business.contact_phone)}
            · {business.branch_count} branch(es) · Plan {_e(business.plan)}</p>
        <p style="margin-top: 8px;">{_e(business.description)}</p>
    </div>
    <div class="card" style="margin-bottom: 20px;"><h3 style="margin-bottom: 12px;">Users ({len(members)})</h3>
        <table><thead><tr><th>Name</th><th>Email</th><th>Role</th><th>Status</th><th>Last Login</th></tr></thead>
        <tbody>{member_rows}</tbody></table></div>
    <div class="card"><h3 style="margin-bottom: 12px;">Reviews ({len(reviews)})</h3>
        <table><thead><tr><th>Name</th><th>Rating</th><th>Message</th><th>Date</th></tr></thead>
        <tbody>{review_rows}</tbody></table></div>"""
    return _app_page(business.name, user, content)


def render_admin_users(user: User, users: List[User], businesses: List[Business], search: str = "",
                       message: str = "", error: str = "", editing: Optional[User] = None) -> str:
    names = {b.id: b.name for b in businesses}
    rows = ""
    for u in users:
        actions = ""
        edit_link = f'<a class="btn btn-sm btn-ghost" href="/admin/users?edit={u.id}">Edit</a>'
        if u.id != user.id:
            actions = f"""
                {_status_forms(f"/admin/users/{u.id}/status", u.status)}
                <form method="post" action="/admin/users/{u.id}/delete">
                    <button type="submit" class="btn btn-sm btn-danger">Delete</button>
                </form>"""
        rows += f"""
        <tr>
            <td>{_e(u.username)}</td><td>{_e(u.email)}</td><td>{_e(names.get(u.business_id, "-"))}</td>
            <td>{_e(u.role)}</td><td>{_status_badge(u.status)}</td><td>{_e(u.last_login or "Never")}</td>
            <td class="row">{edit_link}{actions}</td>
        </tr>"""
    if not rows:
        rows = '<tr><td colspan="7" class="muted">No users found.</td></tr>'

    business_options = '<option value="">No business</option>' + "".join(
        f'<option value="{b.id}">{_e(b.name)}</option>' for b in businesses
    )

    edit_card = ""
    if editing:
        role_options = "".join(
            f'<option value="{r.value}" {"selected" if r.value == editing.role else ""}>{r.value.title()}</option>'
            for r in UserRole
        )
        linked_options = '<option value="">No business</option>' + "".join(
            f'<option value="{b.id}" {"selected" if b.id == editing.business_id else ""}>{_e(b.name)}</option>'
            for b in businesses if b.status == "active" or b.id == editing.business_id
        )
        edit_card = f"""
    <div class="card" style="max-width: 520px; margin-bottom: 24px;">
        <h3 style="margin-bottom: 4px;">Edit User</h3>
        <p class="muted" style="margin-bottom: 12px;">Update user information and permissions.</p>
        <form method="post" action="/admin/users/{editing.id}">
            <div class="form-group"><label>Name</label>
                <input type="text" name="username" value="{_e(editing.username)}" required></div>
            <div class="form-group"><label>Email</label>
                <input type="email" name="email" value="{_e(editing.email)}" required></div>
            <div class="form-group"><label>Role</label><select name="role">{role_options}</select></div>
            <div class="form-group"><label>Business</label><select name="business_id">{linked_options}</select></div>
            <div class="row">
                <button type="submit" class="btn">Update User</button>
                <a class="btn btn-ghost" href="/admin/users">Cancel</a>
            </div>
        </form>
    </div>"""

    content = f"""
    {edit_card}
    <form method="get" action="/admin/users" class="row" style="margin-bottom: 20px;">
        <input type="text" name="q" value="{_e(search)}" placeholder="Search users..." style="max-width: 280px;">
        <button type="submit" class="btn btn-sm">Search</button>
    </form>
    <div class="card" style="margin-bottom: 24px;">
        <table><thead><tr><th>Name</th><th>Email</th><th>Business</th><th>Role</th><th>Status</th><th>Last Login</th><th></th></tr></thead>
        <tbody>{rows}</tbody></table>
    </div>
    <div class="card" style="max-width: 520px;">
        <h3 style="margin-bottom: 12px;">Create user</h3>
        <form method="post" action="/admin/users">
            <div class="form-group"><label>Name</label><input type="text" name="username" required></div>
            <div class="form-group"><label>Email</label><input type="email" name="email" required></div>
            <div class="form-group"><label>Password</label><input type="password" name="password" required></div>
            <div class="form-group"><label>Role</label><select name="role">
                <option value="staff">Staff</option><option value="manager">Manager</option>
                <option value="owner">Owner</option><option value="admin">Admin</option></select></div>
            <div class="form-group"><label>Status</label><select name="status">
                <option value="pending">Pending</option><option value="active">Active</option></select></div>
            <div class="form-group"><label>Business</label><select name="business_id">{business_options}</select></div>
            <button type="submit" class="btn">Create User</button>
        </form>
    </div>"""
    return _app_page("Users", user, content, message, error)


