from pathlib import Path

from reviewuplift.infrastructure.config import get_settings


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("FEEDBACK_SUBMIT_DELAY", "0.25")
    monkeypatch.setenv("PAYMENT_CURRENCY", "PKR")
    get_settings.cache_clear()

    settings = get_settings()
    assert settings.feedback.submit_delay_seconds == 0.25
    assert settings.payment.currency == "PKR"
    assert settings.database_file == tmp_path / "test.db"
    assert settings.review_link.max_image_bytes == 1024


def test_plans():
    payment = get_settings().payment
    assert [p.name for p in payment.plans] == ["Starter", "Professional", "Enterprise"]
    assert payment.get_plan("starter").display_price == "$49"
    assert payment.get_plan("Professional").amount_minor_units == 9900
    assert payment.get_plan("Enterprise").display_price == "Custom"
    assert payment.get_plan("Gold") is None
    assert set(payment.methods) == {"gpay", "paytm", "phonepe", "netbanking"}


def test_validate_reports_misconfiguration(monkeypatch):
    assert get_settings().validate() == []

    monkeypatch.setenv("IDENTITY_PROVIDER", "firebase")
    monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
    monkeypatch.setenv("DATABASE_FILE", str(Path("/nonexistent-dir/app.db")))
    get_settings.cache_clear()

    issues = get_settings().validate()
    assert any("FIREBASE_API_KEY" in issue for issue in issues)
    assert any("Database directory not found" in issue for issue in issues)


def test_session_key_falls_back_to_a_process_secret(monkeypatch):
    assert get_settings().session.signing_key == "test-secret-key"

    monkeypatch.delenv("SECRET_KEY")
    get_settings.cache_clear()
    settings = get_settings()

    assert settings.session.signing_key
    assert settings.session.signing_key == get_settings().session.signing_key
    assert any("SECRET_KEY" in issue for issue in settings.validate())
