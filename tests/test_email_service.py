import pytest

from astro_api import email_service
from astro_api.email_templates import password_reset_otp_template, signup_otp_template
from astro_api.models import OtpPurpose


def test_templates_carry_code_and_expiry():
    signup = signup_otp_template("482913", 10)
    reset = password_reset_otp_template("482913", 10)

    for template in (signup, reset):
        assert "<mjml>" in template
        assert "482913" in template
        assert "10 minutes" in template
    assert "creating your AstrobyAB account" in signup
    assert "reset your password" in reset


@pytest.mark.anyio
async def test_otp_email_goes_through_resend(monkeypatch):
    sent = []
    monkeypatch.setattr(email_service, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: f"<html>{mjml}</html>")
    monkeypatch.setattr(
        email_service.resend.Emails, "send", lambda params: sent.append(params) or {"id": "email_1"}
    )

    response = await email_service.send_otp_email("asha@example.com", "482913", OtpPurpose.RESET_PASSWORD)

    assert response == {"id": "email_1"}
    assert sent[0]["to"] == ["asha@example.com"]
    assert sent[0]["subject"] == "Your AstrobyAB password reset OTP"
    assert "482913" in sent[0]["html"]


@pytest.mark.anyio
async def test_smtp_fallback_when_resend_missing(monkeypatch):
    calls = []
    monkeypatch.setattr(email_service, "RESEND_API_KEY", None)
    monkeypatch.setattr(email_service, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(email_service, "SMTP_USER", "mailer")
    monkeypatch.setattr(email_service, "SMTP_PASS", "secret")
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: "<html></html>")
    monkeypatch.setattr(
        email_service,
        "send_via_smtp",
        lambda to, subject, html, from_address: calls.append((to, subject)) or {"success": True},
    )

    await email_service.send_otp_email("asha@example.com", "482913", OtpPurpose.SIGNUP)

    assert calls == [(["asha@example.com"], "Your AstrobyAB signup OTP")]
    assert email_service.is_email_configured()


@pytest.mark.anyio
async def test_unconfigured_email_raises(monkeypatch):
    monkeypatch.setattr(email_service, "RESEND_API_KEY", None)
    monkeypatch.setattr(email_service, "SMTP_HOST", None)
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: "<html></html>")

    assert not email_service.is_email_configured()
    with pytest.raises(Exception, match="Email service not configured"):
        await email_service.send_otp_email("asha@example.com", "482913", OtpPurpose.SIGNUP)
