import pytest

from astro_api.domain.otp.repository import OtpRepository
from astro_api.exceptions import (
    ConfigurationError,
    InvalidOrExpired,
    NotificationError,
    RateLimited,
)
from astro_api.models import OtpChallenge, OtpPurpose, User
from astro_api.security_utils import hash_password_bcrypt, pwd_context

EMAIL = "user@example.com"


def count_challenges(db_session, email, purpose):
    return (
        db_session.query(OtpChallenge)
        .filter(OtpChallenge.email == email, OtpChallenge.purpose == purpose.value)
        .count()
    )


# ============================================================================
# ENGINE
# ============================================================================


@pytest.mark.anyio
async def test_issue_verify_consume_then_replay_fails(otp_service, notifier):
    challenge = await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)

    code = notifier.last_code
    assert challenge.code == code
    assert len(code) == 6 and 100000 <= int(code) <= 999999
    assert notifier.sent == [(EMAIL, code, OtpPurpose.SIGNUP)]

    verified = otp_service.verify(EMAIL, code, OtpPurpose.SIGNUP)
    otp_service.consume(verified)

    with pytest.raises(InvalidOrExpired):
        otp_service.verify(EMAIL, code, OtpPurpose.SIGNUP)


@pytest.mark.anyio
async def test_code_expires_after_ttl(otp_service, notifier, clock):
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    code = notifier.last_code

    clock.advance(minutes=11)

    with pytest.raises(InvalidOrExpired):
        otp_service.verify(EMAIL, code, OtpPurpose.SIGNUP)


@pytest.mark.anyio
async def test_code_is_invalid_exactly_at_expiry(otp_service, notifier, clock):
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    code = notifier.last_code

    clock.advance(minutes=9, seconds=59)
    otp_service.verify(EMAIL, code, OtpPurpose.SIGNUP)

    clock.advance(seconds=1)
    with pytest.raises(InvalidOrExpired):
        otp_service.verify(EMAIL, code, OtpPurpose.SIGNUP)


@pytest.mark.anyio
async def test_verified_code_stays_valid_until_consumed(otp_service, notifier):
    await otp_service.issue(EMAIL, OtpPurpose.RESET_PASSWORD)
    code = notifier.last_code

    first = otp_service.verify(EMAIL, code, OtpPurpose.RESET_PASSWORD)
    second = otp_service.verify(EMAIL, code, OtpPurpose.RESET_PASSWORD)

    assert first.id == second.id


@pytest.mark.anyio
async def test_failures_are_indistinguishable(otp_service, notifier, clock):
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    code = notifier.last_code
    wrong_code = "000000" if code != "000000" else "111111"

    messages = []
    for email, candidate, purpose in [
        (EMAIL, wrong_code, OtpPurpose.SIGNUP),
        (EMAIL, code, OtpPurpose.RESET_PASSWORD),
        ("other@example.com", code, OtpPurpose.SIGNUP),
    ]:
        with pytest.raises(InvalidOrExpired) as exc_info:
            otp_service.verify(email, candidate, purpose)
        messages.append(exc_info.value.to_dict())

    clock.advance(minutes=10)
    with pytest.raises(InvalidOrExpired) as exc_info:
        otp_service.verify(EMAIL, code, OtpPurpose.SIGNUP)
    messages.append(exc_info.value.to_dict())

    assert all(m == {"message": "Invalid or expired OTP."} for m in messages)


@pytest.mark.anyio
async def test_resend_inside_cooldown_is_rate_limited(otp_service, clock):
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)

    clock.advance(seconds=30)
    with pytest.raises(RateLimited) as exc_info:
        await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    assert exc_info.value.retry_after == 30

    clock.advance(seconds=29, milliseconds=500)
    with pytest.raises(RateLimited) as exc_info:
        await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    assert exc_info.value.retry_after == 1


@pytest.mark.anyio
async def test_resend_after_cooldown_replaces_previous_code(otp_service, notifier, clock, db_session):
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    old_code = notifier.last_code

    clock.advance(seconds=60)
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    new_code = notifier.last_code

    assert count_challenges(db_session, EMAIL, OtpPurpose.SIGNUP) == 1
    otp_service.verify(EMAIL, new_code, OtpPurpose.SIGNUP)
    if old_code != new_code:
        with pytest.raises(InvalidOrExpired):
            otp_service.verify(EMAIL, old_code, OtpPurpose.SIGNUP)


@pytest.mark.anyio
async def test_cooldown_is_per_purpose(otp_service, db_session):
    await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)
    await otp_service.issue(EMAIL, OtpPurpose.RESET_PASSWORD)

    assert count_challenges(db_session, EMAIL, OtpPurpose.SIGNUP) == 1
    assert count_challenges(db_session, EMAIL, OtpPurpose.RESET_PASSWORD) == 1


@pytest.mark.anyio
async def test_delivery_failure_keeps_stored_challenge(otp_service, notifier, db_session):
    notifier.fail = True

    with pytest.raises(NotificationError):
        await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)

    stored = OtpRepository.get_latest_challenge(db_session, EMAIL, OtpPurpose.SIGNUP)
    assert stored is not None
    otp_service.verify(EMAIL, stored.code, OtpPurpose.SIGNUP)


@pytest.mark.anyio
async def test_missing_email_configuration_stores_nothing(otp_service, notifier, db_session):
    notifier.configured = False

    with pytest.raises(ConfigurationError):
        await otp_service.issue(EMAIL, OtpPurpose.SIGNUP)

    assert count_challenges(db_session, EMAIL, OtpPurpose.SIGNUP) == 0
    assert notifier.sent == []


# ============================================================================
# SIGNUP ENDPOINTS
# ============================================================================


def test_signup_creates_verified_user(client, notifier, db_session):
    response = client.post(
        "/auth/otp/signup",
        json={"email": "  Asha@Example.com ", "password": "jyotish123", "name": "Asha"},
    )
    assert response.status_code == 200
    assert response.json() == {"message": "OTP sent to your email."}

    email, code, purpose = notifier.sent[0]
    assert email == "asha@example.com"
    assert purpose == OtpPurpose.SIGNUP
    # Nothing is created until the code is verified
    assert db_session.query(User).count() == 0

    response = client.post("/auth/otp/signup/verify", json={"email": "asha@example.com", "otp": code})
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "asha@example.com"
    assert body["user"]["name"] == "Asha"
    assert body["user"]["email_verified_at"] is not None

    user = db_session.query(User).filter(User.email == "asha@example.com").one()
    assert pwd_context.verify("jyotish123", user.password_hash)

    replay = client.post("/auth/otp/signup/verify", json={"email": "asha@example.com", "otp": code})
    assert replay.status_code == 400
    assert replay.json() == {"message": "Invalid or expired OTP."}


def test_signup_for_registered_email_conflicts(client, db_session, notifier):
    db_session.add(User(email=EMAIL, name="Ravi", password_hash=hash_password_bcrypt("secret123")))
    db_session.commit()

    response = client.post(
        "/auth/otp/signup", json={"email": EMAIL, "password": "another123", "name": "Ravi"}
    )

    assert response.status_code == 409
    assert notifier.sent == []


def test_signup_upgrades_guest_from_checkout(client, db_session, notifier):
    guest = User(email=EMAIL, name="Guest")
    db_session.add(guest)
    db_session.commit()
    guest_id = guest.id

    client.post("/auth/otp/signup", json={"email": EMAIL, "password": "jyotish123", "name": "Meera"})
    response = client.post("/auth/otp/signup/verify", json={"email": EMAIL, "otp": notifier.last_code})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == guest_id
    assert db_session.query(User).count() == 1


def test_signup_resend_returns_retry_after(client):
    payload = {"email": EMAIL, "password": "jyotish123", "name": "Asha"}
    assert client.post("/auth/otp/signup", json=payload).status_code == 200

    response = client.post("/auth/otp/signup", json=payload)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"
    assert response.json()["retryAfter"] == 60


def test_signup_rejects_invalid_email(client, notifier):
    response = client.post(
        "/auth/otp/signup", json={"email": "not-an-email", "password": "jyotish123", "name": "Asha"}
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Please enter a valid email."
    assert notifier.sent == []


@pytest.mark.parametrize("email", ["", "   "])
def test_signup_requires_email(client, db_session, notifier, email):
    response = client.post(
        "/auth/otp/signup", json={"email": email, "password": "jyotish123", "name": "Asha"}
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Email is required"
    assert notifier.sent == []
    assert db_session.query(OtpChallenge).count() == 0


def test_reset_requires_email(client, notifier):
    response = client.post("/auth/otp/reset", json={"email": ""})

    assert response.status_code == 422
    assert notifier.sent == []


# ============================================================================
# PASSWORD RESET ENDPOINTS
# ============================================================================


@pytest.fixture
def registered_user(db_session):
    user = User(email=EMAIL, name="Ravi", password_hash=hash_password_bcrypt("old-password"))
    db_session.add(user)
    db_session.commit()
    return user


def test_password_reset_two_step_flow(client, notifier, db_session, registered_user):
    assert client.post("/auth/otp/reset", json={"email": EMAIL}).status_code == 200
    code = notifier.last_code
    assert notifier.sent[-1][2] == OtpPurpose.RESET_PASSWORD

    # Verifying does not use the code up
    for _ in range(2):
        response = client.post("/auth/otp/reset/verify", json={"email": EMAIL, "otp": code})
        assert response.status_code == 200

    response = client.post(
        "/auth/otp/reset/confirm",
        json={"email": EMAIL, "otp": code, "newPassword": "new-password"},
    )
    assert response.status_code == 200

    db_session.refresh(registered_user)
    assert pwd_context.verify("new-password", registered_user.password_hash)
    assert not pwd_context.verify("old-password", registered_user.password_hash)

    again = client.post(
        "/auth/otp/reset/confirm",
        json={"email": EMAIL, "otp": code, "newPassword": "third-password"},
    )
    assert again.status_code == 400


def test_password_reset_for_unknown_email(client, notifier):
    response = client.post("/auth/otp/reset", json={"email": "nobody@example.com"})

    assert response.status_code == 404
    assert response.json() == {"message": "No account found for this email."}
    assert notifier.sent == []

