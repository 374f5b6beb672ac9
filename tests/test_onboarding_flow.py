"""Tests for baker signup, email verification, profile submission and review."""

from __future__ import annotations

from datetime import timedelta
from io import BytesIO

import pytest
from flask.testing import FlaskClient
from sqlalchemy import text

from errors import ConflictError
from models import db, utcnow
from models.baker_profile import BakerProfile
from models.otp_verification import OtpVerification
from models.user import User
from services.onboarding import generate_otp

BAKER_EMAIL = "meera@example.com"
BAKER_PASSWORD = "Secret123"


def _signup(client: FlaskClient, email: str = BAKER_EMAIL):
    return client.post(
        "/api/baker/signup/step1",
        json={
            "name": "Meera",
            "email": email,
            "password": BAKER_PASSWORD,
            "phone": "9000000000",
        },
    )


def _verify(client: FlaskClient, otp: str, email: str = BAKER_EMAIL):
    return client.post("/api/baker/verify-otp", json={"email": email, "otp": otp})


def _profile_form(**overrides) -> dict:
    form = {
        "bakery_name": "Meera's Oven",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
        "id_proof_type": "aadhaar",
        "id_proof_number": "1234-5678-9012",
        "payment_method": "upi",
        "upi_id": "meera@upi",
        "bank_ifsc": "SHOULD-BE-DROPPED",
        "terms_accepted": "true",
        "item_types": '["cakes", "cookies"]',
        "is_veg": "true",
    }
    form.update(overrides)
    return form


def _verified_token(client: FlaskClient, fakes) -> str:
    assert _signup(client).status_code == 200
    response = _verify(client, fakes.email.last_otp(BAKER_EMAIL))
    assert response.status_code == 200
    return response.get_json()["token"]


def _submit_profile(client: FlaskClient, token: str, **form_overrides):
    return client.post(
        "/api/baker/profile/complete",
        data=_profile_form(**form_overrides),
        content_type="multipart/form-data",
        headers={"Authorization": f"Bearer {token}"},
    )


def _fixed_codes(monkeypatch, app, *codes: str) -> None:
    remaining = iter(codes)
    monkeypatch.setattr(
        app.extensions["onboarding"], "otp_generator", lambda length: next(remaining)
    )


def _advance_clock(monkeypatch, app, minutes: int) -> None:
    monkeypatch.setattr(
        app.extensions["onboarding"],
        "clock",
        lambda: utcnow() + timedelta(minutes=minutes),
    )


def test_generate_otp_is_numeric_and_padded():
    for _ in range(20):
        code = generate_otp(6)
        assert len(code) == 6
        assert code.isdigit()


def test_signup_sends_otp(client: FlaskClient, fakes, app):
    response = _signup(client)

    assert response.status_code == 200
    assert response.get_json() == {
        "message": "OTP sent to your email",
        "requires": "otp_verification",
    }
    assert len(fakes.email.sent) == 1
    email, otp, ttl = fakes.email.sent[0]
    assert email == BAKER_EMAIL
    assert ttl == 10
    with app.app_context():
        record = OtpVerification.query.one()
        assert record.otp == otp
        assert record.is_used is False
        assert User.query.count() == 0


def test_signup_requires_every_field(client: FlaskClient, fakes):
    response = client.post(
        "/api/baker/signup/step1",
        json={"name": "Meera", "email": BAKER_EMAIL, "password": BAKER_PASSWORD},
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "All fields are required"
    assert fakes.email.sent == []


def test_repeat_signup_within_window_resends_same_code(client: FlaskClient, fakes, app):
    _signup(client)
    _signup(client)

    assert len(fakes.email.sent) == 2
    assert fakes.email.sent[0][1] == fakes.email.sent[1][1]
    with app.app_context():
        assert OtpVerification.query.count() == 1


def test_signup_after_expiry_issues_new_code(client: FlaskClient, fakes, app, monkeypatch):
    _fixed_codes(monkeypatch, app, "111111", "222222")
    _signup(client)

    _advance_clock(monkeypatch, app, 11)
    _signup(client)

    assert [otp for _, otp, _ in fakes.email.sent] == ["111111", "222222"]
    with app.app_context():
        assert OtpVerification.query.count() == 2


def test_email_failure_surfaces_as_gateway_error(client: FlaskClient, fakes):
    fakes.email.fail = True

    response = _signup(client)

    assert response.status_code == 500
    assert response.get_json()["error"] == "Failed to send verification email."


def test_verify_otp_creates_one_unverified_baker(client: FlaskClient, fakes, app):
    _signup(client)

    response = _verify(client, fakes.email.last_otp(BAKER_EMAIL))

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["requires"] == "profile_completion"
    assert payload["token"]
    assert payload["user"]["role"] == "baker"
    assert payload["user"]["is_verified"] is False

    with app.app_context():
        bakers = User.query.filter_by(email=BAKER_EMAIL).all()
        assert len(bakers) == 1
        assert bakers[0].check_password(BAKER_PASSWORD)
        used = OtpVerification.query.filter_by(is_used=True).all()
        assert len(used) == 1
        assert used[0].user_id == bakers[0].id


def test_verify_otp_rejects_wrong_and_reused_codes(client: FlaskClient, fakes, app, monkeypatch):
    _fixed_codes(monkeypatch, app, "123456")
    _signup(client)

    response = _verify(client, "654321")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid OTP"

    assert _verify(client, "123456").status_code == 200

    response = _verify(client, "123456")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid OTP"
    with app.app_context():
        assert User.query.count() == 1


def test_expired_otp_is_rejected_and_left_unused(client: FlaskClient, fakes, app, monkeypatch):
    _signup(client)
    otp = fakes.email.last_otp(BAKER_EMAIL)

    _advance_clock(monkeypatch, app, 11)
    response = _verify(client, otp)

    assert response.status_code == 400
    assert response.get_json()["error"] == "OTP has expired. Please request a new one."
    with app.app_context():
        assert OtpVerification.query.one().is_used is False
        assert User.query.count() == 0


def test_signup_resumes_at_profile_completion(client: FlaskClient, fakes):
    _verified_token(client, fakes)

    response = _signup(client)

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["requires"] == "profile_completion"
    assert payload["token"]
    assert payload["user"]["email"] == BAKER_EMAIL
    assert len(fakes.email.sent) == 1


def test_signup_with_customer_email_conflicts(client: FlaskClient, create_user, fakes):
    create_user(BAKER_EMAIL)

    response = _signup(client)

    assert response.status_code == 400
    assert response.get_json()["error"] == "You are already registered. Please login."
    assert fakes.email.sent == []


def test_verification_status_requires_profile(client: FlaskClient, fakes):
    token = _verified_token(client, fakes)

    response = client.get(
        "/api/baker/verification-status", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 404
    assert response.get_json()["requires"] == "profile_completion"


def test_complete_profile_uploads_media_and_stays_pending(client: FlaskClient, fakes, app):
    token = _verified_token(client, fakes)

    response = _submit_profile(
        client,
        token,
        profile_photo=(BytesIO(b"photo"), "me.png"),
        id_proof_document=(BytesIO(b"%PDF"), "aadhaar.pdf"),
    )

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["verification_status"] == "pending"
    assert len(fakes.storage.uploaded) == 2

    with app.app_context():
        profile = db.session.get(BakerProfile, payload["profile_id"])
        assert profile.profile_photo.startswith("https://media.test/baker-app/profiles/")
        assert profile.id_proof_document.startswith("https://media.test/baker-app/id-proofs/")
        assert profile.item_types == ["cakes", "cookies"]
        assert profile.upi_id == "meera@upi"
        assert profile.bank_ifsc is None
        assert profile.terms_accepted_at is not None
        assert profile.user.is_verified is False

    response = client.get(
        "/api/baker/verification-status", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.get_json()["verification_status"] == "pending"


def test_second_profile_submission_conflicts(client: FlaskClient, fakes, app):
    token = _verified_token(client, fakes)
    assert _submit_profile(client, token).status_code == 201

    response = _submit_profile(client, token, bakery_name="Another Name")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Profile already submitted. Waiting for admin approval."
    with app.app_context():
        assert BakerProfile.query.count() == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"terms_accepted": "false"},
        {"bakery_name": ""},
        {"pincode": ""},
    ],
)
def test_profile_requires_fields_and_terms(client: FlaskClient, fakes, overrides):
    token = _verified_token(client, fakes)

    response = _submit_profile(client, token, **overrides)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Please fill all required fields"


def test_profile_rejects_bad_item_types(client: FlaskClient, fakes):
    token = _verified_token(client, fakes)

    response = _submit_profile(client, token, item_types="not-json")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid item_types format"


def test_failed_upload_removes_already_stored_media(client: FlaskClient, fakes, app):
    token = _verified_token(client, fakes)
    fakes.storage.fail_folders.add("baker-app/id-proofs")

    response = _submit_profile(
        client,
        token,
        profile_photo=(BytesIO(b"photo"), "me.png"),
        id_proof_document=(BytesIO(b"%PDF"), "aadhaar.pdf"),
    )

    assert response.status_code == 500
    assert fakes.storage.deleted == fakes.storage.uploaded
    assert len(fakes.storage.deleted) == 1
    with app.app_context():
        assert BakerProfile.query.count() == 0


def test_full_onboarding_scenario(client: FlaskClient, fakes, app, create_user, auth_headers):
    admin_id = create_user("admin@example.com", role="admin", verified=True)
    token = _verified_token(client, fakes)
    assert _submit_profile(client, token).status_code == 201

    login = client.post(
        "/api/auth/login", json={"email": BAKER_EMAIL, "password": BAKER_PASSWORD}
    )
    assert login.status_code == 403

    with app.app_context():
        baker_id = User.query.filter_by(email=BAKER_EMAIL).one().id

    response = client.patch(
        f"/api/admin/bakers/{baker_id}/approve", headers=auth_headers(admin_id)
    )
    assert response.status_code == 200
    assert response.get_json()["verification_status"] == "approved"

    with app.app_context():
        profile = BakerProfile.query.filter_by(user_id=baker_id).one()
        first_verified_at = profile.verified_at
        version = profile.version
        assert profile.verified_by == admin_id
        assert profile.user.is_verified is True

    again = client.patch(
        f"/api/admin/bakers/{baker_id}/approve", headers=auth_headers(admin_id)
    )
    assert again.status_code == 200
    with app.app_context():
        profile = BakerProfile.query.filter_by(user_id=baker_id).one()
        assert profile.verified_at == first_verified_at
        assert profile.version == version

    login = client.post(
        "/api/auth/login", json={"email": BAKER_EMAIL, "password": BAKER_PASSWORD}
    )
    assert login.status_code == 200
    assert login.get_json()["user"]["role"] == "baker"


def test_reject_records_reason_and_blocks_login(
    client: FlaskClient, create_baker, create_user, auth_headers, app
):
    admin_id = create_user("admin@example.com", role="admin", verified=True)
    baker_id = create_baker(BAKER_EMAIL, status="approved")

    response = client.patch(
        f"/api/admin/bakers/{baker_id}/reject",
        json={"rejection_reason": "ID proof unreadable"},
        headers=auth_headers(admin_id),
    )

    assert response.status_code == 200
    assert response.get_json()["rejection_reason"] == "ID proof unreadable"
    with app.app_context():
        profile = BakerProfile.query.filter_by(user_id=baker_id).one()
        assert profile.verification_status == "rejected"
        assert profile.user.is_verified is False

    login = client.post(
        "/api/auth/login", json={"email": BAKER_EMAIL, "password": "Secret123"}
    )
    assert login.status_code == 403


def test_review_of_unknown_baker_is_404(client: FlaskClient, create_user, auth_headers):
    admin_id = create_user("admin@example.com", role="admin", verified=True)

    response = client.patch(
        "/api/admin/bakers/missing-id/approve", headers=auth_headers(admin_id)
    )

    assert response.status_code == 404
    assert response.get_json()["error"] == "Baker not found"


def test_code_claimed_by_a_concurrent_request_is_rejected(
    client: FlaskClient, fakes, app, monkeypatch
):
    _signup(client)
    otp = fakes.email.last_otp(BAKER_EMAIL)
    onboarding = app.extensions["onboarding"]
    real_clock = onboarding.clock

    def _clock_after_competing_claim():
        db.session.execute(
            text("UPDATE otp_verifications SET is_used = :used WHERE email = :email"),
            {"used": True, "email": BAKER_EMAIL},
        )
        return real_clock()

    monkeypatch.setattr(onboarding, "clock", _clock_after_competing_claim)
    response = _verify(client, otp)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid OTP"
    with app.app_context():
        assert User.query.count() == 0


def test_verify_otp_reuses_existing_baker_account(client: FlaskClient, fakes, app, create_user):
    _signup(client)
    baker_id = create_user(BAKER_EMAIL, role="baker", name="Meera")

    response = _verify(client, fakes.email.last_otp(BAKER_EMAIL))

    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == baker_id
    with app.app_context():
        assert User.query.count() == 1
        assert OtpVerification.query.one().user_id == baker_id


def test_verify_otp_after_customer_signup_with_same_email_conflicts(
    client: FlaskClient, fakes, app
):
    assert _signup(client).status_code == 200
    customer = client.post(
        "/api/auth/signup",
        json={"name": "Meera", "email": BAKER_EMAIL, "password": "Other123"},
    )
    assert customer.status_code == 201

    response = _verify(client, fakes.email.last_otp(BAKER_EMAIL))

    assert response.status_code == 400
    assert response.get_json()["error"] == "You are already registered. Please login."
    with app.app_context():
        users = User.query.all()
        assert [(user.role, user.is_verified) for user in users] == [("user", False)]
        assert OtpVerification.query.one().is_used is False


def _bump_profile_version(baker_id: str) -> None:
    db.session.execute(
        text("UPDATE baker_profiles SET version = version + 1 WHERE user_id = :id"),
        {"id": baker_id},
    )


@pytest.mark.parametrize("action", ["approve", "reject"])
def test_review_from_stale_copy_conflicts(app, create_baker, create_user, action):
    admin_id = create_user("admin@example.com", role="admin", verified=True)
    baker_id = create_baker(BAKER_EMAIL, status="pending")
    onboarding = app.extensions["onboarding"]

    with app.app_context():
        BakerProfile.query.filter_by(user_id=baker_id).one()
        _bump_profile_version(baker_id)

        with pytest.raises(ConflictError) as excinfo:
            if action == "approve":
                onboarding.approve(admin_id, baker_id)
            else:
                onboarding.reject(admin_id, baker_id, "Blurry ID")

        assert excinfo.value.code == 400
        profile = BakerProfile.query.filter_by(user_id=baker_id).one()
        assert profile.verification_status == "pending"
        assert profile.user.is_verified is False
