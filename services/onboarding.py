"""Baker onboarding and verification workflow.

A baker moves through::

    NO_ACCOUNT -> OTP_PENDING -> EMAIL_VERIFIED -> PROFILE_SUBMITTED (pending)
               -> APPROVED | REJECTED

Each step is an independent request. The state is derived from the rows that
exist: an unused ``OtpVerification`` for the email, a baker ``User``, and the
``BakerProfile`` with its ``verification_status``.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Mapping

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.datastructures import MultiDict
from werkzeug.security import generate_password_hash

from errors import (
    ConflictError,
    GatewayError,
    InvalidCode,
    NotFoundError,
    OtpExpired,
    ValidationError,
)
from models import db, utcnow
from models.baker_profile import PAYMENT_METHODS, BakerProfile
from models.otp_verification import OtpVerification
from models.user import User
from notifications import EmailSender
from storage import AbstractStorage
from utils.auth import issue_token
from utils.request_validation import normalize_email, parse_bool, require_fields
from utils.uploads import build_unique_filename, uploaded_files

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = (
    "bakery_name",
    "city",
    "state",
    "pincode",
    "id_proof_type",
    "id_proof_number",
    "payment_method",
    "terms_accepted",
)

# upload field -> media folder
PROFILE_MEDIA_FOLDERS = {
    "profile_photo": "baker-app/profiles",
    "id_proof_document": "baker-app/id-proofs",
    "fssai_certificate": "baker-app/fssai-certificates",
}

UPI_FIELDS = ("upi_id",)
BANK_FIELDS = ("bank_account_number", "bank_ifsc", "account_holder_name")


def generate_otp(length: int = 6) -> str:
    """Return a zero-padded numeric one-time passcode."""

    return f"{secrets.randbelow(10 ** length):0{length}d}"


@dataclass
class SignupOutcome:
    """Next step for the client after baker signup."""

    requires: str
    user: User | None = None
    token: str | None = None


class BakerOnboarding:
    """Signup, email verification, profile submission and admin review for bakers."""

    def __init__(
        self,
        email_sender: EmailSender,
        storage: AbstractStorage,
        *,
        otp_ttl_minutes: int = 10,
        otp_length: int = 6,
        clock: Callable[[], datetime] = utcnow,
        otp_generator: Callable[[int], str] = generate_otp,
    ):
        self.email_sender = email_sender
        self.storage = storage
        self.otp_ttl = timedelta(minutes=otp_ttl_minutes)
        self.otp_ttl_minutes = otp_ttl_minutes
        self.otp_length = otp_length
        self.clock = clock
        self.otp_generator = otp_generator

    # -- step 1 ---------------------------------------------------------

    def signup(self, name: str, email: str, password: str, phone: str) -> SignupOutcome:
        """Start baker registration, or resume it for an account without a profile."""

        email = normalize_email(email)
        require_fields(
            {"name": name, "email": email, "password": password, "phone": phone},
            ("name", "email", "password", "phone"),
            "All fields are required",
        )

        existing = User.query.filter(func.lower(User.email) == email).first()
        if existing is not None:
            if existing.role != "baker" or existing.baker_profile is not None:
                raise ConflictError("You are already registered. Please login.")
            logger.info("Baker %s resumed signup at profile completion", existing.id)
            return SignupOutcome(
                "profile_completion", user=existing, token=issue_token(existing)
            )

        now = self.clock()
        record = (
            OtpVerification.query.filter(
                OtpVerification.email == email,
                OtpVerification.is_used.is_(False),
                OtpVerification.expires_at > now,
            )
            .order_by(OtpVerification.created_at.desc())
            .first()
        )

        if record is not None:
            logger.info("Resending live OTP to %s", email)
        else:
            record = OtpVerification(
                email=email,
                otp=self.otp_generator(self.otp_length),
                expires_at=now + self.otp_ttl,
                name=name.strip(),
                password_hash=generate_password_hash(password),
                phone=phone,
                is_used=False,
                created_at=now,
            )
            db.session.add(record)
            db.session.commit()
            logger.info("Issued new OTP for %s", email)

        self.email_sender.send_otp(email, record.otp, self.otp_ttl_minutes)
        return SignupOutcome("otp_verification")

    # -- step 2 ---------------------------------------------------------

    def verify_otp(self, email: str, code: str) -> tuple[User, str]:
        """Consume a matching OTP, materialize the baker account and sign a token."""

        email = normalize_email(email)
        code = str(code or "").strip()
        if not email or not code:
            raise ValidationError("Email and OTP are required")

        record = (
            OtpVerification.query.filter_by(email=email, otp=code, is_used=False)
            .order_by(OtpVerification.created_at.desc())
            .first()
        )
        if record is None:
            raise InvalidCode("Invalid OTP")
        if record.is_expired(self.clock()):
            raise OtpExpired("OTP has expired. Please request a new one.")

        user = User.query.filter(func.lower(User.email) == email).first()
        if user is None:
            user = User(
                name=record.name,
                email=email,
                password_hash=record.password_hash,
                phone=record.phone,
                role="baker",
                is_verified=False,
            )
            db.session.add(user)
        elif user.role != "baker":
            raise ConflictError("You are already registered. Please login.")

        try:
            db.session.flush()
            claimed = (
                OtpVerification.query.filter_by(id=record.id, is_used=False)
                .update({"is_used": True, "user_id": user.id}, synchronize_session=False)
            )
            if claimed != 1:
                db.session.rollback()
                raise InvalidCode("Invalid OTP")
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("This email was verified by another request. Please login.")

        logger.info("Email %s verified for baker %s", email, user.id)
        return user, issue_token(user)

    # -- step 3 ---------------------------------------------------------

    def complete_profile(
        self, user_id: str, fields: Mapping[str, object], files: MultiDict | None = None
    ) -> BakerProfile:
        """Create the pending profile, uploading any attached documents first."""

        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if BakerProfile.query.filter_by(user_id=user_id).first() is not None:
            raise ConflictError("Profile already submitted. Waiting for admin approval.")

        require_fields(fields, REQUIRED_PROFILE_FIELDS, "Please fill all required fields")
        if parse_bool(fields.get("terms_accepted")) is not True:
            raise ValidationError("Please fill all required fields")

        payment_method = str(fields["payment_method"]).strip().lower()
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError("payment_method must be one of: upi, bank")

        item_types = self._parse_item_types(fields.get("item_types"))

        pending_uploads = {}
        for field in PROFILE_MEDIA_FOLDERS:
            selected = uploaded_files(files, field, limit=1) if files else []
            if selected:
                pending_uploads[field] = selected[0]

        media_urls = self._upload_media(user_id, pending_uploads)

        now = self.clock()
        profile = BakerProfile(
            user_id=user_id,
            bakery_name=fields["bakery_name"],
            city=fields["city"],
            state=fields["state"],
            pincode=str(fields["pincode"]),
            id_proof_type=fields["id_proof_type"],
            id_proof_number=str(fields["id_proof_number"]),
            id_proof_document=media_urls.get("id_proof_document"),
            profile_photo=media_urls.get("profile_photo"),
            fssai_number=fields.get("fssai_number") or None,
            fssai_certificate=media_urls.get("fssai_certificate"),
            food_safety_declaration=bool(parse_bool(fields.get("food_safety_declaration"))),
            payment_method=payment_method,
            item_types=item_types,
            is_veg=bool(parse_bool(fields.get("is_veg"))),
            is_nonveg=bool(parse_bool(fields.get("is_nonveg"))),
            has_eggless_option=bool(parse_bool(fields.get("has_eggless_option"))),
            terms_accepted=True,
            terms_accepted_at=now,
            verification_status="pending",
            created_at=now,
        )
        for field in UPI_FIELDS:
            setattr(profile, field, fields.get(field) if payment_method == "upi" else None)
        for field in BANK_FIELDS:
            setattr(profile, field, fields.get(field) if payment_method == "bank" else None)

        db.session.add(profile)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            self.storage.discard(media_urls.values())
            raise ConflictError("Profile already submitted. Waiting for admin approval.")

        logger.info("Baker %s submitted profile %s for review", user_id, profile.id)
        return profile

    @staticmethod
    def _parse_item_types(raw: object) -> list | None:
        if raw in (None, ""):
            return None
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                raise ValidationError("Invalid item_types format") from None
        if not isinstance(raw, list):
            raise ValidationError("Invalid item_types format")
        return raw

    def _upload_media(self, user_id: str, uploads: dict) -> dict[str, str]:
        """Upload every file or none of them."""

        urls: dict[str, str] = {}
        try:
            for field, file in uploads.items():
                urls[field] = self.storage.upload(
                    file,
                    build_unique_filename(file.filename or field),
                    PROFILE_MEDIA_FOLDERS[field],
                )
        except GatewayError:
            logger.error("Profile media upload failed for baker %s", user_id)
            self.storage.discard(urls.values())
            raise
        return urls

    # -- admin review ---------------------------------------------------

    def _profile_for(self, baker_user_id: str) -> BakerProfile:
        profile = (
            BakerProfile.query.options(joinedload(BakerProfile.user))
            .filter_by(user_id=baker_user_id)
            .first()
        )
        if profile is None:
            raise NotFoundError("Baker not found")
        return profile

    def _review(self, change: Callable[[], bool]) -> bool:
        """Apply ``change`` and commit it; a stale profile version is a conflict."""

        try:
            changed = change()
            if changed:
                db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConflictError(
                "The baker profile was modified by another request. Please retry."
            )
        return changed

    def approve(self, admin_id: str, baker_user_id: str) -> BakerProfile:
        profile = self._profile_for(baker_user_id)
        now = self.clock()
        if self._review(lambda: profile.approve(admin_id, now)):
            logger.info("Admin %s approved baker %s", admin_id, baker_user_id)
        return profile

    def reject(self, admin_id: str, baker_user_id: str, reason: str | None) -> BakerProfile:
        profile = self._profile_for(baker_user_id)
        now = self.clock()
        if self._review(lambda: profile.reject(admin_id, reason, now)):
            logger.info("Admin %s rejected baker %s", admin_id, baker_user_id)
        return profile
