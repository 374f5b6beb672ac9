"""Admin blueprint: baker verification, user moderation and platform overview."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from errors import ConflictError, NotFoundError, ValidationError
from models import db, utcnow
from models.baker_profile import VERIFICATION_STATUSES, BakerProfile
from models.order import Order, OrderItem
from models.product import Product
from models.user import USER_STATUSES, User
from services.dashboard import admin_dashboard
from utils.auth import current_user_id, role_required
from utils.request_validation import parse_json_request

admin_bp = Blueprint("admin", __name__)


def _serialize_baker(profile: BakerProfile) -> dict:
    data = profile.to_dict()
    data.update(
        {
            "name": profile.user.name,
            "email": profile.user.email,
            "phone": profile.user.phone,
            "is_verified": profile.user.is_verified,
        }
    )
    return data


def _review_response(profile: BakerProfile, message: str):
    return jsonify(
        {
            "message": message,
            "baker_id": profile.user_id,
            "verification_status": profile.verification_status,
            "rejection_reason": profile.rejection_reason,
        }
    )


@admin_bp.route("/bakers/pending", methods=["GET"])
@role_required("admin")
def pending_bakers():
    """Profiles awaiting review, oldest first."""

    profiles = (
        BakerProfile.query.filter_by(verification_status="pending")
        .order_by(BakerProfile.created_at.asc())
        .all()
    )
    return jsonify({"bakers": [_serialize_baker(profile) for profile in profiles]})


@admin_bp.route("/bakers", methods=["GET"])
@role_required("admin")
def list_bakers():
    query = BakerProfile.query
    status = request.args.get("status")
    if status:
        if status not in VERIFICATION_STATUSES:
            raise ValidationError("Invalid status filter")
        query = query.filter_by(verification_status=status)
    profiles = query.order_by(BakerProfile.created_at.desc()).all()
    return jsonify({"bakers": [_serialize_baker(profile) for profile in profiles]})


@admin_bp.route("/bakers/<string:baker_id>", methods=["GET"])
@role_required("admin")
def baker_details(baker_id: str):
    profile = BakerProfile.query.filter_by(user_id=baker_id).first()
    if profile is None:
        raise NotFoundError("Baker not found")
    return jsonify({"baker": _serialize_baker(profile)})


@admin_bp.route("/bakers/<string:baker_id>/approve", methods=["PATCH"])
@role_required("admin")
def approve_baker(baker_id: str):
    profile = current_app.extensions["onboarding"].approve(current_user_id(), baker_id)
    return _review_response(profile, "Baker approved successfully")


@admin_bp.route("/bakers/<string:baker_id>/reject", methods=["PATCH"])
@role_required("admin")
def reject_baker(baker_id: str):
    """Reject a baker with an optional ``rejection_reason``."""

    reason = None
    if request.content_length:
        payload = parse_json_request(request, allow_empty=True)
        reason = payload.get("rejection_reason") or None

    profile = current_app.extensions["onboarding"].reject(current_user_id(), baker_id, reason)
    return _review_response(profile, "Baker rejected")


@admin_bp.route("/users", methods=["GET"])
@role_required("admin")
def list_users():
    query = User.query
    role = request.args.get("role")
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.created_at.desc()).all()
    return jsonify({"users": [user.to_dict() for user in users]})


@admin_bp.route("/users/<string:user_id>/status", methods=["PATCH"])
@role_required("admin")
def update_user_status(user_id: str):
    payload = parse_json_request(request, required_keys=("status",))
    status = payload["status"]
    if status not in USER_STATUSES:
        raise ValidationError("Invalid status. Must be: active or blocked")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.id == current_user_id():
        raise ValidationError("You cannot change your own status")

    user.status = status
    db.session.commit()
    current_app.logger.info("Admin %s set user %s to %s", current_user_id(), user_id, status)
    return jsonify({"message": "User status updated successfully", "user": user.to_dict()})


@admin_bp.route("/products", methods=["GET"])
@role_required("admin")
def list_products():
    products = Product.query.order_by(Product.created_at.desc()).all()
    return jsonify({"products": [product.to_dict(include_baker=True) for product in products]})


@admin_bp.route("/products/<string:product_id>", methods=["DELETE"])
@role_required("admin")
def delete_product(product_id: str):
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if OrderItem.query.filter_by(product_id=product.id).first() is not None:
        raise ConflictError(
            "Product has existing orders. Mark it unavailable instead of deleting it."
        )
    db.session.delete(product)
    db.session.commit()
    current_app.logger.info("Admin %s deleted product %s", current_user_id(), product_id)
    return jsonify({"message": "Product deleted successfully"})


@admin_bp.route("/orders", methods=["GET"])
@role_required("admin")
def list_orders():
    orders = Order.query.order_by(Order.created_at.desc()).all()
    return jsonify({"orders": [order.to_dict(include_customer=True) for order in orders]})


@admin_bp.route("/dashboard", methods=["GET"])
@role_required("admin")
def dashboard():
    return jsonify(admin_dashboard(utcnow()))
