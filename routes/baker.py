"""Baker blueprint: onboarding, catalogue management, orders and dashboard."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from errors import ConflictError, ForbiddenError, GatewayError, NotFoundError, ValidationError
from models import db, utcnow
from models.baker_profile import BakerProfile
from models.category import Category
from models.order import Order, OrderItem
from models.product import Product
from services.dashboard import baker_dashboard
from utils.auth import current_user_id, role_required
from utils.request_validation import (
    parse_bool,
    parse_decimal,
    parse_json_request,
    request_fields,
    require_fields,
)
from utils.uploads import build_unique_filename, uploaded_files

baker_bp = Blueprint("baker", __name__)

PRODUCT_IMAGE_FOLDER = "baker-app/products"
IMAGE_TYPES = ("product_image", "profile_photo", "id_proof")


def _onboarding():
    return current_app.extensions["onboarding"]


def _orders():
    return current_app.extensions["orders"]


def _storage():
    return current_app.extensions["media_storage"]


def _own_profile() -> BakerProfile:
    profile = BakerProfile.query.filter_by(user_id=current_user_id()).first()
    if profile is None:
        raise NotFoundError("Baker profile not found", requires="profile_completion")
    return profile


def _own_product(product_id: str, action: str) -> Product:
    product = Product.query.filter_by(id=product_id, baker_id=current_user_id()).first()
    if product is None:
        raise NotFoundError(
            f"Product not found or you do not have permission to {action} it"
        )
    return product


def _category_id(value: object) -> str:
    category = db.session.get(Category, str(value))
    if category is None:
        raise ValidationError("Invalid category")
    return category.id


def _description(value: object) -> str | None:
    text = str(value or "").strip()
    return text or None


def _availability(value: object) -> bool:
    parsed = parse_bool(value)
    if parsed is None:
        raise ValidationError("is_available must be boolean")
    return parsed


def _name(value: object) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError("name must not be empty")
    return text


# Fields a baker may change on a product, and how each is normalized.
UPDATABLE_PRODUCT_FIELDS = {
    "name": _name,
    "description": _description,
    "price": lambda value: parse_decimal(value, "price"),
    "category_id": _category_id,
    "is_available": _availability,
}


def _upload_product_images(files) -> list[str]:
    limit = current_app.config.get("MAX_PRODUCT_IMAGES", 5)
    storage = _storage()
    urls: list[str] = []
    try:
        for file in uploaded_files(files, "images", limit=limit):
            urls.append(
                storage.upload(
                    file, build_unique_filename(file.filename or "image"), PRODUCT_IMAGE_FOLDER
                )
            )
    except GatewayError:
        storage.discard(urls)
        raise
    return urls


# -- onboarding -------------------------------------------------------------


@baker_bp.route("/signup/step1", methods=["POST"])
def signup_step1():
    """Start baker signup: send an OTP, or resume at profile completion."""

    payload = parse_json_request(request)
    outcome = _onboarding().signup(
        str(payload.get("name") or ""),
        str(payload.get("email") or ""),
        str(payload.get("password") or ""),
        str(payload.get("phone") or ""),
    )

    if outcome.requires == "profile_completion":
        user = outcome.user
        return jsonify(
            {
                "message": "Please complete your profile",
                "requires": "profile_completion",
                "token": outcome.token,
                "user": {
                    "id": user.id,
                    "name": user.name,
                    "email": user.email,
                    "role": user.role,
                },
            }
        )

    return jsonify({"message": "OTP sent to your email", "requires": "otp_verification"})


@baker_bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    payload = parse_json_request(request)
    user, token = _onboarding().verify_otp(payload.get("email"), payload.get("otp"))
    return jsonify(
        {
            "message": "Email verified successfully. Please complete your profile.",
            "requires": "profile_completion",
            "token": token,
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": user.role,
                "is_verified": user.is_verified,
            },
        }
    )


@baker_bp.route("/profile/complete", methods=["POST"])
@role_required("baker")
def complete_profile():
    """Submit the baker profile (multipart) for admin review."""

    profile = _onboarding().complete_profile(
        current_user_id(), request_fields(request), request.files
    )
    return (
        jsonify(
            {
                "message": "Baker profile submitted successfully. Waiting for admin approval.",
                "profile_id": profile.id,
                "verification_status": profile.verification_status,
            }
        ),
        HTTPStatus.CREATED,
    )


@baker_bp.route("/verification-status", methods=["GET"])
@role_required("baker")
def verification_status():
    return jsonify(_own_profile().status_dict())


@baker_bp.route("/profile", methods=["GET"])
@role_required("baker")
def get_profile():
    profile = _own_profile()
    baker = profile.to_dict()
    baker.update({"user": profile.user.to_dict()})
    return jsonify({"baker": baker})


# -- products ---------------------------------------------------------------


@baker_bp.route("/products", methods=["POST"])
@role_required("baker")
def create_product():
    """Create a product; only approved bakers may list products."""

    profile = BakerProfile.query.filter_by(user_id=current_user_id()).first()
    if profile is None:
        raise ForbiddenError("Please complete your baker profile first")
    if not profile.is_approved:
        raise ForbiddenError(
            "Your profile is not approved yet. Please wait for admin approval.",
            verification_status=profile.verification_status,
        )

    fields = request_fields(request)
    require_fields(fields, ("name", "price", "category_id"), "Name, price, and category are required")

    product = Product(
        baker_id=current_user_id(),
        name=_name(fields["name"]),
        description=_description(fields.get("description")),
        price=parse_decimal(fields["price"], "price"),
        category_id=_category_id(fields["category_id"]),
        is_available=True,
    )
    product.image_urls = _upload_product_images(request.files)
    db.session.add(product)
    db.session.commit()

    current_app.logger.info("Baker %s created product %s", product.baker_id, product.id)
    return (
        jsonify({"message": "Product created successfully", "product": product.to_dict()}),
        HTTPStatus.CREATED,
    )


@baker_bp.route("/products", methods=["GET"])
@role_required("baker")
def list_products():
    products = (
        Product.query.filter_by(baker_id=current_user_id())
        .order_by(Product.created_at.desc())
        .all()
    )
    return jsonify({"products": [product.to_dict() for product in products]})


@baker_bp.route("/products/<string:product_id>", methods=["PUT"])
@role_required("baker")
def update_product(product_id: str):
    """Update allow-listed product fields; uploaded images replace the current set."""

    product = _own_product(product_id, "update")
    fields = request_fields(request)

    unknown = sorted(set(fields) - set(UPDATABLE_PRODUCT_FIELDS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

    changes = {
        field: normalize(fields[field])
        for field, normalize in UPDATABLE_PRODUCT_FIELDS.items()
        if field in fields
    }
    has_images = any(f and f.filename for f in request.files.getlist("images"))
    if not changes and not has_images:
        raise ValidationError("No fields to update")

    for field, value in changes.items():
        setattr(product, field, value)
    if has_images:
        product.image_urls = _upload_product_images(request.files)
    db.session.commit()

    return jsonify({"message": "Product updated successfully", "product": product.to_dict()})


@baker_bp.route("/products/<string:product_id>", methods=["DELETE"])
@role_required("baker")
def delete_product(product_id: str):
    product = _own_product(product_id, "delete")
    if OrderItem.query.filter_by(product_id=product.id).first() is not None:
        raise ConflictError(
            "Product has existing orders. Mark it unavailable instead of deleting it."
        )
    db.session.delete(product)
    db.session.commit()
    return jsonify({"message": "Product deleted successfully"})


# -- orders -----------------------------------------------------------------


@baker_bp.route("/orders", methods=["GET"])
@role_required("baker")
def list_orders():
    """Orders containing this baker's products, showing only this baker's items."""

    baker_id = current_user_id()
    orders = (
        Order.query.join(OrderItem, OrderItem.order_id == Order.id)
        .filter(OrderItem.baker_id == baker_id)
        .distinct()
        .order_by(Order.created_at.desc())
        .all()
    )
    return jsonify(
        {
            "orders": [
                order.to_dict(items=order.items_for_baker(baker_id), include_customer=True)
                for order in orders
            ]
        }
    )


@baker_bp.route("/orders/<string:order_id>/status", methods=["PATCH"])
@role_required("baker")
def update_order_status(order_id: str):
    payload = parse_json_request(request)
    order = _orders().update_status(current_user_id(), order_id, payload.get("status"))
    return jsonify({"message": "Order status updated successfully", "status": order.status})


@baker_bp.route("/dashboard", methods=["GET"])
@role_required("baker")
def dashboard():
    return jsonify(baker_dashboard(_own_profile(), utcnow()))


# -- media ------------------------------------------------------------------


@baker_bp.route("/images", methods=["DELETE"])
@role_required("baker")
def delete_image():
    """Remove one image reference from a product or the baker's profile."""

    payload = parse_json_request(request)
    require_fields(
        payload,
        ("type", "entity_id", "image_url"),
        "Type, entity_id, and image_url are required",
    )
    image_type = payload["type"]
    image_url = payload["image_url"]
    if image_type not in IMAGE_TYPES:
        raise ValidationError(
            "Invalid type. Must be: product_image, profile_photo, or id_proof"
        )

    if image_type == "product_image":
        product = _own_product(str(payload["entity_id"]), "update")
        current_images = list(product.image_urls or [])
        if image_url not in current_images:
            raise NotFoundError("Image not found in product")
        if len(current_images) <= 1:
            raise ValidationError(
                "Cannot delete the last image. Product must have at least 1 image."
            )
        product.image_urls = [url for url in current_images if url != image_url]
        db.session.commit()
        return jsonify(
            {
                "message": "Product image deleted successfully",
                "remaining_images": len(product.image_urls),
            }
        )

    profile = _own_profile()
    column, label = (
        ("profile_photo", "profile photo")
        if image_type == "profile_photo"
        else ("id_proof_document", "ID proof document")
    )
    if getattr(profile, column) != image_url:
        raise ValidationError(f"Image URL does not match current {label}")
    setattr(profile, column, None)
    db.session.commit()
    return jsonify({"message": f"{label[0].upper()}{label[1:]} deleted successfully"})
