"""Customer blueprint: catalogue browsing, reviews and orders."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import db
from models.baker_profile import BakerProfile
from models.order import Order
from models.product import Product
from models.review import Review
from models.user import User
from utils.auth import current_user_id, role_required
from utils.request_validation import parse_json_request, parse_positive_int

user_bp = Blueprint("user", __name__)


def _catalog_query():
    """Available products of approved, verified bakers."""

    return (
        Product.query.join(User, Product.baker_id == User.id)
        .join(BakerProfile, BakerProfile.user_id == User.id)
        .filter(
            Product.is_available.is_(True),
            User.is_verified.is_(True),
            BakerProfile.verification_status == "approved",
        )
    )


def _product_or_404(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


@user_bp.route("/products", methods=["GET"])
def list_products():
    query = _catalog_query()

    category = request.args.get("category")
    if category:
        query = query.filter(Product.category_id == category)

    baker_id = request.args.get("baker_id")
    if baker_id:
        query = query.filter(Product.baker_id == baker_id)

    search = (request.args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )

    products = query.order_by(Product.created_at.desc()).all()
    return jsonify({"products": [product.to_dict(include_baker=True) for product in products]})


@user_bp.route("/products/<string:product_id>", methods=["GET"])
def get_product(product_id: str):
    product = _catalog_query().filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    return jsonify({"product": product.to_dict(include_baker=True)})


@user_bp.route("/bakers", methods=["GET"])
def list_bakers():
    """Approved bakers with their public details."""

    profiles = (
        BakerProfile.query.join(User, BakerProfile.user_id == User.id)
        .filter(
            BakerProfile.verification_status == "approved",
            User.is_verified.is_(True),
        )
        .order_by(BakerProfile.bakery_name.asc())
        .all()
    )
    return jsonify(
        {
            "bakers": [
                {
                    "id": profile.user_id,
                    "name": profile.user.name,
                    "bakery_name": profile.bakery_name,
                    "city": profile.city,
                    "state": profile.state,
                    "profile_photo": profile.profile_photo,
                    "item_types": profile.item_types or [],
                    "is_veg": profile.is_veg,
                    "is_nonveg": profile.is_nonveg,
                    "has_eggless_option": profile.has_eggless_option,
                }
                for profile in profiles
            ]
        }
    )


@user_bp.route("/products/<string:product_id>/reviews", methods=["GET"])
def product_reviews(product_id: str):
    product = _product_or_404(product_id)
    reviews = sorted(product.reviews, key=lambda review: review.created_at, reverse=True)
    return jsonify({"reviews": [review.to_dict() for review in reviews]})


@user_bp.route("/reviews", methods=["POST"])
@role_required("user")
def create_review():
    """Rate a product 1-5; each customer reviews a product at most once."""

    payload = parse_json_request(request, required_keys=("product_id", "rating"))
    rating = parse_positive_int(payload["rating"], "rating")
    if rating > 5:
        raise ValidationError("rating must be between 1 and 5")

    product = _product_or_404(str(payload["product_id"]))
    user_id = current_user_id()
    if Review.query.filter_by(user_id=user_id, product_id=product.id).first() is not None:
        raise ConflictError("You have already reviewed this product")

    review = Review(
        user_id=user_id,
        product_id=product.id,
        rating=rating,
        comment=(payload.get("comment") or "").strip() or None,
    )
    db.session.add(review)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("You have already reviewed this product")

    return (
        jsonify({"message": "Review added successfully", "review": review.to_dict()}),
        HTTPStatus.CREATED,
    )


@user_bp.route("/reviews/<string:review_id>", methods=["DELETE"])
@role_required("user")
def delete_review(review_id: str):
    review = Review.query.filter_by(id=review_id, user_id=current_user_id()).first()
    if review is None:
        raise NotFoundError("Review not found or you do not have permission to delete it")
    db.session.delete(review)
    db.session.commit()
    return jsonify({"message": "Review deleted successfully"})


@user_bp.route("/orders", methods=["POST"])
@role_required("user")
def place_order():
    payload = parse_json_request(
        request, required_keys=("items", "total_amount", "delivery_address")
    )
    order = current_app.extensions["orders"].place_order(
        current_user_id(),
        payload["items"],
        payload["total_amount"],
        payload["delivery_address"],
        payload.get("payment_id"),
    )
    return (
        jsonify(
            {
                "message": "Order placed successfully",
                "order_id": order.id,
                "order": order.to_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@user_bp.route("/orders", methods=["GET"])
@role_required("user")
def list_orders():
    orders = (
        Order.query.filter_by(user_id=current_user_id())
        .order_by(Order.created_at.desc())
        .all()
    )
    return jsonify({"orders": [order.to_dict() for order in orders]})


@user_bp.route("/orders/<string:order_id>", methods=["GET"])
@role_required("user")
def get_order(order_id: str):
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    if order.user_id != current_user_id():
        raise ForbiddenError("You do not have access to this order")
    return jsonify({"order": order.to_dict()})
