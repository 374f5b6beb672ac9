"""Product categories."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from errors import ConflictError, ValidationError
from models import db
from models.category import Category
from utils.auth import role_required
from utils.request_validation import parse_json_request

category_bp = Blueprint("category", __name__)


@category_bp.route("/categories", methods=["GET"])
def list_categories():
    categories = Category.query.order_by(Category.name.asc()).all()
    return jsonify({"categories": [category.to_dict() for category in categories]})


@category_bp.route("/categories", methods=["POST"])
@role_required("admin")
def create_category():
    payload = parse_json_request(request, required_keys=("name",))
    name = str(payload["name"]).strip()
    if not name:
        raise ValidationError("name must not be empty")

    if Category.query.filter(func.lower(Category.name) == name.lower()).first():
        raise ConflictError("Category already exists")

    category = Category(name=name)
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category already exists")

    return (
        jsonify({"message": "Category created successfully", "category": category.to_dict()}),
        HTTPStatus.CREATED,
    )
