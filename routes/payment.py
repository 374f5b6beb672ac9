"""Payment blueprint backed by Razorpay checkout."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from utils.auth import current_user_id, role_required
from utils.request_validation import parse_json_request

payment_bp = Blueprint("payment", __name__)


@payment_bp.route("/create-intent", methods=["POST"])
@role_required()
def create_intent():
    """Create a Razorpay order for an existing marketplace order."""

    payload = parse_json_request(request, required_keys=("amount",))
    intent = current_app.extensions["orders"].create_payment_intent(
        current_user_id(), payload.get("order_id"), payload["amount"]
    )
    return jsonify(intent)


@payment_bp.route("/confirm", methods=["POST"])
@role_required()
def confirm():
    """Verify the checkout callback and mark the order paid."""

    payload = parse_json_request(request)
    order = current_app.extensions["orders"].confirm_payment(
        payload.get("order_id"),
        payload.get("razorpay_order_id"),
        payload.get("razorpay_payment_id"),
        payload.get("razorpay_signature"),
    )
    return jsonify(
        {
            "message": "Payment verified successfully",
            "order_id": order.id,
            "payment_status": order.payment_status,
        }
    )
