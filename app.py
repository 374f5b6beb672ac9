"""Application factory."""

import logging
import os
import uuid

from flask import Flask, abort, g, jsonify, request, send_from_directory
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from notifications import EmailSender, build_email_sender
from payments import PaymentGateway, build_payment_gateway
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.baker import baker_bp
from routes.category import category_bp
from routes.payment import payment_bp
from routes.user import user_bp
from services.onboarding import BakerOnboarding
from services.orders import OrderLifecycle
from storage import AbstractStorage, LocalStorage, build_storage

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(
    config_class: type[Config] = Config,
    *,
    email_sender: EmailSender | None = None,
    media_storage: AbstractStorage | None = None,
    payment_gateway: PaymentGateway | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Gateway clients default to the backends selected in the configuration;
    tests pass their own.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_handlers()

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Gateways and workflows
    email_sender = email_sender or build_email_sender(app.config)
    media_storage = media_storage or build_storage(app.config)
    payment_gateway = payment_gateway or build_payment_gateway(app.config)

    app.extensions["media_storage"] = media_storage
    app.extensions["onboarding"] = BakerOnboarding(
        email_sender,
        media_storage,
        otp_ttl_minutes=app.config.get("OTP_TTL_MINUTES", 10),
        otp_length=app.config.get("OTP_LENGTH", 6),
    )
    app.extensions["orders"] = OrderLifecycle(
        payment_gateway,
        key_id=app.config.get("RAZORPAY_KEY_ID") or "",
        key_secret=app.config.get("RAZORPAY_KEY_SECRET") or "",
        currency=app.config.get("PAYMENT_CURRENCY", "INR"),
    )

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(baker_bp, url_prefix="/api/baker")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(payment_bp, url_prefix="/api/payment")
    app.register_blueprint(category_bp, url_prefix="/api")

    @app.route("/", methods=["GET"])
    def index():
        return jsonify(
            {
                "message": "Home Baker Marketplace API",
                "version": "1.0.0",
                "endpoints": {
                    "auth": "/api/auth",
                    "baker": "/api/baker",
                    "admin": "/api/admin",
                    "user": "/api/user",
                    "payment": "/api/payment",
                    "categories": "/api/categories",
                },
            }
        )

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    @app.route("/media/<path:filename>", methods=["GET"])
    def serve_media(filename: str):
        storage = app.extensions["media_storage"]
        if not isinstance(storage, LocalStorage) or not storage.exists(filename):
            abort(404, description="File not found")
        return send_from_directory(storage.base_directory.resolve(), filename)

    # Errors
    _register_error_handlers(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )
    app.logger.setLevel(level)


def _register_jwt_handlers() -> None:
    """Render token failures with the same ``{"error": ...}`` shape as other errors."""

    def _unauthorized(message: str):
        request_id = g.get("request_id") or str(uuid.uuid4())
        return jsonify({"error": message, "request_id": request_id}), 401

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _unauthorized("Access token required")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _unauthorized("Invalid or expired token")

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _unauthorized("Invalid or expired token")


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        payload = {"error": error.description, "request_id": request_id}
        payload.update(getattr(error, "extra", {}))
        if error.code and error.code >= 500:
            app.logger.error("Request failed with %s: %s", error.code, error.description)
        response = jsonify(payload)
        response.status_code = error.code or 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        request_id = g.get("request_id") or str(uuid.uuid4())
        app.logger.exception("Unhandled application error", exc_info=error)
        payload = {
            "error": "Internal server error",
            "request_id": request_id,
        }
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
