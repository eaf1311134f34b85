from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from dotenv import load_dotenv
import os
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException
from occasio.extensions import db, migrate, jwt
from occasio.exceptions import OccasioError
from occasio.utils.email import mail
from datetime import timedelta
import logging

# Load environment variables
load_dotenv()


def _env_flag(name, default):
    return os.getenv(name, default).lower() in ["true", "1", "t"]


def create_app(test_config=None):
    app = Flask(__name__)

    # Set testing mode from environment variable
    app.config["TESTING"] = os.getenv("FLASK_ENV") == "testing"

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Configure database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv(
        "DATABASE_URL", "postgresql://localhost/occasio"
    )
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Configure JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "your-secret-key")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(days=1)
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"

    # Email configuration
    app.config["MAIL_SERVER"] = os.getenv("MAIL_SERVER")
    app.config["MAIL_PORT"] = int(os.getenv("MAIL_PORT", 587))
    app.config["MAIL_USE_TLS"] = _env_flag("MAIL_USE_TLS", "true")
    app.config["MAIL_USERNAME"] = os.getenv("MAIL_USERNAME")
    app.config["MAIL_PASSWORD"] = os.getenv("MAIL_PASSWORD")
    app.config["MAIL_DEFAULT_SENDER"] = os.getenv("MAIL_DEFAULT_SENDER")
    app.config["CLIENT_URL"] = os.getenv("CLIENT_URL", "http://localhost:3000")
    app.config["PASSWORD_RESET_TOKEN_MINUTES"] = int(
        os.getenv("PASSWORD_RESET_TOKEN_MINUTES", 30)
    )

    # Event scheduling
    app.config["EVENT_DEFAULT_DURATION_HOURS"] = float(
        os.getenv("EVENT_DEFAULT_DURATION_HOURS", 2)
    )
    app.config["EVENT_TIMEZONE"] = os.getenv("EVENT_TIMEZONE")
    app.config["EVENT_STATUS_WRITE_BACK"] = _env_flag("EVENT_STATUS_WRITE_BACK", "true")

    # Uploaded banners and logos
    app.config["UPLOAD_FOLDER"] = os.getenv(
        "UPLOAD_FOLDER",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "uploads"),
    )

    app.config["RATELIMIT_ENABLED"] = _env_flag("RATELIMIT_ENABLED", "true")

    if test_config:
        app.config.update(test_config)

    # Implement rate limiting using flask-limiter
    Limiter(
        get_remote_address,
        app=app,
        default_limits=["150 per minute", "10000 per hour", "100000 per day"],
        storage_uri=os.getenv("LIMITER_STORAGE_URI", "memory://"),
        strategy="fixed-window",
    )

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # Register blueprints
    from occasio.routes.user_routes import user_bp
    from occasio.routes.event_routes import event_bp
    from occasio.routes.organization_routes import organization_bp
    from occasio.routes.admin_routes import admin_bp

    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(event_bp, url_prefix="/api")
    app.register_blueprint(organization_bp, url_prefix="/api/organizations")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # Set up CORS
    cors_origins = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    app.logger.info(f"Initializing CORS with origins: {cors_origins}")

    CORS(
        app,
        resources={
            r"/api/*": {"origins": cors_origins},
        },
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["Content-Type"],
    )

    @app.errorhandler(OccasioError)
    def handle_occasio_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        db.session.rollback()
        app.logger.error(f"Unhandled error: {str(e)}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred"}), 500

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"error": reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"error": reason}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"error": "Token has expired"}), 401

    # Serve uploaded event banners and organization logos
    @app.route("/uploads/<path:filename>", endpoint="serve_upload")
    def serve_upload(filename):
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

    return app
