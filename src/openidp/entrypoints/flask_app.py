"""ABOUTME: Flask application factory with configuration, blueprints, and error handling
ABOUTME: Creates the app and wires the database, default templates, email and picture storage into it"""

from pathlib import Path

import structlog
from flask import Flask, Response, render_template, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

import openidp.logging
from openidp import config
from openidp.adapters import database
from openidp.adapters.default_templates import DefaultTemplateCatalog
from openidp.adapters.email import get_email_adapter
from openidp.adapters.image_storage import LocalImageStorage
from openidp.entrypoints.extensions import init_extensions
from openidp.service_layer.exceptions import ClientIdRequired, NotFoundError

logger = structlog.get_logger(__name__)


def create_app(config_name: str = "") -> Flask:
    """
    Flask application factory.

    Args:
        config_name: Configuration name (development, testing, production)

    Returns:
        Configured Flask application instance
    """
    openidp.logging.logging_setup(config.get_log_level())

    app = Flask(
        __name__,
        template_folder=str(config.get_templates_path()),
        static_folder=str(config.get_static_path()),
    )

    flask_config = config.get_config(config_name)
    app.config.from_object(flask_config)

    # Trust 1 layer of proxy (the reverse proxy in front of the app)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore[method-assign]

    init_services(app, flask_config)
    init_extensions(app, flask_config)
    register_context_processors(app)
    register_blueprints(app)
    register_error_handlers(app)
    register_request_handlers(app)

    logger.info("OpenIDP application startup", env=flask_config.FLASK_ENV)

    return app


def init_services(app: Flask, flask_config: config.FlaskBaseConfig) -> None:
    """Build the adapters the routes use and keep them on app.extensions."""
    database.start_mappers()
    app.extensions["session_factory"] = database.create_session_factory(flask_config.SQLALCHEMY_DATABASE_URI)

    # fail at startup rather than on the first request for a page
    default_templates = DefaultTemplateCatalog(config.get_templates_path())
    default_templates.validate()
    app.extensions["default_templates"] = default_templates

    app.extensions["email_adapter"] = get_email_adapter(flask_config.EMAIL_BACKEND)
    app.extensions["image_storage"] = LocalImageStorage(
        Path(flask_config.PICTURE_STORAGE_DIR), flask_config.PICTURE_BASE_URL
    )


def register_context_processors(app: Flask) -> None:
    """Register template context processors."""
    from .context_processors import static_versioning_context_processor

    app.context_processor(static_versioning_context_processor)


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""
    from .blueprints.health import health_bp
    from .blueprints.media import media_bp
    from .blueprints.user import user_bp

    app.register_blueprint(user_bp, url_prefix="/user")
    app.register_blueprint(health_bp)
    app.register_blueprint(media_bp)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for common HTTP errors and service lookups."""

    @app.errorhandler(ClientIdRequired)
    def client_id_required(error: ClientIdRequired) -> tuple[str, int]:
        logger.warning("page requested without client_id", path=request.path)
        return render_template("errors/400.html", message=str(error)), 400

    @app.errorhandler(NotFoundError)
    def lookup_not_found(error: NotFoundError) -> tuple[str, int]:
        logger.warning("lookup failed", path=request.path, error=str(error))
        return render_template("errors/404.html"), 404

    @app.errorhandler(400)
    def bad_request(error: HTTPException) -> tuple[str, int]:
        return render_template("errors/400.html", message=error.description), 400

    @app.errorhandler(403)
    def forbidden(error: HTTPException) -> tuple[str, int]:
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(error: HTTPException) -> tuple[str, int]:
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def internal_error(error: HTTPException) -> tuple[str, int]:
        logger.error("server error", error=str(error))
        return render_template("errors/500.html"), 500


def register_request_handlers(app: Flask) -> None:
    """Register before and after request handlers."""

    @app.before_request
    def bind_log_context() -> None:
        openidp.logging.bind_request_context(path=request.path, client_id=request.args.get("client_id"))

    @app.after_request
    def add_cache_headers_for_authenticated_users(response: Response) -> Response:
        """Stop browsers caching pages that show a logged in user's details."""
        if current_user.is_authenticated:
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"

        return response
