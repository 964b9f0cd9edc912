"""ABOUTME: Flask extensions initialization and configuration
ABOUTME: Sets up Flask-Login, Flask-Session, security headers, i18n, CSRF and static files"""

import uuid

from flask import Flask, current_app, redirect, request, session, url_for
from flask.typing import ResponseReturnValue
from flask_babel import Babel
from flask_login import LoginManager
from flask_session import Session
from flask_talisman import Talisman
from flask_wtf.csrf import CSRFProtect
from whitenoise import WhiteNoise

from openidp import bootstrap
from openidp.config import FlaskBaseConfig, get_static_path
from openidp.domain.users import User

# Initialize extensions
login_manager = LoginManager()
session_store = Session()
talisman = Talisman()
babel = Babel()
csrf = CSRFProtect()


def init_extensions(app: Flask, config: FlaskBaseConfig) -> None:
    """Initialize Flask extensions with app instance."""

    login_manager.init_app(app)

    # Server side sessions, cookie named by SESSION_COOKIE_NAME
    session_store.init_app(app)

    talisman.init_app(
        app,
        force_https=config.FORCE_HTTPS,  # False in development
        strict_transport_security=True,
        session_cookie_secure=config.FORCE_HTTPS,
        content_security_policy={
            "default-src": "'self'",
            "script-src": "'self'",
            "style-src": "'self' 'unsafe-inline'",
            "img-src": "'self' data: https:",
            "form-action": "'self'",
        },
    )

    babel.init_app(app, locale_selector=get_locale)

    csrf.init_app(app)

    # Initialise whitenoise - for serving staticfiles
    app.wsgi_app = WhiteNoise(app.wsgi_app, root=str(get_static_path()), prefix="static/")  # type: ignore[method-assign]


def get_locale() -> str:
    """Get the best language match for the user."""
    supported_languages = current_app.config.get("LANGUAGES", ["en"])

    # the authorization request can pass ui_locales, e.g. "fr-CA fr en"
    for requested in request.args.get("ui_locales", "").split():
        language = requested.split("-")[0]
        if language in supported_languages:
            session["language"] = language
            return language

    if "language" in session and session["language"] in supported_languages:
        return str(session["language"])

    return request.accept_languages.best_match(supported_languages) or supported_languages[0]


@login_manager.user_loader
def load_user(user_id: str) -> User | None:
    """Load user from database for Flask-Login."""
    try:
        user_uuid = uuid.UUID(user_id)
    except (ValueError, TypeError):
        return None

    uow = bootstrap.bootstrap(start_orm=False, session_factory=current_app.extensions["session_factory"])
    with uow:
        db_user = uow.users.get(user_uuid)
        if db_user and db_user.is_active:
            return db_user.create_detached_copy()
        return None


@login_manager.unauthorized_handler
def unauthorized() -> ResponseReturnValue:
    """Send anonymous users to the login page, keeping the authorization query."""
    query = request.query_string.decode("utf-8")
    login_url = url_for("user.login")
    return redirect(f"{login_url}?{query}" if query else login_url)
