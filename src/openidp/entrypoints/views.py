"""ABOUTME: Helpers that build the context passed to themed account pages
ABOUTME: Shapes form and service errors into one field to messages mapping"""

from collections.abc import Mapping
from typing import Any

from flask import current_app, request
from flask_wtf import FlaskForm
from flask_wtf.csrf import generate_csrf

from openidp.bootstrap import bootstrap, bootstrap_theme_service
from openidp.domain.users import User
from openidp.service_layer.theme_service import ThemeService
from openidp.service_layer.unit_of_work import AbstractUnitOfWork

# never echoed back into a page
_HIDDEN_FIELD_TYPES = frozenset({"PasswordField", "CSRFTokenField", "FileField", "SubmitField"})

ErrorMap = dict[str, list[str]]


def get_uow() -> AbstractUnitOfWork:
    return bootstrap(start_orm=False, session_factory=current_app.extensions["session_factory"])


def get_theme_service() -> ThemeService:
    return bootstrap_theme_service(get_uow(), current_app.extensions["default_templates"])


def request_client_id() -> str | None:
    return request.args.get("client_id") or None


def request_query() -> str:
    return request.query_string.decode("utf-8")


def form_errors(form: FlaskForm | None = None, extra: Mapping[str, list[str]] | None = None) -> ErrorMap:
    """Merge WTForms errors and service errors into {field: [message, ...]}."""
    errors: ErrorMap = {}
    if form is not None:
        for field_name, messages in form.errors.items():
            errors.setdefault(field_name, []).extend(str(message) for message in messages)
    for field_name, messages in (extra or {}).items():
        errors.setdefault(field_name, []).extend(str(message) for message in messages)
    return errors


def form_fields(form: FlaskForm | None) -> dict[str, Any]:
    if form is None:
        return {}
    return {field.name: field.data for field in form if field.type not in _HIDDEN_FIELD_TYPES}


def flatten_dot_paths(values: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Inverse of expand_dot_paths, used to prefill the profile form."""
    flat: dict[str, Any] = {}
    for key, value in values.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_dot_paths(value, prefix=f"{name}."))
        else:
            flat[name] = value
    return flat


def user_context(user: User) -> dict[str, Any]:
    return {
        "email": user.email,
        "display_name": user.display_name,
        "picture": user.picture,
        "email_verified": user.email_verified,
    }


def page_context(
    title: str,
    form: FlaskForm | None = None,
    errors: ErrorMap | None = None,
    fields: Mapping[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Context every account page receives, plus any page specific values."""
    return {
        "title": title,
        "client_id": request_client_id(),
        "query": request_query(),
        "csrf_token": generate_csrf(),
        "error": errors if errors is not None else form_errors(form),
        "fields": dict(fields) if fields is not None else form_fields(form),
        **extra,
    }


def render_page(page: str, context: Mapping[str, Any]) -> str:
    return get_theme_service().render_themed_template(request_client_id(), page, context)
