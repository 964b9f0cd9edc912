"""ABOUTME: Account page routes: register, login, change password, profile, password reset and logout
ABOUTME: Every page is rendered through the requesting client's theme, falling back to the defaults"""

import structlog
from flask import Blueprint, abort, current_app, redirect, request, session, url_for
from flask.typing import ResponseReturnValue
from flask_login import current_user, login_required, login_user, logout_user

from openidp.adapters.template_renderer import FlaskTemplateRenderer
from openidp.adapters.url_generator import FlaskURLGenerator
from openidp.domain.value_objects import PROFILE_CLAIMS
from openidp.entrypoints.forms import (
    ChangePasswordForm,
    ForgotPasswordForm,
    LoginForm,
    ProfileForm,
    RegistrationForm,
    ResetPasswordForm,
)
from openidp.entrypoints.views import (
    ErrorMap,
    flatten_dot_paths,
    form_errors,
    form_fields,
    get_uow,
    page_context,
    render_page,
    request_client_id,
    request_query,
    user_context,
)
from openidp.service_layer.client_service import find_client, get_client
from openidp.service_layer.exceptions import (
    InvalidCredentials,
    InvalidResetToken,
    PasswordTooWeak,
    RateLimitExceeded,
    UserAlreadyExists,
)
from openidp.service_layer.password_reset_service import (
    get_valid_token,
    request_password_reset,
    reset_password_with_token,
    send_password_reset_email,
)
from openidp.service_layer.user_service import (
    authenticate_user,
    change_password,
    register_user,
    send_password_changed_email,
    update_profile,
)
from openidp.translations import _

logger = structlog.get_logger(__name__)

user_bp = Blueprint("user", __name__)


def url_with_query(endpoint: str) -> str:
    """URL for an account page that keeps the original authorization query."""
    query = request_query()
    return f"{url_for(endpoint)}?{query}" if query else url_for(endpoint)


@user_bp.route("/register", methods=["GET", "POST"])
def register() -> ResponseReturnValue:
    get_client(get_uow(), request_client_id())
    form = RegistrationForm()
    service_errors: ErrorMap = {}

    if form.validate_on_submit():
        # After form validation, these fields are guaranteed to be non-None
        assert form.email.data is not None
        assert form.password.data is not None
        try:
            user = register_user(get_uow(), form.email.data, form.password.data)
        except UserAlreadyExists:
            service_errors["email"] = [_("That email address is already in use")]
        except PasswordTooWeak as e:
            service_errors["password"] = [str(e)]
        else:
            login_user(user)
            return redirect(f"{current_app.config['OIDC_AUTH_PATH']}?{request_query()}")

    context = page_context(_("Create an account"), errors=form_errors(form, service_errors), fields=form_fields(form))
    return render_page("register", context)


@user_bp.route("/login", methods=["GET", "POST"])
def login() -> ResponseReturnValue:
    client = get_client(get_uow(), request_client_id())
    if current_user.is_authenticated:
        return redirect(url_with_query("user.profile"))

    form = LoginForm()
    service_errors: ErrorMap = {}

    if form.validate_on_submit():
        assert form.email.data is not None
        assert form.password.data is not None
        try:
            user = authenticate_user(get_uow(), form.email.data, form.password.data)
        except InvalidCredentials as e:
            service_errors["email"] = [str(e)]
        else:
            login_user(user)
            redirect_uri = request.args.get("redirect_uri")
            if client.allows_redirect(redirect_uri):
                return redirect(redirect_uri)
            return redirect(url_with_query("user.profile"))

    context = page_context(_("Sign in"), errors=form_errors(form, service_errors), fields=form_fields(form))
    return render_page("login", context)


@user_bp.route("/change-password", methods=["GET", "POST"])
@login_required
def change_password_page() -> ResponseReturnValue:
    client = get_client(get_uow(), request_client_id())
    form = ChangePasswordForm()
    service_errors: ErrorMap = {}
    success = False

    if form.validate_on_submit():
        assert form.current.data is not None
        assert form.password.data is not None
        try:
            user = change_password(get_uow(), current_user.id, form.current.data, form.password.data)
        except InvalidCredentials:
            service_errors["current"] = [_("Password is incorrect")]
        except PasswordTooWeak as e:
            service_errors["password"] = [str(e)]
        else:
            success = True
            send_password_changed_email(
                current_app.extensions["email_adapter"],
                FlaskTemplateRenderer(current_app),
                user,
                client.client_name,
            )

    context = page_context(
        _("Change password"),
        errors=form_errors(form, service_errors),
        fields=form_fields(form),
        success=success,
        user=user_context(current_user),
    )
    return render_page("change-password", context)


@user_bp.route("/profile", methods=["GET", "POST"])
@login_required
def profile() -> ResponseReturnValue:
    client = get_client(get_uow(), request_client_id())
    form = ProfileForm()

    if form.validate_on_submit():
        changes = {name: request.form[name] for name in PROFILE_CLAIMS if name in request.form}
        picture = form.picture.data
        update_profile(
            get_uow(),
            current_app.extensions["image_storage"],
            current_user.id,
            changes,
            picture=picture.stream if picture else None,
            picture_content_type=picture.mimetype if picture else None,
        )
        redirect_uri = request.args.get("redirect_uri")
        if client.allows_redirect(redirect_uri):
            return redirect(redirect_uri)
        return redirect(url_with_query("user.profile"))

    context = page_context(
        _("Your profile"),
        form=form,
        fields={"email": current_user.email, **flatten_dot_paths(current_user.profile)},
        user=user_context(current_user),
    )
    return render_page("user-profile", context)


@user_bp.route("/forgot-password", methods=["GET", "POST"])
def forgot_password() -> ResponseReturnValue:
    client = get_client(get_uow(), request_client_id())
    form = ForgotPasswordForm()

    if form.validate_on_submit():
        assert form.email.data is not None
        expiry_hours = current_app.config["PASSWORD_RESET_EXPIRY_HOURS"]
        try:
            result = request_password_reset(get_uow(), form.email.data, expires_in_hours=expiry_hours)
        except RateLimitExceeded as e:
            # same page either way, so the response doesn't reveal the account exists
            logger.warning("password reset rate limited", error=str(e))
            result = None

        if result is not None:
            user, token = result
            send_password_reset_email(
                current_app.extensions["email_adapter"],
                FlaskTemplateRenderer(current_app),
                FlaskURLGenerator(current_app),
                user,
                token.token,
                query=request.args.to_dict(),
                client_name=client.client_name,
                expires_in_hours=expiry_hours,
            )

        context = page_context(_("Check your email"), form=form, email=form.email.data)
        return render_page("forgot-password-success", context)

    return render_page("forgot-password", page_context(_("Forgot your password?"), form=form))


@user_bp.route("/reset-password", methods=["GET", "POST"])
def reset_password() -> ResponseReturnValue:
    get_client(get_uow(), request_client_id())
    token_string = request.args.get("token", "")
    form = ResetPasswordForm()
    service_errors: ErrorMap = {}
    invalid_token = [_("Token is invalid or expired")]

    if form.validate_on_submit():
        assert form.password.data is not None
        try:
            reset_password_with_token(get_uow(), token_string, form.password.data)
        except InvalidResetToken:
            service_errors["token"] = invalid_token
        except PasswordTooWeak as e:
            service_errors["password"] = [str(e)]
        else:
            return render_page("reset-password-success", page_context(_("Password reset")))
    elif request.method == "GET" and get_valid_token(get_uow(), token_string) is None:
        service_errors["token"] = invalid_token

    context = page_context(
        _("Choose a new password"),
        errors=form_errors(form, service_errors),
        fields=form_fields(form),
        token=token_string,
    )
    return render_page("reset-password", context)


@user_bp.route("/logout")
def logout() -> ResponseReturnValue:
    if current_app.config["SESSION_COOKIE_NAME"] not in request.cookies:
        logger.error("logout requested without a session cookie", client_id=request_client_id())
        abort(404)

    logout_user()
    session.clear()

    client = find_client(get_uow(), request_client_id())
    post_logout_redirect_uri = request.args.get("post_logout_redirect_uri")
    if client is not None and client.allows_post_logout_redirect(post_logout_redirect_uri):
        return redirect(post_logout_redirect_uri)
    return redirect(url_with_query("user.login"))
