"""ABOUTME: User account service layer: registration, login, password change and profile updates
ABOUTME: Works on the Unit of Work and delegates hashing, image storage and email to adapters"""

import uuid
from collections.abc import Mapping
from typing import Any, BinaryIO

import structlog

from openidp.adapters.email import EmailAdapter
from openidp.adapters.image_storage import ImageStorage
from openidp.adapters.template_renderer import TemplateRenderer
from openidp.domain.users import User
from openidp.domain.value_objects import PICTURE_MIME_TYPES, normalise_email

from .exceptions import InvalidCredentials, PasswordTooWeak, UserAlreadyExists, UserNotFoundError
from .security import hash_password, validate_password_strength, verify_password
from .unit_of_work import AbstractUnitOfWork

logger = structlog.get_logger(__name__)

# claims a user cannot set through the profile form
PROTECTED_PROFILE_CLAIMS = frozenset({"sub", "email", "email_verified", "picture"})


def register_user(
    uow: AbstractUnitOfWork,
    email: str,
    password: str,
    profile: Mapping[str, Any] | None = None,
) -> User:
    """
    Create a new user with a password.

    Raises:
        UserAlreadyExists: If email already exists
        PasswordTooWeak: If the password fails the strength validators
    """
    email = normalise_email(email)
    with uow:
        if uow.users.get_by_email(email):
            raise UserAlreadyExists(email=email)

        user = User(email=email, password_hash="pending", profile=profile)
        is_valid, error_msg = validate_password_strength(password, user)
        if not is_valid:
            raise PasswordTooWeak(error_msg)
        user.set_password_hash(hash_password(password))

        uow.users.add(user)
        detached_user = user.create_detached_copy()
        uow.commit()

    logger.info("user registered", user_id=str(detached_user.id))
    return detached_user


def authenticate_user(uow: AbstractUnitOfWork, email: str, password: str) -> User:
    """
    Authenticate a user with email and password.

    Raises:
        InvalidCredentials: If authentication fails
    """
    with uow:
        user = uow.users.get_by_email(email)

        if not user or not user.is_active:
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        return user.create_detached_copy()


def get_user(uow: AbstractUnitOfWork, user_id: uuid.UUID) -> User:
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user.create_detached_copy()


def change_password(
    uow: AbstractUnitOfWork,
    user_id: uuid.UUID,
    current_password: str,
    new_password: str,
) -> User:
    """
    Change a user's password after checking the current one.

    Raises:
        UserNotFoundError: If the user does not exist
        InvalidCredentials: If current_password does not match
        PasswordTooWeak: If new_password fails the strength validators
    """
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentials("Password is incorrect")

        is_valid, error_msg = validate_password_strength(new_password, user)
        if not is_valid:
            raise PasswordTooWeak(error_msg)

        user.set_password_hash(hash_password(new_password))
        detached_user = user.create_detached_copy()
        uow.commit()

    logger.info("password changed", user_id=str(user_id))
    return detached_user


def expand_dot_paths(values: Mapping[str, Any]) -> dict[str, Any]:
    """Turn {"address.locality": "Leeds"} into {"address": {"locality": "Leeds"}}."""
    expanded: dict[str, Any] = {}
    for key, value in values.items():
        if "." not in key:
            expanded[key] = value
            continue
        *parents, leaf = key.split(".")
        target = expanded
        for part in parents:
            existing = target.get(part)
            if not isinstance(existing, dict):
                existing = {}
                target[part] = existing
            target = existing
        target[leaf] = value
    return expanded


def picture_key(content_type: str) -> str:
    """Storage key for a new picture: pictures/<2 char bucket>/<uuid>.<ext>"""
    file_id = uuid.uuid4().hex
    return f"pictures/{file_id[:2]}/{file_id}.{PICTURE_MIME_TYPES[content_type]}"


def update_profile(
    uow: AbstractUnitOfWork,
    image_storage: ImageStorage,
    user_id: uuid.UUID,
    changes: Mapping[str, Any],
    picture: BinaryIO | None = None,
    picture_content_type: str | None = None,
) -> User:
    """
    Merge form values into the user's profile, storing a new picture if one was uploaded.

    Dotted keys are expanded into nested mappings first. A picture is only stored
    when it is a JPEG or PNG; anything else is ignored. When a picture replaces an
    older one, the older one is deleted from storage after the profile is saved.

    Raises:
        UserNotFoundError: If the user does not exist
    """
    payload = {key: value for key, value in expand_dot_paths(changes).items() if key not in PROTECTED_PROFILE_CLAIMS}

    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        old_picture = user.picture

        if picture is not None and picture_content_type in PICTURE_MIME_TYPES:
            payload["picture"] = image_storage.upload_image_stream(
                picture, picture_key(picture_content_type), picture_content_type
            )
        elif picture is not None:
            logger.info("ignoring picture upload", user_id=str(user_id), content_type=picture_content_type)

        user.update_profile(payload)
        detached_user = user.create_detached_copy()
        uow.commit()

    if old_picture and "picture" in payload:
        image_storage.delete_image(image_storage.key_from_url(old_picture))

    return detached_user


def send_password_changed_email(
    email_adapter: EmailAdapter,
    template_renderer: TemplateRenderer,
    user: User,
    client_name: str,
) -> bool:
    """Tell the user their password was changed. Returns whether the email was sent."""
    context = {
        "user_name": user.display_name,
        "email_address": user.email,
        "client_name": client_name,
    }
    text_body = template_renderer.render_template("emails/password_changed.txt", **context)
    html_body = template_renderer.render_template("emails/password_changed.html", **context)

    success = email_adapter.send_email(
        to=[user.email],
        subject=f"Your {client_name} password has been changed",
        text_body=text_body,
        html_body=html_body,
    )
    if not success:
        logger.error("failed to send password changed email", user_id=str(user.id))
    return success
