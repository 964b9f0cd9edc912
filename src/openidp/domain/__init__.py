"""Domain models for OpenIDP."""

from .clients import Client
from .password_reset import PasswordResetToken, generate_reset_token
from .themes import Layout, Template, Theme
from .users import User

__all__ = ["Client", "Layout", "PasswordResetToken", "Template", "Theme", "User", "generate_reset_token"]
