"""ABOUTME: Template rendering adapter so services can render email bodies without importing Flask
ABOUTME: Provides abstract interface and concrete Flask-based implementation"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask import Flask


class TemplateRenderer(ABC):
    """Abstract interface for rendering application templates (emails, error pages)."""

    @abstractmethod
    def render_template(self, template_name: str, **context: Any) -> str:
        """Render e.g. "emails/password_reset.txt" with the given context."""


class FlaskTemplateRenderer(TemplateRenderer):
    """Renders through the Flask app's Jinja2 environment, so context processors apply."""

    def __init__(self, app: "Flask") -> None:
        self.app = app

    def render_template(self, template_name: str, **context: Any) -> str:
        # Import at runtime to avoid Flask dependency at module level
        from flask import render_template

        with self.app.app_context():
            return render_template(template_name, **context)
