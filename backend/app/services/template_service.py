# backend/app/services/template_service.py
"""
Template rendering service.

Provides centralized Jinja2 rendering for email templates with a shared
set of filters and common context variables.
"""

from datetime import date, datetime, time
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from ..core.config import settings
from ..core.constants import BRAND_NAME, SAUNA_LOCATION
from .base import BaseService

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateService:
    """
    Centralized template rendering service using Jinja2.

    Uses dependency injection pattern - no singleton.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        directory = template_dir or TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(directory),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._register_custom_filters()

    def _register_custom_filters(self):
        """Register custom Jinja2 filters."""

        def cents(value: int) -> str:
            """Format an amount in cents as dollars."""
            return f"${value / 100:,.2f}"

        self.env.filters["cents"] = cents

        def format_date(value: Union[date, datetime, str], format_str: str = "%A, %B %-d, %Y") -> str:
            if isinstance(value, str):
                return value  # Already formatted
            return value.strftime(format_str)

        self.env.filters["format_date"] = format_date

        def format_time(value: Union[time, datetime, str], format_str: str = "%-I:%M %p") -> str:
            if isinstance(value, str):
                return value  # Already formatted
            return value.strftime(format_str)

        self.env.filters["format_time"] = format_time

    def get_common_context(self) -> Dict[str, Any]:
        """
        Get common context variables used across all templates.

        Returns:
            Dictionary of common template variables
        """
        return {
            "brand_name": BRAND_NAME,
            "location": SAUNA_LOCATION,
            "current_year": datetime.now().year,
            "frontend_url": settings.frontend_url,
        }

    @BaseService.measure_operation("render_template")
    def render_template(self, template_name: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Path to template relative to templates directory
            context: Dictionary of template variables
            **kwargs: Additional template variables

        Returns:
            Rendered template as string

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            self.logger.error(f"Template not found: {template_name}")
            raise

        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)
        return template.render(full_context)
