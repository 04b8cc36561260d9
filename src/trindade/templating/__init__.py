"""Kida template integration."""

from trindade.templating.integration import Templates, create_environment, template_name

__all__ = ["Templates", "create_environment", "template_name"]
