"""Built-in administration panel plugin."""

from trindade.plugins.admin.plugin import AdminPlugin, create_user

__all__ = ["AdminPlugin", "create_user"]
