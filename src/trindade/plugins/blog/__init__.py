"""Built-in blog plugin."""

from trindade.plugins.blog.plugin import BlogPlugin, create_category, create_post, published_posts

__all__ = ["BlogPlugin", "create_category", "create_post", "published_posts"]
