"""ASGI plumbing: body reading, response sending, error pages and serving."""
