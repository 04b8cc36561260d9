"""Testing utilities for trindade applications."""

from trindade.testing.client import TestClient

__all__ = ["TestClient"]
