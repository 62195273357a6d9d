"""Flask front end for the license matcher (JSON API + a one-page UI)."""
from .web import app, main

__all__ = ["app", "main"]
