"""Influence Lab site backend.

This package contains:
- SQLite schema + generic repository for blog posts, projects and LED screens
- Upload store for images posted through the admin forms
- Contact-form relay to Telegram and a small translation proxy
- FastAPI app that exposes everything to the static site
"""

__all__ = [
    "settings",
    "logging_conf",
]
