"""WSGI entry point (``gunicorn -c gunicorn.conf.py``)."""

from __future__ import annotations

from authcore import create_app

app = create_app()
