"""
asgi.py -- Process entry point for the dashboard API.

Settings are read from the environment exactly once, here, and injected into
the application factory. Nothing below api/ reads the environment itself.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import load_settings

app = create_app(load_settings())
