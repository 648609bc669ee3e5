"""Asynchronous aiohttp web service with MySQL users, Redis sessions, static files and WebSockets."""

__version__ = "0.1.0"