"""Realtime notification and message sync service for the matrimony app.

The package is laid out in layers: ``domain`` holds plain entities and error
types, ``application`` holds the session-scoped sync logic written against the
gateway ports, ``infrastructure`` provides the SQLAlchemy gateway and websocket
fan-out, and ``interfaces`` exposes the FastAPI routes.
"""
