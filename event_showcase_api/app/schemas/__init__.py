"""
Pydantic schema definitions for API payloads.

Each domain (users, events, applications) defines its own Pydantic
models for request and response bodies.  Field names are snake_case
in Python and camelCase on the wire (``emailNotifications``,
``connectedEvent``, ``tmpName``).
"""
