"""
Version 1 of the API.

These routes are mounted at the root (``/events``, ``/applications``,
``/users``, ``/login``, ``/images``) without a version prefix, which is
where existing clients expect them.
"""
