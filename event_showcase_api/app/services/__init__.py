"""
Service layer abstraction.

Each service encapsulates business logic for a domain and talks to
SQLite through ``core.db``.  Services receive the application
``Settings`` explicitly; API handlers stay thin and only translate
service errors into HTTP responses.
"""
