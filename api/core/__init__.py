"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks every resource uses (DB wiring,
settings, logging, the error taxonomy). Resource-specific SQL and the
request-handling contract live in `resources/`.
"""
