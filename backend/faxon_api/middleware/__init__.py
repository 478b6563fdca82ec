# Middleware package init
"""
Faxon Portal API — Middleware Package
======================================

Middleware Chain:
    Request → [Request ID] → [Rate Limit] → [Access Log] → [GZip] → [CORS] → Route

    1. Request ID: correlation id for logs, error bodies and X-Request-ID
    2. Rate Limit: over-budget clients get 429 before any work
       (auth routes have a smaller window of their own; logout is exempt)
    3. Access Log: method, path, status and duration on `faxon.access`
"""
