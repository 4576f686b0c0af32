"""
Report Come Play Backend — Middleware Package
===============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route Handler

    1. Request ID first so every later log line, including rate-limit
       warnings and 429 bodies, carries the correlation ID
    2. Logging records status and duration of everything below it,
       rejected requests included
    3. Rate limiting rejects abusive clients before any route work
"""
