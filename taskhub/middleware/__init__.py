"""
TaskHub Backend — Middleware Package
======================================

Cross-cutting concerns applied to every request.

Middleware chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Security Headers]
            → [GZip] → [CORS] → Route

    1. Rate Limit first: over-budget requests are rejected before any work
    2. Request ID: correlation id for every later log line
    3. Logging: sees the final status and total duration
    4. Security headers, compression and CORS wrap the route's response

A 429 from the rate limiter therefore carries neither a request id nor an
access log line; the limiter logs it itself.
"""
