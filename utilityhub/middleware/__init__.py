# Middleware package init
"""
UtilityHub API — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS Gate] → Route Handler

    1. Request ID first: every later log line and error envelope can use it
    2. Logging: captures status and duration, preflights included
    3. CORS Gate last: answers OPTIONS before routing, and stamps headers on
       every response produced below it, error envelopes included

    The order is reversed for responses:
    Response ← [Request ID] ← [Logging] ← [CORS Gate] ← Route Handler
"""
