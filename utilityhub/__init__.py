"""
UtilityHub API — Application Package Initializer
==================================================

What: Marks the `utilityhub` directory as a Python package.
Why:  Enables module imports like `from utilityhub.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest, uvicorn,
      and the serverless entry point in api/index.py.

Architecture Note:
    Every endpoint is a thin proxy in front of a third-party API:

    ┌─────────────────────────────────────┐
    │     Middleware (CORS, ID, logs)     │  ← preflight, correlation, access log
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Tool Services (Payloads)        │  ← prompts, schemas, input rules
    ├─────────────────────────────────────┤
    │  Vendor Clients + Bounded Retry     │  ← Gemini, remove.bg over httpx
    └─────────────────────────────────────┘

    No layer keeps state between requests. The only shared object is the
    pooled httpx client owned by the application lifespan.
"""

__version__ = "1.0.0"
