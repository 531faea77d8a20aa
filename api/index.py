"""
Serverless entry point.

Hosts that auto-detect Python functions under api/ import this module and
serve the ASGI app it exports. Every /api/* path is routed here.
"""

from utilityhub.main import app

handler = app
