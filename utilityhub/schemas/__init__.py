# Schemas package init
"""
UtilityHub API — Request/Response Schemas
===========================================

    - requests.py: JSON bodies of the text tools
    - common.py:   Error envelope and health check response
"""
