# Routes package init
"""
UtilityHub API — API Routes Package
=====================================

Route Inventory:
    - writing.py:           POST /api/grammar, /api/humanizer,
                            /api/paraphrase, /api/plagiarism
    - generators.py:        POST /api/hangman-ai, /api/word-scramble-ai,
                            /api/riddle-joke, /api/name-combiner-ai,
                            /api/typing-test-text
    - remove_background.py: POST /api/remove-background
    - health.py:            GET  /health

Design Principle:
    Routes are THIN: parse the request, call one service method, wrap the
    result. Credentials come from dependencies; failures are exceptions
    rendered by the handlers registered in main.py.
"""
