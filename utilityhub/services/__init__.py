# Services package init
"""
UtilityHub API — Services Layer
=================================

What:  Business logic between the routes (HTTP) and the vendors.
How:   Services are built per request by the dependencies in
       utilityhub/dependencies.py and injected into routes.

Service Inventory:
    - retry:               Bounded retry loop shared by every vendor client
    - TextGenerationService (abstract): prompt in, text or JSON out
    - GeminiService:       Concrete implementation over Gemini's REST API
    - RemoveBgService:     remove.bg client (buffered and pass-through uploads)
    - WritingToolsService: Grammar, humanizer, paraphrase, plagiarism
    - GameContentService:  Hangman, word scramble, riddle/joke, name combiner,
                           typing test
"""
