# Routes package init
"""
NoteMirror Backend — API Routes Package
=========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - notes.py:   /api/notes CRUD and GET /api/mirror/audit
    - health.py:  GET /health (service health check)

Routes stay thin: they read the request, call NoteService, and return the
result. Ordering and failure policy live in app/services/note_service.py.
"""
