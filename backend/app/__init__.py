"""
NoteMirror Backend — Application Package Initializer
=====================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest, uvicorn
      and the `notemirror-seed` console script.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   NoteService (dual-write core)     │  ← ordering + failure policy
    ├──────────────────┬──────────────────┤
    │    NoteStore     │    FileMirror    │  ← table rows / <id>.md files
    ├──────────────────┴──────────────────┤
    │  Database (async SQLAlchemy) + disk │
    └─────────────────────────────────────┘

    The table is the record of truth. The mirror directory is a derived,
    eventually-consistent export of each note's body and is never read to
    serve a request.
"""

__version__ = "1.0.0"
