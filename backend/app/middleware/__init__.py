# Middleware package init
"""
NoteMirror Backend — Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request id is assigned first so the logging middleware and the
    exception handlers can include it.
"""
