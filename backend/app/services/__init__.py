# Services package init
"""
NoteMirror Backend — Services Layer
=====================================

Service Inventory:
    - NoteStore (abstract) / SQLNoteStore: the authoritative notes table
    - FileMirror: one <id>.md file per note body
    - NoteService: dual-write create/update/delete, table-only reads, audit
    - Seeder: drop, recreate and repopulate table and mirror with fixtures
"""
