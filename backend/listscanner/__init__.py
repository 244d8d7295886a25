"""
List Scanner Backend — Application Package Initializer
=======================================================

What: Marks the `listscanner` directory as a Python package.
Who:  Imported by uvicorn (`listscanner.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered; each layer only talks to the one below it:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (parser, list creation,  │  ← Orchestration, classification
    │            scan workflow, OCR)      │
    ├─────────────────────────────────────┤
    │  Repositories (Result-returning)    │  ← Failure normalization
    ├─────────────────────────────────────┤
    │  Store (DAOs, transactions, live    │  ← Async SQLAlchemy sessions
    │         queries) + Models           │
    └─────────────────────────────────────┘

    The text parser is a pure function and sits beside the stack; nothing
    below the list-creation service raises across its public contract.
"""

__version__ = "1.0.0"
