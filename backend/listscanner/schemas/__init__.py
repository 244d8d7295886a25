"""
List Scanner Backend — Pydantic Request/Response Schemas
=========================================================

API contracts, kept separate from the ORM models so the HTTP surface can
change without touching the persisted schema.
"""
