"""
List Scanner Backend — Middleware Package
==========================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so the access log line and every error body
      carry the same correlation ID.
    - Logging measures the full handler duration, including store writes
      and OCR calls.
"""
