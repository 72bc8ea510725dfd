"""
Campus Scheduler — Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request ID is assigned first so the access log line carries it; the
    logging middleware sees the final status code and duration on the way out.
"""
