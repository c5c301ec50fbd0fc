# Middleware package init
"""
eSync+ API — Middleware Package
================================

Middleware Chain (execution order for a request):
    Rate Limit → Request ID → Logging → GZip → CORS → Route Handler

    Starlette runs middleware in reverse order of registration, so
    create_app() adds them as CORS, GZip, Logging, Request ID, Rate Limit.
    Responses travel the chain backwards: the request ID header and the
    access-log line are both produced on the way out.
"""
