"""
eSync+ API — Application Package
=================================

What: Backend for the eSync+ admin console (product catalog, parameter tables,
      storage folders, sidebar configuration, data transfer).
Who:  Imported by uvicorn (`esync_api.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, queries, storage
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The category hierarchy and product code builders live in `esync_api.catalog`
    as pure functions so the routes, services and tests share one definition.
"""

__version__ = "1.0.0"
