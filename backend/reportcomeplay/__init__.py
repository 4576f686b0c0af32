"""
Report Come Play Backend — Application Package
================================================

What: Crowd-sourced sports field reporting API (fields, reports, payouts).
Who:  Imported by uvicorn (reportcomeplay.main:app), Alembic, pytest and the seed script.

Architecture Note:
    The backend follows the same layered layout throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth guards
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Ownership rules, duplicate
    │                                     │    detection, notifications
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Side effects that leave the process (object storage, transactional email)
    live in their own services behind retry + circuit breaker wrappers.
"""

__version__ = "1.0.0"
