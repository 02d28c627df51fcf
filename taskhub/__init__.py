"""
TaskHub Backend — Application Package
======================================

What: Task-management REST API with JWT authentication, role checks,
      per-task ownership, declarative validation, audit logging and
      rate limiting.
How:  Layered like the rest of our services:

    ┌─────────────────────────────────────┐
    │      Middleware (rate limit, ids)   │  ← cross-cutting, every request
    ├─────────────────────────────────────┤
    │   Routes + Dependencies (API Layer) │  ← auth, roles, validation, ownership
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← tokens, tasks, audit, limiter
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
