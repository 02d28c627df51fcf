"""
TaskHub Backend — Services Layer
==================================

Business logic between the routes (HTTP) and the database. Services take a
session and plain values, and raise TaskHubError subclasses; they never see
a Request.

Service Inventory:
    - access_control:  Identity, role check, ownership check (pure)
    - token_service:   JWT access/refresh issue and verification
    - password_hasher: bcrypt hashing off the event loop
    - auth_service:    register, login, refresh
    - task_service:    task storage operations
    - audit_service:   best-effort audit trail writer
    - rate_limiter:    fixed-window limiter with memory and Redis stores
"""
