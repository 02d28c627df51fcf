"""
TaskHub Backend — Route Handlers
==================================

    auth.py     POST /api/v1/auth/{register,login,refresh}
    access.py   GET  /api/v1/{admin-only,user-only}
    tasks.py    /tasks CRUD (ownership-guarded)
    health.py   GET  /health
"""
