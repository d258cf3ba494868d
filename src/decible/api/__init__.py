"""
FastAPI REST API layer for decible.

    - routes.py: catalog, preview, geo, pricing, generation, health, metrics
    - user.py: per-user history (/api/user/history)
    - auth.py: bearer-token authentication dependencies
    - schemas.py: request models
    - dependencies.py: dependency providers
"""
