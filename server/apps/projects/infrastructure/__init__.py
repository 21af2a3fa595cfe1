"""Infrastructure layer for projects app.

This package contains the clients for the remote record stores:
- Project store (projects and project files)
- User store (token verification)

Keep network concerns separate from business logic.
"""
