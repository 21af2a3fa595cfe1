"""Business logic layer for projects app.

This package contains the logic behind the gateway routes:
- Page window calculation from untrusted query values
- HATEOAS navigation links over paginated collections
- Reconstruction of the directory tree from a flat page of file records

Everything except ``project_operations`` is pure and free of I/O.
"""
