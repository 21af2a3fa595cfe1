"""Project files gateway Django project."""
