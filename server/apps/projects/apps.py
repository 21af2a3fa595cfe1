"""Django app configuration for projects app."""

from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    """Configuration for projects app."""

    name = 'server.apps.projects'
    verbose_name = 'Projects'
