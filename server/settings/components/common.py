"""Core Django settings."""

from decouple import Csv

from server.settings.components import config

SECRET_KEY = config('DJANGO_SECRET_KEY', default='insecure-development-key')

DEBUG = config('DJANGO_DEBUG', cast=bool, default=False)

ALLOWED_HOSTS = config(
    'DJANGO_ALLOWED_HOSTS',
    cast=Csv(),
    default='localhost,127.0.0.1',
)

INSTALLED_APPS = [
    'corsheaders',
    'server.apps.projects',
]

MIDDLEWARE = [
    'server.apps.projects.middleware.RequestLogMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'server.urls'

WSGI_APPLICATION = 'server.wsgi.application'

# The gateway keeps no local state: records live in the remote stores
DATABASES: dict[str, dict[str, str]] = {}

USE_TZ = True
TIME_ZONE = 'UTC'

APPEND_SLASH = False
