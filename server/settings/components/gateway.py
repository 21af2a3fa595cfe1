"""Remote store and pagination settings."""

from server.settings.components import config

# Base URLs of the remote record stores
PROJECT_SERVICE_URL = config(
    'PROJECT_SERVICE_URL',
    default='http://localhost:8001',
)
USER_SERVICE_URL = config('USER_SERVICE_URL', default='http://localhost:8002')

# Seconds to wait for a store response
STORE_REQUEST_TIMEOUT = config('STORE_REQUEST_TIMEOUT', cast=float, default=10)

# Page window bounds for collection endpoints
PAGINATION_DEFAULT_LIMIT = config(
    'PAGINATION_DEFAULT_LIMIT',
    cast=int,
    default=25,
)
PAGINATION_MAX_LIMIT = config('PAGINATION_MAX_LIMIT', cast=int, default=100)
