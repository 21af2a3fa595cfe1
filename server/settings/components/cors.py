"""Cross-origin settings for browser clients."""

from corsheaders.defaults import default_headers
from decouple import Csv

from server.settings.components import config

CORS_ALLOWED_ORIGINS = config(
    'CORS_ORIGIN',
    cast=Csv(),
    default='http://localhost:3000',
)

CORS_ALLOW_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'OPTIONS')

# Browsers may only send TokenID once it is allowed here
CORS_ALLOW_HEADERS = (*default_headers, 'tokenid')
