"""Django settings for the gateway.

Settings are split into components under ``server/settings/components``.
Values that differ between environments are read with ``config``.
"""

from server.settings.components.common import *  # noqa: F403
from server.settings.components.cors import *  # noqa: F403
from server.settings.components.gateway import *  # noqa: F403
from server.settings.components.logging import *  # noqa: F403
