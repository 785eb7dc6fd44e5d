"""Channel selection (guest -> b2c, signed-in -> cug) and the LiteAPI key for each."""

import logging
from datetime import datetime
from enum import Enum

from staybook.auth.identity import is_expired
from staybook.config import Settings
from staybook.errors import ConfigurationError
from staybook.schemas.auth import Identity

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    B2C = "b2c"
    CUG = "cug"


ENV_NAMES = {
    Channel.B2C: "LITEAPI_KEY_B2C",
    Channel.CUG: "LITEAPI_KEY_CUG",
}


def channel_from_identity(identity: Identity | None, now: datetime | None = None) -> Channel:
    if identity is None or is_expired(identity, now):
        return Channel.B2C
    return Channel.CUG


class ApiKeySelector:
    """Resolves the LiteAPI key for a channel. No fallback between channels."""

    def __init__(self, settings: Settings):
        self._keys = {
            Channel.B2C: settings.liteapi_key_b2c,
            Channel.CUG: settings.liteapi_key_cug,
        }
        self._resolved: dict[Channel, str] = {}

    def key_for(self, channel: Channel) -> str:
        channel = Channel(channel)
        if channel in self._resolved:
            return self._resolved[channel]

        key = (self._keys.get(channel) or "").strip()
        if not key:
            env_name = ENV_NAMES[channel]
            logger.error(f"{env_name} is not configured")
            raise ConfigurationError(
                f"{env_name} is not set or is empty. Add it to the environment and restart the server."
            )
        self._resolved[channel] = key
        return key
