import logging
from typing import Optional

from tortoise import Tortoise

from formmail.core.config import Settings, get_tortoise_config

logger = logging.getLogger(__name__)


async def init_lookup_database(settings_instance: Optional[Settings] = None) -> None:
	"""Open the connection the recipients check queries run on."""
	config = get_tortoise_config(settings_instance)
	await Tortoise.init(config=config)
	logger.info(f"Recipient lookup database ready ({len(config['apps']['models']['models'])} model module(s))")


async def close_lookup_database() -> None:
	await Tortoise.close_connections()
