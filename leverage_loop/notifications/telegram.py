"""Telegram event sink."""
import logging
import ssl
from dataclasses import asdict

import aiohttp
import certifi

from ..config import TelegramConfig
from ..models import StrategyEvent

logger = logging.getLogger(__name__)


def format_event(event: StrategyEvent) -> str:
    """Render an event as a short multi-line message."""
    lines = [f"<b>{event.name}</b>"]
    for key, value in asdict(event).items():
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


class TelegramEventSink:
    """Send committed strategy events to a Telegram chat."""

    def __init__(self, config: TelegramConfig) -> None:
        self.bot_token = config.bot_token
        self.chat_id = config.chat_id

    async def _send_message(self, message: str, silent: bool = True) -> bool:
        if not self.bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(url, json=payload) as response:
                    if response.status == 200:
                        return True
                    logger.error("Failed to send Telegram message: %s", response.status)
                    return False
        except aiohttp.ClientError as e:
            logger.error("Telegram request failed: %s", e)
            return False

    async def publish(self, event: StrategyEvent) -> None:
        if await self._send_message(format_event(event)):
            logger.debug("Telegram event %s sent", event.name)
