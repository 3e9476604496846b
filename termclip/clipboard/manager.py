import asyncio
import logging

from .common import ClipboardType


class ClipboardManager:
    """Run clipboard operations against one provider, one at a time."""

    def __init__(self, provider=None):
        if provider is None:
            from . import get_provider
            provider = get_provider()
        self._provider = provider
        self._lock = asyncio.Lock()

    @property
    def provider(self):
        return self._provider

    @property
    def name(self):
        return self._provider.name

    async def get_contents(self, clipboard_type=ClipboardType.CLIPBOARD):
        async with self._lock:
            contents = await self._provider.get_contents(clipboard_type)
        logging.debug(f"Read {len(contents)} characters from {clipboard_type.value} via {self.name}")
        return contents

    async def set_contents(self, contents, clipboard_type=ClipboardType.CLIPBOARD):
        async with self._lock:
            await self._provider.set_contents(contents, clipboard_type)
        logging.debug(f"Wrote {len(contents)} characters to {clipboard_type.value} via {self.name}")
