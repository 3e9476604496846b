import asyncio
import logging

from .common import ClipboardType, ClipboardError


class ClipboardProvider:
    """Abstract clipboard provider."""

    @property
    def name(self):
        raise NotImplementedError

    async def get_contents(self, clipboard_type=ClipboardType.CLIPBOARD):
        raise NotImplementedError

    async def set_contents(self, contents, clipboard_type=ClipboardType.CLIPBOARD):
        raise NotImplementedError

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


class NopProvider(ClipboardProvider):
    """Keeps both buffers in process memory."""

    def __init__(self):
        self._buffers = {
            ClipboardType.CLIPBOARD: "",
            ClipboardType.SELECTION: "",
        }

    @property
    def name(self):
        return "none"

    async def get_contents(self, clipboard_type=ClipboardType.CLIPBOARD):
        return self._buffers[clipboard_type]

    async def set_contents(self, contents, clipboard_type=ClipboardType.CLIPBOARD):
        self._buffers[clipboard_type] = contents


class NativeProvider(ClipboardProvider):
    """Operating system clipboard through pyperclip.

    There is no primary selection here: reading it yields an empty string
    and writing it does nothing. Named "native" rather than after the
    platform API, since pyperclip picks the mechanism.
    """

    @property
    def name(self):
        return "native"

    async def get_contents(self, clipboard_type=ClipboardType.CLIPBOARD):
        if clipboard_type is ClipboardType.SELECTION:
            return ""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._paste)

    async def set_contents(self, contents, clipboard_type=ClipboardType.CLIPBOARD):
        if clipboard_type is ClipboardType.SELECTION:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._copy, contents)

    def _paste(self):
        import pyperclip
        try:
            return pyperclip.paste()
        except (pyperclip.PyperclipException, OSError) as e:
            logging.debug(f"pyperclip paste failed: {e}")
            raise ClipboardError(f"native clipboard read failed: {e}") from e

    def _copy(self, contents):
        import pyperclip
        try:
            pyperclip.copy(contents)
        except (pyperclip.PyperclipException, OSError) as e:
            logging.debug(f"pyperclip copy failed: {e}")
            raise ClipboardError(f"native clipboard write failed: {e}") from e
