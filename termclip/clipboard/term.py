"""Clipboard access through the terminal's OSC 52 escape sequences.

The sequences are described at
https://invisible-island.net/xterm/ctlseqs/ctlseqs.html (Operating System
Commands, Ps = 52). Most terminals never answer the read query, so reads
fall back to an in-memory copy of whatever this process last wrote.
"""

import asyncio
import logging
import os
import select
import sys

from .backends import ClipboardProvider, NopProvider
from .common import (
    ClipboardError,
    ClipboardIOError,
    ClipboardTimeout,
    ClipboardType,
    ProtocolFormatError,
    decode_base64,
    encode_base64,
)

TTY_PATH = '/dev/tty'
READ_TIMEOUT = 0.1

OSC52_PREFIX = '\x1b]52;'
STRING_TERMINATOR = '\x1b\\'

SELECTORS = {
    ClipboardType.CLIPBOARD: '',
    ClipboardType.SELECTION: 'p',
}


def query_sequence(clipboard_type):
    return f"{OSC52_PREFIX}{SELECTORS[clipboard_type]};?{STRING_TERMINATOR}"


def set_sequence(contents, clipboard_type):
    return f"{OSC52_PREFIX}{SELECTORS[clipboard_type]};{encode_base64(contents)}{STRING_TERMINATOR}"


def parse_response(response):
    """Extract the clipboard text from ``ESC ] 52 ; <sel> ; <base64> ESC \\``."""
    text = response.decode('latin-1')
    if not (text.startswith(OSC52_PREFIX) and text.endswith(STRING_TERMINATOR)):
        logging.debug(f"unexpected clipboard escape sequence: {text!r}")
        raise ProtocolFormatError("The clipboard escape sequence does not have the expected format")
    rest = text[len(OSC52_PREFIX):-len(STRING_TERMINATOR)]
    start = rest.find(';')
    if start < 0:
        logging.debug(f"clipboard escape sequence without payload: {text!r}")
        raise ProtocolFormatError("The clipboard escape sequence has no payload")
    return decode_base64(rest[start + 1:], "terminal")


class TerminalDevice:
    """The controlling terminal, opened for one request/response exchange.

    Use as a context manager. While open, a tty is held in raw mode so the
    reply can be read byte by byte; the previous mode is restored on exit.
    """

    def __init__(self, path=TTY_PATH):
        self.path = path
        self._fd = None
        self._saved_mode = None

    def __enter__(self):
        try:
            self._fd = os.open(self.path, os.O_RDWR | getattr(os, 'O_NOCTTY', 0))
        except OSError as e:
            raise ClipboardIOError(f"cannot open {self.path}: {e}") from e
        if os.isatty(self._fd):
            try:
                self._enter_raw_mode()
            except Exception as e:
                os.close(self._fd)
                self._fd = None
                self._saved_mode = None
                raise ClipboardIOError(f"cannot configure {self.path}: {e}") from e
        return self

    def _enter_raw_mode(self):
        import termios
        import tty
        self._saved_mode = termios.tcgetattr(self._fd)
        # TCSANOW keeps any reply bytes already queued
        tty.setraw(self._fd, termios.TCSANOW)

    def __exit__(self, exc_type, exc, tb):
        try:
            if self._saved_mode is not None:
                import termios
                try:
                    termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_mode)
                except termios.error as e:
                    logging.warning(f"Could not restore mode of {self.path}: {e}")
        finally:
            os.close(self._fd)
            self._fd = None
            self._saved_mode = None
        return False

    def write(self, data):
        view = memoryview(data)
        while view:
            written = os.write(self._fd, view)
            view = view[written:]

    def read_byte(self, timeout):
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            raise ClipboardTimeout("Reading escape code response")
        data = os.read(self._fd, 1)
        if not data:
            raise ClipboardIOError(f"{self.path} closed while reading escape code response")
        return data


class TermProvider(ClipboardProvider):
    """OSC 52 clipboard with an in-memory fallback.

    Reads and writes share the terminal device, so callers must not run
    two operations on one instance at the same time (see ClipboardManager).
    Its name, "termcode", is also the value TERMCLIP_PROVIDER accepts.
    """

    def __init__(self, device_factory=TerminalDevice, output=None, read_timeout=READ_TIMEOUT):
        self._fallback = NopProvider()
        self._device_factory = device_factory
        self._output = output
        self.read_timeout = read_timeout

    @property
    def name(self):
        return "termcode"

    def query(self, clipboard_type):
        """Ask the terminal for a buffer. Blocks; raises on any failure."""
        with self._device_factory() as device:
            device.write(query_sequence(clipboard_type).encode('ascii'))
            response = bytearray()
            while True:
                byte = device.read_byte(self.read_timeout)
                response += byte
                if byte == b'\\':
                    break
        return parse_response(bytes(response))

    async def get_contents(self, clipboard_type=ClipboardType.CLIPBOARD):
        value = await self._query_terminal(clipboard_type)
        if value is None:
            logging.debug("Use fallback clipboard")
            return await self._fallback.get_contents(clipboard_type)
        return value

    async def _query_terminal(self, clipboard_type):
        loop = asyncio.get_running_loop()
        try:
            value = await loop.run_in_executor(None, self.query, clipboard_type)
        except (ClipboardError, OSError) as e:
            logging.debug(f"Terminal clipboard query failed: {e}")
            return None
        logging.debug("Got clipboard response from terminal")
        return value

    async def set_contents(self, contents, clipboard_type=ClipboardType.CLIPBOARD):
        await self._fallback.set_contents(contents, clipboard_type)
        output = self._output if self._output is not None else sys.stdout
        try:
            output.write(set_sequence(contents, clipboard_type))
            output.flush()
        except (OSError, ValueError) as e:
            raise ClipboardIOError(f"writing clipboard escape sequence failed: {e}") from e
