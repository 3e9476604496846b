import functools
import logging
import os

from .backends import ClipboardProvider, NativeProvider, NopProvider
from .command import CommandConfig, CommandProvider
from .common import (
    ClipboardError,
    ClipboardIOError,
    ClipboardTimeout,
    ClipboardType,
    MissingHandleError,
    ProcessExitError,
    ProcessSpawnError,
    ProtocolFormatError,
    TextDecodingError,
)
from .detect import PROBE_TIMEOUT, get_clipboard_provider, is_exit_success
from .term import TermProvider

_provider = None


def _env_seconds(name, default=None):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logging.warning(f"Ignoring {name}={value!r}: not a number of seconds")
        return default


def get_provider(forced=None, command_timeout=None):
    """Return the provider for this process, detecting it on first use.

    Arguments only take effect on the first call.
    """
    global _provider
    if _provider is None:
        probe_timeout = _env_seconds('TERMCLIP_PROBE_TIMEOUT', PROBE_TIMEOUT)
        if command_timeout is None:
            command_timeout = _env_seconds('TERMCLIP_COMMAND_TIMEOUT')
        _provider = get_clipboard_provider(
            probe=functools.partial(is_exit_success, timeout=probe_timeout),
            command_timeout=command_timeout,
            forced=forced or os.environ.get('TERMCLIP_PROVIDER'),
        )
    return _provider


from .manager import ClipboardManager
