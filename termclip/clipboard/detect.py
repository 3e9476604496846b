"""Pick the clipboard provider for this process.

Follows the order used by neovim's clipboard provider:
https://github.com/neovim/neovim/blob/f2906a4669a2eef6d7bf86a29648793d63c98949/runtime/autoload/provider/clipboard.vim#L68-L152
"""

import logging
import os
import platform
import shutil
import subprocess
from collections import namedtuple

from .backends import NativeProvider, NopProvider
from .command import CommandConfig, CommandProvider
from .term import TermProvider

PROBE_TIMEOUT = 1.0

ProviderEntry = namedtuple('ProviderEntry', [
    'name',
    'executables',
    'env_vars',
    'probe',
    'get',
    'set',
    'get_primary',
    'set_primary',
])


def _entry(name, executables, get, set, get_primary=None, set_primary=None,
           env_vars=(), probe=None):
    return ProviderEntry(name, tuple(executables), tuple(env_vars), probe,
                         get, set, get_primary, set_primary)


PROVIDERS = (
    _entry('pasteboard', ['pbcopy', 'pbpaste'],
           get=CommandConfig('pbpaste'),
           set=CommandConfig('pbcopy')),
    _entry('wayland', ['wl-copy', 'wl-paste'], env_vars=['WAYLAND_DISPLAY'],
           get=CommandConfig('wl-paste', ['--no-newline']),
           set=CommandConfig('wl-copy', ['--type', 'text/plain']),
           get_primary=CommandConfig('wl-paste', ['-p', '--no-newline']),
           set_primary=CommandConfig('wl-copy', ['-p', '--type', 'text/plain'])),
    _entry('xclip', ['xclip'], env_vars=['DISPLAY'],
           get=CommandConfig('xclip', ['-o', '-selection', 'clipboard']),
           set=CommandConfig('xclip', ['-i', '-selection', 'clipboard']),
           get_primary=CommandConfig('xclip', ['-o']),
           set_primary=CommandConfig('xclip', ['-i'])),
    # xsel can be installed without a reachable display, so try it once
    _entry('xsel', ['xsel'], env_vars=['DISPLAY'],
           probe=CommandConfig('xsel', ['-o', '-b']),
           get=CommandConfig('xsel', ['-o', '-b']),
           set=CommandConfig('xsel', ['-i', '-b']),
           get_primary=CommandConfig('xsel', ['-o']),
           set_primary=CommandConfig('xsel', ['-i'])),
    _entry('lemonade', ['lemonade'],
           get=CommandConfig('lemonade', ['paste']),
           set=CommandConfig('lemonade', ['copy'])),
    _entry('doitclient', ['doitclient'],
           get=CommandConfig('doitclient', ['wclip', '-r']),
           set=CommandConfig('doitclient', ['wclip'])),
    _entry('win32yank', ['win32yank.exe'],
           get=CommandConfig('win32yank.exe', ['-o', '--lf']),
           set=CommandConfig('win32yank.exe', ['-i', '--crlf'])),
    _entry('termux', ['termux-clipboard-set', 'termux-clipboard-get'],
           get=CommandConfig('termux-clipboard-get'),
           set=CommandConfig('termux-clipboard-set')),
    # refresh the tmux buffer from the outer terminal and give it time to land
    _entry('tmux', ['tmux'], env_vars=['TMUX'],
           get=CommandConfig('sh', ['-c', 'tmux refresh-client -l; sleep 0.1; tmux save-buffer -']),
           set=CommandConfig('tmux', ['load-buffer', '-w', '-'])),
)

FALLBACKS = {
    'termcode': TermProvider,
    'native': NativeProvider,
    'none': NopProvider,
}

NATIVE_CLIPBOARD_SYSTEMS = {'Windows'}


def exists(executable, which=shutil.which):
    return which(executable) is not None


def env_var_is_set(name, env=None):
    env = os.environ if env is None else env
    return name in env


def is_exit_success(program, args, timeout=PROBE_TIMEOUT):
    try:
        result = subprocess.run(
            [program, *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logging.debug(f"Probe '{program} {' '.join(args)}' failed: {e}")
        return False
    return result.returncode == 0


def entry_matches(entry, env, which, probe):
    if not all(env_var_is_set(name, env) for name in entry.env_vars):
        return False
    if not all(exists(executable, which) for executable in entry.executables):
        return False
    if entry.probe is not None and not probe(entry.probe.prg, list(entry.probe.args)):
        logging.debug(f"Skipping {entry.name}: '{entry.probe}' did not succeed")
        return False
    return True


def build_command_provider(entry, timeout=None):
    return CommandProvider(entry.get, entry.set, entry.get_primary, entry.set_primary,
                           timeout=timeout)


def fallback_provider(system=None):
    system = platform.system() if system is None else system
    if system in NATIVE_CLIPBOARD_SYSTEMS:
        return NativeProvider()
    return TermProvider()


def _forced_provider(name, command_timeout):
    for entry in PROVIDERS:
        if entry.name == name:
            return build_command_provider(entry, command_timeout)
    if name in FALLBACKS:
        return FALLBACKS[name]()
    logging.warning(f"Unknown clipboard provider '{name}', detecting one instead")
    return None


def get_clipboard_provider(env=None, which=None, probe=None, system=None,
                           command_timeout=None, forced=None):
    """Run the detection cascade and return a new provider.

    ``forced`` names a provider to use without checking for it.
    """
    env = os.environ if env is None else env
    which = shutil.which if which is None else which
    probe = is_exit_success if probe is None else probe

    if forced:
        provider = _forced_provider(forced, command_timeout)
        if provider is not None:
            logging.info(f"Using forced clipboard provider {provider.name}")
            return provider

    for entry in PROVIDERS:
        if entry_matches(entry, env, which, probe):
            provider = build_command_provider(entry, command_timeout)
            logging.info(f"Using clipboard provider {provider.name}")
            return provider

    provider = fallback_provider(system)
    logging.info(f"No clipboard utility found, using {provider.name}")
    return provider
