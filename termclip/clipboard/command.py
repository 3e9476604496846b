import asyncio
import logging
from collections import namedtuple

from .backends import ClipboardProvider
from .common import (
    ClipboardType,
    ClipboardTimeout,
    MissingHandleError,
    ProcessExitError,
    ProcessSpawnError,
    decode_text,
)


async def _kill(process):
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


class CommandConfig(namedtuple('CommandConfig', ['prg', 'args'])):
    """One invocation of an external clipboard program."""

    __slots__ = ()

    def __new__(cls, prg, args=()):
        return super().__new__(cls, prg, tuple(args))

    def __str__(self):
        return " ".join((self.prg,) + self.args)

    async def execute(self, input=None, pipe_output=False, timeout=None):
        """Run the program, feeding ``input`` on stdin when given.

        Returns the decoded stdout when ``pipe_output`` is set, otherwise None.
        """
        stdin = asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL
        stdout = asyncio.subprocess.PIPE if pipe_output else asyncio.subprocess.DEVNULL
        try:
            process = await asyncio.create_subprocess_exec(
                self.prg, *self.args,
                stdin=stdin,
                stdout=stdout,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise ProcessSpawnError(self.prg, e) from e

        data = input.encode('utf-8') if input is not None else None
        try:
            output, _ = await asyncio.wait_for(process.communicate(data), timeout)
        except asyncio.TimeoutError:
            await _kill(process)
            raise ClipboardTimeout(f"clipboard provider {self.prg} timed out after {timeout}s")
        except BaseException:
            # cancelled: the child must not outlive the request
            await _kill(process)
            raise

        if process.returncode != 0:
            logging.debug(f"'{self}' exited with status {process.returncode}")
            raise ProcessExitError(self.prg, process.returncode)

        if not pipe_output:
            return None
        if output is None:
            raise MissingHandleError(f"output of {self.prg} is missing")
        return decode_text(output, self.prg)


class CommandProvider(ClipboardProvider):
    """Clipboard access through external programs.

    Primary selection commands are optional. Without them the selection
    reads as empty and writes to it are dropped, no process is started.
    """

    def __init__(self, get_cmd, set_cmd, get_primary_cmd=None, set_primary_cmd=None,
                 timeout=None):
        self.get_cmd = get_cmd
        self.set_cmd = set_cmd
        self.get_primary_cmd = get_primary_cmd
        self.set_primary_cmd = set_primary_cmd
        self.timeout = timeout

    @property
    def name(self):
        if self.get_cmd.prg != self.set_cmd.prg:
            return f"{self.get_cmd.prg}+{self.set_cmd.prg}"
        return self.get_cmd.prg

    async def get_contents(self, clipboard_type=ClipboardType.CLIPBOARD):
        if clipboard_type is ClipboardType.SELECTION:
            cmd = self.get_primary_cmd
            if cmd is None:
                return ""
        else:
            cmd = self.get_cmd
        return await cmd.execute(pipe_output=True, timeout=self.timeout)

    async def set_contents(self, contents, clipboard_type=ClipboardType.CLIPBOARD):
        if clipboard_type is ClipboardType.SELECTION:
            cmd = self.set_primary_cmd
            if cmd is None:
                return
        else:
            cmd = self.set_cmd
        await cmd.execute(input=contents, timeout=self.timeout)
