import asyncio
import os
import shutil
import sys
import tempfile
import unittest
from unittest import mock

from termclip.clipboard import (
    ClipboardTimeout,
    ClipboardType,
    CommandConfig,
    CommandProvider,
    ProcessExitError,
    ProcessSpawnError,
    TextDecodingError,
)

PY = sys.executable


def python(code):
    return CommandConfig(PY, ['-c', code])


def file_provider(path, primary_path=None):
    """A provider whose 'clipboard' is a file, copied in and out by Python."""
    def getter(p):
        return python(f"import sys; sys.stdout.buffer.write(open({p!r}, 'rb').read())")

    def setter(p):
        return python(f"import sys; open({p!r}, 'wb').write(sys.stdin.buffer.read())")

    if primary_path is None:
        return CommandProvider(getter(path), setter(path))
    return CommandProvider(getter(path), setter(path), getter(primary_path), setter(primary_path))


class CommandProviderTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.path = os.path.join(self.tmp, 'clipboard')
        self.primary_path = os.path.join(self.tmp, 'primary')
        for p in (self.path, self.primary_path):
            open(p, 'wb').close()

    def tearDown(self):
        shutil.rmtree(self.tmp)

    async def test_round_trip(self):
        provider = file_provider(self.path)
        for text in ["hello", "", "multi\nline\n", "café 日本 \U0001f600"]:
            await provider.set_contents(text, ClipboardType.CLIPBOARD)
            self.assertEqual(await provider.get_contents(ClipboardType.CLIPBOARD), text)

    async def test_primary_commands_use_separate_buffer(self):
        provider = file_provider(self.path, self.primary_path)
        await provider.set_contents("main", ClipboardType.CLIPBOARD)
        await provider.set_contents("primary", ClipboardType.SELECTION)
        self.assertEqual(await provider.get_contents(ClipboardType.CLIPBOARD), "main")
        self.assertEqual(await provider.get_contents(ClipboardType.SELECTION), "primary")

    async def test_missing_primary_commands_never_spawn(self):
        provider = file_provider(self.path)
        with mock.patch('asyncio.create_subprocess_exec') as spawn:
            self.assertEqual(await provider.get_contents(ClipboardType.SELECTION), "")
            self.assertIsNone(await provider.set_contents("ignored", ClipboardType.SELECTION))
        spawn.assert_not_called()

    async def test_get_exit_failure_names_program(self):
        failing = CommandConfig(PY, ['-c', 'import sys; sys.exit(3)'])
        provider = CommandProvider(failing, python("pass"))
        with self.assertRaises(ProcessExitError) as ctx:
            await provider.get_contents()
        self.assertEqual(ctx.exception.program, PY)
        self.assertEqual(ctx.exception.returncode, 3)
        self.assertIn(PY, str(ctx.exception))

    async def test_set_exit_failure_names_program(self):
        failing = python("import sys; sys.stdin.read(); sys.exit(1)")
        provider = CommandProvider(python("pass"), failing)
        with self.assertRaises(ProcessExitError) as ctx:
            await provider.set_contents("text")
        self.assertIn(PY, str(ctx.exception))

    async def test_spawn_failure(self):
        missing = CommandConfig('termclip-no-such-program-xyz')
        provider = CommandProvider(missing, missing)
        with self.assertRaises(ProcessSpawnError) as ctx:
            await provider.get_contents()
        self.assertEqual(ctx.exception.program, 'termclip-no-such-program-xyz')

    async def test_invalid_utf8_output(self):
        provider = CommandProvider(python("import sys; sys.stdout.buffer.write(b'\\xff\\xfe')"),
                                   python("pass"))
        with self.assertRaises(TextDecodingError):
            await provider.get_contents()

    async def test_timeout_kills_hung_program(self):
        provider = CommandProvider(python("import time; time.sleep(30)"), python("pass"),
                                   timeout=0.2)
        with self.assertRaises(ClipboardTimeout):
            await provider.get_contents()

    async def test_cancelled_get_kills_program(self):
        marker = os.path.join(self.tmp, 'finished')
        provider = CommandProvider(
            python(f"import time; time.sleep(1.5); open({marker!r}, 'w').close()"),
            python("pass"))
        task = asyncio.create_task(provider.get_contents())
        await asyncio.sleep(0.3)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        await asyncio.sleep(2.0)
        self.assertFalse(os.path.exists(marker))

    async def test_stderr_is_discarded(self):
        provider = CommandProvider(
            python("import sys; sys.stderr.write('noise'); sys.stdout.write('ok')"),
            python("pass"))
        self.assertEqual(await provider.get_contents(), "ok")


class CommandNameTests(unittest.TestCase):
    def test_same_program(self):
        provider = CommandProvider(CommandConfig('xclip', ['-o']), CommandConfig('xclip', ['-i']))
        self.assertEqual(provider.name, 'xclip')

    def test_different_programs(self):
        provider = CommandProvider(CommandConfig('pbpaste'), CommandConfig('pbcopy'))
        self.assertEqual(provider.name, 'pbpaste+pbcopy')

    def test_config_is_immutable_tuple(self):
        cmd = CommandConfig('wl-paste', ['--no-newline'])
        self.assertEqual(cmd.args, ('--no-newline',))
        self.assertEqual(str(cmd), 'wl-paste --no-newline')
        with self.assertRaises(AttributeError):
            cmd.prg = 'other'


if __name__ == '__main__':
    unittest.main()
