import base64
import binascii
import enum


class ClipboardType(enum.Enum):
    CLIPBOARD = "clipboard"
    SELECTION = "selection"


class ClipboardError(Exception):
    """Base class for clipboard failures."""


class ProcessSpawnError(ClipboardError):
    def __init__(self, program, reason):
        super().__init__(f"could not start clipboard provider {program}: {reason}")
        self.program = program


class ProcessExitError(ClipboardError):
    def __init__(self, program, returncode):
        super().__init__(f"clipboard provider {program} failed (exit status {returncode})")
        self.program = program
        self.returncode = returncode


class TextDecodingError(ClipboardError):
    pass


class ProtocolFormatError(ClipboardError):
    pass


class ClipboardIOError(ClipboardError):
    pass


class ClipboardTimeout(ClipboardError):
    pass


class MissingHandleError(ClipboardError):
    pass


def decode_text(data, source):
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise TextDecodingError(f"{source} returned invalid UTF-8: {e}") from e


def encode_base64(text):
    return base64.b64encode(text.encode('utf-8')).decode('ascii')


def decode_base64(payload, source):
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ProtocolFormatError(f"{source} sent invalid base64: {e}") from e
    return decode_text(data, source)
