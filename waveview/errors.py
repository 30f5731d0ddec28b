"""Exception types raised by waveview."""


class WaveviewError(Exception):
    pass


class ToolNotFoundError(WaveviewError, RuntimeError):
    pass


class InputNotFoundError(WaveviewError, FileNotFoundError):
    pass


class OutputExistsError(WaveviewError, FileExistsError):
    """Raised when the output exists and overwriting was not requested."""
    pass


class UsageError(WaveviewError, ValueError):
    """Raised for malformed size/start/duration arguments."""
    pass


class InvalidRequestError(WaveviewError, ValueError):
    pass


class NoAudioStreamError(WaveviewError, ValueError):
    """Raised when the input file has no audio stream."""
    pass
