"""
Error types raised by the linter. None of them abort a run except a
malformed configuration file, which the CLI reports and exits on.
"""


class StyleSentryError(Exception):
    pass


class StyleParseError(StyleSentryError):
    """A style file could not be parsed."""

    def __init__(self, message: str, line: int = 0):
        super().__init__(message)
        self.line = line


class MarkupParseError(StyleSentryError):
    """A markup file could not be parsed."""

    def __init__(self, message: str, line: int = 0):
        super().__init__(message)
        self.line = line


class ConfigError(StyleSentryError):
    """The configuration file exists but cannot be loaded."""
