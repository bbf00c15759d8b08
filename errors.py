class OptCacheError(Exception):
    pass


class ConfigurationError(OptCacheError, ValueError):
    """Bad run parameter, e.g. an associativity outside [1, max capacity]."""


class FileAccessError(OptCacheError, OSError):
    """The trace file could not be opened or read."""


class ParseError(OptCacheError, ValueError):
    """A trace entry is not an integer line identifier.

    ``lineno`` is 1-based and counts the header row of CSV traces; it is None
    when the reader could not tell which line was at fault.
    """

    def __init__(self, path, lineno, text):
        self.path = path
        self.lineno = lineno
        self.text = text
        where = f"{path}:{lineno}" if lineno is not None else str(path)
        super().__init__(f"{where}: not a cache line number: {text!r}")
