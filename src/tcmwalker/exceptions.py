"""Exceptions for tcmwalker.

Startup failures (descriptor parsing, initial load) are fatal; store and
file-load failures during the session are reported to the user and leave the
displayed state untouched.
"""


class TcmWalkerError(Exception):
    """Base exception for tcmwalker errors."""

    pass


class DescriptorError(TcmWalkerError):
    """Raised when a descriptor file is missing or malformed."""

    def __init__(self, message, path=None):
        self.path = path
        if path is not None:
            message = f"{message} [{path}]"
        super().__init__(message)


class StoreError(TcmWalkerError):
    """Raised when the record store cannot run a query."""

    def __init__(self, message, sql=None):
        self.sql = sql
        super().__init__(message)


class FileLoadError(TcmWalkerError):
    """Base exception for viewer load failures."""

    def __init__(self, path, message):
        self.path = path
        super().__init__(message)


class FileMissingError(FileLoadError):
    """Raised when the file to view does not exist."""

    def __init__(self, path):
        super().__init__(path, f"File -> [{path}] not exist")


class BinaryFileError(FileLoadError):
    """Raised when the file to view looks like binary content."""

    def __init__(self, path):
        super().__init__(path, f"File -> [{path}] is binary! Can't read!")
