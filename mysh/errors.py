"""
Errors raised while parsing and running a command line.

Every error carries a single-line ``message`` that is shown to the user
as-is; the shell never prints a traceback for these.
"""

from enum import Enum
from typing import Optional


class RedirectKind(Enum):
    INPUT = "<"
    OUTPUT = ">"


class ShellError(Exception):
    """
    Base class for every error the shell reports and recovers from.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(ShellError):
    def __init__(self, name: str, value: str) -> None:
        super().__init__(f"Invalid value for {name}: {value!r}")
        self.name = name
        self.value = value


class EmptyPipelineError(ShellError):
    def __init__(self) -> None:
        super().__init__("Syntax error: empty command line")


class EmptyCommandError(ShellError):
    def __init__(self) -> None:
        super().__init__("Syntax error: missing command")


class MissingRedirectTargetError(ShellError):
    def __init__(self, kind: RedirectKind) -> None:
        what = "input" if kind is RedirectKind.INPUT else "output"
        super().__init__(f"Syntax error: expected {what} file after '{kind.value}'")
        self.kind = kind


class MissingArgumentError(ShellError):
    def __init__(self, command: str) -> None:
        super().__init__(f"{command}: missing argument")
        self.command = command


class DirectoryChangeError(ShellError):
    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"cd: {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class NoSuchHistoryIndexError(ShellError):
    def __init__(self, index: Optional[int] = None) -> None:
        super().__init__("No such command in history")
        self.index = index


class HistoryRecursionLimitError(ShellError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"History replay nested more than {limit} levels")
        self.limit = limit


class RedirectOpenError(ShellError):
    def __init__(self, kind: RedirectKind, path: str, cause: OSError) -> None:
        what = "Input" if kind is RedirectKind.INPUT else "Output"
        super().__init__(
            f"{what} file opening failed: {path}: {cause.strerror or cause}"
        )
        self.kind = kind
        self.path = path
        self.cause = cause


class CommandNotFoundError(ShellError):
    def __init__(self, command: str, cause: Optional[OSError] = None) -> None:
        if isinstance(cause, PermissionError):
            reason = "permission denied"
        else:
            reason = "command not found"
        super().__init__(f"{command}: {reason}")
        self.command = command
        self.cause = cause


class SpawnFailureError(ShellError):
    def __init__(self, what: str, cause: OSError) -> None:
        super().__init__(f"{what} failed: {cause.strerror or cause}")
        self.cause = cause
