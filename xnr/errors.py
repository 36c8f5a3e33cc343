"""Exceptions raised while building or running an output tree.

Every failure is fatal to the current build: nothing here is retried and
there is no partial-success mode.
"""

import os
from pathlib import Path


def pretty_path(path: Path | str) -> str:
    """Render a path relative to the working directory when it lives below it."""
    path = str(path)
    cwd = os.getcwd()
    if path == cwd or path.startswith(cwd.rstrip(os.sep) + os.sep):
        return os.path.relpath(path, cwd)
    return path


class XnrError(Exception):
    """Base class for build and run failures."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ResolutionError(XnrError):
    """Raised when a specifier cannot be mapped to exactly one file.

    Attributes:
        mechanism: How the target was requested ("entry", "import" or "require")
        path: The unresolved candidate path
        specifier: The specifier as written in the referencing file, if any
    """

    def __init__(self, mechanism: str, path: Path | str, specifier: str | None = None):
        self.mechanism = mechanism
        self.path = Path(path)
        self.specifier = specifier
        target = pretty_path(path)
        if specifier and specifier != target:
            message = f"Bad {mechanism} target: could not resolve '{specifier}' ({target})"
        else:
            message = f"Bad {mechanism} target: could not resolve {target}"
        super().__init__(message, {"mechanism": mechanism, "path": str(path)})


class ReadError(XnrError):
    """Raised when a source file cannot be read."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        super().__init__(f"Could not read {pretty_path(path)}: {reason}")


class WriteError(XnrError):
    """Raised when an output file or directory cannot be written."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        super().__init__(f"Could not write {pretty_path(path)}: {reason}")


class SourceError(XnrError):
    """Common base for errors that point at a location in a source file."""

    kind = "Source"

    def __init__(self, path: Path | str | None, line: int, column: int, reason: str):
        self.path = Path(path) if path else None
        self.line = line
        self.column = column
        where = pretty_path(path) if path else "<input>"
        super().__init__(f"{self.kind} error in {where}:{line}:{column}: {reason}")


class TransformError(SourceError):
    """Raised when typed-dialect or JSX source cannot be converted to plain syntax."""

    kind = "Transform"


class ParseError(SourceError):
    """Raised when plain source cannot be parsed into a syntax tree."""

    kind = "Parse"
