"""xnr - run JavaScript, TypeScript and JSX with node, whatever module system they mix."""

__version__ = "0.1.0"

from xnr.errors import (
    ParseError,
    ReadError,
    ResolutionError,
    TransformError,
    WriteError,
    XnrError,
)
from xnr.orchestrator import build, build_async, run, run_async, transform, transform_async

__all__ = [
    "__version__",
    "build",
    "build_async",
    "run",
    "run_async",
    "transform",
    "transform_async",
    "ParseError",
    "ReadError",
    "ResolutionError",
    "TransformError",
    "WriteError",
    "XnrError",
]
