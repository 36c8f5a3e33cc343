"""Shared data types.

Kept apart from the components so the resolver, extractor, graph builder
and rewriter can all import them without import cycles.
"""

from enum import Enum


class Mechanism(str, Enum):
    """How a file was reached."""

    ENTRY = "entry"
    IMPORT = "import"
    REQUIRE = "require"


class ModuleFormat(str, Enum):
    """Output module format, valued by its file extension."""

    MODULE = ".mjs"
    COMMONJS = ".cjs"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def for_mechanism(cls, mechanism: Mechanism) -> "ModuleFormat":
        """Format a reference made through mechanism must point at."""
        return cls.COMMONJS if mechanism is Mechanism.REQUIRE else cls.MODULE


# (specifier as written, mechanism) -> specifier to emit
SpecifierTargets = dict[tuple[str, Mechanism], str]
