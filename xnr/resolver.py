"""File resolution for extension-less and directory specifiers."""

import os
from pathlib import Path

from xnr.errors import ReadError, ResolutionError
from xnr.types import Mechanism
from xnr.utils.constants import FALLBACK_EXTENSION_ORDER, INDEX_STEM
from xnr.utils.logging import logger


class FileResolver:
    """Finds the single real file a candidate path denotes.

    Preference order, first match wins:
      1. the candidate itself, if it is a file
      a. <name><hint> next to it
      b. <name>/index<hint>
      c. <name>/index<ext> for ext in [hint, .tsx, .ts, .mjs, .cjs, .jsx, .js]
      d. <name><ext> for the same list
      e. <name>/index with no extension
      f. the only <name>/index.* entry
      g. the only <name>.* entry
    """

    def resolve(
        self,
        candidate: Path,
        hint: str = "",
        mechanism: Mechanism = Mechanism.IMPORT,
        specifier: str | None = None,
    ) -> Path:
        """Resolve candidate to an existing file.

        Args:
            candidate: Absolute path as referenced (maybe without extension)
            hint: Likely extension inherited from the referencing edge
            mechanism: How the file was requested, for error messages
            specifier: The specifier as written, for error messages

        Raises:
            ResolutionError: If no unique file matches
            ReadError: If a directory on the way cannot be listed
        """
        if candidate.is_file():
            return candidate

        name = candidate.name
        same_stem: set[str] = set()
        has_subdirectory = False
        try:
            with os.scandir(candidate.parent) as entries:
                for entry in entries:
                    if entry.name != name and not entry.name.startswith(name + "."):
                        continue
                    if entry.is_file():
                        same_stem.add(entry.name)
                    elif entry.is_dir() and entry.name == name:
                        has_subdirectory = True
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ResolutionError(mechanism.value, candidate, specifier) from e
        except OSError as e:
            raise ReadError(candidate.parent, str(e)) from e

        sub_index: set[str] = set()
        if has_subdirectory:
            try:
                with os.scandir(candidate) as entries:
                    for entry in entries:
                        if entry.name == INDEX_STEM or entry.name.startswith(INDEX_STEM + "."):
                            if entry.is_file():
                                sub_index.add(entry.name)
            except OSError as e:
                raise ReadError(candidate, str(e)) from e

        found = self._pick(name, hint, same_stem, sub_index)
        if found is None:
            raise ResolutionError(mechanism.value, candidate, specifier)

        kind, filename = found
        resolved = candidate / filename if kind == "index" else candidate.parent / filename
        logger.debug(f"Resolved {candidate} -> {resolved}")
        return resolved

    @staticmethod
    def _pick(
        name: str, hint: str, same_stem: set[str], sub_index: set[str]
    ) -> tuple[str, str] | None:
        """Apply the preference order to the listed candidates."""
        if hint:
            if name + hint in same_stem:
                return ("sibling", name + hint)
            if INDEX_STEM + hint in sub_index:
                return ("index", INDEX_STEM + hint)

        order = (hint, *FALLBACK_EXTENSION_ORDER)
        for ext in order:
            if INDEX_STEM + ext in sub_index:
                return ("index", INDEX_STEM + ext)
        for ext in order:
            if name + ext in same_stem:
                return ("sibling", name + ext)

        if INDEX_STEM in sub_index:
            return ("index", INDEX_STEM)
        if len(sub_index) == 1:
            return ("index", next(iter(sub_index)))
        if len(same_stem) == 1:
            return ("sibling", next(iter(same_stem)))
        return None
