"""Locating the installed entry file of a bare (third-party) specifier.

Only used to classify external dependencies for the named-import interop
shim; package internals are never traversed or rewritten.
"""

import json
import os
from pathlib import Path
from typing import Any

from xnr.errors import ResolutionError
from xnr.resolver import FileResolver
from xnr.types import Mechanism
from xnr.utils.logging import logger

# Conditions honoured in package.json "exports", in addition to any order the
# package itself declares.
EXPORT_CONDITIONS = ("node", "import", "default")


def split_package_specifier(specifier: str) -> tuple[str, str]:
    """Split a bare specifier into its package name and subpath.

    >>> split_package_specifier("@scope/pkg/lib/x")
    ('@scope/pkg', './lib/x')
    >>> split_package_specifier("lodash")
    ('lodash', '.')
    """
    parts = specifier.split("/")
    count = 2 if specifier.startswith("@") and len(parts) > 1 else 1
    name = "/".join(parts[:count])
    rest = parts[count:]
    return name, "./" + "/".join(rest) if rest else "."


def _pick_condition(target: Any) -> str | None:
    """Reduce an exports target (string, list or conditions) to a path."""
    if isinstance(target, str):
        return target
    if isinstance(target, list):
        for item in target:
            picked = _pick_condition(item)
            if picked is not None:
                return picked
        return None
    if isinstance(target, dict):
        for key, value in target.items():
            if key in EXPORT_CONDITIONS:
                picked = _pick_condition(value)
                if picked is not None:
                    return picked
    return None


def match_exports(exports: Any, subpath: str) -> str | None:
    """Find the target path for subpath in a package.json "exports" value."""
    if isinstance(exports, (str, list)):
        return _pick_condition(exports) if subpath == "." else None
    if not isinstance(exports, dict) or not exports:
        return None

    # Conditions at the top level apply to "." only
    if not any(key.startswith(".") for key in exports):
        return _pick_condition(exports) if subpath == "." else None

    if subpath in exports:
        return _pick_condition(exports[subpath])

    best: tuple[int, str, str] | None = None
    for key in exports:
        if key.count("*") != 1:
            continue
        prefix, suffix = key.split("*")
        if subpath.startswith(prefix) and subpath.endswith(suffix) and len(subpath) >= len(key) - 1:
            if best is None or len(prefix) > best[0]:
                middle = subpath[len(prefix) : len(subpath) - len(suffix)]
                best = (len(prefix), key, middle)
    if best is not None:
        target = _pick_condition(exports[best[1]])
        return target.replace("*", best[2]) if target else None
    return None


class PackageResolver:
    """Resolves bare specifiers against node_modules directories."""

    def __init__(self, file_resolver: FileResolver | None = None):
        self.file_resolver = file_resolver or FileResolver()

    def resolve(self, specifier: str, importer_dir: Path) -> Path:
        """Find the file a bare specifier loads when imported from importer_dir.

        Raises:
            ResolutionError: If no installed package provides the specifier
        """
        name, subpath = split_package_specifier(specifier)
        for directory in (importer_dir, *importer_dir.parents):
            package_dir = directory / "node_modules" / name
            if package_dir.is_dir():
                resolved = self._resolve_in_package(package_dir, subpath, specifier)
                logger.debug(f"Package {specifier} -> {resolved}")
                return resolved
        raise ResolutionError(Mechanism.IMPORT.value, importer_dir / "node_modules" / name, specifier)

    def _resolve_in_package(self, package_dir: Path, subpath: str, specifier: str) -> Path:
        manifest = self._read_manifest(package_dir)

        if "exports" in manifest:
            target = match_exports(manifest["exports"], subpath)
            if target is None:
                raise ResolutionError(Mechanism.IMPORT.value, package_dir / subpath, specifier)
            return self._resolve_file(package_dir / target, specifier)

        if subpath != ".":
            return self._resolve_file(package_dir / subpath, specifier)

        main = manifest.get("main")
        if isinstance(main, str) and main:
            return self._resolve_file(package_dir / main, specifier)
        return self._resolve_file(package_dir / "index.js", specifier)

    def _resolve_file(self, candidate: Path, specifier: str) -> Path:
        candidate = Path(os.path.normpath(candidate))
        if candidate.is_dir():
            candidate = candidate / "index"
        return self.file_resolver.resolve(candidate, ".js", Mechanism.IMPORT, specifier)

    @staticmethod
    def _read_manifest(package_dir: Path) -> dict:
        path = package_dir / "package.json"
        try:
            with open(path, encoding="utf-8") as f:
                manifest = json.load(f)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return {}
        return manifest if isinstance(manifest, dict) else {}
