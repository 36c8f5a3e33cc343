"""Tests for FileResolver preference order."""

import os
from pathlib import Path

import pytest

from xnr.errors import ReadError, ResolutionError
from xnr.resolver import FileResolver
from xnr.types import Mechanism


@pytest.fixture
def resolver():
    return FileResolver()


class TestExactMatch:
    def test_existing_file_is_returned_unchanged(self, project, resolver):
        root = project({"a.js": "", "a.js.ts": ""})
        assert resolver.resolve(root / "a.js", ".ts") == root / "a.js"

    def test_exact_match_beats_sub_index(self, project, resolver):
        root = project({"a": "", "a.ts": ""})
        assert resolver.resolve(root / "a") == root / "a"


class TestHint:
    def test_hint_picks_matching_sibling(self, project, resolver):
        """./a with hint .ts picks a.ts over a.js."""
        root = project({"a.ts": "", "a.js": ""})
        assert resolver.resolve(root / "a", ".ts") == root / "a.ts"

    def test_hint_prefers_sibling_over_index(self, project, resolver):
        root = project({"a.tsx": "", "a/index.tsx": ""})
        assert resolver.resolve(root / "a", ".tsx") == root / "a.tsx"

    def test_hint_index_beats_fallback_sibling(self, project, resolver):
        root = project({"a.ts": "", "a/index.js": ""})
        assert resolver.resolve(root / "a", ".js") == root / "a" / "index.js"


class TestFallbackOrder:
    def test_sub_index_beats_sibling(self, project, resolver):
        """a/index.ts wins over a.js when there is no hint."""
        root = project({"a/index.ts": "", "a.js": ""})
        assert resolver.resolve(root / "a") == root / "a" / "index.ts"

    def test_typed_dialect_beats_plain(self, project, resolver):
        root = project({"a.js": "", "a.ts": "", "a.jsx": ""})
        assert resolver.resolve(root / "a") == root / "a.ts"

    def test_tsx_first(self, project, resolver):
        root = project({"a/index.ts": "", "a/index.tsx": ""})
        assert resolver.resolve(root / "a") == root / "a" / "index.tsx"

    def test_extensionless_index(self, project, resolver):
        root = project({"a/index": "", "a/index.json": ""})
        assert resolver.resolve(root / "a") == root / "a" / "index"

    def test_single_unknown_sub_index(self, project, resolver):
        root = project({"a/index.coffee": ""})
        assert resolver.resolve(root / "a") == root / "a" / "index.coffee"

    def test_single_unknown_sibling(self, project, resolver):
        root = project({"a.coffee": ""})
        assert resolver.resolve(root / "a") == root / "a.coffee"

    def test_similar_prefix_is_not_same_stem(self, project, resolver):
        root = project({"ab.js": "", "a.js": ""})
        assert resolver.resolve(root / "a") == root / "a.js"


class TestFailures:
    def test_no_candidates(self, project, resolver):
        root = project({"b.js": ""})
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve(root / "missing", "", Mechanism.IMPORT, "./missing")
        assert exc.value.mechanism == "import"
        assert exc.value.specifier == "./missing"
        assert "./missing" in str(exc.value)
        assert "Bad import target" in str(exc.value)

    def test_ambiguous_unknown_extensions(self, project, resolver):
        root = project({"a.coffee": "", "a.ls": ""})
        with pytest.raises(ResolutionError):
            resolver.resolve(root / "a")

    def test_missing_parent_directory(self, project, resolver):
        root = project({})
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve(root / "nope" / "a", "", Mechanism.REQUIRE, "./nope/a")
        assert exc.value.mechanism == "require"

    def test_message_is_relative_to_working_directory(self, project, resolver):
        root = project({})
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve(root / "lib" / "x", "", Mechanism.IMPORT)
        assert str(root) not in str(exc.value)
        assert "lib/x" in str(exc.value)

    def test_unlistable_directory_is_read_error(self, project, resolver, monkeypatch):
        root = project({"lib/index.js": ""})
        real_scandir = os.scandir

        def scandir(path):
            if Path(path) == root / "lib":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        with pytest.raises(ReadError) as exc:
            resolver.resolve(root / "lib", ".js", Mechanism.IMPORT, "./lib")
        assert "Permission denied" in str(exc.value)
