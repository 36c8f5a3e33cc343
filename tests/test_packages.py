"""Tests for bare-specifier lookup in node_modules."""

import json

import pytest

from xnr.errors import ResolutionError
from xnr.packages import PackageResolver, match_exports, split_package_specifier


class TestSplitSpecifier:
    @pytest.mark.parametrize(
        "specifier, expected",
        [
            ("lodash", ("lodash", ".")),
            ("lodash/fp/map", ("lodash", "./fp/map")),
            ("@scope/pkg", ("@scope/pkg", ".")),
            ("@scope/pkg/sub", ("@scope/pkg", "./sub")),
        ],
    )
    def test_split(self, specifier, expected):
        assert split_package_specifier(specifier) == expected


class TestMatchExports:
    def test_string_is_root_only(self):
        assert match_exports("./main.js", ".") == "./main.js"
        assert match_exports("./main.js", "./other") is None

    def test_top_level_conditions(self):
        exports = {"require": "./main.cjs", "import": "./main.mjs"}
        assert match_exports(exports, ".") == "./main.mjs"

    def test_nested_conditions(self):
        exports = {".": {"node": {"import": "./node.mjs"}, "default": "./browser.js"}}
        assert match_exports(exports, ".") == "./node.mjs"

    def test_subpath_pattern(self):
        exports = {"./*": "./lib/*.js", "./features/*": "./dist/features/*.js"}
        assert match_exports(exports, "./features/x") == "./dist/features/x.js"
        assert match_exports(exports, "./y") == "./lib/y.js"

    def test_fallback_array(self):
        assert match_exports({".": [{"worker": "./w.js"}, "./main.js"]}, ".") == "./main.js"

    def test_unexported_subpath(self):
        assert match_exports({".": "./main.js"}, "./private") is None


class TestPackageResolver:
    @pytest.fixture
    def resolver(self):
        return PackageResolver()

    def test_main_field(self, project, resolver):
        root = project(
            {
                "node_modules/pkg/package.json": json.dumps({"main": "lib/entry"}),
                "node_modules/pkg/lib/entry.js": "",
            }
        )
        assert resolver.resolve("pkg", root / "src") == root / "node_modules" / "pkg" / "lib" / "entry.js"

    def test_index_fallback(self, project, resolver):
        root = project({"node_modules/pkg/index.js": ""})
        assert resolver.resolve("pkg", root) == root / "node_modules" / "pkg" / "index.js"

    def test_deep_import_without_exports(self, project, resolver):
        root = project({"node_modules/pkg/package.json": "{}", "node_modules/pkg/util/index.js": ""})
        assert resolver.resolve("pkg/util", root) == root / "node_modules" / "pkg" / "util" / "index.js"

    def test_nearest_node_modules_wins(self, project, resolver):
        root = project(
            {
                "node_modules/pkg/index.js": "",
                "app/node_modules/pkg/index.js": "",
            }
        )
        assert resolver.resolve("pkg", root / "app" / "src") == root / "app" / "node_modules" / "pkg" / "index.js"

    def test_blocked_by_exports(self, project, resolver):
        root = project(
            {
                "node_modules/pkg/package.json": json.dumps({"exports": {".": "./index.js"}}),
                "node_modules/pkg/index.js": "",
                "node_modules/pkg/private.js": "",
            }
        )
        with pytest.raises(ResolutionError):
            resolver.resolve("pkg/private", root)

    def test_not_installed(self, project, resolver):
        root = project({})
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve("ghost", root)
        assert exc.value.specifier == "ghost"
