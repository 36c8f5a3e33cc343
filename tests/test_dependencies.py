"""Tests for DependencyExtractor."""

import pytest

from xnr.dependencies import DependencyExtractor, is_builtin, is_internal
from xnr.types import Mechanism

SOURCE = """\
import a from './a';
export { b } from './b';
export * from './c';
const d = require('./d');
const e = require(`./e`);
const f = require(String.raw`./f`);
import('./g').then(() => {});
require.main.require('./h');
import fs from 'fs';
import path from 'node:path';
const lodash = require('lodash');
const computed = require(name);
"""


@pytest.fixture
def extractor():
    return DependencyExtractor()


class TestExtract:
    def test_recognized_shapes_in_order(self, parse, extractor):
        edges = extractor.extract(parse(SOURCE))
        assert [(edge.specifier, edge.mechanism) for edge in edges] == [
            ("./a", Mechanism.IMPORT),
            ("./b", Mechanism.IMPORT),
            ("./c", Mechanism.IMPORT),
            ("./d", Mechanism.REQUIRE),
            ("./e", Mechanism.REQUIRE),
            ("./f", Mechanism.REQUIRE),
            ("./g", Mechanism.IMPORT),
            ("./h", Mechanism.REQUIRE),
            ("lodash", Mechanism.REQUIRE),
        ]

    def test_builtins_on_request(self, parse, extractor):
        edges = extractor.extract(parse(SOURCE), include_builtins=True)
        specifiers = [edge.specifier for edge in edges]
        assert "fs" in specifiers
        assert "node:path" in specifiers

    def test_template_uses_first_segment(self, parse, extractor):
        edges = extractor.extract(parse("require(`./locale/${lang}.js`);\n"))
        assert [edge.specifier for edge in edges] == ["./locale/"]

    def test_nested_require(self, parse, extractor):
        source = "function load() {\n  return require('./lazy');\n}\n"
        edges = extractor.extract(parse(source))
        assert [edge.specifier for edge in edges] == ["./lazy"]

    def test_local_export_has_no_edge(self, parse, extractor):
        assert extractor.extract(parse("export const x = 1;\n")) == []

    def test_type_only_import_skipped(self, parse, extractor):
        source = "import type { T } from './types';\nimport { x } from './x';\n"
        edges = extractor.extract(parse(source, language="typescript"))
        assert [edge.specifier for edge in edges] == ["./x"]

    def test_import_require_clause(self, parse, extractor):
        edges = extractor.extract(parse("import x = require('./x');\n", language="typescript"))
        assert [(edge.specifier, edge.mechanism) for edge in edges] == [("./x", Mechanism.IMPORT)]


class TestClassification:
    @pytest.mark.parametrize("specifier", ["fs", "fs/promises", "node:test", "node:fs"])
    def test_builtin(self, specifier):
        assert is_builtin(specifier)

    @pytest.mark.parametrize("specifier", ["test", "lodash", "./fs"])
    def test_not_builtin(self, specifier):
        assert not is_builtin(specifier)

    @pytest.mark.parametrize("specifier", ["./a", "../a", "/abs/a", ".hidden"])
    def test_internal(self, specifier):
        assert is_internal(specifier)

    def test_package_is_external(self):
        assert not is_internal("react")
