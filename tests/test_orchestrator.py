"""End-to-end tests for build, run and transform."""

import asyncio

import pytest

from xnr import build, build_async, run, transform
from xnr.errors import ResolutionError, WriteError, XnrError
from xnr.utils.constants import INTERPRETER_DIRECTIVE, REQUIRE_PRELUDE

MIXED_PROJECT = {
    "src/index.ts": (
        "import { greet } from './greet';\n"
        "const config = require('../config');\n"
        "const name: string = config.name;\n"
        "console.log(greet(name));\n"
    ),
    "src/greet.ts": "export const greet = (name: string): string => `hello ${name}`;\n",
    "config/index.js": "module.exports = { name: 'xnr' };\n",
}


def snapshot(directory):
    """Relative path -> bytes for every file below directory."""
    return {
        path.relative_to(directory).as_posix(): path.read_bytes()
        for path in sorted(directory.rglob("*"))
        if path.is_file()
    }


class TestBuild:
    def test_mixed_project(self, project, config):
        root = project(MIXED_PROJECT)
        emitted = build(root / "src" / "index.ts", root / "out", config)

        assert emitted == root / "out" / "src" / "index.mjs"
        assert set(snapshot(root / "out")) == {"src/index.mjs", "src/greet.mjs", "config/index.cjs"}

        index = (root / "out" / "src" / "index.mjs").read_text()
        assert index == (
            INTERPRETER_DIRECTIVE
            + REQUIRE_PRELUDE
            + "import { greet } from './greet.mjs';\n"
            "const config = require('../config/index.cjs');\n"
            "const name = config.name;\n"
            "console.log(greet(name));\n"
        )

        config_output = (root / "out" / "config" / "index.cjs").read_text()
        assert config_output == INTERPRETER_DIRECTIVE + "module.exports = { name: 'xnr' };\n"

    def test_commonjs_entry_has_no_prelude(self, project, config):
        root = project({"main.js": "const b = require('./b');\n", "b.js": "module.exports = 1;\n"})
        emitted = build(root / "main.js", root / "out", config)
        assert emitted == root / "out" / "main.cjs"
        assert emitted.read_text() == INTERPRETER_DIRECTIVE + "const b = require('./b.cjs');\n"

    def test_existing_create_require_not_duplicated(self, project, config):
        source = (
            "import { createRequire } from 'node:module';\n"
            "const require = createRequire(import.meta.url);\n"
            "export default require('./b');\n"
        )
        root = project({"main.js": source, "b.js": "module.exports = 1;\n"})
        emitted = build(root / "main.js", root / "out", config)
        assert emitted.read_text().count("createRequire(") == 1

    def test_idempotent(self, project, config):
        root = project(MIXED_PROJECT)
        build(root / "src" / "index.ts", root / "out", config)
        first = snapshot(root / "out")
        build(root / "src" / "index.ts", root / "out", config)
        assert snapshot(root / "out") == first

    def test_output_reset(self, project, config):
        root = project({"main.js": "console.log(1);\n", "out/stale.mjs": "old"})
        build(root / "main.js", root / "out", config)
        assert not (root / "out" / "stale.mjs").exists()

    def test_failed_build_leaves_no_output(self, project, config):
        root = project({"main.js": "import './missing';\n", "out/stale.mjs": "old"})
        with pytest.raises(ResolutionError) as exc:
            build(root / "main.js", root / "out", config)
        assert exc.value.specifier == "./missing"
        assert exc.value.mechanism == "import"
        assert not (root / "out").exists()

    def test_refuses_to_clear_entry_directory(self, project, config):
        root = project({"src/main.js": "console.log(1);\n"})
        with pytest.raises(WriteError):
            build(root / "src" / "main.js", root, config)
        assert (root / "src" / "main.js").exists()

    def test_default_output_directory(self, project, config):
        root = project({"main.js": "console.log(1);\n"})
        assert build("main.js", config=config) == root / ".jbuild" / "main.cjs"

    def test_async_entry_point(self, project, config):
        root = project({"main.mjs": "export {};\n"})
        emitted = asyncio.run(build_async(root / "main.mjs", root / "out", config))
        assert emitted == root / "out" / "main.mjs"

    def test_interop_in_build(self, project, config):
        root = project(
            {
                "main.js": "import { a } from 'legacy';\nconsole.log(a);\n",
                "node_modules/legacy/index.js": "exports.a = 1;\n",
            }
        )
        emitted = build(root / "main.js", root / "out", config)
        text = emitted.read_text()
        assert "import xnr_" in text
        assert "const { a } = xnr_" in text

    def test_rewrite_failure_aborts_build(self, project, config):
        """A failing file cancels the other writes and leaves no task behind."""
        root = project(
            {
                "main.js": "import './a';\nimport './b';\n",
                "a.js": "export const a = 1;\n",
                "b.js": "import { a } from 'not-installed';\nexport default a;\n",
            }
        )

        async def build_and_collect():
            with pytest.raises(ResolutionError) as exc:
                await build_async(root / "main.js", root / "out", config)
            pending = [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]
            return exc.value, pending

        error, pending = asyncio.run(build_and_collect())
        assert error.specifier == "not-installed"
        assert pending == []
        assert not (root / "out" / "b.mjs").exists()


class TestTransform:
    def test_specifiers(self):
        source = "import a from './a';\nconst b = require('./b');\n"
        assert transform(source) == "import a from './a.mjs';\nconst b = require('./b.cjs');\n"

    def test_typed_source(self):
        assert transform("const x: number = 1;\n", "x.ts") == "const x = 1;\n"

    def test_interpreter_directive(self):
        assert transform("#!/usr/bin/env node\nrequire('./a');\n") == "\nrequire('./a.cjs');\n"


class TestRun:
    def test_exit_code_and_cleanup(self, project, config, node_available):
        root = project({"main.ts": "const code: number = 3;\nprocess.exit(code);\n"})
        assert run(root / "main.ts", (), root / "tmp-run", config) == 3
        assert not (root / "tmp-run").exists()

    def test_arguments_passed_through(self, project, config, node_available, capfd):
        root = project(
            {
                "main.js": "import { join } from './join';\nconsole.log(join(process.argv.slice(2)));\n",
                "join.js": "export const join = (parts) => parts.join(',');\n",
            }
        )
        assert run(root / "main.js", ["a", "--b"], root / "tmp-run", config) == 0
        assert capfd.readouterr().out == "a,--b\n"

    def test_build_failure_cleans_up(self, project, config):
        root = project({"main.js": "require('./missing');\n"})
        with pytest.raises(ResolutionError):
            run(root / "main.js", (), root / "tmp-run", config)
        assert not (root / "tmp-run").exists()

    def test_refuses_to_clear_entry_directory(self, project, config):
        root = project({"src/main.js": "console.log(1);\n", "keep.txt": "precious"})
        with pytest.raises(WriteError):
            run(root / "src" / "main.js", (), root, config)
        assert (root / "src" / "main.js").exists()
        assert (root / "keep.txt").read_text() == "precious"

    def test_missing_runtime(self, project, config):
        config["runtime"]["node"] = "xnr-test-no-such-node"
        root = project({"main.js": "console.log(1);\n"})
        with pytest.raises(XnrError):
            run(root / "main.js", (), root / "tmp-run", config)
        assert not (root / "tmp-run").exists()
