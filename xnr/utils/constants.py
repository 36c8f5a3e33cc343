"""Centralized constants for xnr.

Single source of truth for extensions, default directories and the
environment variable names read by the logging and config layers.
"""

# ============================================================================
# EXTENSIONS
# ============================================================================

# Always static-format / always dynamic-format, regardless of content
STATIC_ONLY_EXTENSIONS = (".mjs", ".mts")
DYNAMIC_ONLY_EXTENSIONS = (".cjs", ".cts")

# Extensions parsed with the typescript grammar (no JSX allowed)
TYPESCRIPT_EXTENSIONS = (".ts", ".mts", ".cts")
TYPED_DIALECT_EXTENSIONS = (".ts", ".mts", ".cts", ".tsx")

# Resolution fallback order after the likely-extension hint
FALLBACK_EXTENSION_ORDER = (".tsx", ".ts", ".mjs", ".cjs", ".jsx", ".js")

INDEX_STEM = "index"

# ============================================================================
# OUTPUT
# ============================================================================

INTERPRETER_DIRECTIVE = "#!/usr/bin/env node\n"

REQUIRE_PRELUDE = (
    "import { createRequire } from 'node:module';\n"
    "const require = createRequire(import.meta.url);\n"
)

# Prefix for synthesized interop bindings
INTEROP_BINDING_PREFIX = "xnr_"

# Output directories, relative to the working directory
DEFAULT_BUILD_DIR = ".jbuild"
DEFAULT_RUN_DIR = ".jrun"

# Project-level config file, relative to the working directory
CONFIG_FILE = ".xnr.json"

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_PREFIX = "XNR"
ENV_LOG_LEVEL = "XNR_LOG_LEVEL"
ENV_LOG_JSON = "XNR_LOG_JSON"
ENV_LOG_FILE = "XNR_LOG_FILE"
