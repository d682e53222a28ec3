"""
notion-cli shared configuration, constants, and module-level state.
Standalone module: no imports from other project files.
"""

import os

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")

TOKEN_FILE_PATHS = (
    os.path.join(os.path.expanduser("~"), ".config", "notion", "api_key"),
    os.path.join(os.path.expanduser("~"), ".notion", "token"),
)


def load_env():
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip().strip('"').strip("'")
    return env


def _env_value(key, default=None):
    """Process environment first, then the .env file."""
    value = os.environ.get(key)
    if value is None:
        value = env.get(key)
    return default if value is None else value


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = _env_value(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = _env_value(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = _env_value(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _read_token_file(path):
    try:
        with open(path) as f:
            return f.read().strip()
    except OSError:
        return ""


def resolve_token(cli_token=None):
    """Return the integration token, or "" when none is configured.

    Precedence: --token flag, NOTION_TOKEN, NOTION_API_KEY (environment, then
    .env), then the user config files in TOKEN_FILE_PATHS.
    """
    if cli_token:
        return cli_token.strip()
    for key in ("NOTION_TOKEN", "NOTION_API_KEY"):
        value = _env_value(key)
        if value:
            return value.strip()
    for path in TOKEN_FILE_PATHS:
        token = _read_token_file(path)
        if token:
            return token
    return ""


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.3.0"
CONTRACT_SCHEMA_VERSION = "1.0"

BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

VALID_FORMATS = ("json", "table")
VALID_PARENT_TYPES = {"database", "page"}
VALID_SEARCH_TYPES = {"page", "database"}
VALID_SORT_DIRECTIONS = {"asc", "desc"}
VALID_HTTP_METHODS = {"GET", "POST", "PATCH", "DELETE"}
BATCH_MAX_OPERATIONS = 100

# ---------------------------------------------------------------------------
# Module-level state (loaded from environment and .env)
# ---------------------------------------------------------------------------

env = load_env()

TOKEN = resolve_token()
HTTP_TIMEOUT_SECONDS = _env_int("NOTION_CLI_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RETRIES = _env_int("NOTION_CLI_HTTP_MAX_RETRIES", 2)
HTTP_RETRY_BASE_SECONDS = _env_float("NOTION_CLI_HTTP_RETRY_BASE_SECONDS", 1.0)
HTTP_MAX_RESPONSE_BYTES = _env_int("NOTION_CLI_HTTP_MAX_RESPONSE_BYTES", 5_000_000)
HTTP_LOG_ENABLED = _env_bool("NOTION_CLI_HTTP_LOG", False)
HTTP_LOG_SAMPLE_RATE = min(1.0, max(0.0, _env_float("NOTION_CLI_HTTP_LOG_SAMPLE_RATE", 1.0)))
PATTERNS_PATH = _env_value("NOTION_CLI_PATTERNS", "")
MCP_RESPONSE_MODE = _env_value("NOTION_CLI_MCP_RESPONSE_MODE", "legacy")
if MCP_RESPONSE_MODE not in {"legacy", "envelope"}:
    MCP_RESPONSE_MODE = "legacy"

# ---------------------------------------------------------------------------
# Runtime flags (set by cli.main from global flags)
# ---------------------------------------------------------------------------

RUNTIME_DRY_RUN = False
RUNTIME_QUIET = False
RUNTIME_VERBOSE = False
