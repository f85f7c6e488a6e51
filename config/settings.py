"""
Harvest settings — documented defaults, overridable per environment.

Every key can be overridden with an environment variable named
``VODCHAT_<KEY>`` (upper-case), e.g. ``VODCHAT_CONCURRENCY=64``.
"""

import os

SETTINGS = {
    # Chunk count (and in-flight request count) for a bulk harvest
    "concurrency": 128,
    # Smaller default for the interactive Streamlit page
    "ui_concurrency": 16,
    # Per-request timeout in seconds
    "request_timeout": 30,
    # Spacing of the probe ladder used to estimate video length
    "probe_interval_seconds": 3600,
    # Longest supported VOD
    "max_video_hours": 48,
    # Max wall time for a harvest launched from Streamlit
    "run_timeout": 600,
    "log_level": "INFO",
}

ENV_PREFIX = "VODCHAT_"


def env_var(name: str) -> str:
    """Environment variable that overrides the given setting."""
    return f"{ENV_PREFIX}{name.upper()}"


def get_setting(name: str):
    """Return a setting, applying an environment override if present.

    The override is coerced to the type of the documented default.
    Raises KeyError for unknown settings.
    """
    default = SETTINGS[name]
    raw = os.environ.get(env_var(name))
    if raw is None or not raw.strip():
        return default
    return type(default)(raw.strip())
