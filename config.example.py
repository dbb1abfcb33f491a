# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit a real .env. Use:
- .env (local, gitignored)

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "SWISSKNIFE_APP_NAME": "App display name (default: swissknife).",
    "SWISSKNIFE_LOG_LEVEL": "Console logging level (default: INFO).",
    "SWISSKNIFE_LOG_TO_FILE": "Also write full DEBUG logs to <data_dir>/swissknife.log (true/false, default: true).",
    # Paths (gitignored)
    "SWISSKNIFE_DATA_DIR": "Local data directory (default: .local/swissknife).",
    "SWISSKNIFE_STORAGE_DIR": "Filesystem storage root with content/ and tasks/ (default: <data_dir>/storage).",
    # Storage
    "SWISSKNIFE_STORAGE_BACKEND": "memory | fs (default: fs). Aliases: mem, inmemory, filesystem, disk.",
    "SWISSKNIFE_CID_MODE": "hash (SHA-256 of content, dedup) | random (legacy cid-<millis>-<suffix>). Default: hash.",
}
