# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (the Matrix password goes into .env, which is gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "FOCUS_APP_NAME": "App display name (default: focus).",
    "FOCUS_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "FOCUS_CONSOLE_ENABLED": "Enable console connector (true/false, default: true).",
    "FOCUS_CONSOLE_USER_ID": "User id the console acts as (default: console).",
    "FOCUS_MATRIX_ENABLED": "Enable Matrix connector (true/false, default: false).",
    # Matrix
    "FOCUS_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "FOCUS_MATRIX_USER_ID": "Matrix user ID (bot).",
    "FOCUS_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "FOCUS_MATRIX_ROOMS": "Optional allowlist of room IDs (empty => all rooms).",
    # Paths (gitignored)
    "FOCUS_DATA_DIR": "Local data directory, also holds focus.log (default: .local/focus).",
    "FOCUS_MATRIX_STORE_PATH": "Directory holding the cached Matrix login, session.json (default: <data_dir>/matrix_store).",
    # Timer policy
    "FOCUS_MIN_DURATION_MINUTES": "Shortest accepted session (default: 1).",
    "FOCUS_MAX_DURATION_MINUTES": "Longest accepted session (default: 180).",
    "FOCUS_TICK_INTERVAL_SECONDS": "How often the timer display is refreshed (default: 60).",
    "FOCUS_BREAK_REMINDER_MINUTES": "Break length after a completed session; 0 disables the reminder (default: 5).",
    "FOCUS_COMMIT_THRESHOLD_MINUTES": "A stopped session is recorded only above this many minutes (default: 1).",
    "FOCUS_RECONCILE_INTERVAL_MINUTES": "Leaked-timer sweep interval (default: 30).",
    "FOCUS_NOTIFY_TIMEOUT_SECONDS": "Timeout for a single display send/edit (default: 10).",
}
