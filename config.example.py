# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. API keys are normally saved from the console with
`/key gemini <key>` / `/key zai <key>`; the *_API_KEY variables below are only copied
into the local credential store on startup when it has no key yet.
"""

ENV_VARS = {
    # App / logging
    "TASKFLOW_APP_NAME": "App display name (default: taskflow).",
    "TASKFLOW_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "TASKFLOW_DATA_DIR": "Local data directory (default: .local/taskflow).",
    "TASKFLOW_MODES_DB_PATH": "Mode registry SQLite path (default: <data_dir>/modes.sqlite3).",
    "TASKFLOW_CREDENTIALS_DB_PATH": "API key store path (default: <data_dir>/credentials.sqlite3).",
    # Provider keys
    "TASKFLOW_GEMINI_API_KEY": "Google Gemini API key (GEMINI_API_KEY also accepted).",
    "TASKFLOW_ZAI_API_KEY": "Z.ai API key (ZAI_API_KEY also accepted).",
    # Gemini
    "TASKFLOW_GEMINI_BASE_URL": "https:// base URL (default: https://generativelanguage.googleapis.com/v1beta).",
    "TASKFLOW_GEMINI_MODEL": "Model used when a mode has none (default: gemini-flash-lite-latest).",
    "TASKFLOW_GEMINI_TIMEOUT_SECONDS": "Request timeout (default: 60).",
    # Z.ai
    "TASKFLOW_ZAI_BASE_URL": "https:// base URL (default: https://api.z.ai/api/paas/v4).",
    "TASKFLOW_ZAI_MODEL": "Model used when a mode has none (default: glm-4.5-flash).",
    "TASKFLOW_ZAI_TIMEOUT_SECONDS": "Request timeout (default: 30).",
}
