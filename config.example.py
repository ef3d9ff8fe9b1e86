# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "DIAGTASK_APP_NAME": "App display name (default: diagtask).",
    "DIAGTASK_LOG_LEVEL": "Console logging level (default: INFO).",
    "DIAGTASK_LOG_DIR": "Directory for diagtask.log (default: .local/diagtask).",
    # Records / workers
    "DIAGTASK_WORKING_DIR": "Root of the status records (default: /var/log/pcp/vector).",
    "DIAGTASK_SCRIPTS_DIR": "Directory holding worker commands (default: /var/lib/pcp/pmdas/vector).",
    "DIAGTASK_ARTIFACT_SUFFIX": "Suffix of the artifact named in DONE replies (default: .svg).",
    "DIAGTASK_WORKER_LOG": "File receiving worker stderr and launch outcomes (default: <log_dir>/workers.log).",
    "DIAGTASK_GUARD_STALE_SECONDS": "Age after which a per-key guard file is treated as abandoned (default: 30).",
    # Switches
    "DIAGTASK_RESERVE_ON_STORE": "Write a REQUESTED record before launching (true/false, default true).",
    "DIAGTASK_CLEAN_ON_START": "Remove stale status records at startup (true/false, default true).",
    # Console driver
    "DIAGTASK_CONSOLE_SESSION": "Session id used by the console driver (default: 0).",
}
