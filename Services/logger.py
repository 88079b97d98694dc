import json
import os
import sys

from Services import config


class Logger:
    """
    Tagged console logger whose on/off switch belongs to one call.

    Errors are always printed. Debug dumps (write_logs) additionally require
    ENV=development, and never raise.
    """

    def __init__(self, enabled: bool = False, tag: str = "INFO"):
        self.enabled = enabled
        self.tag = tag

    def log(self, *args):
        if self.enabled:
            print(f"[{self.tag}]", *args)

    def error(self, *args):
        print("[ERROR]", *args, file=sys.stderr)

    def write_logs(self, name: str, value, logs_dir: str = "logs"):
        if not self.enabled:
            return
        if config.ENV != "development":
            return

        log_path = os.path.join(logs_dir, name)
        try:
            os.makedirs(logs_dir, exist_ok=True)
            with open(log_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, default=str)
            self.log(f"Debug log written to: {log_path}")
        except OSError as e:
            self.log(f"Failed to write logs to {name}: {e}")
