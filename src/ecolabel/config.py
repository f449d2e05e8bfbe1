"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_REPORTS_DIR = "reports"
DEFAULT_TIMEOUT = 60.0
DEFAULT_PORT = 3000
AUDITORS = ("pagespeed", "lighthouse")
STRATEGIES = ("desktop", "mobile")


@dataclass
class Settings:
    """Settings shared by the CLI and the HTTP server."""
    reports_dir: Path = Path(DEFAULT_REPORTS_DIR)
    auditor: str = "pagespeed"
    api_key: Optional[str] = None
    strategy: str = "desktop"
    timeout: float = DEFAULT_TIMEOUT
    lighthouse_path: Optional[str] = None
    chrome_path: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT

    def __post_init__(self):
        if self.auditor not in AUDITORS:
            raise ValueError(f"Unknown auditor {self.auditor!r}, expected one of {AUDITORS}")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {self.strategy!r}, expected one of {STRATEGIES}")
        self.reports_dir = Path(self.reports_dir)

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from environment variables.

        Keyword arguments that are not None take precedence, so CLI options
        can be passed straight through.
        """
        values = {
            "reports_dir": os.getenv("ECOLABEL_REPORTS_DIR", DEFAULT_REPORTS_DIR),
            "auditor": os.getenv("ECOLABEL_AUDITOR", "pagespeed"),
            "api_key": os.getenv("PSI_API_KEY") or None,
            "strategy": os.getenv("ECOLABEL_STRATEGY", "desktop"),
            "timeout": float(os.getenv("ECOLABEL_TIMEOUT", DEFAULT_TIMEOUT)),
            "lighthouse_path": os.getenv("LIGHTHOUSE_PATH") or None,
            "chrome_path": os.getenv("CHROME_PATH") or None,
            "host": os.getenv("HOST", "127.0.0.1"),
            "port": int(os.getenv("PORT", DEFAULT_PORT)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
