import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _default_config_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "legal-cases"
    return Path.home() / ".config" / "legal-cases"


@dataclass
class Settings:
    api_url: str = "http://localhost:8080/api"
    timeout: float = 15.0
    page_size: int = 10
    max_upload_mb: int = 50
    config_dir: Path = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.config_dir is None:
            self.config_dir = _default_config_dir()

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def session_file(self) -> Path:
        return Path(self.config_dir) / "session.json"

    @classmethod
    def from_env(cls, config_dir: Optional[Path] = None) -> "Settings":
        env_dir = os.getenv("LEGAL_CASES_CONFIG_DIR")
        return cls(
            api_url=os.getenv("LEGAL_CASES_API_URL", cls.api_url).rstrip("/"),
            timeout=float(os.getenv("LEGAL_CASES_TIMEOUT", cls.timeout)),
            page_size=int(os.getenv("LEGAL_CASES_PAGE_SIZE", cls.page_size)),
            max_upload_mb=int(os.getenv("LEGAL_CASES_MAX_UPLOAD_MB", cls.max_upload_mb)),
            config_dir=config_dir or (Path(env_dir) if env_dir else None),
            log_level=os.getenv("LEGAL_CASES_LOG_LEVEL", cls.log_level).upper(),
        )
