# FirePass - Runtime Configuration
#
# Settings come from environment variables; a .env file in the working
# directory is loaded first (python-dotenv) so local installs can keep
# their overrides next to the data directory.

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class FirePassConfig:
    """Resolved FirePass settings.

    Attributes:
        data_dir: Directory holding vault.db.
        audit_dir: Directory for daily audit log files.
        constant_time_compare: Use hmac.compare_digest when verifying the
            master password hash instead of plain string equality.
        host: API bind address.
        port: API port.
    """
    data_dir: Path = Path("data")
    audit_dir: Path = Path("audit_logs")
    constant_time_compare: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def vault_db_path(self) -> Path:
        return self.data_dir / "vault.db"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def load_config() -> FirePassConfig:
    """Build a FirePassConfig from the environment (and .env, if present)."""
    load_dotenv()

    return FirePassConfig(
        data_dir=Path(os.environ.get("FIREPASS_DATA_DIR", "data")),
        audit_dir=Path(os.environ.get("FIREPASS_AUDIT_DIR", "audit_logs")),
        constant_time_compare=_env_flag("FIREPASS_CONSTANT_TIME_COMPARE"),
        host=os.environ.get("FIREPASS_HOST", "127.0.0.1"),
        port=int(os.environ.get("FIREPASS_PORT", "8000")),
    )
