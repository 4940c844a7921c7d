import os
from dataclasses import dataclass
from pathlib import Path

APP_NAME = "minevaapen"
DATABASE_NAME = f"{APP_NAME}.db"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    # Demo weapons are only seeded into an empty weapons table when enabled
    seed_demo_weapons: bool = False
    log_level: str = "INFO"

    @property
    def database_path(self) -> Path:
        return self.data_dir / "SQLite" / DATABASE_NAME

    @property
    def backup_dir(self) -> Path:
        return self.data_dir / "backups"

    @property
    def export_dir(self) -> Path:
        return self.data_dir / "exports"


def load_settings() -> Settings:
    data_dir = os.getenv("MINEVAAPEN_DATA_DIR", "").strip()
    seed_demo = os.getenv("MINEVAAPEN_SEED_DEMO", "").strip().lower()
    log_level = os.getenv("MINEVAAPEN_LOG_LEVEL", "").strip().upper()
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else Path.home() / f".{APP_NAME}",
        seed_demo_weapons=seed_demo in _TRUTHY,
        log_level=log_level or "INFO",
    )
