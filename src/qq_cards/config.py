"""Runtime configuration from the environment (and an optional .env file)."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_HOME = Path.home() / ".qq_cards"
MASTER_DB_NAME = "master_questions.db"
USER_DB_NAME = "user_data.db"


@dataclass
class AppConfig:
    home: Path
    master_db: Path
    user_db: Path
    user_seed_db: Optional[Path] = None
    log_level: str = "WARNING"


def load_config() -> AppConfig:
    """Build the config, letting QQ_* environment variables override defaults."""
    load_dotenv(find_dotenv(usecwd=True))
    home = Path(os.getenv("QQ_CARDS_HOME", str(DEFAULT_HOME))).expanduser()
    seed = os.getenv("QQ_USER_SEED_DB")
    return AppConfig(
        home=home,
        master_db=Path(os.getenv("QQ_MASTER_DB", str(home / MASTER_DB_NAME))).expanduser(),
        user_db=Path(os.getenv("QQ_USER_DB", str(home / USER_DB_NAME))).expanduser(),
        user_seed_db=Path(seed).expanduser() if seed else None,
        log_level=os.getenv("QQ_LOG_LEVEL", "WARNING").upper(),
    )
