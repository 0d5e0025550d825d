"""
Startup migrations. Every worker of a deployment runs them, so they are serialised with a file
lock and the later workers find the schema already at the requested revision.
"""

import fcntl
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from dartleague.utils.logging import logger

PROJECT_ROOT = Path(__file__).resolve().parents[2]
MIGRATION_LOCK_PATH = Path(tempfile.gettempdir()) / "dartleague-alembic.lock"


@contextmanager
def migration_lock(lock_path: Path | None = None) -> Iterator[None]:
    with (lock_path or MIGRATION_LOCK_PATH).open("w", encoding="utf-8") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def get_alembic_config() -> Config:
    # Resolved against the project root so the working directory of the server does not matter.
    alembic_config = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return alembic_config


def get_head_revision(alembic_config: Config | None = None) -> str | None:
    return ScriptDirectory.from_config(alembic_config or get_alembic_config()).get_current_head()


def alembic_run_migrations(revision: str = "head") -> None:
    alembic_config = get_alembic_config()
    with migration_lock():
        logger.info(
            "Running migrations: revision=%s head=%s", revision, get_head_revision(alembic_config)
        )
        command.upgrade(alembic_config, revision)
    logger.info("Migrations finished")
