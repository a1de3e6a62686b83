import shutil
import tempfile
from pathlib import Path

import pytest

from changelog_helper.config.loader import AI_CONFIG_FILENAME, _get_config_directory


@pytest.fixture(scope="session", autouse=True)
def isolate_home_config():
    """Move a real user-level Ollama config aside for the test session.

    Several tests assert that AI classification is unavailable when no
    configuration exists, so the user's own file must not leak into them.
    It is restored when the session ends.
    """
    config_path = _get_config_directory() / AI_CONFIG_FILENAME
    backup_dir = None
    if config_path.exists():
        backup_dir = Path(tempfile.mkdtemp(prefix="changelog_config_backup_"))
        shutil.move(str(config_path), str(backup_dir / AI_CONFIG_FILENAME))

    try:
        yield
    finally:
        if backup_dir is not None:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(backup_dir / AI_CONFIG_FILENAME), str(config_path))
            shutil.rmtree(str(backup_dir), ignore_errors=True)


