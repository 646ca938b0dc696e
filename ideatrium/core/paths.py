"""
Path utility module
Resolves data locations (database, local store, prompts) with config overrides
"""

from pathlib import Path
from typing import Optional

from ideatrium.config.loader import get_config
from ideatrium.core.logger import get_logger

logger = get_logger(__name__)


def ensure_dir(dir_path: Path) -> Path:
    """
    Ensure directory exists, create if it doesn't

    Args:
        dir_path: Directory path

    Returns:
        Directory path
    """
    dir_path = Path(dir_path)
    if not dir_path.exists():
        dir_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created directory: {dir_path}")
    return dir_path


def get_data_dir(subdir: Optional[str] = None) -> Path:
    """
    Get data directory (directory holding the active config file)

    Args:
        subdir: Optional subdirectory name

    Returns:
        Data directory path
    """
    data_dir = Path(get_config().config_file).parent
    if subdir:
        data_dir = data_dir / subdir
    return ensure_dir(data_dir)


def get_db_path(db_name: str = "ideatrium.db") -> Path:
    """Get database file path (database.path wins over the default)"""
    configured = get_config().get("database.path", "")
    if configured and str(configured).strip():
        return Path(configured)
    return get_data_dir() / db_name


def get_local_storage_path() -> Path:
    """Get the JSON file used by the local (offline) store"""
    configured = get_config().get("storage.local_path", "")
    if configured and str(configured).strip():
        return Path(configured)
    return get_data_dir() / "local_storage.json"


def get_prompts_dir() -> Path:
    """Directory holding the bundled prompt templates"""
    return Path(__file__).parent.parent / "config"
