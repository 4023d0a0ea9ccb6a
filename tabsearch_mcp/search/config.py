"""Configuration loader for tabsearch."""

import yaml
import logging
from pathlib import Path
from dataclasses import dataclass, field

from .history import DEFAULT_HISTORY_LIMIT
from .models import SearchFilters

logger = logging.getLogger(__name__)

CONFIG_DIR = ".tabsearch"
CONFIG_FILE = "config.yaml"
DEFAULT_STORAGE_DIR = ".tabsearch/state"


@dataclass
class SearchConfig:
    """Configuration for search sessions."""
    history_limit: int = DEFAULT_HISTORY_LIMIT
    storage_dir: str = DEFAULT_STORAGE_DIR
    default_filters: SearchFilters = field(default_factory=SearchFilters)

    def storage_path(self, root: Path) -> Path:
        """Resolve storage_dir against root unless it is absolute."""
        path = Path(self.storage_dir or DEFAULT_STORAGE_DIR).expanduser()
        return path if path.is_absolute() else Path(root) / path


def load_config(root: Path) -> SearchConfig:
    """Load configuration from .tabsearch/config.yaml.

    Args:
        root: Directory holding the .tabsearch folder

    Returns:
        SearchConfig object (with defaults if file missing)
    """
    config_file = Path(root) / CONFIG_DIR / CONFIG_FILE

    if not config_file.exists():
        return SearchConfig()

    try:
        content = yaml.safe_load(config_file.read_text())
        if not content:
            return SearchConfig()

        if "search" not in content:
            logger.debug(f"Config file {config_file} found but 'search' section missing")
            return SearchConfig()

        search_config = content["search"] or {}
        history_limit = int(search_config.get("history_limit", DEFAULT_HISTORY_LIMIT))
        if history_limit < 1:
            logger.warning(f"Ignoring history_limit={history_limit} in {config_file}")
            history_limit = DEFAULT_HISTORY_LIMIT

        return SearchConfig(
            history_limit=history_limit,
            storage_dir=search_config.get("storage_dir", DEFAULT_STORAGE_DIR),
            default_filters=SearchFilters.from_dict(search_config.get("default_filters")),
        )
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config file {config_file}: {e}. Using defaults.")
        return SearchConfig()
    except Exception as e:
        logger.warning(f"Unexpected error loading config from {config_file}: {e}. Using defaults.")
        return SearchConfig()
