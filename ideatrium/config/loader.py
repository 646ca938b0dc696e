"""
Configuration loader
Supports loading configuration from TOML and YAML files, with environment variable override support
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Configuration loader class"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or self._get_default_config_file()
        self._config: Dict[str, Any] = {}

    def _get_default_config_file(self) -> str:
        """Get default configuration file path

        Honors IDEATRIUM_CONFIG when set, otherwise uses
        ~/.config/ideatrium/config.toml (created from the default template on load()).
        """
        env_path = os.getenv("IDEATRIUM_CONFIG")
        if env_path:
            return env_path

        user_config_file = Path.home() / ".config" / "ideatrium" / "config.toml"
        logger.info(f"Using user configuration file: {user_config_file}")
        return str(user_config_file)

    def load(self) -> Dict[str, Any]:
        """Load configuration, create default configuration if it doesn't exist"""
        config_path = Path(self.config_file)

        if not config_path.exists():
            logger.info(f"Configuration file doesn't exist: {self.config_file}")
            self._create_default_config(config_path)

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config_content = f.read()

            config_content = self._replace_env_vars(config_content)

            if self.config_file.endswith((".yaml", ".yml")):
                self._config = yaml.safe_load(config_content) or {}
            else:
                self._config = toml.loads(config_content)

            logger.info(f"✓ Configuration file loaded successfully: {self.config_file}")
            return self._config

        except (yaml.YAMLError, toml.TomlDecodeError) as e:
            logger.error(f"Configuration file parsing error: {e}")
            raise

    def _create_default_config(self, config_path: Path) -> None:
        """Create default configuration file"""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(self._get_default_config_content(config_path.parent))
        logger.info(f"✓ Default configuration file created: {config_path}")

    def _get_default_config_content(self, data_dir: Path) -> str:
        """Get default configuration content"""
        return f"""# Ideatrium configuration file

[server]
host = "0.0.0.0"
port = 8000
debug = false

[storage]
# auto: use the database when database.path is set, the local JSON store otherwise
mode = "auto"
local_path = '{data_dir / "local_storage.json"}'

[database]
path = '{data_dir / "ideatrium.db"}'

[ai]
api_key = "${{GEMINI_API_KEY:}}"
model = "gemini-2.0-flash"
base_url = "https://generativelanguage.googleapis.com/v1beta"
timeout = 30
max_retries = 2

[offline]
cache_version = "v1.0.0"
static_assets = ["/", "/tasks", "/manifest.json", "/logo.svg", "/favicon.ico"]

[logging]
level = "INFO"
logs_dir = '{data_dir / "logs"}'
max_file_size = "10MB"
backup_count = 5
"""

    def _replace_env_vars(self, content: str) -> str:
        """Replace ${VAR_NAME} or ${VAR_NAME:default_value} placeholders"""

        def replace_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) else ""
            return os.getenv(var_name, default_value)

        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"
        return re.sub(pattern, replace_var, content)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value, supports dot-separated nested keys"""
        value: Any = self._config

        try:
            for k in key.split("."):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> bool:
        """Set configuration value, supports dot-separated nested keys"""
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        return self.save()

    def save(self) -> bool:
        """Save configuration to file"""
        try:
            config_path = Path(self.config_file)
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file, "w", encoding="utf-8") as f:
                if self.config_file.endswith((".yaml", ".yml")):
                    yaml.safe_dump(self._config, f, allow_unicode=True)
                else:
                    toml.dump(self._config, f)

            logger.info(f"✓ Configuration saved to: {self.config_file}")
            return True

        except OSError as e:
            logger.error(f"Failed to save configuration: {e}")
            return False


# Global configuration instance
_config_instance: Optional[ConfigLoader] = None


def get_config(config_file: Optional[str] = None) -> ConfigLoader:
    """Get global configuration instance"""
    global _config_instance
    if config_file is not None:
        _config_instance = ConfigLoader(config_file)
        _config_instance.load()
    elif _config_instance is None:
        _config_instance = ConfigLoader()
        _config_instance.load()
    return _config_instance


def reset_config() -> None:
    """Drop the global configuration instance (next get_config() reloads)"""
    global _config_instance
    _config_instance = None
