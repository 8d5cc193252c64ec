"""Configuration loader for GuildDesk."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional


class Config:
    """Configuration manager for the GuildDesk bot."""

    def __init__(self, config_path: str = "config/config.yaml"):
        """
        Initialize configuration from YAML file.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Please copy config/config.example.yaml to config/config.yaml and configure it."
            )

        with open(self.config_path, "r", encoding="utf-8") as f:
            self._config = yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'discord.token')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    @property
    def discord_token(self) -> str:
        """Get Discord bot token."""
        token = self.get("discord.token")
        if not token or token == "YOUR_BOT_TOKEN_HERE":
            raise ValueError("Discord token not configured in config.yaml")
        return token

    @property
    def admin_roles(self) -> list:
        """Get list of operator role IDs."""
        return [int(role_id) for role_id in self.get("permissions.admin_roles", [])]

    @property
    def admin_users(self) -> list:
        """Get list of operator user IDs."""
        return [int(user_id) for user_id in self.get("permissions.admin_users", [])]

    @property
    def page_size(self) -> int:
        """Get number of guilds shown per list page."""
        size = int(self.get("guilds.page_size", 10))
        if size <= 0:
            raise ValueError("guilds.page_size must be a positive integer")
        return size

    @property
    def list_timeout(self) -> float:
        """Get inactivity timeout of a guild list session in seconds."""
        return float(self.get("guilds.list_timeout", 600))

    @property
    def detail_timeout(self) -> float:
        """Get inactivity timeout of a guild detail session in seconds."""
        return float(self.get("guilds.detail_timeout", 300))

    @property
    def confirm_timeout(self) -> float:
        """Get timeout of a leave confirmation in seconds."""
        return float(self.get("guilds.confirm_timeout", 30))

    @property
    def log_channel_id(self) -> Optional[int]:
        """Get channel ID receiving guild join/leave notifications."""
        channel_id = self.get("notifications.log_channel_id")
        return int(channel_id) if channel_id else None

    @property
    def owner_id(self) -> Optional[int]:
        """Get bot owner user ID."""
        owner_id = self.get("notifications.owner_id")
        return int(owner_id) if owner_id else None

    @property
    def dm_owner_on_guild_events(self) -> bool:
        """Whether guild join/leave notifications are also sent to the owner via DM."""
        return bool(self.get("notifications.dm_owner", False))

    @property
    def database_path(self) -> str:
        """Get path of the guild event database."""
        return self.get("database.path", "data/guild_events.db")

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return self.get("logging.level", "INFO")

    @property
    def log_file(self) -> str:
        """Get log file path."""
        return self.get("logging.file", "logs/guilddesk.log")

    @property
    def log_format(self) -> str:
        """Get log format string."""
        return self.get(
            "logging.format",
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
