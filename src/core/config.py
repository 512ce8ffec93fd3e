"""
propstore - Application Configuration

Patterns Applied:
- Pydantic Settings with SettingsConfigDict
- Environment variable prefix PROPSTORE_

The settings only describe where the property store lives and how it logs;
the stored properties themselves are managed by src.store.config_store.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables with PROPSTORE_ prefix.
    Example: PROPSTORE_APP_NAME=MyTool, PROPSTORE_CONFIG_PATH=/etc/mytool.properties
    """

    # Default property file: <home>/.<app_name>
    app_name: str = "JSignPdf"
    config_path: str | None = None
    home_dir: str | None = None

    # Written as the first comment line of saved files
    header_comment: str = "Properties saved by PropertyProvider"

    # Logging configuration
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="PROPSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def default_path(self) -> Path:
        """Well-known property file location.

        Returns:
            ``config_path`` when set, otherwise ``<home>/.<app_name>``
        """
        if self.config_path:
            return Path(self.config_path)
        home = Path(self.home_dir) if self.home_dir else Path.home()
        return home / f".{self.app_name}"


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance with values from environment
    """
    return Settings()
