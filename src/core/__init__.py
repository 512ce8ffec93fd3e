"""Core module for configuration, exceptions, and logging.

- Pydantic Settings with SettingsConfigDict
- Custom namespaced exceptions (PropertyStoreError, ConfigError)
- structlog configured once per process
"""
