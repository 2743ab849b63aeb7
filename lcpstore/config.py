"""Configuration management using environment variables.

This module provides centralized configuration management using python-decouple
to read from .env files and environment variables. Only callers read it: the
stores themselves receive their engine and dialect explicitly.
"""

from decouple import config

from lcpstore.dialect import Dialect


class Config:
    """Base configuration class."""

    # Database
    DATABASE_URL: str = config('DATABASE_URL', default='sqlite:///lcp.db')
    DATABASE_ECHO: bool = config('DATABASE_ECHO', default=False, cast=bool)

    # Environment
    ENVIRONMENT: str = config('ENVIRONMENT', default='development')

    # Logging
    LOG_LEVEL: str = config('LOG_LEVEL', default='INFO')

    @property
    def dialect(self) -> Dialect:
        """Dialect matching the configured database URL."""
        return Dialect.from_database_setting(self.DATABASE_URL)

    @property
    def is_postgresql(self) -> bool:
        return self.dialect is Dialect.POSTGRES

    @property
    def is_sqlite(self) -> bool:
        return self.dialect is Dialect.SQLITE


class DevelopmentConfig(Config):
    """Development configuration."""
    LOG_LEVEL = config('LOG_LEVEL', default='DEBUG')


class ProductionConfig(Config):
    """Production configuration."""
    LOG_LEVEL = config('LOG_LEVEL', default='WARNING')


class TestingConfig(Config):
    """Testing configuration."""
    DATABASE_URL = 'sqlite:///test_lcp.db'


def get_config() -> Config:
    """Get configuration based on environment."""
    env = config('ENVIRONMENT', default='development')

    if env == 'production':
        return ProductionConfig()
    elif env == 'testing':
        return TestingConfig()
    else:
        return DevelopmentConfig()


# Global config instance
settings = get_config()
