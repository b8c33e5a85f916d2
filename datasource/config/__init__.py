# =============================================================================
# datasource/config/__init__.py
# DataSource Configuration
# =============================================================================

from .settings import DataSourceConfig, load_config

__all__ = ["DataSourceConfig", "load_config"]
