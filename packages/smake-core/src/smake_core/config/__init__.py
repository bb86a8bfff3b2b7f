from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import (
    ProjectConfig,
    ReportConfig,
    SmakeConfig,
    WatchConfig,
)

__all__ = [
    "DEFAULT_CONFIG_TEMPLATE",
    "ProjectConfig",
    "ReportConfig",
    "SmakeConfig",
    "WatchConfig",
    "load_config",
]
