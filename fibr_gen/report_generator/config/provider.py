# fibr_gen/report_generator/config/provider.py
from typing import Dict, Optional

from ..errors import ConfigError, UnknownViewError
from .models import DataSourceConfig, DataViewConfig


class ConfigRegistry:
    """In-memory lookup of data view and data source definitions by name."""

    def __init__(self, data_views: Optional[Dict[str, DataViewConfig]] = None,
                 data_sources: Optional[Dict[str, DataSourceConfig]] = None):
        self.data_views: Dict[str, DataViewConfig] = dict(data_views or {})
        self.data_sources: Dict[str, DataSourceConfig] = dict(data_sources or {})

    def get_data_view_config(self, name: str) -> DataViewConfig:
        try:
            return self.data_views[name]
        except KeyError:
            raise UnknownViewError("data view config not found", view=name) from None

    def get_data_source_config(self, name: str) -> DataSourceConfig:
        try:
            return self.data_sources[name]
        except KeyError:
            raise ConfigError("data source config not found", data_source=name) from None

    def has_data_view(self, name: str) -> bool:
        return name in self.data_views
