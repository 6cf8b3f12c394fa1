# fibr_gen/report_generator/config/config_loader.py
"""
Loading of declarative report configuration from YAML or JSON files.

Two layouts are supported:
  * a single bundle file holding `workbook`, `dataViews` and `dataSources`
  * a directory tree with `workbooks/`, `dataViews/` and `datasources/`
    sub-directories, one definition per file
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from ..errors import ConfigLoadError, ConfigValidationError
from .models import ConfigBundle, DataSourceConfig, DataViewConfig, WorkbookConfig
from .provider import ConfigRegistry
from .validator import ConfigValidator

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
ModelT = TypeVar("ModelT", bound=BaseModel)

YAML_SUFFIXES = {".yaml", ".yml"}
CONFIG_SUFFIXES = YAML_SUFFIXES | {".json"}


class LoadedBundle(NamedTuple):
    workbook: WorkbookConfig
    data_views: Dict[str, DataViewConfig]
    data_sources: Dict[str, DataSourceConfig]


class LoadedConfigs(NamedTuple):
    workbooks: Dict[str, WorkbookConfig]
    data_views: Dict[str, DataViewConfig]
    data_sources: Dict[str, DataSourceConfig]


def read_config_file(path: PathLike) -> Any:
    """Parse a YAML or JSON file into plain Python data, chosen by suffix."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigLoadError(f"failed to read config file: {e}", path=str(path)) from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigLoadError(f"failed to parse config file: {e}", path=str(path)) from e


def _parse_model(model: Type[ModelT], data: Any, path: Path) -> ModelT:
    if not isinstance(data, dict):
        raise ConfigLoadError(f"expected a mapping at top level, got {type(data).__name__}", path=str(path))
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(f"invalid {model.__name__}: {e}", path=str(path)) from e


def _index_by_name(items: Iterable[Optional[BaseModel]], kind: str, path: Path) -> Dict[str, Any]:
    indexed: Dict[str, Any] = {}
    for item in items:
        if item is None or not item.name:
            raise ConfigLoadError(f"{kind} config missing name", path=str(path))
        if item.name in indexed:
            raise ConfigLoadError(f"duplicate {kind} name: {item.name}", path=str(path))
        indexed[item.name] = item
    return indexed


def _validate_all(workbooks: Iterable[WorkbookConfig],
                  data_views: Dict[str, DataViewConfig],
                  data_sources: Dict[str, DataSourceConfig]) -> None:
    validator = ConfigValidator(ConfigRegistry(data_views, data_sources))
    for source in data_sources.values():
        validator.validate_data_source(source)
    for view in data_views.values():
        validator.validate_data_view(view)
    for workbook in workbooks:
        validator.validate_workbook(workbook)


def load_config_bundle(path: PathLike) -> LoadedBundle:
    """
    Load one workbook together with the data views and data sources it uses.

    Raises:
        ConfigLoadError: unreadable/unparseable file, missing workbook,
            unnamed or duplicate view/source.
        ConfigValidationError: the parsed bundle fails validation.
    """
    path = Path(path)
    logger.info(f"Loading config bundle: {path}")
    bundle = _parse_model(ConfigBundle, read_config_file(path), path)

    if bundle.workbook is None:
        raise ConfigLoadError("config bundle missing workbook", path=str(path))

    data_views = _index_by_name(bundle.data_views, "data view", path)
    data_sources = _index_by_name(bundle.data_sources, "data source", path)

    try:
        _validate_all([bundle.workbook], data_views, data_sources)
    except ConfigValidationError as e:
        raise e.with_context(path=str(path))

    logger.info(f"Loaded workbook '{bundle.workbook.name}' with {len(data_views)} data views "
                f"and {len(data_sources)} data sources")
    return LoadedBundle(bundle.workbook, data_views, data_sources)


def load_data_sources_bundle(path: PathLike) -> Dict[str, DataSourceConfig]:
    """Load a file holding a `dataSources` list."""
    path = Path(path)
    data = read_config_file(path)
    if not isinstance(data, dict):
        raise ConfigLoadError("data source bundle must be a mapping", path=str(path))

    sources: List[Optional[DataSourceConfig]] = []
    for raw in data.get("dataSources") or []:
        sources.append(None if raw is None else _parse_model(DataSourceConfig, raw, path))
    return _index_by_name(sources, "data source", path)


def _config_files(directory: Path) -> List[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir()
                  if p.is_file() and p.suffix.lower() in CONFIG_SUFFIXES)


def load_all_configs(root: PathLike) -> LoadedConfigs:
    """
    Load every definition under root/workbooks, root/dataViews and root/datasources.

    Each sub-directory is optional. Workbooks are keyed by id (falling back
    to name). The combined set is validated before returning.
    """
    root = Path(root)
    data_sources: Dict[str, DataSourceConfig] = {}
    data_views: Dict[str, DataViewConfig] = {}
    workbooks: Dict[str, WorkbookConfig] = {}

    for file in _config_files(root / "datasources"):
        source = _parse_model(DataSourceConfig, read_config_file(file), file)
        data_sources[source.name] = source

    for file in _config_files(root / "dataViews"):
        view = _parse_model(DataViewConfig, read_config_file(file), file)
        data_views[view.name] = view

    for file in _config_files(root / "workbooks"):
        workbook = _parse_model(WorkbookConfig, read_config_file(file), file)
        workbooks[workbook.id or workbook.name] = workbook

    logger.info(f"Loaded {len(workbooks)} workbooks, {len(data_views)} data views, "
                f"{len(data_sources)} data sources from {root}")
    _validate_all(workbooks.values(), data_views, data_sources)
    return LoadedConfigs(workbooks, data_views, data_sources)
