from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BlockType(str, Enum):
    VALUE = "value"
    HEADER = "header"
    MATRIX = "matrix"


class Direction(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


def _unwrap_range(value: Any) -> Any:
    # Bundles may spell a range as "A1:B2" or as {ref: "A1:B2"}
    if isinstance(value, dict):
        return value.get("ref")
    return value


class LabelConfig(BaseModel):
    name: str
    column: str
    type: Optional[str] = None


class DataViewConfig(BaseModel):
    """A named projection of a data source plus its ordered label -> column declarations."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    data_source: Optional[str] = Field(None, alias="dataSource")
    table: Optional[str] = None
    labels: List[LabelConfig] = Field(default_factory=list)

    def label_mapping(self) -> Dict[str, str]:
        return {label.name: label.column for label in self.labels}

    def first_label(self) -> Optional[str]:
        return self.labels[0].name if self.labels else None


class DataSourceConfig(BaseModel):
    name: str
    driver: str = ""
    dsn: str = ""


class BlockConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    type: str = ""
    range: str = ""
    label_range: Optional[str] = Field(None, alias="labelRange")
    data_view: str = Field("", alias="dataView")
    direction: str = ""
    row_limit: int = Field(0, alias="rowLimit")
    insert_after: bool = Field(False, alias="insertAfter")
    label_variable: str = Field("", alias="labelVariable")
    template: bool = False
    sub_blocks: List["BlockConfig"] = Field(default_factory=list, alias="subBlocks")

    @field_validator("range", "label_range", mode="before")
    @classmethod
    def _accept_ref_mapping(cls, value: Any) -> Any:
        return _unwrap_range(value)

    @field_validator("type", "direction", mode="before")
    @classmethod
    def _normalize_keyword(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("data_view", "label_variable", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_vertical(self) -> bool:
        return self.direction in (Direction.VERTICAL, "")


class SheetConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    dynamic: bool = False
    param_label: str = Field("", alias="paramLabel")
    data_view: str = Field("", alias="dataView")
    blocks: List[BlockConfig] = Field(default_factory=list)


class WorkbookConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    template: str = ""
    output_dir: str = Field("", alias="outputDir")
    archive_rule: str = Field("", alias="archiveRule")
    parameters: Dict[str, str] = Field(default_factory=dict)
    sheets: List[SheetConfig] = Field(default_factory=list)

    @field_validator("parameters", mode="before")
    @classmethod
    def _stringify_parameters(cls, value: Any) -> Any:
        # YAML turns `year: 2024` into an int; parameters are always strings
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value or {}


class ConfigBundle(BaseModel):
    """On-disk layout of a single configuration bundle file."""

    model_config = ConfigDict(populate_by_name=True)

    workbook: Optional[WorkbookConfig] = None
    data_views: List[Optional[DataViewConfig]] = Field(default_factory=list, alias="dataViews")
    data_sources: List[Optional[DataSourceConfig]] = Field(default_factory=list, alias="dataSources")


BlockConfig.model_rebuild()
