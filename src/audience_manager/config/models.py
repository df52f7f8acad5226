"""Pydantic configuration models for the audience manager.

Sheet positions are 1-based (as in the spreadsheet UI); column indexes inside
a row are 0-based offsets from the sheet's first data column.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from audience_manager.config.defaults import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_SCOPE,
    DEFAULT_API_VERSION,
    DEFAULT_LIFE_SPAN,
    DEFAULT_LIST_SOURCE,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_TERM_TYPE,
    MAX_CONCURRENCY_CEILING,
)


class CellRef(BaseModel):
    """Position of a single cell."""

    row: int = Field(ge=1)
    col: int = Field(ge=1)


class AccountConfig(BaseModel):
    """CM360 account the workbook is bound to.

    When the IDs are not configured they are read from the account sheet.
    """

    network_id: Optional[str] = None
    advertiser_id: Optional[str] = None
    advertisers_filter: list[str] = Field(default_factory=list)
    sheet_name: str = "Client Setup"
    network_id_cell: CellRef = Field(default_factory=lambda: CellRef(row=2, col=3))
    advertiser_id_cell: CellRef = Field(default_factory=lambda: CellRef(row=3, col=3))


class AudienceColumns(BaseModel):
    """Column offsets of an audience row."""

    id: int = 0
    name: int = 1
    description: int = 2
    life_span: int = 3
    floodlight_id: int = 4
    shares: int = 5
    status: int = 6
    checksum: int = 7
    shares_checksum: int = 8
    json_snapshot: int = 9


class AudiencesSheetConfig(BaseModel):
    """Layout of the Audiences sheet and list defaults."""

    sheet_name: str = "Audiences"
    row: int = Field(default=2, ge=1)
    col: int = Field(default=1, ge=1)
    cols: AudienceColumns = Field(default_factory=AudienceColumns)
    default_state: bool = True
    list_source: str = DEFAULT_LIST_SOURCE
    default_life_span: int = Field(default=DEFAULT_LIFE_SPAN, ge=1)


class RuleColumns(BaseModel):
    """Column offsets of a rule row."""

    audience_id: int = 0
    group: int = 1
    variable: int = 2
    operator: int = 3
    values: int = 4
    negation: int = 5


class RulesSheetConfig(BaseModel):
    """Layout of the Rules sheet and the rule value separator."""

    sheet_name: str = "Rules"
    term_type: str = DEFAULT_TERM_TYPE
    separator: str = ","
    row: int = Field(default=2, ge=1)
    col: int = Field(default=1, ge=1)
    cols: RuleColumns = Field(default_factory=RuleColumns)


class CustomVariablesSheetConfig(BaseModel):
    """Reference sheet of custom variables (``U1:Report name``)."""

    sheet_name: str = "aux"
    row: int = Field(default=2, ge=1)
    col: int = Field(default=1, ge=1)
    separator: str = ":"


class FloodlightsSheetConfig(BaseModel):
    """Reference sheet of floodlight activities."""

    sheet_name: str = "floodlights"
    id_and_name_regex: str = r"\((\d+)\)"
    row: int = Field(default=2, ge=1)
    col: int = Field(default=1, ge=1)


class AdvertisersSheetConfig(BaseModel):
    """Reference sheet of advertisers that lists can be shared with."""

    sheet_name: str = "advertisers"
    row: int = Field(default=2, ge=1)
    col: int = Field(default=1, ge=1)
    id_col: int = 0
    name_col: int = 1
    max_results_per_page: int = Field(default=100, ge=1, le=1000)
    default_name: str = "MISSING"


class MultiSelectConfig(BaseModel):
    """Encoding of multi-select cells (``Name (1)##Other (2)``)."""

    separator: str = "##"
    separator_regex: str = r"\((\d+)\)#?#?"


class LogSheetConfig(BaseModel):
    """Sheet receiving job logs."""

    sheet_name: str = "Log"
    row: int = Field(default=1, ge=1)
    col: int = Field(default=1, ge=1)


class RunnerConfig(BaseModel):
    """Job runner settings."""

    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENCY, ge=1, le=MAX_CONCURRENCY_CEILING
    )


class ApiConfig(BaseModel):
    """Remote API client settings."""

    base_url: str = DEFAULT_API_BASE_URL
    scope: str = DEFAULT_API_SCOPE
    version: str = DEFAULT_API_VERSION
    retry_attempts: int = Field(default=3, ge=0, le=10)
    retry_delay_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)


class AudienceManagerConfig(BaseModel):
    """Root configuration model."""

    account: AccountConfig = Field(default_factory=AccountConfig)
    audiences: AudiencesSheetConfig = Field(default_factory=AudiencesSheetConfig)
    rules: RulesSheetConfig = Field(default_factory=RulesSheetConfig)
    custom_variables: CustomVariablesSheetConfig = Field(
        default_factory=CustomVariablesSheetConfig
    )
    floodlights: FloodlightsSheetConfig = Field(default_factory=FloodlightsSheetConfig)
    advertisers: AdvertisersSheetConfig = Field(default_factory=AdvertisersSheetConfig)
    multi_select: MultiSelectConfig = Field(default_factory=MultiSelectConfig)
    logging: LogSheetConfig = Field(default_factory=LogSheetConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = ConfigDict(extra="ignore")  # Ignore unknown fields in config file
