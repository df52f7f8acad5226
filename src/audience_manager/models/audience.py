"""Audience definitions as edited in the workbook."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AudienceRule(BaseModel):
    """A single targeting condition of an audience.

    Rules sharing the same ``group`` end up in the same population clause.
    ``value`` may hold several sub-values joined by the rules separator.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    group: int = Field(default=0, ge=0)
    variable_name: str
    variable_friendly_name: str = ""
    operator: str
    value: str
    negation: bool = False

    @field_validator("variable_friendly_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class Audience(BaseModel):
    """A named targeting definition (a CM360 remarketing list)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    name: str
    description: str = ""
    life_span: int
    floodlight_id: Optional[str] = None
    floodlight_name: Optional[str] = None
    rules: list[AudienceRule] = Field(default_factory=list)
    shares: list[str] = Field(default_factory=list)

    @field_validator("id", "floodlight_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, value):
        return "" if value is None else value

    @field_validator("rules", mode="before")
    @classmethod
    def _rules_default(cls, value):
        return [] if value is None else value

    @field_validator("shares", mode="before")
    @classmethod
    def _shares_as_strings(cls, value):
        if value is None:
            return []
        return [str(share) for share in value]

    def to_json(self) -> str:
        """Serialize to the JSON snapshot stored in the workbook."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str) -> "Audience":
        """Parse an audience from its JSON snapshot.

        Args:
            data: JSON string produced by :meth:`to_json`.

        Returns:
            The parsed Audience.
        """
        return cls.model_validate_json(data)
