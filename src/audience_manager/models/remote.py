"""Campaign Manager 360 resources exchanged with the remote API.

Field names follow the DFA Reporting API (camelCase on the wire); unknown
fields returned by the API are kept so that a fetched resource can be sent
back unchanged.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RemoteModel(BaseModel):
    """Base for API resources."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_payload(self) -> dict:
        """Dump the resource as an API request body."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ListPopulationTerm(RemoteModel):
    """A single condition inside a population clause."""

    variable_name: str
    type: str = "CUSTOM_VARIABLE_TERM"
    operator: str
    value: str
    negation: bool = False


class ListPopulationClause(RemoteModel):
    """A group of terms."""

    terms: Optional[list[ListPopulationTerm]] = None


class ListPopulationRule(RemoteModel):
    """Nested rule structure of a remarketing list."""

    floodlight_activity_id: Optional[str] = None
    list_population_clauses: Optional[list[ListPopulationClause]] = None

    @field_validator("floodlight_activity_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return None if value is None or value == "" else str(value)


class RemarketingList(RemoteModel):
    """A CM360 remarketing list."""

    id: Optional[str] = None
    advertiser_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    life_span: Optional[int] = None
    list_population_rule: Optional[ListPopulationRule] = None
    active: Optional[bool] = None
    list_source: Optional[str] = None

    @field_validator("id", "advertiser_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return None if value is None else str(value)


class RemarketingListShare(RemoteModel):
    """Sharing settings of a remarketing list."""

    remarketing_list_id: Optional[str] = None
    shared_advertiser_ids: list[str] = Field(default_factory=list)

    @field_validator("remarketing_list_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return None if value is None else str(value)

    @field_validator("shared_advertiser_ids", mode="before")
    @classmethod
    def _ids_as_strings(cls, value):
        return [str(item) for item in value or []]


class UserDefinedVariableConfiguration(RemoteModel):
    """A floodlight custom variable (e.g. ``U1``) and its report name."""

    variable_type: str
    report_name: str = ""


class FloodlightActivity(RemoteModel):
    """A floodlight activity that audiences can be tied to."""

    id: str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value)


class Advertiser(RemoteModel):
    """An advertiser audiences can be shared with."""

    id: str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value)


class UserProfile(RemoteModel):
    """A CM360 user profile."""

    profile_id: str
    account_id: str

    @field_validator("profile_id", "account_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value)
