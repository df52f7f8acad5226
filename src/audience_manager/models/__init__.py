"""Domain models for the audience manager."""

from audience_manager.models.audience import Audience, AudienceRule
from audience_manager.models.enums import Action, JobName, JobStatus, JobType
from audience_manager.models.remote import (
    Advertiser,
    FloodlightActivity,
    ListPopulationClause,
    ListPopulationRule,
    ListPopulationTerm,
    RemarketingList,
    RemarketingListShare,
    UserDefinedVariableConfiguration,
    UserProfile,
)

__all__ = [
    "Action",
    "Advertiser",
    "Audience",
    "AudienceRule",
    "FloodlightActivity",
    "JobName",
    "JobStatus",
    "JobType",
    "ListPopulationClause",
    "ListPopulationRule",
    "ListPopulationTerm",
    "RemarketingList",
    "RemarketingListShare",
    "UserDefinedVariableConfiguration",
    "UserProfile",
]
