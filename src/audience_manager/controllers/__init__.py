"""Controllers executing job operations against the workbook and CM360."""

from audience_manager.controllers.audiences import AudiencesController
from audience_manager.controllers.logs import JobLogWriter
from audience_manager.controllers.process import AudienceProcessController

__all__ = ["AudienceProcessController", "AudiencesController", "JobLogWriter"]
