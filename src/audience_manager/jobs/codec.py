"""Serialization of job trees across the invocation boundary."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from audience_manager.exceptions import JobDecodeError
from audience_manager.jobs.models import AudienceLoadJob, AudienceProcessJob, Job
from audience_manager.models.enums import JobType

logger = logging.getLogger("audience_manager.jobs.codec")


class JobCodec:
    """Encodes jobs to JSON and decodes them back into their variant.

    Decoding switches on the ``type`` field; an absent or unknown tag yields
    a generic :class:`Job`. Status, error and log timestamps are restored as
    serialized, and child jobs go through the same switch recursively.
    """

    def to_dict(self, job: Job) -> dict[str, Any]:
        """Convert a job (and its children) to JSON-compatible data.

        Args:
            job: Job to convert.

        Returns:
            Dictionary carrying the discriminator, base and variant fields.
        """
        data = job.model_dump(mode="json", by_alias=True, exclude={"jobs"})
        data["jobs"] = [self.to_dict(child) for child in job.jobs]
        return data

    def dumps(self, job: Job) -> str:
        """Serialize a job to a JSON string."""
        return json.dumps(self.to_dict(job), ensure_ascii=False)

    def from_dict(self, data: dict[str, Any]) -> Job:
        """Rebuild a job from its dictionary form.

        Args:
            data: Result of :meth:`to_dict` (possibly from another process).

        Returns:
            An instance of the variant named by ``type``.

        Raises:
            JobDecodeError: If the data does not describe a valid job.
        """
        if not isinstance(data, dict):
            raise JobDecodeError(f"Expected a JSON object, got {type(data).__name__}")

        fields = dict(data)
        tag = fields.pop("type", None) or JobType.GENERIC.value
        children = fields.pop("jobs", None) or []

        try:
            job_type = JobType(tag)
        except ValueError:
            logger.debug(f"Unknown job type {tag!r}, decoding as generic job")
            job_type = JobType.GENERIC

        if job_type == JobType.AUDIENCE_LOAD:
            job_cls = AudienceLoadJob
        elif job_type == JobType.AUDIENCE_PROCESS:
            job_cls = AudienceProcessJob
        else:
            job_cls = Job
            fields.pop("audience", None)
            fields.pop("actions", None)

        try:
            job = job_cls.model_validate(fields)
        except ValidationError as e:
            raise JobDecodeError(f"Invalid {job_type.value} job: {e}") from e

        job.jobs = [self.from_dict(child) for child in children]
        return job

    def loads(self, payload: str) -> Job:
        """Deserialize a job from a JSON string.

        Raises:
            JobDecodeError: If the payload is not valid JSON or not a job.
        """
        try:
            data = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as e:
            raise JobDecodeError(f"Malformed job payload: {e}") from e
        return self.from_dict(data)
