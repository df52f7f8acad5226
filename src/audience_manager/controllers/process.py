"""Planning and applying audience mutations."""

import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from audience_manager.api.protocol import CampaignManager
from audience_manager.config.models import AudienceManagerConfig
from audience_manager.exceptions import ApiError
from audience_manager.jobs.models import AudienceProcessJob, Job
from audience_manager.models.audience import Audience, AudienceRule
from audience_manager.models.enums import Action
from audience_manager.models.remote import RemarketingList
from audience_manager.planning.planner import ActionPlanner
from audience_manager.rules.codec import RuleCodec
from audience_manager.sheets.protocol import Rows, TableStore
from audience_manager.utils.timestamps import current_date_string

logger = logging.getLogger("audience_manager.controllers.process")


def _cell(row: list, col: int) -> Any:
    return row[col] if col < len(row) else ""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_int(value: Any, default: int) -> int:
    text = _text(value).strip()
    if not text:
        return default
    return int(float(text))


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _text(value).strip().lower() == "true"


class AudienceProcessController:
    """Turns edited audience rows into process jobs and executes them."""

    def __init__(
        self,
        store: TableStore,
        campaign_manager: CampaignManager,
        config: AudienceManagerConfig,
        planner: Optional[ActionPlanner] = None,
        rule_codec: Optional[RuleCodec] = None,
    ):
        """Initialize the controller.

        Args:
            store: Workbook access.
            campaign_manager: Account-bound CM360 access.
            config: Workbook layout and defaults.
            planner: Action planner (created if not provided).
            rule_codec: Rule translation (built from config if not provided).
        """
        self._store = store
        self._cm = campaign_manager
        self._config = config
        self._planner = planner or ActionPlanner()
        self._rule_codec = rule_codec or RuleCodec(
            separator=config.rules.separator, term_type=config.rules.term_type
        )
        self._rules: Optional[Rows] = None

    @property
    def planner(self) -> ActionPlanner:
        return self._planner

    def process_audiences(self, job: Job) -> Job:
        """Plan every audience row and attach one child job per changed row.

        Rows without a name are ignored. A row that cannot be turned into an
        audience becomes a child already in ERROR, the other rows are still
        planned.
        """
        # Rule rows may have been rewritten since the last pass
        self._rules = None
        sheet = self._config.audiences
        rows = self._store.get_range_data(sheet.sheet_name, sheet.row, sheet.col)

        planned = 0
        for index, row in enumerate(rows):
            if not _text(_cell(row, sheet.cols.name)).strip():
                continue

            try:
                child = self.create_audience_process_job(row, index)
            except (ValidationError, ValueError) as e:
                child = self._failed_row_job(index, e)

            if child is not None:
                job.jobs.append(child)
                planned += 1

        message = f"Planned {planned} of {len(rows)} audience row(s)"
        logger.info(message)
        job.log(message)
        return job

    def create_audience_process_job(
        self, row: list, index: int
    ) -> Optional[AudienceProcessJob]:
        """Build the process job of one row.

        Args:
            row: Cells of the Audiences row.
            index: Offset of the row from the first data row.

        Returns:
            The job, or None when the audience is unchanged.

        Raises:
            ValidationError: If the row does not describe a valid audience.
            ValueError: If a numeric cell cannot be parsed.
        """
        cols = self._config.audiences.cols
        audience_id = _text(_cell(row, cols.id)).strip()

        audience = Audience(
            id=audience_id or None,
            name=_text(_cell(row, cols.name)),
            description=_text(_cell(row, cols.description)),
            life_span=_parse_int(
                _cell(row, cols.life_span), self._config.audiences.default_life_span
            ),
            floodlight_id=self.extract_floodlight_id(_text(_cell(row, cols.floodlight_id))),
            rules=self.get_audience_rules(audience_id),
            shares=self.extract_shared_advertiser_ids(_text(_cell(row, cols.shares))),
        )

        actions = self._planner.plan_actions(
            _text(_cell(row, cols.checksum)),
            _text(_cell(row, cols.shares_checksum)),
            audience,
        )
        if not actions:
            return None

        return AudienceProcessJob(index=index, audience=audience, actions=actions)

    def extract_floodlight_id(self, value: str) -> Optional[str]:
        """Extract the ID from a ``"Name (id)"`` cell (last match wins)."""
        matches = re.findall(self._config.floodlights.id_and_name_regex, value)
        return str(matches[-1]) if matches else None

    def extract_shared_advertiser_ids(self, value: str) -> list[str]:
        """Extract the IDs from a ``"Name (1)##Other (2)"`` multi-select cell."""
        return [
            str(match)
            for match in re.findall(self._config.multi_select.separator_regex, value)
        ]

    def get_all_rules(self) -> Rows:
        """Rows of the Rules sheet, read once per controller."""
        if self._rules is None:
            sheet = self._config.rules
            self._rules = [
                row
                for row in self._store.get_range_data(sheet.sheet_name, sheet.row, sheet.col)
                if any(_text(value) for value in row)
            ]
        return self._rules

    def get_audience_rules(self, audience_id: str) -> list[AudienceRule]:
        """Rules of one audience, in sheet order.

        Rows missing a variable, operator or value are ignored.
        """
        if not audience_id:
            return []

        cols = self._config.rules.cols
        separator = self._config.custom_variables.separator
        rules: list[AudienceRule] = []

        for row in self.get_all_rules():
            if _text(_cell(row, cols.audience_id)).strip() != audience_id:
                continue

            variable_name, _, friendly_name = _text(_cell(row, cols.variable)).partition(
                separator
            )
            operator = _text(_cell(row, cols.operator))
            value = _text(_cell(row, cols.values))
            if not (variable_name and operator and value):
                continue

            rules.append(
                AudienceRule(
                    group=_parse_int(_cell(row, cols.group), 0),
                    variable_name=variable_name,
                    variable_friendly_name=friendly_name,
                    operator=operator,
                    value=value,
                    negation=_parse_bool(_cell(row, cols.negation)),
                )
            )

        return rules

    def build_remarketing_list(self, audience: Audience) -> RemarketingList:
        """Remote resource of an audience (without ID)."""
        return RemarketingList(
            name=audience.name,
            description=audience.description,
            life_span=audience.life_span,
            list_population_rule=self._rule_codec.to_population_rule(
                audience.floodlight_id, audience.rules
            ),
            active=self._config.audiences.default_state,
            list_source=self._config.audiences.list_source,
        )

    async def process_audience(self, job: AudienceProcessJob) -> AudienceProcessJob:
        """Apply the planned actions of one audience.

        Each checksum is written as soon as its half of the audience is
        pushed. On failure the error is written to the status cell and
        re-raised; the checksum of the failed half stays stale so that half
        is planned again on the next run.
        """
        audience = job.audience
        logger.info(f"Processing audience '{audience.name}'")

        try:
            remarketing_list = self.build_remarketing_list(audience)

            if job.has_action(Action.UPDATE):
                logger.debug(f"Updating '{audience.name}' ({audience.id})")
                remarketing_list.id = audience.id
                await self._cm.update_remarketing_list(remarketing_list)
            elif job.has_action(Action.CREATE):
                logger.debug(f"Creating '{audience.name}'")
                result = await self._cm.create_remarketing_list(remarketing_list)
                if not result.id:
                    raise ApiError(f"No ID returned when creating '{audience.name}'")
                self._on_created(job, result.id)

            cols = self._config.audiences.cols
            # Content is settled, a shares failure must not re-plan it
            self._write_cell(
                job, cols.checksum, self._planner.checksums.content_checksum(audience)
            )

            if job.has_action(Action.UPDATE_SHARES):
                self._require_id(audience)
                logger.debug(f"Updating shares of '{audience.name}'")
                resource = await self._cm.get_remarketing_list_shares_resource(audience.id)
                resource.shared_advertiser_ids = list(audience.shares)
                await self._cm.update_remarketing_list_shares(audience.id, resource)
                self._write_cell(
                    job, cols.shares_checksum, self._planner.checksums.shares_checksum(audience)
                )

            self._write_cell(job, cols.json_snapshot, audience.to_json())
            self._write_cell(job, cols.status, f"Success ({current_date_string()})")
        except Exception as e:
            message = str(e) or type(e).__name__
            self._write_cell(
                job,
                self._config.audiences.cols.status,
                f"Error! {message} ({current_date_string()})",
            )
            job.log(f"Error while processing audience '{audience.name}'!")
            raise

        job.log(f"Processed audience '{audience.name}' successfully!")
        return job

    def _on_created(self, job: AudienceProcessJob, new_id: str) -> None:
        """Record the ID assigned by CM360 on the row and its rules."""
        audience = job.audience
        self._write_cell(job, self._config.audiences.cols.id, new_id)

        # Rules reference the audience by the placeholder ID typed in the row
        if audience.id:
            replaced = self._store.find_and_replace(
                self._config.rules.sheet_name, audience.id, new_id
            )
            logger.debug(f"Replaced ID '{audience.id}' in {replaced} rule row(s)")

        audience.id = new_id

    def _failed_row_job(self, index: int, error: Exception) -> Job:
        sheet = self._config.audiences
        message = f"Invalid audience in row {sheet.row + index}: {error}"
        logger.warning(message)

        job = Job(index=index)
        job.fail(message)
        job.log(message)
        self._store.set_cell_value(
            sheet.sheet_name,
            sheet.row + index,
            sheet.col + sheet.cols.status,
            f"Error! {message} ({current_date_string()})",
        )
        return job

    def _write_cell(self, job: Job, col: int, value: Any) -> None:
        sheet = self._config.audiences
        self._store.set_cell_value(
            sheet.sheet_name, sheet.row + job.index, sheet.col + col, value
        )

    @staticmethod
    def _require_id(audience: Audience) -> None:
        if not audience.id:
            raise ApiError(f"Audience '{audience.name}' has no ID, cannot update shares")
