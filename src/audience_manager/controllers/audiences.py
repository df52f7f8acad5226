"""Loading audiences and reference data from CM360 into the workbook."""

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from audience_manager.api.protocol import CampaignManager
from audience_manager.config.models import AudienceManagerConfig
from audience_manager.jobs.models import AudienceLoadJob, Job
from audience_manager.models.audience import Audience, AudienceRule
from audience_manager.models.remote import (
    Advertiser,
    FloodlightActivity,
    UserDefinedVariableConfiguration,
)
from audience_manager.planning.checksum import ChecksumEngine
from audience_manager.rules.codec import RuleCodec
from audience_manager.sheets.protocol import TableStore
from audience_manager.utils.timestamps import current_date_string

logger = logging.getLogger("audience_manager.controllers.audiences")


class AudiencesController:
    """Fetches remarketing lists and reference data into the workbook."""

    def __init__(
        self,
        store: TableStore,
        campaign_manager: Optional[CampaignManager],
        config: AudienceManagerConfig,
        rule_codec: Optional[RuleCodec] = None,
        checksums: Optional[ChecksumEngine] = None,
    ):
        """Initialize the controller.

        Args:
            store: Workbook access.
            campaign_manager: Account-bound CM360 access (None when only
                :meth:`extract_rules` is used).
            config: Workbook layout and defaults.
            rule_codec: Rule translation (built from config if not provided).
            checksums: Checksum engine (created if not provided).
        """
        self._store = store
        self._cm = campaign_manager
        self._config = config
        self._rule_codec = rule_codec or RuleCodec(
            separator=config.rules.separator, term_type=config.rules.term_type
        )
        self._checksums = checksums or ChecksumEngine()

    # Reference data

    async def fetch_and_output_custom_variables(
        self,
    ) -> list[UserDefinedVariableConfiguration]:
        """Refresh the custom variables sheet (``U1:Report name`` per row)."""
        sheet = self._config.custom_variables
        self._store.clear_defined_range(sheet.sheet_name, sheet.row, sheet.col)

        variables = await self._cm.get_user_defined_variable_configurations()
        output = [
            [f"{variable.variable_type}{sheet.separator}{variable.report_name}"]
            for variable in variables
        ]
        self._store.set_values_in_defined_range(sheet.sheet_name, sheet.row, sheet.col, output)

        logger.info(f"Fetched {len(variables)} custom variable(s)")
        return variables

    async def fetch_and_output_floodlight_activities(self) -> list[FloodlightActivity]:
        """Refresh the floodlight activities sheet (``id, "name (id)"`` per row)."""
        sheet = self._config.floodlights
        self._store.clear_defined_range(sheet.sheet_name, sheet.row, sheet.col)

        activities = await self._cm.get_floodlight_activities()
        output = [
            [activity.id, f"{activity.name} ({activity.id})"] for activity in activities
        ]
        self._store.set_values_in_defined_range(sheet.sheet_name, sheet.row, sheet.col, output)

        logger.info(f"Fetched {len(activities)} floodlight activit(ies)")
        return activities

    async def fetch_and_output_advertisers(self) -> int:
        """Refresh the advertisers sheet page by page.

        The advertiser owning the lists is left out, it cannot be a share
        target.

        Returns:
            Number of advertisers written.
        """
        sheet = self._config.advertisers
        self._store.clear_defined_range(sheet.sheet_name, sheet.row, sheet.col)

        written = 0
        async for page in self._cm.iter_advertisers(sheet.max_results_per_page):
            written += self.output_advertisers(page, self._cm.advertiser_id)

        logger.info(f"Fetched {written} advertiser(s)")
        return written

    def output_advertisers(self, advertisers: list[Advertiser], own_advertiser_id: str) -> int:
        """Append one page of advertisers to the advertisers sheet."""
        sheet = self._config.advertisers
        output = [
            [advertiser.id, f"{advertiser.name} ({advertiser.id})"]
            for advertiser in advertisers
            if advertiser.id != str(own_advertiser_id)
        ]
        if output:
            self._store.append_to_defined_range(sheet.sheet_name, sheet.row, sheet.col, output)
        return len(output)

    async def refresh_reference_data(self, job: Job) -> Job:
        """Refresh custom variables, floodlight activities and advertisers."""
        variables = await self.fetch_and_output_custom_variables()
        activities = await self.fetch_and_output_floodlight_activities()
        advertisers = await self.fetch_and_output_advertisers()

        job.log(
            f"Fetched {len(variables)} custom variable(s), "
            f"{len(activities)} floodlight activit(ies) and "
            f"{advertisers} advertiser(s)"
        )
        return job

    # Audiences

    async def load_audiences(self, job: Job) -> Job:
        """Fetch all remarketing lists and fan them out as load jobs.

        Custom variables and floodlight activities are refreshed on the way,
        they are needed to label rules and floodlights. The Audiences sheet
        is cleared so the load jobs can write their rows.
        """
        remarketing_lists = await self._cm.get_remarketing_lists()
        variables = await self.fetch_and_output_custom_variables()
        activities = await self.fetch_and_output_floodlight_activities()

        for index, remarketing_list in enumerate(remarketing_lists):
            population_rule = remarketing_list.list_population_rule
            floodlight_id = population_rule.floodlight_activity_id if population_rule else None

            audience = Audience(
                id=remarketing_list.id,
                name=remarketing_list.name,
                description=remarketing_list.description or "",
                life_span=remarketing_list.life_span or self._config.audiences.default_life_span,
                floodlight_id=floodlight_id,
                floodlight_name=self.get_floodlight_name_by_id(floodlight_id, activities),
                rules=self._rule_codec.from_population_rule(population_rule, variables),
            )
            job.jobs.append(AudienceLoadJob(index=index, audience=audience))

        sheet = self._config.audiences
        self._store.clear_defined_range(sheet.sheet_name, sheet.row, sheet.col)

        message = f"Fetched {len(remarketing_lists)} audience(s)"
        logger.info(message)
        job.log(message)
        return job

    async def load_audience(self, job: AudienceLoadJob) -> AudienceLoadJob:
        """Fetch the shares of one audience and write its row."""
        audience = job.audience
        if audience.id:
            shares = await self._cm.get_remarketing_list_shares(audience.id)
            audience.shares = [str(share) for share in shares or []]

        sheet = self._config.audiences
        self._store.set_values_in_defined_range(
            sheet.sheet_name,
            sheet.row + job.index,
            sheet.col,
            [self.audience_to_row(audience)],
        )

        job.log(f"Loaded audience '{audience.name}'")
        return job

    def extract_rules(self, job: Job) -> Job:
        """Rewrite the Rules sheet from the JSON snapshots of the Audiences sheet.

        A row whose snapshot cannot be parsed is reported and skipped.
        """
        sheet = self._config.audiences
        rows = self._store.get_range_data(sheet.sheet_name, sheet.row, sheet.col)
        json_col = sheet.cols.json_snapshot

        audiences: list[Audience] = []
        for index, row in enumerate(rows):
            snapshot = row[json_col] if json_col < len(row) else ""
            if snapshot in (None, ""):
                continue
            try:
                audiences.append(Audience.from_json(str(snapshot)))
            except ValidationError as e:
                message = f"Skipping row {sheet.row + index}: malformed audience snapshot"
                logger.warning(f"{message}: {e.error_count()} error(s)")
                job.log(message)

        rules_sheet = self._config.rules
        self._store.clear_defined_range(rules_sheet.sheet_name, rules_sheet.row, rules_sheet.col)

        count = 0
        for audience in audiences:
            count += self.output_audience_rules(audience.id or "", audience.rules)

        job.log(f"Extracted {count} rule(s) from {len(audiences)} audience(s)")
        return job

    def output_audience_rules(self, audience_id: str, rules: list[AudienceRule]) -> int:
        """Append the rule rows of one audience to the Rules sheet."""
        if not rules:
            return 0

        sheet = self._config.rules
        cols = sheet.cols
        separator = self._config.custom_variables.separator
        width = max(cols.model_dump().values()) + 1

        output = []
        for rule in rules:
            row: list = [""] * width
            row[cols.audience_id] = audience_id
            row[cols.group] = rule.group
            row[cols.variable] = f"{rule.variable_name}{separator}{rule.variable_friendly_name}"
            row[cols.operator] = rule.operator
            row[cols.values] = rule.value
            row[cols.negation] = rule.negation
            output.append(row)

        self._store.append_to_defined_range(sheet.sheet_name, sheet.row, sheet.col, output)
        return len(output)

    # Formatting helpers

    @staticmethod
    def get_floodlight_name_by_id(
        floodlight_id: Optional[str],
        activities: Iterable[FloodlightActivity],
    ) -> str:
        for activity in activities:
            if activity.id == floodlight_id:
                return activity.name
        return ""

    def resolve_advertiser_by_id(
        self, advertiser_id: str, names: Optional[dict[str, str]] = None
    ) -> str:
        """Display name of a share target, as listed in the advertisers sheet.

        Unknown advertisers keep their ID so that the share survives the
        next planning pass.
        """
        if names is None:
            names = self._advertiser_names()
        return names.get(
            str(advertiser_id),
            f"{self._config.advertisers.default_name} ({advertiser_id})",
        )

    def get_mapped_shares(self, advertiser_ids: list[str]) -> str:
        """Multi-select display string of share targets, sorted by name."""
        if not advertiser_ids:
            return ""

        names = self._advertiser_names()
        display = sorted(
            self.resolve_advertiser_by_id(advertiser_id, names)
            for advertiser_id in advertiser_ids
        )
        return self._config.multi_select.separator.join(display)

    def audience_to_row(self, audience: Audience) -> list:
        """Build the Audiences sheet row of a fetched audience."""
        cols = self._config.audiences.cols
        width = max(cols.model_dump().values()) + 1

        floodlight = ""
        if audience.floodlight_id:
            floodlight = f"{audience.floodlight_name or ''} ({audience.floodlight_id})"

        row: list = [""] * width
        row[cols.id] = audience.id or ""
        row[cols.name] = audience.name
        row[cols.description] = audience.description
        row[cols.life_span] = audience.life_span
        row[cols.floodlight_id] = floodlight
        row[cols.shares] = self.get_mapped_shares(audience.shares)
        row[cols.status] = f"Fetched ({current_date_string()})"
        row[cols.checksum] = self._checksums.content_checksum(audience)
        row[cols.shares_checksum] = self._checksums.shares_checksum(audience)
        row[cols.json_snapshot] = audience.to_json()
        return row

    def _advertiser_names(self) -> dict[str, str]:
        sheet = self._config.advertisers
        rows = self._store.get_range_data(sheet.sheet_name, sheet.row, sheet.col)
        names: dict[str, str] = {}
        for row in rows:
            if len(row) > max(sheet.id_col, sheet.name_col) and row[sheet.id_col] not in (None, ""):
                names.setdefault(str(row[sheet.id_col]), str(row[sheet.name_col]))
        return names
