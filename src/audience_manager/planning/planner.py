"""Derivation of remote mutations from stored checksums."""

import logging
from typing import Optional

from audience_manager.models.audience import Audience
from audience_manager.models.enums import Action
from audience_manager.planning.checksum import ChecksumEngine

logger = logging.getLogger("audience_manager.planning.planner")


class ActionPlanner:
    """Decides which actions an audience row needs."""

    def __init__(self, checksums: Optional[ChecksumEngine] = None):
        """Initialize the planner.

        Args:
            checksums: Checksum engine (a default one is created if not
                provided).
        """
        self.checksums = checksums or ChecksumEngine()

    def plan_actions(
        self,
        stored_content_checksum: Optional[str],
        stored_shares_checksum: Optional[str],
        audience: Audience,
    ) -> set[Action]:
        """Compare stored checksums with the current audience.

        A missing content checksum means the audience was never created. A
        missing shares checksum stands for an empty sharing list. Shares are
        evaluated independently of content.

        Args:
            stored_content_checksum: Content checksum persisted on the row.
            stored_shares_checksum: Shares checksum persisted on the row.
            audience: Audience as currently edited.

        Returns:
            The actions to perform. Empty when the audience is unchanged.
        """
        actions: set[Action] = set()

        if not stored_content_checksum:
            actions.add(Action.CREATE)
        elif stored_content_checksum != self.checksums.content_checksum(audience):
            actions.add(Action.UPDATE)

        stored_shares = stored_shares_checksum or self.checksums.empty_shares_checksum()
        if stored_shares != self.checksums.shares_checksum(audience):
            actions.add(Action.UPDATE_SHARES)

        if actions:
            logger.debug(
                f"Audience '{audience.name}' needs "
                f"{', '.join(action.value for action in Action.ordered(actions))}"
            )
        return actions
