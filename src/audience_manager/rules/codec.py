"""Translation between flat rule rows and nested population rules.

In the workbook every rule is one row tagged with a group number. On the
remote side a list population rule is a list of clauses, each holding a list
of terms. Rules of the same group become the terms of one clause, and a rule
value holding several separated sub-values becomes one term per sub-value.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from audience_manager.config.defaults import DEFAULT_TERM_TYPE
from audience_manager.models.audience import AudienceRule
from audience_manager.models.remote import (
    ListPopulationClause,
    ListPopulationRule,
    ListPopulationTerm,
    UserDefinedVariableConfiguration,
)

logger = logging.getLogger("audience_manager.rules.codec")


class RuleCodec:
    """Converts between :class:`AudienceRule` rows and a population rule."""

    def __init__(self, separator: str = ",", term_type: str = DEFAULT_TERM_TYPE):
        """Initialize the codec.

        Args:
            separator: Separator of sub-values inside a rule value.
            term_type: Term type set on every generated term.
        """
        if not separator:
            raise ValueError("Rule value separator must not be empty")
        self.separator = separator
        self.term_type = term_type

    def to_population_rule(
        self,
        floodlight_id: Optional[str],
        rules: Iterable[AudienceRule],
    ) -> ListPopulationRule:
        """Build the nested population rule of an audience.

        Clauses are ordered by ascending group number. Terms inside a clause
        keep the order of the rules they come from. Sub-values are not
        stripped.

        Args:
            floodlight_id: Floodlight activity the audience is tied to.
            rules: Flat rules of the audience.

        Returns:
            The population rule. ``list_population_clauses`` is left unset
            when there are no rules.
        """
        groups: dict[int, list[ListPopulationTerm]] = defaultdict(list)

        for rule in rules:
            for value in rule.value.split(self.separator):
                groups[rule.group].append(
                    ListPopulationTerm(
                        variable_name=rule.variable_name,
                        type=self.term_type,
                        operator=rule.operator,
                        value=value,
                        negation=rule.negation,
                    )
                )

        population_rule = ListPopulationRule(floodlight_activity_id=floodlight_id)
        if groups:
            population_rule.list_population_clauses = [
                ListPopulationClause(terms=groups[group]) for group in sorted(groups)
            ]
        return population_rule

    def from_population_rule(
        self,
        rule: Optional[ListPopulationRule],
        custom_variables: Iterable[UserDefinedVariableConfiguration] = (),
    ) -> list[AudienceRule]:
        """Flatten a population rule into rule rows.

        Every term becomes one rule tagged with the position of its clause.
        Clauses without terms are skipped and do not take a position.

        Args:
            rule: Population rule fetched from the API (may be None).
            custom_variables: Variable configurations used to resolve the
                friendly name of each variable.

        Returns:
            Flat rules in clause order.
        """
        if rule is None or not rule.list_population_clauses:
            return []

        friendly_names = {
            variable.variable_type.lower(): variable.report_name
            for variable in custom_variables
        }

        rules: list[AudienceRule] = []
        group = 0
        for clause in rule.list_population_clauses:
            if not clause.terms:
                continue
            for term in clause.terms:
                rules.append(
                    AudienceRule(
                        group=group,
                        variable_name=term.variable_name,
                        variable_friendly_name=friendly_names.get(
                            term.variable_name.lower(), ""
                        ),
                        operator=term.operator,
                        value=term.value,
                        negation=term.negation,
                    )
                )
            group += 1

        logger.debug(f"Flattened {group} clause(s) into {len(rules)} rule(s)")
        return rules
