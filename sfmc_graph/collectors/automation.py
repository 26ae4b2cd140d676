"""Automation collector for SFMC.

Collects automations with the SQL, Import and Filter activities they own.
SQL queries are fetched per automation over REST. Import Definitions and
Filter Activities are retrieved once over SOAP and attributed to
automations through the activity ids listed in each automation's steps.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from ..core.record_paths import find_activities_by_type, first_text
from ..inference.sql_parser import parse_query_text_for_sources
from ..types.entities import (
    Automation,
    FilterActivity,
    ImportActivity,
    SqlActivity,
)
from ..types.relationships import EdgeType, EntityRef
from .base_collector import BaseCollector, gather_bounded

logger = logging.getLogger(__name__)

A = TypeVar("A", ImportActivity, FilterActivity)

# Step activity type ids (objectTypeId)
IMPORT_TYPE_ID = 43
FILTER_TYPE_ID = 303

IMPORT_PROPERTIES = ["ObjectID", "CustomerKey", "Name", "DestinationObject.ObjectID"]
FILTER_PROPERTIES = ["ObjectID", "Name", "DataSourceObjectID"]


class AutomationCollector(BaseCollector[Automation]):
    """Collector for SFMC Automations and their activities."""

    name = "automations"
    description = "automations"
    object_type = "Automation"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._imports: dict[str, ImportActivity] = {}
        self._filters: dict[str, FilterActivity] = {}

    async def fetch_data(self) -> list[dict[str, Any]]:
        """Fetch the automation list plus every Import and Filter definition."""
        automations = await self._rest.get_items("/automation/v1/automations")

        imports = await self._soap.retrieve("ImportDefinition", IMPORT_PROPERTIES)
        self._imports = self._index(imports, ImportActivity.from_soap)

        filters = await self._soap.retrieve("FilterActivity", FILTER_PROPERTIES)
        self._filters = self._index(filters, FilterActivity.from_soap)

        logger.debug(
            f"Fetched {len(automations)} automations, {len(self._imports)} imports, "
            f"{len(self._filters)} filters"
        )
        return automations

    @staticmethod
    def _index(
        records: list[dict[str, Any]],
        parse: Callable[[dict[str, Any]], Optional[A]],
    ) -> dict[str, A]:
        indexed: dict[str, A] = {}
        for record in records:
            activity = parse(record)
            if activity is not None:
                indexed[activity.id] = activity
        return indexed

    async def enrich_data(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Fetch each automation's queries (and steps if needed) concurrently."""
        await gather_bounded(
            [self._enrich_item(item) for item in items],
            self._config.max_concurrent,
        )
        return items

    async def _enrich_item(self, item: dict[str, Any]) -> None:
        automation_id = first_text(item, ["id"])
        if not automation_id:
            return

        item["queries"] = await self._rest.get_items(
            "/automation/v1/queries",
            {"automationId": automation_id},
        )

        # Steps are only needed to attribute imports/filters
        if not item.get("steps") and (self._imports or self._filters):
            detail = await self._rest.get_json(f"/automation/v1/automations/{automation_id}")
            if isinstance(detail, dict):
                item["steps"] = detail.get("steps") or []

    def transform_data(self, items: list[dict[str, Any]]) -> list[Automation]:
        automations = []
        for item in items:
            automation = Automation.from_rest(item)
            if automation is None:
                continue

            for raw in item.get("queries") or []:
                sql = SqlActivity.from_rest(raw, automation.id)
                if sql is not None:
                    automation.activities.append(sql)

            self._attach_step_activities(automation, item, IMPORT_TYPE_ID, self._imports)
            self._attach_step_activities(automation, item, FILTER_TYPE_ID, self._filters)

            automations.append(automation)

        self._log_skipped(len(items), len(automations))
        return automations

    def _attach_step_activities(
        self,
        automation: Automation,
        item: dict[str, Any],
        type_id: int,
        index: dict[str, A],
    ) -> None:
        seen = {activity.id for activity in automation.activities}
        for step_activity in find_activities_by_type(item, type_id):
            object_id = first_text(step_activity, ["activityObjectId"])
            activity = index.get(object_id) if object_id else None
            if activity is None or activity.id in seen:
                continue
            seen.add(activity.id)
            automation.activities.append(activity.model_copy(update={"automation_id": automation.id}))

    def store(self, records: list[Automation]) -> None:
        for automation in records:
            self.ctx.automations[automation.id] = automation
            for activity in automation.activities:
                if self.ctx.get_activity(activity.id) is None:
                    self.ctx.register_activity(activity)

        # Definitions no automation step points at are kept as standalone activities
        standalone = 0
        for activity in [*self._imports.values(), *self._filters.values()]:
            if self.ctx.get_activity(activity.id) is None:
                self.ctx.register_activity(activity)
                standalone += 1
        if standalone:
            logger.debug(f"{standalone} import/filter definition(s) not attached to an automation")

    async def extract_relationships(self, records: list[Automation]) -> None:
        for automation in records:
            auto_ref = EntityRef.automation(automation.id)
            for activity in automation.activities:
                self.ctx.link(auto_ref, EntityRef.activity(activity.id), EdgeType.CONTAINS)

        for sql in self.ctx.sql_activities.values():
            self._link_sql(sql)
        for imp in self.ctx.import_activities.values():
            self._link_import(imp)
        for flt in self.ctx.filter_activities.values():
            self._link_filter(flt)

    def _link_sql(self, sql: SqlActivity) -> None:
        des = self.ctx.data_extensions
        target = des.get(sql.target_id) if sql.target_id else None
        if target is None and sql.target_key:
            target = self.ctx.find_data_extension_by_key(sql.target_key)
        if target is not None:
            self.ctx.link(
                EntityRef.activity(sql.id),
                EntityRef.data_extension(target.id),
                EdgeType.TARGETS,
            )

        for edge in parse_query_text_for_sources(sql, des.values()):
            self.ctx.add_edge(edge)

    def _link_import(self, imp: ImportActivity) -> None:
        if imp.destination_object_id and imp.destination_object_id in self.ctx.data_extensions:
            self.ctx.link(
                EntityRef.activity(imp.id),
                EntityRef.data_extension(imp.destination_object_id),
                EdgeType.IMPORTS,
            )

    def _link_filter(self, flt: FilterActivity) -> None:
        if flt.data_source_object_id and flt.data_source_object_id in self.ctx.data_extensions:
            self.ctx.link(
                EntityRef.data_extension(flt.data_source_object_id),
                EntityRef.activity(flt.id),
                EdgeType.FILTERS_FROM,
            )
