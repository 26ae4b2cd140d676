"""Tests for post-crawl validation and cleanup."""

from sfmc_graph.crawler.context import CrawlContext
from sfmc_graph.crawler.validation import ValidationReport, clean_names, validate_and_clean
from sfmc_graph.types.entities import (
    Automation,
    DataExtension,
    Folder,
    ImportActivity,
    Journey,
    SqlActivity,
    TriggeredSend,
)
from sfmc_graph.types.relationships import EdgeType, EntityRef


class TestCleanNames:
    """Name repair."""

    def test_data_extension_falls_back_to_key(self):
        ctx = CrawlContext()
        ctx.data_extensions["D1"] = DataExtension(id="D1", name="", customer_key=" ORD_KEY ")

        report = clean_names(ctx)

        assert ctx.data_extensions["D1"].name == "ORD_KEY"
        assert ctx.data_extensions["D1"].customer_key == "ORD_KEY"
        assert report.names_filled == 1

    def test_data_extension_without_key_gets_placeholder(self):
        ctx = CrawlContext()
        ctx.data_extensions["D1"] = DataExtension(id="D1", name="   ")

        clean_names(ctx)

        assert ctx.data_extensions["D1"].name == "Unnamed_DataExtension_D1"

    def test_import_falls_back_to_key(self):
        ctx = CrawlContext()
        ctx.import_activities["I1"] = ImportActivity(id="I1", customer_key="IMP_KEY")

        clean_names(ctx)

        assert ctx.import_activities["I1"].name == "IMP_KEY"

    def test_placeholders_for_unkeyed_entities(self):
        ctx = CrawlContext()
        ctx.automations["A1"] = Automation(id="A1")
        ctx.journeys["J1"] = Journey(id="J1")
        ctx.sql_activities["Q1"] = SqlActivity(id="Q1")
        ctx.folders["F1"] = Folder(id="F1")

        clean_names(ctx)

        assert ctx.automations["A1"].name == "Unnamed_Automation_A1"
        assert ctx.journeys["J1"].name == "Unnamed_Journey_J1"
        assert ctx.sql_activities["Q1"].name == "Unnamed_SQL_Q1"
        assert ctx.folders["F1"].name == "Unnamed_Folder_F1"

    def test_triggered_send_uses_its_key(self):
        ctx = CrawlContext()
        ctx.triggered_sends["TS_KEY"] = TriggeredSend(id="TS_KEY", name="")

        clean_names(ctx)

        assert ctx.triggered_sends["TS_KEY"].name == "TS_KEY"

    def test_names_trimmed(self):
        ctx = CrawlContext()
        ctx.automations["A1"] = Automation(id="A1", name="  Nightly Load  ")

        report = clean_names(ctx)

        assert ctx.automations["A1"].name == "Nightly Load"
        assert report.names_filled == 0


class TestValidateAndClean:
    """Edge filtering."""

    def _ctx(self) -> CrawlContext:
        ctx = CrawlContext()
        ctx.data_extensions["D1"] = DataExtension(id="D1", name="Orders")
        ctx.automations["A1"] = Automation(id="A1", name="Nightly")
        ctx.register_activity(SqlActivity(id="Q1", name="Load", automation_id="A1"))
        return ctx

    def test_dangling_edges_dropped(self):
        ctx = self._ctx()
        ctx.link(EntityRef.automation("A1"), EntityRef.activity("Q1"), EdgeType.CONTAINS)
        ctx.link(EntityRef.activity("Q1"), EntityRef.data_extension("D404"), EdgeType.TARGETS)
        ctx.link(EntityRef.journey("J404"), EntityRef.data_extension("D1"), EdgeType.ENTRY_SOURCE)

        edges = validate_and_clean(ctx)

        assert [(e.source.id, e.target.id) for e in edges] == [("A1", "Q1")]
        assert ctx.stats["validation"].dropped_edges == 2

    def test_duplicates_removed(self):
        ctx = self._ctx()
        for _ in range(3):
            ctx.link(EntityRef.activity("Q1"), EntityRef.data_extension("D1"), EdgeType.TARGETS)
        ctx.link(EntityRef.data_extension("D1"), EntityRef.activity("Q1"), EdgeType.USES, inferred=True)

        edges = validate_and_clean(ctx)

        assert len(edges) == 2
        assert ctx.stats["validation"].duplicate_edges == 2

    def test_same_endpoints_different_type_kept(self):
        ctx = self._ctx()
        ctx.link(EntityRef.data_extension("D1"), EntityRef.activity("Q1"), EdgeType.USES)
        ctx.link(EntityRef.data_extension("D1"), EntityRef.activity("Q1"), EdgeType.FILTERS_FROM)

        assert len(validate_and_clean(ctx)) == 2

    def test_kind_mismatch_is_dangling(self):
        ctx = self._ctx()
        ctx.link(EntityRef.journey("A1"), EntityRef.data_extension("D1"), EdgeType.ENTRY_SOURCE)

        assert validate_and_clean(ctx) == []

    def test_every_kept_endpoint_exists(self):
        ctx = self._ctx()
        ctx.link(EntityRef.automation("A1"), EntityRef.activity("Q1"), EdgeType.CONTAINS)
        ctx.link(EntityRef.activity("Q1"), EntityRef.data_extension("D1"), EdgeType.TARGETS)
        ctx.link(EntityRef.activity("Q2"), EntityRef.data_extension("D1"), EdgeType.TARGETS)

        validate_and_clean(ctx)

        assert ctx.edges
        for edge in ctx.edges:
            assert ctx.node_exists(edge.source)
            assert ctx.node_exists(edge.target)

    def test_report_stored(self):
        ctx = self._ctx()

        validate_and_clean(ctx)

        assert isinstance(ctx.stats["validation"], ValidationReport)
