"""Tests for parsing raw SOAP/REST records into entities."""

from pydantic import TypeAdapter

from sfmc_graph.types.entities import (
    Activity,
    Automation,
    DataExtension,
    FilterActivity,
    Folder,
    ImportActivity,
    Journey,
    SqlActivity,
    TriggeredSend,
)
from sfmc_graph.types.relationships import EntityKind, EntityRef, split_prefixed


class TestSoapEntities:
    """Entities parsed from SOAP Retrieve records."""

    def test_data_extension(self):
        de = DataExtension.from_soap(
            {
                "ObjectID": "D1",
                "CustomerKey": "ORD",
                "Name": "Orders",
                "CategoryID": "12",
                "IsSendable": "true",
                "CreatedDate": "2024-01-01T00:00:00",
            }
        )

        assert de.id == "D1"
        assert de.customer_key == "ORD"
        assert de.folder_id == "12"
        assert de.is_sendable is True
        assert de.folder_path == ""

    def test_data_extension_without_id(self):
        assert DataExtension.from_soap({"Name": "Orphan"}) is None

    def test_data_extension_empty_fields(self):
        de = DataExtension.from_soap({"ObjectID": "D1", "Name": None, "IsSendable": "false"})

        assert de.name == ""
        assert de.is_sendable is False

    def test_folder_parent(self):
        folder = Folder.from_soap({"ID": "5", "Name": "Audiences", "ParentFolder": {"ID": "2"}})
        root = Folder.from_soap({"ID": "2", "Name": "Data Extensions"})

        assert folder.parent_id == "2"
        assert root.parent_id == "0"

    def test_import_definition(self):
        imp = ImportActivity.from_soap(
            {"ObjectID": "I1", "CustomerKey": "IMP", "Name": "Load", "DestinationObject": {"ObjectID": "D1"}}
        )

        assert imp.kind == "Import"
        assert imp.destination_object_id == "D1"
        assert imp.automation_id is None

    def test_filter_activity(self):
        flt = FilterActivity.from_soap({"ObjectID": "F1", "Name": "Active", "DataSourceObjectID": "D1"})

        assert flt.kind == "Filter"
        assert flt.data_source_object_id == "D1"

    def test_triggered_send_keyed_by_customer_key(self):
        ts = TriggeredSend.from_soap(
            {
                "CustomerKey": "TS_WELCOME",
                "Name": "Welcome",
                "Email": {"ID": "987"},
                "SendClassification": {"CustomerKey": "Default Commercial"},
                "DataExtensionObjectID": "D1",
            }
        )

        assert ts.id == "TS_WELCOME"
        assert ts.email_id == "987"
        assert ts.send_classification == "Default Commercial"
        assert ts.data_extension_id == "D1"

    def test_triggered_send_plain_classification(self):
        ts = TriggeredSend.from_soap({"CustomerKey": "TS1", "SendClassification": "Transactional"})

        assert ts.send_classification == "Transactional"

    def test_triggered_send_without_key(self):
        assert TriggeredSend.from_soap({"Name": "No key"}) is None


class TestRestEntities:
    """Entities parsed from REST items."""

    def test_automation_status_from_id(self):
        automation = Automation.from_rest({"id": "A1", "name": "Nightly", "statusId": 2, "categoryId": 77})

        assert automation.status == "Running"
        assert automation.folder_id == "77"

    def test_automation_numeric_status(self):
        assert Automation.from_rest({"id": "A1", "status": 3}).status == "Paused"
        assert Automation.from_rest({"id": "A1", "status": 42}).status == "Unknown (42)"

    def test_automation_text_status(self):
        assert Automation.from_rest({"id": "A1", "status": "Scheduled"}).status == "Scheduled"

    def test_automation_steps_not_serialized(self):
        automation = Automation.from_rest({"id": "A1", "steps": [{"activities": []}]})

        assert automation.steps == [{"activities": []}]
        assert "steps" not in automation.model_dump()

    def test_sql_activity(self):
        sql = SqlActivity.from_rest(
            {
                "queryDefinitionId": "Q1",
                "name": "Copy",
                "targetId": "D1",
                "targetKey": "ORD",
                "queryText": "SELECT * FROM Orders",
            },
            "A1",
        )

        assert sql.id == "Q1"
        assert sql.kind == "SQL"
        assert sql.automation_id == "A1"
        assert sql.target_id == "D1"
        assert sql.target_key == "ORD"

    def test_journey_version_default(self):
        assert Journey.from_rest({"id": "J1"}).version == 1
        assert Journey.from_rest({"id": "J1", "version": "3"}).version == 3
        assert Journey.from_rest({"id": "J1", "version": "x"}).version == 1

    def test_journey_single_trigger_object(self):
        journey = Journey.from_rest({"id": "J1", "triggers": {"metaData": {"dataExtensionId": "D1"}}})

        assert [t.data_extension_id for t in journey.entry_triggers] == ["D1"]

    def test_activity_union_discriminates(self):
        adapter = TypeAdapter(Activity)

        activity = adapter.validate_python({"kind": "Filter", "id": "F1"})

        assert isinstance(activity, FilterActivity)


class TestEntityRef:
    def test_prefixes(self):
        assert EntityRef.data_extension("D1").prefixed == "de_D1"
        assert EntityRef.automation("A1").prefixed == "auto_A1"
        assert EntityRef.journey("J1").prefixed == "journey_J1"
        assert EntityRef.triggered_send("T1").prefixed == "ts_T1"
        assert str(EntityRef.activity("Q1")) == "activity_Q1"

    def test_hashable(self):
        assert len({EntityRef.data_extension("D1"), EntityRef.data_extension("D1")}) == 1

    def test_split_prefixed(self):
        assert split_prefixed("de_D1") == (EntityKind.DATA_EXTENSION, "D1")
        assert split_prefixed("activity_a_b") == (EntityKind.ACTIVITY, "a_b")
        assert split_prefixed("plain") == (None, "plain")
        assert split_prefixed("other_x") == (None, "other_x")
