"""Typed SFMC entity records.

Raw SOAP/REST records are parsed into these models immediately after each
API call. Each ``from_soap``/``from_rest`` returns None for records without an
id so callers can skip them.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..core.record_paths import first_text

# Entry trigger field priority: first non-empty wins
ENTRY_ID_PATHS = [
    "arguments.dataExtensionId",
    "dataExtensionId",
    "metaData.dataExtensionId",
]
ENTRY_NAME_PATHS = [
    "arguments.dataExtensionName",
    "dataExtensionName",
    "metaData.dataExtensionName",
]

# Automation status ID to name mapping
AUTOMATION_STATUS_MAP = {
    -1: "Error",
    0: "Building",
    1: "Ready",
    2: "Running",
    3: "Paused",
    4: "Stopped",
    5: "Scheduled",
    6: "Awaiting Trigger",
    7: "InactiveTrigger",
    8: "Skipped",
}


def _text(value: Any) -> str:
    """Raw string field; SOAP leaves come back as str or None."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


class DataExtension(BaseModel):
    """SFMC Data Extension."""

    id: str = Field(description="ObjectID")
    customer_key: str = Field(default="", description="CustomerKey")
    name: str = Field(default="")
    folder_id: Optional[str] = Field(default=None, description="CategoryID")
    is_sendable: bool = Field(default=False)
    created_date: Optional[str] = Field(default=None)
    modified_date: Optional[str] = Field(default=None)
    folder_path: str = Field(default="", description="Derived folder path")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_soap(cls, record: dict[str, Any]) -> Optional["DataExtension"]:
        entity_id = first_text(record, ["ObjectID"])
        if not entity_id:
            return None
        return cls(
            id=entity_id,
            customer_key=_text(record.get("CustomerKey")),
            name=_text(record.get("Name")),
            folder_id=first_text(record, ["CategoryID"]),
            is_sendable=_bool(record.get("IsSendable")),
            created_date=first_text(record, ["CreatedDate"]),
            modified_date=first_text(record, ["ModifiedDate"]),
        )


class Folder(BaseModel):
    """SFMC folder (DataFolder)."""

    id: str = Field(description="Folder ID")
    name: str = Field(default="")
    parent_id: Optional[str] = Field(default="0", description="Parent folder ID, '0' for root")
    content_type: Optional[str] = Field(default=None)

    @classmethod
    def from_soap(cls, record: dict[str, Any]) -> Optional["Folder"]:
        entity_id = first_text(record, ["ID"])
        if not entity_id:
            return None
        return cls(
            id=entity_id,
            name=_text(record.get("Name")),
            parent_id=first_text(record, ["ParentFolder.ID"]) or "0",
            content_type=first_text(record, ["ContentType"]),
        )


class ActivityBase(BaseModel):
    """Fields shared by every automation activity."""

    id: str = Field(description="Activity ID")
    name: str = Field(default="")
    automation_id: Optional[str] = Field(default=None, description="Owning automation")
    created_date: Optional[str] = Field(default=None)
    modified_date: Optional[str] = Field(default=None)


class SqlActivity(ActivityBase):
    """SQL Query Activity."""

    kind: Literal["SQL"] = "SQL"
    target_id: Optional[str] = Field(default=None, description="Target DE ObjectID")
    target_key: Optional[str] = Field(default=None, description="Target DE CustomerKey")
    query_text: str = Field(default="")

    @classmethod
    def from_rest(cls, item: dict[str, Any], automation_id: Optional[str] = None) -> Optional["SqlActivity"]:
        entity_id = first_text(item, ["queryDefinitionId", "id"])
        if not entity_id:
            return None
        return cls(
            id=entity_id,
            name=_text(item.get("name")),
            automation_id=automation_id,
            target_id=first_text(item, ["targetDataExtensionId", "targetId"]),
            target_key=first_text(item, ["targetKey"]),
            query_text=_text(item.get("queryText")),
            created_date=first_text(item, ["createdDate"]),
            modified_date=first_text(item, ["modifiedDate"]),
        )


class ImportActivity(ActivityBase):
    """Import Definition."""

    kind: Literal["Import"] = "Import"
    customer_key: str = Field(default="")
    destination_object_id: Optional[str] = Field(default=None, description="Destination DE ObjectID")

    @classmethod
    def from_soap(cls, record: dict[str, Any]) -> Optional["ImportActivity"]:
        entity_id = first_text(record, ["ObjectID"])
        if not entity_id:
            return None
        return cls(
            id=entity_id,
            name=_text(record.get("Name")),
            customer_key=_text(record.get("CustomerKey")),
            destination_object_id=first_text(record, ["DestinationObject.ObjectID"]),
            created_date=first_text(record, ["CreatedDate"]),
            modified_date=first_text(record, ["ModifiedDate"]),
        )


class FilterActivity(ActivityBase):
    """Filter Activity."""

    kind: Literal["Filter"] = "Filter"
    data_source_object_id: Optional[str] = Field(default=None, description="Source DE ObjectID")

    @classmethod
    def from_soap(cls, record: dict[str, Any]) -> Optional["FilterActivity"]:
        entity_id = first_text(record, ["ObjectID"])
        if not entity_id:
            return None
        return cls(
            id=entity_id,
            name=_text(record.get("Name")),
            data_source_object_id=first_text(record, ["DataSourceObjectID"]),
            created_date=first_text(record, ["CreatedDate"]),
            modified_date=first_text(record, ["ModifiedDate"]),
        )


Activity = Annotated[Union[SqlActivity, ImportActivity, FilterActivity], Field(discriminator="kind")]


class Automation(BaseModel):
    """SFMC Automation with the activities it owns."""

    id: str = Field(description="Automation ID")
    name: str = Field(default="")
    status: Optional[str] = Field(default=None)
    folder_id: Optional[str] = Field(default=None, description="categoryId")
    created_date: Optional[str] = Field(default=None)
    modified_date: Optional[str] = Field(default=None)
    activities: list[Activity] = Field(default_factory=list)
    steps: list[dict[str, Any]] = Field(default_factory=list, exclude=True)
    folder_path: str = Field(default="", description="Derived folder path")

    @classmethod
    def from_rest(cls, item: dict[str, Any]) -> Optional["Automation"]:
        entity_id = first_text(item, ["id"])
        if not entity_id:
            return None

        status = item.get("status")
        if status is None:
            status_id = item.get("statusId")
            status = AUTOMATION_STATUS_MAP.get(status_id) if status_id is not None else None
        elif isinstance(status, int):
            status = AUTOMATION_STATUS_MAP.get(status, f"Unknown ({status})")

        steps = item.get("steps")
        return cls(
            id=entity_id,
            name=_text(item.get("name")),
            status=_text(status) or None,
            folder_id=first_text(item, ["categoryId"]),
            created_date=first_text(item, ["createdDate"]),
            modified_date=first_text(item, ["modifiedDate", "lastSavedDate"]),
            steps=steps if isinstance(steps, list) else [],
        )


class EntryTrigger(BaseModel):
    """Journey entry trigger reduced to its Data Extension reference."""

    id: Optional[str] = Field(default=None)
    type: Optional[str] = Field(default=None)
    data_extension_id: Optional[str] = Field(default=None)
    data_extension_name: Optional[str] = Field(default=None)

    @classmethod
    def from_rest(cls, raw: dict[str, Any]) -> "EntryTrigger":
        return cls(
            id=first_text(raw, ["id", "key"]),
            type=first_text(raw, ["type"]),
            data_extension_id=first_text(raw, ENTRY_ID_PATHS),
            data_extension_name=first_text(raw, ENTRY_NAME_PATHS),
        )


class Journey(BaseModel):
    """SFMC Journey (interaction)."""

    id: str = Field(description="Journey ID")
    name: str = Field(default="")
    status: Optional[str] = Field(default=None)
    version: int = Field(default=1)
    folder_id: Optional[str] = Field(default=None, description="categoryId")
    created_date: Optional[str] = Field(default=None)
    modified_date: Optional[str] = Field(default=None)
    entry_triggers: list[EntryTrigger] = Field(default_factory=list)
    folder_path: str = Field(default="", description="Derived folder path")

    @staticmethod
    def raw_triggers(item: dict[str, Any]) -> list[dict[str, Any]]:
        """Entry descriptors from ``triggers`` or, failing that, ``entryEvents``."""
        for key in ("triggers", "entryEvents"):
            value = item.get(key)
            if isinstance(value, dict):
                value = [value]
            if value:
                return [trigger for trigger in value if isinstance(trigger, dict)]
        return []

    @classmethod
    def from_rest(cls, item: dict[str, Any]) -> Optional["Journey"]:
        entity_id = first_text(item, ["id"])
        if not entity_id:
            return None

        try:
            version = int(item.get("version") or 1)
        except (TypeError, ValueError):
            version = 1

        return cls(
            id=entity_id,
            name=_text(item.get("name")),
            status=first_text(item, ["status"]),
            version=version,
            folder_id=first_text(item, ["categoryId"]),
            created_date=first_text(item, ["createdDate"]),
            modified_date=first_text(item, ["modifiedDate"]),
            entry_triggers=[EntryTrigger.from_rest(raw) for raw in cls.raw_triggers(item)],
        )


class TriggeredSend(BaseModel):
    """Triggered Send Definition, keyed by CustomerKey."""

    id: str = Field(description="CustomerKey")
    name: str = Field(default="")
    email_id: Optional[str] = Field(default=None)
    send_classification: Optional[str] = Field(default=None)
    created_date: Optional[str] = Field(default=None)
    data_extension_id: Optional[str] = Field(default=None, description="DataExtensionObjectID")

    @classmethod
    def from_soap(cls, record: dict[str, Any]) -> Optional["TriggeredSend"]:
        entity_id = first_text(record, ["CustomerKey"])
        if not entity_id:
            return None

        # SendClassification comes back either as a plain value or a nested object
        send_classification = record.get("SendClassification")
        if isinstance(send_classification, dict):
            send_classification = first_text(
                send_classification, ["CustomerKey", "ObjectID", "Name"]
            )

        return cls(
            id=entity_id,
            name=_text(record.get("Name")),
            email_id=first_text(record, ["Email.ID"]),
            send_classification=_text(send_classification) or None,
            created_date=first_text(record, ["CreatedDate"]),
            data_extension_id=first_text(record, ["DataExtensionObjectID"]),
        )
