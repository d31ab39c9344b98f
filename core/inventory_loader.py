"""Maps raw inventory records onto AssetRecord/ConnectorRef.

Each admin source names the same things differently (``displayName`` vs
``DisplayName`` vs ``name``), nests connectors as lists or as dictionaries
keyed by connection id, and leaves fields out freely. The field lists below
are tried in order and the first non-empty value is used.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import logging
from models.asset import AssetRecord, ConnectorRef, APP, FLOW, BOT, REPORT_ASSET

logger = logging.getLogger(__name__)

ID_FIELDS = ["id", "name", "appId", "flowId", "botId", "objectId", "Id"]
NAME_FIELDS = ["displayName", "DisplayName", "properties.displayName", "name", "Name", "title"]
SOURCE_FIELDS = ["source", "environment", "environmentName", "workspace", "workspaceName"]

CONNECTOR_LIST_FIELDS = [
    "connectors",
    "connectionReferences",
    "properties.connectionReferences",
    "Connections",
    "connections",
]
CONNECTOR_TYPE_FIELDS = ["type", "connectorType", "kind", "tier"]
CONNECTOR_API_FIELDS = ["apiId", "api.id", "api.name", "connectorId", "id", "apiName"]
CONNECTOR_LABEL_FIELDS = ["displayName", "DisplayName", "api.displayName", "name", "label"]

REFERENCE_FIELDS = ["references", "flowIds", "flows", "workflowIds", "workflows", "actions"]
REFERENCE_ID_FIELDS = ["flowId", "workflowId", "id", "name"]

DATASOURCE_LIST_FIELDS = ["datasources", "dataSources", "DataSources", "connectors"]
DATASOURCE_TYPE_FIELDS = ["datasourceType", "dataSourceType", "type", "kind"]
DATASOURCE_PATH_FIELDS = [
    "connectionDetails.url",
    "connectionDetails.path",
    "connectionDetails.server",
    "connectionDetails.sharePointSiteUrl",
    "url",
    "path",
    "server",
    "connectionString",
]
DATASOURCE_LABEL_FIELDS = ["name", "displayName", "datasourceId", "id"]

# Top-level document keys for each kind
COLLECTION_KEYS: Dict[str, List[str]] = {
    APP: ["app", "apps", "powerApps", "applications"],
    FLOW: ["flow", "flows", "powerAutomate", "workflows"],
    BOT: ["bot", "bots", "copilots", "agents"],
    REPORT_ASSET: ["reportAsset", "reportAssets", "reports", "datasets", "powerBI"],
}


def _lookup(record: Any, path: str) -> Any:
    """Resolve a dotted path through nested mappings."""
    value = record
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def first_present(record: Any, fields: Sequence[str], default: Any = None) -> Any:
    """
    Return the first non-empty value among prioritized field names.

    Args:
        record: A raw record (anything not a mapping yields the default)
        fields: Field names or dotted paths, highest priority first
        default: Value returned when every field is missing or empty

    Returns:
        The first value that is not None, "" or an empty collection
    """
    if not isinstance(record, Mapping):
        return default
    for name in fields:
        value = _lookup(record, name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, (list, tuple, dict)) and not value:
            continue
        return value
    return default


def _entries(value: Any) -> List[Any]:
    """Normalize a list-or-dict-keyed-by-id container into a list."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        entries = []
        for key, entry in value.items():
            # Keyed collections often carry the id only as the key
            if isinstance(entry, Mapping) and "id" not in entry:
                entry = dict(entry, id=key)
            entries.append(entry)
        return entries
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _text(value: Any) -> str:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return ""
    return str(value)


def connector_from_raw(raw: Any) -> ConnectorRef:
    """Map one raw connector descriptor. Bare strings are treated as API ids."""
    if isinstance(raw, str):
        return ConnectorRef(api_identifier=raw)
    return ConnectorRef(
        type_hint=_text(first_present(raw, CONNECTOR_TYPE_FIELDS)),
        api_identifier=_text(first_present(raw, CONNECTOR_API_FIELDS)),
        display_label=_text(first_present(raw, CONNECTOR_LABEL_FIELDS)),
    )


def datasource_from_raw(raw: Any) -> ConnectorRef:
    """Map one raw reporting data-source descriptor."""
    if isinstance(raw, str):
        return ConnectorRef(type_hint=raw)
    return ConnectorRef(
        type_hint=_text(first_present(raw, DATASOURCE_TYPE_FIELDS)),
        api_identifier=_text(first_present(raw, DATASOURCE_PATH_FIELDS)),
        display_label=_text(first_present(raw, DATASOURCE_LABEL_FIELDS)),
    )


def _reference_ids(raw: Any) -> List[str]:
    ids = []
    for entry in _entries(first_present(raw, REFERENCE_FIELDS)):
        ref_id = entry if isinstance(entry, str) else first_present(entry, REFERENCE_ID_FIELDS)
        ref_id = _text(ref_id).strip()
        if ref_id:
            ids.append(ref_id)
    return ids


def asset_from_raw(raw: Any, kind: str, source: Optional[str] = None) -> Optional[AssetRecord]:
    """
    Map one raw record of the given kind to an AssetRecord.

    Returns None when no identifier can be found.
    """
    asset_id = _text(first_present(raw, ID_FIELDS)).strip()
    if not asset_id:
        logger.debug(f"Skipping {kind} record without an identifier")
        return None

    if kind == REPORT_ASSET:
        connectors = [datasource_from_raw(d) for d in _entries(first_present(raw, DATASOURCE_LIST_FIELDS))]
    else:
        connectors = [connector_from_raw(c) for c in _entries(first_present(raw, CONNECTOR_LIST_FIELDS))]

    return AssetRecord(
        id=asset_id,
        kind=kind,
        connectors=tuple(connectors),
        references=tuple(_reference_ids(raw)) if kind == BOT else (),
        name=_text(first_present(raw, NAME_FIELDS)) or None,
        source=_text(first_present(raw, SOURCE_FIELDS)) or source,
    )


def load_collection(records: Iterable[Any], kind: str, source: Optional[str] = None) -> List[AssetRecord]:
    assets = []
    for raw in records or []:
        asset = asset_from_raw(raw, kind, source=source)
        if asset is not None:
            assets.append(asset)
    return assets


def load_inventory(document: Mapping[str, Any], source: Optional[str] = None) -> Dict[str, List[AssetRecord]]:
    """
    Map an inventory document into the kind -> assets mapping the aggregator takes.

    Args:
        document: JSON object with app/flow/bot/report lists under any of the
            keys in COLLECTION_KEYS
        source: Default source label for records that carry none

    Returns:
        Dictionary with an entry (possibly empty) for every asset kind
    """
    if not isinstance(document, Mapping):
        raise ValueError(f"Inventory document must be a JSON object, got {type(document).__name__}")

    collections: Dict[str, List[AssetRecord]] = {}
    for kind, keys in COLLECTION_KEYS.items():
        records = _entries(first_present(document, keys, default=[]))
        collections[kind] = load_collection(records, kind, source=source)
        logger.debug(f"Loaded {len(collections[kind])} {kind} records")
    return collections
