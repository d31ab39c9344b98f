import logging
from core.aggregator import aggregate, InventoryAggregator
from models.asset import AssetRecord, ConnectorRef
from rules.rules_loader import load_default_datasource_table


def _collections():
    return {
        "app": [AssetRecord(id="A1", kind="app")],
        "flow": [AssetRecord(id="F1", kind="flow", connectors=(ConnectorRef(api_identifier="shared_teams"),))],
        "bot": [AssetRecord(id="B1", kind="bot", references=("F1",))],
        "reportAsset": [],
    }


def test_end_to_end_bot_flow_scenario(connector_table):
    result = aggregate(_collections(), connector_table)

    assert [a.id for a in result] == ["F1", "B1"]
    flow, bot = result
    assert flow.services == ("Teams",)
    assert bot.services == ("Teams",)
    assert [e.via for e in bot.matched_services["Teams"]] == ["F1"]


def test_aggregate_is_idempotent(connector_table):
    collections = _collections()

    first = aggregate(collections, connector_table)
    second = aggregate(collections, connector_table)

    assert first == second
    # Inputs stay unannotated
    assert all(not a.matched_services for assets in collections.values() for a in assets)


def test_kinds_concatenate_in_fixed_order(connector_table, datasource_table):
    teams = (ConnectorRef(display_label="Teams"),)
    collections = {
        "reportAsset": [AssetRecord(id="R1", kind="reportAsset", connectors=(ConnectorRef(type_hint="SharePointList"),))],
        "bot": [AssetRecord(id="B1", kind="bot", connectors=teams)],
        "flow": [AssetRecord(id="F2", kind="flow", connectors=teams), AssetRecord(id="F1", kind="flow", connectors=teams)],
        "app": [AssetRecord(id="A2", kind="app", connectors=teams), AssetRecord(id="A1", kind="app", connectors=teams)],
    }

    result = aggregate(collections, connector_table, datasource_table)

    assert [a.id for a in result] == ["A2", "A1", "F2", "F1", "B1", "R1"]


def test_report_assets_use_datasource_table(connector_table, datasource_table):
    collections = {
        "reportAsset": [
            AssetRecord(id="R1", kind="reportAsset", connectors=(ConnectorRef(type_hint="ActiveDirectory"),)),
            # Connector-only service, unknown to the data-source table
            AssetRecord(id="R2", kind="reportAsset", connectors=(ConnectorRef(type_hint="Teams"),)),
        ]
    }

    result = aggregate(collections, connector_table, datasource_table)

    assert [a.id for a in result] == ["R1"]
    assert result[0].services == ("Azure AD",)


def test_default_datasource_table_is_used(connector_table):
    collections = {
        "reportAsset": [
            AssetRecord(
                id="R1",
                kind="reportAsset",
                connectors=(ConnectorRef(type_hint="SharePointList", api_identifier="https://contoso.sharepoint.com/sites/hr"),),
            )
        ]
    }

    aggregator = InventoryAggregator(connector_table)
    assert aggregator.datasource_table == load_default_datasource_table()
    assert aggregator.aggregate(collections)[0].services == ("SharePoint",)


def test_missing_and_unknown_kinds(connector_table, caplog):
    collections = {
        "flow": [AssetRecord(id="F1", kind="flow", connectors=(ConnectorRef(display_label="Teams"),))],
        "dashboard": [AssetRecord(id="D1", kind="dashboard", connectors=(ConnectorRef(display_label="Teams"),))],
    }

    with caplog.at_level(logging.WARNING):
        result = aggregate(collections, connector_table)

    assert [a.id for a in result] == ["F1"]
    assert "dashboard" in caplog.text


def test_no_matches_is_an_empty_result(connector_table):
    assert aggregate({"app": [AssetRecord(id="A1", kind="app")]}, connector_table) == []
    assert aggregate({}, connector_table) == []


def test_bot_is_scanned_for_direct_connectors(connector_table):
    collections = {"bot": [AssetRecord(id="B1", kind="bot", connectors=(ConnectorRef(display_label="Outlook"),))]}
    [bot] = aggregate(collections, connector_table)
    assert bot.services == ("Outlook",)
    assert bot.matched_services["Outlook"][0].via is None


def test_explicit_datasource_table_does_not_read_bundled_rules(connector_table, datasource_table, monkeypatch):
    def fail():
        raise OSError("bundled rules unavailable")

    monkeypatch.setattr("core.aggregator.load_default_datasource_table", fail)

    aggregator = InventoryAggregator(connector_table, datasource_table)

    assert aggregator.datasource_table is datasource_table


def test_bundled_datasource_table_is_loaded_on_demand(connector_table, datasource_table, monkeypatch):
    calls = []

    def load():
        calls.append(1)
        return datasource_table

    monkeypatch.setattr("core.aggregator.load_default_datasource_table", load)

    aggregator = InventoryAggregator(connector_table)

    assert calls == [1]
    assert aggregator.datasource_table is datasource_table
