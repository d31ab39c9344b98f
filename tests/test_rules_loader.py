import pytest
from rules.rules_loader import load_pattern_table, load_rules, load_default_datasource_table
from core.classifier import classify
from models.asset import ConnectorRef
from models.pattern import PatternTable, ServicePattern


def test_load_pattern_table_keeps_file_order(tmp_path):
    path = tmp_path / "connectors.yaml"
    path.write_text(
        """
- service: Office365
  keys: [o365_generic]
- service: SharePoint
  keys:
    - SharePoint
"""
    )

    table = load_pattern_table(str(path))

    assert table.services == ["Office365", "SharePoint"]
    # Keys are lower-cased
    assert table.get("SharePoint").keys == ("sharepoint",)


def test_invalid_entries_are_skipped(tmp_path, caplog):
    path = tmp_path / "connectors.yaml"
    path.write_text(
        """
- service: Teams
  keys: [teams]
- service: Broken
- keys: [orphan]
- service: Empty
  keys: [""]
- service: Planner
  keys: planner
"""
    )

    table = load_pattern_table(str(path))

    assert table.services == ["Teams", "Planner"]
    assert "Skipping invalid pattern" in caplog.text


def test_empty_file_gives_empty_table(tmp_path):
    path = tmp_path / "connectors.yaml"
    path.write_text("")
    assert len(load_pattern_table(str(path))) == 0


def test_non_list_file_is_rejected(tmp_path):
    path = tmp_path / "connectors.yaml"
    path.write_text("Teams: [teams]\n")
    with pytest.raises(ValueError):
        load_pattern_table(str(path))


def test_load_rules_from_directory(tmp_path):
    (tmp_path / "connectors.yaml").write_text("- service: Teams\n  keys: [teams]\n")
    (tmp_path / "datasources.yaml").write_text("- service: SharePoint\n  keys: [sharepointlist]\n")

    rule_set = load_rules(str(tmp_path))

    assert rule_set.connectors.services == ["Teams"]
    assert rule_set.datasources.services == ["SharePoint"]
    assert rule_set.datasources.name == "datasources"


def test_missing_rules_directory_raises(tmp_path):
    with pytest.raises(OSError):
        load_rules(str(tmp_path / "nowhere"))


def test_bundled_tables_resolve_office365_variants():
    rule_set = load_rules()
    table = rule_set.connectors

    assert classify(ConnectorRef(api_identifier="shared_office365users"), table).service == "Office 365 Users"
    assert classify(ConnectorRef(api_identifier="shared_office365"), table).service == "Outlook"
    assert classify(ConnectorRef(display_label="SharePoint"), table).service == "SharePoint"
    assert classify(ConnectorRef(api_identifier="shared_teams"), table).service == "Teams"


def test_bundled_datasource_table_shares_service_names():
    rule_set = load_rules()
    default_table = load_default_datasource_table()
    assert set(default_table.services) <= set(rule_set.connectors.services) | {"Azure AD"}
    personal = ConnectorRef(type_hint="SharePointList", api_identifier="https://contoso-my.sharepoint.com/personal/a")
    assert classify(personal, default_table).service == "OneDrive"


def test_service_pattern_rejects_empty_keys():
    with pytest.raises(ValueError):
        ServicePattern(service="Teams", keys=())
    with pytest.raises(ValueError):
        ServicePattern(service="Teams", keys=("teams", " "))


def test_restricted_table_keeps_order():
    table = PatternTable.from_mapping([("A", ["a"]), ("B", ["b"]), ("C", ["c"])])
    assert table.restricted_to({"C", "A"}).services == ["A", "C"]
