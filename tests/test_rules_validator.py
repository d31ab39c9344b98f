from core.rules_validator import (
    detect_duplicate_services,
    detect_key_overlaps,
    detect_shadowed_keys,
    print_validation_report,
)
from models.pattern import PatternTable
from rules.rules_loader import load_rules


def test_detect_shadowed_keys():
    table = PatternTable.from_mapping(
        [
            ("Outlook", ["office365"]),
            ("Office 365 Users", ["office365users"]),
        ]
    )

    assert detect_shadowed_keys(table) == [("Office 365 Users", "office365users", "Outlook", "office365")]


def test_specific_first_order_has_no_shadowing():
    table = PatternTable.from_mapping(
        [
            ("Office 365 Users", ["office365users"]),
            ("Outlook", ["office365"]),
        ]
    )
    assert detect_shadowed_keys(table) == []


def test_detect_key_overlaps_and_duplicates():
    table = PatternTable.from_mapping(
        [
            ("SharePoint", ["sharepoint"]),
            ("OneDrive", ["sharepoint", "onedrive"]),
            ("SharePoint", ["spo"]),
        ]
    )

    assert detect_key_overlaps(table) == {"sharepoint": ["SharePoint", "OneDrive"]}
    assert detect_duplicate_services(table) == {"SharePoint": [0, 2]}


def test_bundled_tables_are_clean(capsys):
    rule_set = load_rules()
    for table in (rule_set.connectors, rule_set.datasources):
        assert detect_shadowed_keys(table) == []
        assert detect_key_overlaps(table) == {}
        assert print_validation_report(table) is True
    assert "PATTERN TABLE VALIDATION REPORT" in capsys.readouterr().out
