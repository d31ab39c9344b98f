import os
import sys
import pytest

# Ensure project root is on sys.path for imports like `core.*`
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from models.pattern import PatternTable


@pytest.fixture
def connector_table():
    return PatternTable.from_mapping(
        [
            ("Teams", ["shared_teams", "teams"]),
            ("SharePoint", ["shared_sharepointonline", "sharepoint"]),
            ("Office 365 Users", ["office365users"]),
            ("Outlook", ["shared_office365", "office365", "outlook"]),
        ]
    )


@pytest.fixture
def datasource_table():
    return PatternTable.from_mapping(
        [
            ("SharePoint", ["sharepointlist", "sharepoint"]),
            ("Azure AD", ["activedirectory"]),
        ],
        name="datasources",
    )
