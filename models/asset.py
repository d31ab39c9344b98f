from dataclasses import dataclass, field
from typing import Dict, Tuple, Optional
from models.evidence import MatchEvidence

# Asset kinds, in report order
APP = "app"
FLOW = "flow"
BOT = "bot"
REPORT_ASSET = "reportAsset"

KIND_ORDER: Tuple[str, ...] = (APP, FLOW, BOT, REPORT_ASSET)


def _as_text(value) -> str:
    """Coerce a loosely-typed field value to a stripped string ("" when absent)."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    if isinstance(value, bool):
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class ConnectorRef:
    """One external dependency of an asset, as described by its source service."""
    type_hint: str = ""
    api_identifier: str = ""
    display_label: str = ""

    def __post_init__(self):
        # Sources hand us None, numbers or nested objects; keep only text
        object.__setattr__(self, "type_hint", _as_text(self.type_hint))
        object.__setattr__(self, "api_identifier", _as_text(self.api_identifier))
        object.__setattr__(self, "display_label", _as_text(self.display_label))

    def fields(self) -> Tuple[Tuple[str, str], ...]:
        return (
            ("type_hint", self.type_hint),
            ("api_identifier", self.api_identifier),
            ("display_label", self.display_label),
        )

    def is_empty(self) -> bool:
        return not (self.type_hint or self.api_identifier or self.display_label)


@dataclass(frozen=True)
class AssetRecord:
    """An inventoried app, flow, bot or reporting asset."""
    id: str
    kind: str
    connectors: Tuple[ConnectorRef, ...] = ()
    references: Tuple[str, ...] = () # Flow ids, only carried by bots
    name: Optional[str] = None
    source: Optional[str] = None # Admin source the record came from
    # Written only by the correlator; evidence per canonical service name
    matched_services: Dict[str, Tuple[MatchEvidence, ...]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "connectors", tuple(self.connectors))
        object.__setattr__(self, "references", tuple(self.references))

    @property
    def services(self) -> Tuple[str, ...]:
        return tuple(self.matched_services.keys())

    def has_matches(self) -> bool:
        return bool(self.matched_services)
