from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from models.asset import ConnectorRef


@dataclass(frozen=True)
class MatchEvidence:
    """Why an asset was classified as depending on a service."""
    service: str
    matched_key: str # The substring that triggered the match
    matched_field: Optional[str] = None # ConnectorRef field that contained it
    connector: Optional["ConnectorRef"] = None
    via: Optional[str] = None # Referenced asset id, for inherited matches

    def inherited_via(self, asset_id: str) -> "MatchEvidence":
        """Copy of this evidence tagged as inherited through asset_id."""
        return MatchEvidence(
            service=self.service,
            matched_key=self.matched_key,
            matched_field=self.matched_field,
            connector=self.connector,
            via=asset_id,
        )
