from dataclasses import dataclass
from typing import Iterable, List, Tuple, Optional


@dataclass(frozen=True)
class ServicePattern:
    """Maps case-insensitive substring keys onto one canonical service name."""
    service: str
    keys: Tuple[str, ...]

    def __post_init__(self):
        if not self.service:
            raise ValueError("ServicePattern requires a service name")
        raw_keys = (self.keys,) if isinstance(self.keys, str) else tuple(self.keys or ())
        # Connector fields are stripped before matching, so keys must be too
        keys = tuple(str(k).strip().lower() for k in raw_keys)
        if not keys or any(not k for k in keys):
            raise ValueError(f"ServicePattern '{self.service}' needs at least one non-empty key")
        object.__setattr__(self, "keys", keys)


@dataclass(frozen=True)
class PatternTable:
    """Ordered, immutable set of service patterns. Earlier patterns win ties."""
    patterns: Tuple[ServicePattern, ...] = ()
    name: str = "connectors"

    def __post_init__(self):
        object.__setattr__(self, "patterns", tuple(self.patterns))

    @classmethod
    def from_mapping(cls, mapping, name: str = "connectors") -> "PatternTable":
        """Build a table from {service: [keys]} pairs, keeping their order."""
        items = mapping.items() if hasattr(mapping, "items") else mapping
        return cls(
            patterns=tuple(ServicePattern(service=service, keys=keys) for service, keys in items),
            name=name,
        )

    @property
    def services(self) -> List[str]:
        return [p.service for p in self.patterns]

    def get(self, service: str) -> Optional[ServicePattern]:
        for pattern in self.patterns:
            if pattern.service == service:
                return pattern
        return None

    def restricted_to(self, services: Iterable[str]) -> "PatternTable":
        """Sub-table keeping only the given services, in this table's order."""
        wanted = set(services)
        return PatternTable(
            patterns=tuple(p for p in self.patterns if p.service in wanted),
            name=self.name,
        )

    def __len__(self) -> int:
        return len(self.patterns)

    def __iter__(self):
        return iter(self.patterns)
