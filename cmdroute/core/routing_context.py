from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Tuple


COMPLEXITY_TIERS = ("standard", "moderate", "advanced")
DEFAULT_DOMAIN = "general"


@dataclass(frozen=True)
class RoutingContext:
    """
    Per-request view of the raw input, derived by the classifier.

    Notes:
    - extracted_flags keeps input order and duplicates; callers treat it as a set.
    - Discarded once the response is composed (only a dict copy lands in history).
    """

    extracted_command: Optional[str] = None
    extracted_flags: Tuple[str, ...] = ()
    complexity_tier: str = "standard"
    domain: str = DEFAULT_DOMAIN
    integration_needs: Tuple[str, ...] = ()
    input_text: str = ""

    @property
    def flag_set(self) -> frozenset[str]:
        return frozenset(self.extracted_flags)

    def with_flags(self, flags: Iterable[str]) -> "RoutingContext":
        extra = tuple(f for f in flags if isinstance(f, str) and f)
        if not extra:
            return self
        return replace(self, extracted_flags=self.extracted_flags + extra)

    def serialize(self) -> str:
        # Values only: field names must never satisfy a trigger keyword.
        parts = [self.extracted_command or ""]
        parts.extend(self.extracted_flags)
        parts.append(self.complexity_tier)
        parts.append(self.domain)
        parts.extend(self.integration_needs)
        parts.append(self.input_text)
        return " ".join(p for p in parts if p)

    def to_dict(self) -> dict[str, Any]:
        return {
            "extracted_command": self.extracted_command,
            "extracted_flags": list(self.extracted_flags),
            "complexity_tier": self.complexity_tier,
            "domain": self.domain,
            "integration_needs": list(self.integration_needs),
            "input_text": self.input_text,
        }
