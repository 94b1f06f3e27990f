from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple

from .routing_context import DEFAULT_DOMAIN, RoutingContext


_COMMAND_RE = re.compile(r"(?<![\w/])([a-z][\w-]*):([a-z][\w-]*)", re.IGNORECASE)
_FLAG_RE = re.compile(r"--[\w-]+")

# Advanced is checked before moderate; first match wins.
ADVANCED_KEYWORDS = ("ultrathink", "comprehensive")
MODERATE_KEYWORDS = ("think-hard", "deep")


def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# Priority order matters: frontend, backend, security, devops, quality.
DOMAIN_TABLE: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (_compile(r"\b(ui|ux|component|frontend|react|vue|angular|css|responsive|accessibility)\b"), "frontend"),
    (_compile(r"\b(api|apis|backend|server|database|endpoint|endpoints|microservice|microservices)\b"), "backend"),
    (_compile(r"\b(security|secure|vulnerabilit(y|ies)|auth|authentication|compliance|threat)\b"), "security"),
    (_compile(r"\b(deploy|deployment|infrastructure|docker|kubernetes|ci/cd|pipeline|monitoring)\b"), "devops"),
    (_compile(r"\b(test|tests|testing|quality|coverage|lint|refactor|refactoring)\b"), "quality"),
)

# Not mutually exclusive: every matching integration is reported.
INTEGRATION_NEED_TABLE: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (_compile(r"\b(ui|component|components|design|frontend)\b"), "magic"),
    (_compile(r"\b(docs|documentation|library|framework|api)\b"), "context7"),
    (_compile(r"\b(complex|analysis|analyze|debug|thinking|architecture)\b"), "sequential"),
    (_compile(r"\b(e2e|browser|testing|screenshot|playwright)\b"), "playwright"),
    (_compile(r"\b(bulk|codemod|refactor|pattern|patterns)\b"), "morphllm"),
    (_compile(r"\b(symbol|symbols|session|memory|semantic)\b"), "serena"),
)


class ContextClassifier:
    """
    Pure text -> RoutingContext mapping.

    All keyword tests are case-insensitive; tables are compiled once and shared.
    """

    def __init__(
        self,
        *,
        domain_table: Sequence[Tuple[re.Pattern[str], str]] = DOMAIN_TABLE,
        integration_table: Sequence[Tuple[re.Pattern[str], str]] = INTEGRATION_NEED_TABLE,
        advanced_keywords: Sequence[str] = ADVANCED_KEYWORDS,
        moderate_keywords: Sequence[str] = MODERATE_KEYWORDS,
    ) -> None:
        self._domain_table = tuple(domain_table)
        self._integration_table = tuple(integration_table)
        self._advanced = tuple(k.lower() for k in advanced_keywords)
        self._moderate = tuple(k.lower() for k in moderate_keywords)

    def classify(self, raw_input: str) -> RoutingContext:
        text = raw_input if isinstance(raw_input, str) else ""
        return RoutingContext(
            extracted_command=self.extract_command(text),
            extracted_flags=self.extract_flags(text),
            complexity_tier=self.complexity_tier(text),
            domain=self.domain(text),
            integration_needs=self.integration_needs(text),
            input_text=text,
        )

    def extract_command(self, text: str) -> Optional[str]:
        m = _COMMAND_RE.search(text)
        if m is None:
            return None
        return m.group(0).lower()

    def extract_flags(self, text: str) -> Tuple[str, ...]:
        return tuple(f.lower() for f in _FLAG_RE.findall(text))

    def complexity_tier(self, text: str) -> str:
        lowered = text.lower()
        if any(k in lowered for k in self._advanced):
            return "advanced"
        if any(k in lowered for k in self._moderate):
            return "moderate"
        return "standard"

    def domain(self, text: str) -> str:
        for pattern, label in self._domain_table:
            if pattern.search(text):
                return label
        return DEFAULT_DOMAIN

    def integration_needs(self, text: str) -> Tuple[str, ...]:
        needs = []
        for pattern, label in self._integration_table:
            if label not in needs and pattern.search(text):
                needs.append(label)
        return tuple(needs)


_DEFAULT = ContextClassifier()


def classify(raw_input: str) -> RoutingContext:
    return _DEFAULT.classify(raw_input)
