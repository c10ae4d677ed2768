# portal/domain/departments.py
"""
Department identifier registry.

Every department key that enters the system (form documents, admin config,
URL params, old exports) goes through `normalize` and comes out as one of the
ten canonical codes. Unknown keys are passed through untouched so they stay
visible instead of silently disappearing.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, NewType

DepartmentCode = NewType("DepartmentCode", str)

AI_ML = DepartmentCode("ai-ml")
DEV = DepartmentCode("dev")
OPEN_SOURCE = DepartmentCode("open-source")
GAME_DEV = DepartmentCode("game-dev")
CYBERSEC = DepartmentCode("cybersec")
ROBOTICS = DepartmentCode("robotics")
EVENTS = DepartmentCode("events")
DESIGN = DepartmentCode("design")
MARKETING = DepartmentCode("marketing")
SOCIAL_MEDIA = DepartmentCode("social-media")

CANONICAL_CODES: tuple[DepartmentCode, ...] = (
    AI_ML, DEV, OPEN_SOURCE, GAME_DEV, CYBERSEC,
    ROBOTICS, EVENTS, DESIGN, MARKETING, SOCIAL_MEDIA,
)

# historical spellings → canonical code
DEFAULT_ALIASES: dict[str, DepartmentCode] = {
    # camelCase / run-together keys of old form documents
    "aiMl": AI_ML,
    "openSource": OPEN_SOURCE,
    "opensource": OPEN_SOURCE,
    "gameDev": GAME_DEV,
    "gamedev": GAME_DEV,
    "socialMedia": SOCIAL_MEDIA,
    # admin config ids
    "ai_ml": AI_ML,
    "open_source": OPEN_SOURCE,
    "game_dev": GAME_DEV,
    "social_media": SOCIAL_MEDIA,
    "cybersec_blockchain": CYBERSEC,
    "robotics_iot": ROBOTICS,
    "event_ops": EVENTS,
    "design_content": DESIGN,
    "development": DEV,
    # free-form synonyms
    "ai": AI_ML,
    "ml": AI_ML,
    "ai&ml": AI_ML,
    "machine-learning": AI_ML,
    "tech": DEV,
    "web-dev": DEV,
    "research": OPEN_SOURCE,
    "game-development": GAME_DEV,
    "games": GAME_DEV,
    "security": CYBERSEC,
    "cybersecurity": CYBERSEC,
    "blockchain": CYBERSEC,
    "iot": ROBOTICS,
    "event": EVENTS,
    "management": EVENTS,
    "content": DESIGN,
    "ui-ux": DESIGN,
    "social": SOCIAL_MEDIA,
}

DEFAULT_NAMES: dict[DepartmentCode, str] = {
    AI_ML: "AI & ML",
    DEV: "Development",
    OPEN_SOURCE: "Open Source & Research",
    GAME_DEV: "Game Development",
    CYBERSEC: "CyberSec & Blockchain",
    ROBOTICS: "Robotics & IoT",
    EVENTS: "Event Operations & Management",
    DESIGN: "Design & Content",
    MARKETING: "Marketing",
    SOCIAL_MEDIA: "Social Media",
}

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class DepartmentRegistry:
    """
    Immutable table of canonical department codes, their aliases and names.

    Build it once at start-up (`build_registry`) and pass it around;
    nothing mutates it afterwards.
    """
    codes: tuple[DepartmentCode, ...]
    aliases: Mapping[str, DepartmentCode]
    names: Mapping[DepartmentCode, str]
    _code_set: frozenset = field(init=False, repr=False, compare=False)
    _folded: Mapping[str, DepartmentCode] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        unknown = {c for c in self.aliases.values() if c not in self.codes}
        if unknown:
            raise ValueError(f"aliases point to unknown codes: {sorted(unknown)}")
        folded: dict[str, DepartmentCode] = {c.lower(): c for c in self.codes}
        for alias, code in self.aliases.items():
            folded.setdefault(alias.lower(), code)
        object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))
        object.__setattr__(self, "names", MappingProxyType(dict(self.names)))
        object.__setattr__(self, "_code_set", frozenset(self.codes))
        object.__setattr__(self, "_folded", MappingProxyType(folded))

    def _lookup(self, key: str) -> DepartmentCode | None:
        if key in self._code_set:
            return DepartmentCode(key)
        if key in self.aliases:
            return self.aliases[key]
        return self._folded.get(key.lower())

    def normalize(self, raw: Any) -> DepartmentCode:
        """
        Map any spelling of a department to its canonical code.

        Order: canonical → exact alias → case-insensitive alias →
        whitespace-to-hyphen → underscore-to-hyphen. No match → input as is.
        """
        if not isinstance(raw, str):
            raw = "" if raw is None else str(raw)

        code = self._lookup(raw)
        if code is not None:
            return code

        hyphenated = _WHITESPACE_RE.sub("-", raw.strip())
        code = self._lookup(hyphenated)
        if code is not None:
            return code

        code = self._lookup(hyphenated.replace("_", "-"))
        if code is not None:
            return code

        return DepartmentCode(raw)

    def all_codes(self) -> frozenset:
        return self._code_set

    def is_valid(self, raw: Any) -> bool:
        return self.normalize(raw) in self._code_set

    def display_name(self, raw: Any) -> str:
        code = self.normalize(raw)
        return self.names.get(code, code)


def build_registry(
        extra_aliases: Mapping[str, str] | None = None,
) -> DepartmentRegistry:
    aliases = dict(DEFAULT_ALIASES)
    for alias, code in (extra_aliases or {}).items():
        aliases[alias] = DepartmentCode(code)
    return DepartmentRegistry(codes=CANONICAL_CODES, aliases=aliases, names=DEFAULT_NAMES)


DEFAULT_REGISTRY = build_registry()


def normalize(raw: Any, registry: DepartmentRegistry = DEFAULT_REGISTRY) -> DepartmentCode:
    return registry.normalize(raw)


def all_codes(registry: DepartmentRegistry = DEFAULT_REGISTRY) -> frozenset:
    return registry.all_codes()


def is_valid(raw: Any, registry: DepartmentRegistry = DEFAULT_REGISTRY) -> bool:
    return registry.is_valid(raw)
