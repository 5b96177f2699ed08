"""Resolve public menu paths to restaurants and menus.

A navigation is driven through a small state machine::

    Start -> Identified -> Normalized -> CanonicalMatch | CanonicalMismatch
          -> Found | NotFound | Redirect | TransientError

The restaurant segment is always settled before the menu segment. When the
restaurant segment redirects, the menu segment is carried into the redirect
path untouched and is only resolved on the next navigation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union
from urllib.parse import quote

from config import config
from slugs import normalize_slug
from store import StoreError
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "resolver.log"
logger = configure_logger(__name__, LOG_FILE)

LEGACY_PREFIX = "r"
OPAQUE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{15,}$")

Document = Dict[str, Any]


class TargetStore(Protocol):
    async def fetch_target_by_id(self, restaurant_id: str) -> Optional[Document]:
        ...

    async def fetch_target_by_slug(self, slug: str) -> Optional[Document]:
        ...

    async def fetch_child_by_slug(
        self, parent_id: str, slug: str
    ) -> Optional[Document]:
        ...


# === Outcomes ===


@dataclass(frozen=True)
class Redirect:
    """Navigate to ``path``, replacing the current history entry."""

    path: str
    replace: bool = True


@dataclass(frozen=True)
class Found:
    target: Document
    child: Optional[Document] = None


@dataclass(frozen=True)
class NotFound:
    """The restaurant or menu is missing or not public."""

    reason: str = "restaurant"


@dataclass(frozen=True)
class TransientError:
    """The store failed; the caller should offer a retry."""

    detail: str


ResolutionOutcome = Union[Redirect, Found, NotFound, TransientError]


# === States ===


class Level(str, Enum):
    RESTAURANT = "restaurant"
    MENU = "menu"


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Identified:
    opaque_id: bool


@dataclass(frozen=True)
class Normalized:
    level: Level
    canonical: str
    target: Optional[Document] = None


@dataclass(frozen=True)
class CanonicalMatch:
    level: Level
    canonical: str
    target: Optional[Document] = None


@dataclass(frozen=True)
class CanonicalMismatch:
    level: Level
    canonical: str


State = Union[Start, Identified, Normalized, CanonicalMatch, CanonicalMismatch]
TERMINAL = (Redirect, Found, NotFound, TransientError)


@dataclass(frozen=True)
class Navigation:
    """Inbound path split into its restaurant and menu parts."""

    restaurant: str
    menu: Optional[str] = None
    query: str = ""
    legacy: bool = False

    @classmethod
    def from_path(
        cls, segments: Sequence[str], query_string: str = ""
    ) -> Optional["Navigation"]:
        parts = [segment for segment in segments if segment]
        legacy = bool(parts) and parts[0] == LEGACY_PREFIX and len(parts) > 1
        if legacy:
            parts = parts[1:]
        if not parts or len(parts) > 2:
            return None
        query = (query_string or "").lstrip("?")
        return cls(
            restaurant=parts[0],
            menu=parts[1] if len(parts) == 2 else None,
            query=query,
            legacy=legacy,
        )

    def path(self, restaurant: str, menu: Optional[str] = None) -> str:
        parts = [LEGACY_PREFIX] if self.legacy else []
        parts.append(restaurant)
        if menu:
            parts.append(menu)
        path = "/" + "/".join(quote(part, safe="") for part in parts)
        return f"{path}?{self.query}" if self.query else path


def looks_like_opaque_id(segment: str) -> bool:
    """Return True for segments shaped like a legacy document id."""
    return bool(OPAQUE_ID_PATTERN.match(segment or ""))


async def step(
    nav: Navigation, state: State, store: TargetStore
) -> Union[State, ResolutionOutcome]:
    """Advance one transition. Store failures propagate as ``StoreError``."""

    if isinstance(state, Start):
        return Identified(opaque_id=nav.legacy or looks_like_opaque_id(nav.restaurant))

    if isinstance(state, Identified):
        if not state.opaque_id:
            return Normalized(Level.RESTAURANT, normalize_slug(nav.restaurant))
        target = await store.fetch_target_by_id(nav.restaurant)
        if not target or not target.get("is_public"):
            return NotFound(Level.RESTAURANT.value)
        return _after_restaurant(nav, target)

    if isinstance(state, Normalized):
        if state.level is Level.RESTAURANT:
            if not state.canonical:
                return NotFound(Level.RESTAURANT.value)
            if state.canonical != nav.restaurant:
                return CanonicalMismatch(Level.RESTAURANT, state.canonical)
            return CanonicalMatch(Level.RESTAURANT, state.canonical)
        if not state.canonical:
            return NotFound(Level.MENU.value)
        if state.canonical != nav.menu:
            return CanonicalMismatch(Level.MENU, state.canonical)
        return CanonicalMatch(Level.MENU, state.canonical, state.target)

    if isinstance(state, CanonicalMismatch):
        if state.level is Level.RESTAURANT:
            return Redirect(nav.path(state.canonical, nav.menu))
        return Redirect(nav.path(nav.restaurant, state.canonical))

    if isinstance(state, CanonicalMatch):
        if state.level is Level.RESTAURANT:
            target = await store.fetch_target_by_slug(state.canonical)
            if not target:
                return NotFound(Level.RESTAURANT.value)
            current = target.get("slug")
            if current and current != state.canonical:
                # Reached through a previous slug.
                return Redirect(nav.path(current, nav.menu))
            return _after_restaurant(nav, target)
        parent_id = str(state.target["id"])
        child = await store.fetch_child_by_slug(parent_id, state.canonical)
        if not child:
            return NotFound(Level.MENU.value)
        return Found(state.target, child)

    raise TypeError(f"Unknown resolver state: {state!r}")


def _after_restaurant(
    nav: Navigation, target: Document
) -> Union[Normalized, Found]:
    if nav.menu is None:
        return Found(target)
    return Normalized(Level.MENU, normalize_slug(nav.menu), target)


@dataclass
class ResolutionSession:
    """One navigation whose results are applied only while it is active.

    ``close()`` marks the session stale (the caller went away); any fetch
    that completes afterwards is discarded instead of being applied.
    """

    store: TargetStore
    segments: Sequence[str]
    query_string: str = ""
    active: bool = True
    loading: bool = True
    state: Optional[State] = None
    outcome: Optional[ResolutionOutcome] = None
    restaurant: Optional[Document] = None
    menu: Optional[Document] = None
    history: List[str] = field(default_factory=list)

    def close(self) -> None:
        self.active = False

    async def run(self) -> Optional[ResolutionOutcome]:
        """Drive the navigation to a terminal outcome.

        Returns ``None`` when the session was closed before it finished.
        """
        nav = Navigation.from_path(self.segments, self.query_string)
        if nav is None:
            return self._finish(NotFound(Level.RESTAURANT.value))

        current: Union[State, ResolutionOutcome] = Start()
        while not isinstance(current, TERMINAL):
            try:
                current = await step(nav, current, self.store)
            except StoreError as exc:
                if not self.active:
                    return None
                logger.error("Store failure resolving %s: %s", self.segments, exc)
                return self._finish(TransientError(str(exc)))
            if not self.active:
                logger.debug("Discarding stale resolution for %s", self.segments)
                return None
            self.history.append(type(current).__name__)
            if not isinstance(current, TERMINAL):
                self.state = current
        return self._finish(current)

    def _finish(self, outcome: ResolutionOutcome) -> ResolutionOutcome:
        self.outcome = outcome
        self.loading = False
        if isinstance(outcome, Found):
            self.restaurant = outcome.target
            self.menu = outcome.child
        elif isinstance(outcome, NotFound):
            logger.info("Not found (%s): %s", outcome.reason, self.segments)
        elif isinstance(outcome, Redirect):
            logger.info("Redirecting %s to %s", self.segments, outcome.path)
        return outcome


async def resolve(
    path_segments: Sequence[str], query_string: str, store: TargetStore
) -> ResolutionOutcome:
    """Resolve ``path_segments`` to a terminal outcome."""
    outcome = await ResolutionSession(store, path_segments, query_string).run()
    if outcome is None:
        raise RuntimeError("resolution session closed unexpectedly")
    return outcome
