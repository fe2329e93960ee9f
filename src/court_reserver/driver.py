"""Abstract page-driving capability consumed by the reservation flow."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Literal, Optional

ElementState = Literal["attached", "detached", "visible", "hidden"]
LoadState = Literal["load", "domcontentloaded", "networkidle"]


@dataclass(frozen=True)
class Landmark:
    """
    Semantic query for one element on the page.

    Exactly one of ``role``, ``text`` or ``css`` is set. ``name`` narrows a role
    query to an accessible name; ``nth`` picks one match out of several.
    """

    role: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    css: Optional[str] = None
    exact: bool = False
    nth: Optional[int] = None

    @classmethod
    def by_role(cls, role: str, name: Optional[str] = None, *, exact: bool = False) -> "Landmark":
        return cls(role=role, name=name, exact=exact)

    @classmethod
    def by_text(cls, text: str, *, exact: bool = False) -> "Landmark":
        return cls(text=text, exact=exact)

    @classmethod
    def by_css(cls, selector: str) -> "Landmark":
        return cls(css=selector)

    def at(self, index: int) -> "Landmark":
        return replace(self, nth=index)

    def describe(self) -> str:
        if self.role:
            base = f"{self.role}[name={self.name!r}]" if self.name else self.role
        elif self.text is not None:
            base = f"text={self.text!r}"
        else:
            base = f"css={self.css!r}"
        return base if self.nth is None else f"{base}#{self.nth}"


class ElementHandle(ABC):
    """A lazily-resolved reference to an element on the page."""

    @abstractmethod
    async def is_visible(self) -> bool:
        pass

    @abstractmethod
    async def is_disabled(self) -> bool:
        pass

    @abstractmethod
    async def is_selected(self) -> bool:
        """Whether a toggle-style option is currently switched on."""
        pass

    @abstractmethod
    async def click(self, *, force: bool = False, timeout_ms: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def script_click(self) -> None:
        """Fire the element's own click handler, skipping pointer checks."""
        pass

    @abstractmethod
    async def fill(self, text: str) -> None:
        pass

    @abstractmethod
    async def wait_for(self, state: ElementState = "visible", timeout_ms: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def nth(self, index: int) -> "ElementHandle":
        pass


class DocumentScope(ABC):
    """A document (or embedded sub-document) elements can be looked up in."""

    @abstractmethod
    def find_by_role(self, role: str, name: Optional[str] = None, *, exact: bool = False) -> ElementHandle:
        pass

    @abstractmethod
    def find_by_text(self, text: str, *, exact: bool = False) -> ElementHandle:
        pass

    @abstractmethod
    def find_by_css(self, selector: str) -> ElementHandle:
        pass

    def locate(self, landmark: Landmark) -> ElementHandle:
        if landmark.role:
            element = self.find_by_role(landmark.role, landmark.name, exact=landmark.exact)
        elif landmark.text is not None:
            element = self.find_by_text(landmark.text, exact=landmark.exact)
        elif landmark.css:
            element = self.find_by_css(landmark.css)
        else:
            raise ValueError("landmark has no role, text or css query")
        if landmark.nth is not None:
            element = element.nth(landmark.nth)
        return element


class PageDriver(DocumentScope):
    """The top-level page of a single browser session."""

    @property
    @abstractmethod
    def url(self) -> str:
        pass

    @abstractmethod
    async def navigate(self, url: str) -> None:
        pass

    @abstractmethod
    async def wait_for_load_state(self, state: LoadState = "networkidle", timeout_ms: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def wait_for_url(self, pattern: str, timeout_ms: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def embedded_document(self, container: Landmark) -> DocumentScope:
        """Scope lookups to the sub-document rendered inside ``container``."""
        pass

    @abstractmethod
    async def screenshot(self, path: str) -> None:
        pass
