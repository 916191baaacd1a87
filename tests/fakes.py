"""In-memory timetable page for extractor and pipeline tests."""

from dataclasses import dataclass, field

from ut1_timetable.dom import Box, ElementRole


@dataclass
class FakeElement:
    """An element with an optional layout box, some text and children by role."""

    top: float | None = None
    height: float | None = None
    text: str = ""
    children: dict[ElementRole, list["FakeElement"]] = field(default_factory=dict)


class FakePage:
    """Implements the PageHandle protocol over canned elements, no browser."""

    def __init__(self, containers: list[FakeElement]) -> None:
        self.containers = containers

    async def query_role(self, role: ElementRole, within: FakeElement | None = None) -> list[FakeElement]:
        if within is None:
            return list(self.containers) if role is ElementRole.DAY_CONTAINER else []
        return list(within.children.get(role, []))

    async def geometry(self, element: FakeElement) -> Box | None:
        if element.top is None or element.height is None:
            return None
        return Box(top=element.top, height=element.height)

    async def text(self, element: FakeElement) -> str:
        return element.text


def event(offset: float | None, height: float | None, text: str = "Cours\nSalle") -> FakeElement:
    """An event block; offset is relative to its day, resolved by day()."""
    return FakeElement(top=offset, height=height, text=text)


def day(
    label: str | None,
    events: list[FakeElement] = (),
    *,
    top: float = 100.0,
    height: float = 1200.0,
) -> FakeElement:
    """A day column at `top`, moving its events to absolute page offsets."""
    placed = [
        FakeElement(
            top=None if e.top is None else top + e.top,
            height=e.height,
            text=e.text,
        )
        for e in events
    ]
    children: dict[ElementRole, list[FakeElement]] = {ElementRole.EVENT: placed}
    if label is not None:
        children[ElementRole.DATE_LABEL] = [FakeElement(text=label)]
    return FakeElement(top=top, height=height, children=children)
