"""Narrow page-query interface used by the extractor.

The extractor never touches Playwright directly: it asks a PageHandle for
elements by structural role, for their layout box and for their text.
PlaywrightPageHandle maps roles onto the ADE grid of a live page; tests
provide an in-memory implementation of the same protocol.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict

from ut1_timetable.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

    from ut1_timetable.config import TimetableConfig

log = get_logger(__name__)


class ElementRole(str, Enum):
    DAY_CONTAINER = "day_container"
    EVENT = "event"
    DATE_LABEL = "date_label"


class Box(BaseModel):
    """Layout box of an element, in page pixels."""

    model_config = ConfigDict(frozen=True)

    top: float
    height: float
    left: float = 0.0
    width: float = 0.0

    def overlap(self, other: "Box") -> float:
        """Width of the horizontal band shared with another box."""
        return min(self.left + self.width, other.left + other.width) - max(self.left, other.left)


class PageHandle(Protocol):
    async def query_role(self, role: ElementRole, within: Any = None) -> list[Any]:
        """Return elements with the given role, in document order.

        When `within` is a day container returned by this handle, only the
        elements belonging to that day are returned.
        """
        ...

    async def geometry(self, element: Any) -> Box | None:
        """Return the element's page box, or None when it is not laid out."""
        ...

    async def text(self, element: Any) -> str: ...


@dataclass(frozen=True)
class GridColumn:
    """A day-wide slice of the grid box; ADE renders no element per day."""

    index: int
    box: Box


class PlaywrightPageHandle:
    """PageHandle over a rendered Playwright page.

    The grid is one box covering every displayed day, with event blocks and
    day labels absolutely positioned over it. Day containers are equal-width
    slices of that box and an element belongs to the slice it overlaps most.
    """

    def __init__(self, page: "Page", config: "TimetableConfig") -> None:
        self.page = page
        self.grid_selector = config.grid_selector
        self.days_displayed = config.days_displayed
        self.selectors = {
            ElementRole.EVENT: config.event_selector,
            ElementRole.DATE_LABEL: config.date_label_selector,
        }
        self._columns: list[GridColumn] | None = None
        self._placed: dict[ElementRole, dict[int, list["ElementHandle"]]] = {}

    async def query_role(self, role: ElementRole, within: GridColumn | None = None) -> list[Any]:
        if role is ElementRole.DAY_CONTAINER:
            return list(await self._grid_columns())
        if within is None:
            return await self.page.query_selector_all(self.selectors[role])
        placed = await self._place(role)
        return list(placed.get(within.index, []))

    async def _grid_columns(self) -> list[GridColumn]:
        if self._columns is not None:
            return self._columns

        self._columns = []
        grid = await self.page.query_selector(self.grid_selector)
        box = None if grid is None else await self.geometry(grid)
        if box is None:
            log.warning("grid_not_found", selector=self.grid_selector)
            return self._columns

        width = box.width / self.days_displayed
        self._columns = [
            GridColumn(
                index=index,
                box=Box(top=box.top, height=box.height, left=box.left + index * width, width=width),
            )
            for index in range(self.days_displayed)
        ]
        return self._columns

    async def _place(self, role: ElementRole) -> dict[int, list["ElementHandle"]]:
        """Group the page's elements of a role by the column under them."""
        if role in self._placed:
            return self._placed[role]

        columns = await self._grid_columns()
        placed: dict[int, list["ElementHandle"]] = {}
        unplaced = 0
        for element in await self.page.query_selector_all(self.selectors[role]):
            box = await self.geometry(element)
            column = None if box is None else _column_under(columns, box)
            if column is None:
                unplaced += 1
                continue
            placed.setdefault(column.index, []).append(element)

        if unplaced:
            # An unplaced event is missing from the calendar
            report = log.warning if role is ElementRole.EVENT else log.debug
            report("elements_not_placed", role=role.value, count=unplaced)
        self._placed[role] = placed
        return placed

    async def geometry(self, element: "GridColumn | ElementHandle") -> Box | None:
        if isinstance(element, GridColumn):
            return element.box
        box = await element.bounding_box()
        if box is None:
            return None
        return Box(top=box["y"], height=box["height"], left=box["x"], width=box["width"])

    async def text(self, element: "GridColumn | ElementHandle") -> str:
        if isinstance(element, GridColumn):
            return ""
        return await element.inner_text()


def _column_under(columns: list[GridColumn], box: Box) -> GridColumn | None:
    best = max(columns, key=lambda column: column.box.overlap(box), default=None)
    if best is None or best.box.overlap(box) <= 0:
        return None
    return best
