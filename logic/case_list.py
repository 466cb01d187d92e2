"""Filter, sort and pagination state of the case list.

The state round-trips through the route query string so that a list route
can be reopened with the same filters.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from logic.backend import CaseService
from logic.stats import top_tag
from model.models import Page, TagStat

logger = logging.getLogger(__name__)

DESC = "desc"
ASC = "asc"

RESET = "reset"
SORT = "sort"


@dataclass
class CaseListState:
    keyword: str = ""
    tag: str = ""
    sort_dir: str = DESC
    page: int = 1

    @classmethod
    def from_query(cls, query: Dict[str, str]) -> "CaseListState":
        try:
            page = max(1, int(query.get("page", 1)))
        except ValueError:
            page = 1
        sort_dir = query.get("sort", DESC)
        return cls(
            keyword=query.get("keyword", ""),
            tag=query.get("tag", ""),
            sort_dir=sort_dir if sort_dir in (ASC, DESC) else DESC,
            page=page,
        )

    def to_query(self) -> Dict[str, str]:
        query = {}
        if self.keyword:
            query["keyword"] = self.keyword
        if self.tag:
            query["tag"] = self.tag
        if self.sort_dir != DESC:
            query["sort"] = self.sort_dir
        if self.page != 1:
            query["page"] = str(self.page)
        return query

    @property
    def has_filters(self) -> bool:
        return bool(self.keyword or self.tag)

    def set_keyword(self, keyword: str) -> None:
        self.keyword = keyword.strip()
        self.page = 1

    def set_tag(self, tag: str) -> None:
        self.tag = tag
        self.page = 1

    def filter_or_sort(self) -> str:
        """Reset filters when any is active, otherwise flip the sort direction."""
        if self.has_filters:
            self.keyword = ""
            self.tag = ""
            self.page = 1
            return RESET
        self.sort_dir = ASC if self.sort_dir == DESC else DESC
        return SORT

    def go_to(self, page: int, total_pages: int) -> bool:
        if 1 <= page <= total_pages:
            self.page = page
            return True
        return False

    def request_params(self, size: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "page": self.page,
            "size": size,
            "sort_by": "createDate",
            "sort_dir": self.sort_dir,
        }
        if self.keyword:
            params["keyword"] = self.keyword
        if self.tag:
            params["tags"] = [self.tag]
        return params


@dataclass
class ListStats:
    total_count: int = 0
    shown_count: int = 0
    top_tag_name: str = "..."
    unique_tags: int = 0


class CaseListController:
    """Loads list pages and discards responses that a newer load superseded."""

    def __init__(self, cases: CaseService, page_size: int = 10):
        self.cases = cases
        self.page_size = page_size
        self.state = CaseListState()
        self.page: Optional[Page] = None
        self.tags: List[TagStat] = []
        self.stats = ListStats()
        self._generation = 0
        self._lock = threading.Lock()

    def next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def load(self, generation: Optional[int] = None) -> Optional[Page]:
        """Fetch the page described by the current state.

        Returns None when a newer load started while this one was in flight.
        """
        if generation is None:
            generation = self.next_generation()
        params = self.state.request_params(self.page_size)
        page = self.cases.list(**params)
        if not self.is_current(generation):
            logger.debug("Dropping stale list response (generation %s)", generation)
            return None
        self.page = page
        self.stats.total_count = page.total_elements
        self.stats.shown_count = len(page.content)
        return page

    def load_tags(self) -> List[TagStat]:
        self.tags = self.cases.tags()
        self.stats.top_tag_name = top_tag(self.tags).tag
        self.stats.unique_tags = len(self.tags)
        return self.tags

    @property
    def total_pages(self) -> int:
        return self.page.total_pages if self.page else 1

    def delete(self, case_id: str, confirm: Callable[[], bool]) -> bool:
        if not confirm():
            return False
        self.cases.delete(case_id)
        self.state.page = 1
        self.load()
        return True
