from dataclasses import dataclass
from typing import List, Sequence, Tuple

from model.models import TagStat

NO_TAG = TagStat(tag="暂无", count=0)

PIE_COLORS = ["#005bac", "#3b82f6", "#0ea5e9", "#6366f1", "#8b5cf6", "#ec4899", "#f43f5e"]

POPULAR = "popular"
MEDIUM = "medium"
SMALL = "small"


def top_tag(tags: Sequence[TagStat]) -> TagStat:
    """Tag with the highest count; the first one wins ties."""
    best = None
    for t in tags:
        if best is None or t.count > best.count:
            best = t
    return best or NO_TAG


def ranked(tags: Sequence[TagStat]) -> List[TagStat]:
    return sorted(tags, key=lambda t: t.count, reverse=True)


def cloud_bucket(count: int, max_count: int) -> str:
    if count > max_count * 0.7:
        return POPULAR
    if count > max_count * 0.4:
        return MEDIUM
    return SMALL


def tag_cloud(tags: Sequence[TagStat]) -> List[Tuple[TagStat, str]]:
    if not tags:
        return []
    max_count = max(t.count for t in tags)
    return [(t, cloud_bucket(t.count, max_count)) for t in tags]


@dataclass
class PieSlice:
    tag: str
    count: int
    start: float    # degrees, counter-clockwise from 3 o'clock (tk canvas convention)
    extent: float
    color: str


def pie_slices(tags: Sequence[TagStat]) -> List[PieSlice]:
    total = sum(t.count for t in tags)
    if total <= 0:
        return []
    slices = []
    start = 90.0
    for i, t in enumerate(tags):
        extent = 360.0 * t.count / total
        slices.append(PieSlice(t.tag, t.count, start, extent, PIE_COLORS[i % len(PIE_COLORS)]))
        start += extent
    return slices


@dataclass
class DashboardData:
    total_cases: int
    top_tag: TagStat
    recent_cases: list


def load_dashboard(cases) -> DashboardData:
    """First page of recent cases plus the full tag list."""
    page = cases.list(page=1, size=5, sort_by="createDate", sort_dir="desc")
    tags = cases.tags()
    return DashboardData(page.total_elements, top_tag(tags), page.content)
