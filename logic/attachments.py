import logging
from typing import Callable, Iterable, List, Sequence

from logic.backend import CaseService, FileService
from model.models import Attachment, Case

logger = logging.getLogger(__name__)

COLLAPSED_COUNT = 3

_UNITS = ["B", "KB", "MB", "GB"]


def format_size(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 B"
    value, i = float(num_bytes), 0
    while value >= 1024 and i < len(_UNITS) - 1:
        value /= 1024
        i += 1
    text = ("%.2f" % value).rstrip("0").rstrip(".")
    return f"{text} {_UNITS[i]}"


def move(items: Sequence[Attachment], oss_key: str, to_index: int) -> List[Attachment]:
    """Return a copy with the item keyed by ``oss_key`` reinserted at ``to_index``."""
    out = list(items)
    from_index = next((i for i, a in enumerate(out) if a.oss_key == oss_key), None)
    if from_index is None:
        raise KeyError(oss_key)
    to_index = max(0, min(to_index, len(out) - 1))
    if from_index == to_index:
        return out
    item = out.pop(from_index)
    out.insert(to_index, item)
    return out


def without(items: Iterable[Attachment], oss_keys: Iterable[str]) -> List[Attachment]:
    keys = set(oss_keys)
    return [a for a in items if a.oss_key not in keys]


def visible(items: Sequence[Attachment], expanded: bool) -> List[Attachment]:
    """Attachments to render; more than three collapse to the first three."""
    if expanded or len(items) <= COLLAPSED_COUNT:
        return list(items)
    return list(items[:COLLAPSED_COUNT])


def needs_collapse(items: Sequence[Attachment]) -> bool:
    return len(items) > COLLAPSED_COUNT


def delete_from_case(
    case: Case,
    oss_keys: Sequence[str],
    files: FileService,
    cases: CaseService,
    confirm: Callable[[], bool],
) -> bool:
    """Delete stored files, drop them from the case and persist the case.

    The backend file delete happens first; local state only changes once it
    succeeded.
    """
    keys = list(oss_keys)
    if not keys or not confirm():
        return False
    if len(keys) == 1:
        files.delete(keys[0])
    else:
        files.delete_batch(keys)
    case.attachments = without(case.attachments, keys)
    cases.update(case.id, case.to_payload())
    logger.info("Removed %d attachment(s) from case %s", len(keys), case.id)
    return True
