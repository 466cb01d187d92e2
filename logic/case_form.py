"""Editable state behind the create/edit case dialog.

Repeatable groups (legal provisions, prevention measures) are ordered row
lists with add/remove/edit-in-place. Attachments are uploaded and deleted
against the backend immediately, but their order only reaches the backend
when the case itself is saved.
"""
import logging
import os
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from logic import attachments as att
from logic.backend import CaseService, FileService
from logic.errors import ValidationError
from model.models import Attachment, Case, LegalProvision

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

_TAG_SEP = re.compile(r"[,，]")


def split_tags(text: str) -> List[str]:
    """Split on ASCII and full-width commas, dropping blanks and repeats."""
    out: List[str] = []
    for raw in _TAG_SEP.split(text or ""):
        tag = raw.strip()
        if tag and tag not in out:
            out.append(tag)
    return out


class CaseForm:
    def __init__(self, case: Optional[Case] = None, max_upload_bytes: int = MAX_UPLOAD_BYTES):
        self.case = case
        self.max_upload_bytes = max_upload_bytes
        self.errors: Dict[str, str] = {}
        if case:
            self.title = case.title
            self.case_record = case.case_record
            self.risk_summary = case.risk_summary
            self.tags_text = ", ".join(case.tags)
            self.provisions = [LegalProvision(p.law_name, p.content) for p in case.legal_provisions]
            self.measures = list(case.prevention_measures)
            self.attachments: List[Attachment] = list(case.attachments)
        else:
            self.title = ""
            self.case_record = ""
            self.risk_summary = ""
            self.tags_text = ""
            self.provisions = []
            self.measures = []
            self.attachments = []
        if not self.provisions:
            self.provisions = [LegalProvision()]
        if not self.measures:
            self.measures = [""]

    @property
    def is_edit(self) -> bool:
        return self.case is not None

    # -------------------------------------------------------------------------
    # repeatable groups
    # -------------------------------------------------------------------------

    def add_provision(self) -> None:
        self.provisions.append(LegalProvision())

    def remove_provision(self, index: int) -> None:
        del self.provisions[index]

    def update_provision(self, index: int, law_name: str = None, content: str = None) -> None:
        row = self.provisions[index]
        if law_name is not None:
            row.law_name = law_name
        if content is not None:
            row.content = content

    def add_measure(self) -> None:
        self.measures.append("")

    def remove_measure(self, index: int) -> None:
        del self.measures[index]

    def update_measure(self, index: int, value: str) -> None:
        self.measures[index] = value

    # -------------------------------------------------------------------------
    # attachments
    # -------------------------------------------------------------------------

    def check_files(self, paths: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Split paths into (accepted, rejected-message) by the size limit."""
        accepted, rejected = [], []
        limit_mb = self.max_upload_bytes // (1024 * 1024)
        for p in paths:
            if os.path.getsize(p) > self.max_upload_bytes:
                rejected.append(f"{os.path.basename(p)} 超过 {limit_mb}MB 限制")
            else:
                accepted.append(p)
        return accepted, rejected

    def upload(self, paths: Iterable[str], files: FileService,
               on_reject: Callable[[str], None] = None) -> List[Attachment]:
        accepted, rejected = self.check_files(paths)
        for message in rejected:
            logger.info(message)
            if on_reject:
                on_reject(message)
        if not accepted:
            return []
        uploaded = files.upload_batch(accepted)
        self.attachments.extend(uploaded)
        logger.info("Uploaded %d file(s)", len(uploaded))
        return uploaded

    def remove_attachment(self, index: int, files: FileService,
                          confirm: Callable[[Attachment], bool]) -> bool:
        if not 0 <= index < len(self.attachments):
            return False
        target = self.attachments[index]
        if not confirm(target):
            return False
        files.delete(target.oss_key)
        self.attachments = att.without(self.attachments, [target.oss_key])
        return True

    def move_attachment(self, oss_key: str, to_index: int) -> None:
        self.attachments = att.move(self.attachments, oss_key, to_index)

    # -------------------------------------------------------------------------
    # validation + submit
    # -------------------------------------------------------------------------

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.title.strip():
            errors["title"] = "请输入标题"
        if not self.case_record.strip():
            errors["case_record"] = "请输入案件记录"
        for i, row in enumerate(self.provisions):
            if row.is_blank():
                continue
            if not row.law_name.strip():
                errors[f"provisions.{i}.law_name"] = "请输入法规名称"
            if not row.content.strip():
                errors[f"provisions.{i}.content"] = "请输入条款内容"
        self.errors = errors
        return errors

    def to_payload(self) -> dict:
        draft = Case(
            id=self.case.id if self.case else "",
            title=self.title.strip(),
            case_record=self.case_record,
            legal_provisions=[
                LegalProvision(p.law_name.strip(), p.content.strip())
                for p in self.provisions if not p.is_blank()
            ],
            risk_summary=self.risk_summary,
            prevention_measures=[m.strip() for m in self.measures if m.strip()],
            tags=split_tags(self.tags_text),
            attachments=list(self.attachments),
        )
        return draft.to_payload()

    def submit(self, cases: CaseService) -> Optional[Case]:
        """Create or update. Raises ValidationError before any request."""
        errors = self.validate()
        if errors:
            raise ValidationError(errors)
        payload = self.to_payload()
        if self.is_edit:
            saved = cases.update(self.case.id, payload)
            logger.info("Updated case %s", self.case.id)
        else:
            saved = cases.create(payload)
            logger.info("Created case %s", saved.id if saved else "?")
        return saved
