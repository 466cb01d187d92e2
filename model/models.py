import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class User:
    id: str
    name: str
    phone: str = ""
    is_admin: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "User":
        return cls(
            id=str(d.get("id", "")),
            name=d.get("name", "") or "",
            phone=d.get("phone", "") or "",
            is_admin=bool(d.get("isAdmin", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "phone": self.phone, "isAdmin": self.is_admin}


@dataclass
class LoginData:
    token: str
    token_type: str
    expires_in: int
    user_info: User

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoginData":
        return cls(
            token=d["token"],
            token_type=d.get("tokenType", "Bearer") or "Bearer",
            expires_in=int(d.get("expiresIn", 0) or 0),
            user_info=User.from_dict(d.get("userInfo") or {}),
        )


@dataclass
class LegalProvision:
    law_name: str = ""
    content: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LegalProvision":
        return cls(law_name=d.get("lawName", "") or "", content=d.get("content", "") or "")

    def to_dict(self) -> Dict[str, Any]:
        return {"lawName": self.law_name, "content": self.content}

    def is_blank(self) -> bool:
        return not self.law_name.strip() and not self.content.strip()


@dataclass
class Attachment:
    file_name: str
    file_type: str
    file_size: int
    upload_date: str
    url: str
    oss_key: str        # unique storage key, used as the item identity

    @property
    def is_image(self) -> bool:
        return (self.file_type or "").startswith("image/")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Attachment":
        return cls(
            file_name=d.get("fileName", "") or "",
            file_type=d.get("fileType", "") or "",
            file_size=int(d.get("fileSize", 0) or 0),
            upload_date=d.get("uploadDate", "") or "",
            url=d.get("url", "") or "",
            oss_key=d["ossKey"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "uploadDate": self.upload_date,
            "url": self.url,
            "ossKey": self.oss_key,
        }


@dataclass
class Case:
    id: str
    title: str
    case_record: str
    legal_provisions: List[LegalProvision] = field(default_factory=list)
    risk_summary: str = ""
    prevention_measures: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)
    author: str = ""
    create_date: str = ""   # ISO timestamps as sent by the backend
    update_date: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Case":
        return cls(
            id=str(d.get("id", "")),
            title=d.get("title", "") or "",
            case_record=d.get("caseRecord", "") or "",
            legal_provisions=[LegalProvision.from_dict(p) for p in d.get("legalProvisions") or []],
            risk_summary=d.get("riskSummary", "") or "",
            prevention_measures=list(d.get("preventionMeasures") or []),
            tags=list(d.get("tags") or []),
            attachments=[Attachment.from_dict(a) for a in d.get("attachments") or []],
            author=d.get("author", "") or "",
            create_date=d.get("createDate", "") or "",
            update_date=d.get("updateDate", "") or "",
        )

    def to_payload(self) -> Dict[str, Any]:
        """Body accepted by POST /cases and PUT /cases/{id}."""
        return {
            "title": self.title,
            "caseRecord": self.case_record,
            "riskSummary": self.risk_summary,
            "legalProvisions": [p.to_dict() for p in self.legal_provisions],
            "preventionMeasures": list(self.prevention_measures),
            "tags": list(self.tags),
            "attachments": [a.to_dict() for a in self.attachments],
        }


@dataclass
class TagStat:
    tag: str
    count: int

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TagStat":
        return cls(tag=d.get("tag", "") or "", count=int(d.get("count", 0) or 0))


@dataclass
class Page:
    content: List[Case]
    page: int
    size: int
    total_elements: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Page":
        content = [Case.from_dict(c) for c in d.get("content") or []]
        page = int(d.get("page", 1) or 1)
        size = int(d.get("size", len(content)) or 0)
        total = int(d.get("totalElements", len(content)) or 0)
        total_pages: Optional[int] = d.get("totalPages")
        if total_pages is None:
            total_pages = math.ceil(total / size) if size else 0
        return cls(
            content=content,
            page=page,
            size=size,
            total_elements=total,
            total_pages=int(total_pages),
            has_next=bool(d.get("hasNext", page < int(total_pages))),
            has_previous=bool(d.get("hasPrevious", page > 1)),
        )
