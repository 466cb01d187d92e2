import logging
import mimetypes
import os
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import httpx

from logic.api import ApiClient
from logic.config import Settings
from logic.notify import Notifier
from logic.routing import Router
from logic.session import Session, SessionStore
from model.models import Attachment, Case, LoginData, Page, TagStat, User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, phone: str, password: str) -> LoginData:
        data = self.api.post("/auth/login", json={"phone": phone, "password": password})
        return LoginData.from_dict(self.api.require(data))

    def me(self) -> User:
        return User.from_dict(self.api.require(self.api.get("/auth/me")))


class CaseService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(
        self,
        page: int = 1,
        size: int = 10,
        keyword: Optional[str] = None,
        tags: Optional[List[str]] = None,
        sort_by: str = "createDate",
        sort_dir: str = "desc",
    ) -> Page:
        params: Dict[str, Any] = {"page": page, "size": size, "sortBy": sort_by, "sortDir": sort_dir}
        if keyword:
            params["keyword"] = keyword
        if tags:
            params["tags[]"] = list(tags)
        return Page.from_dict(self.api.require(self.api.get("/cases", params=params)))

    def get(self, case_id: str) -> Case:
        return Case.from_dict(self.api.require(self.api.get(f"/cases/{case_id}")))

    def create(self, payload: Dict[str, Any]) -> Optional[Case]:
        data = self.api.post("/cases", json=payload)
        return Case.from_dict(data) if data else None

    def update(self, case_id: str, payload: Dict[str, Any]) -> Optional[Case]:
        data = self.api.put(f"/cases/{case_id}", json=payload)
        return Case.from_dict(data) if data else None

    def delete(self, case_id: str) -> None:
        self.api.delete(f"/cases/{case_id}")
        logger.info("Deleted case %s", case_id)

    def tags(self) -> List[TagStat]:
        return [TagStat.from_dict(t) for t in self.api.get("/cases/tags") or []]


class FileService:
    def __init__(self, api: ApiClient):
        self.api = api

    def upload(self, path: str) -> Attachment:
        with open(path, "rb") as fh:
            data = self.api.post("/files/upload", files=[("file", _file_part(path, fh))])
        return Attachment.from_dict(self.api.require(data))

    def upload_batch(self, paths: Iterable[str]) -> List[Attachment]:
        with ExitStack() as stack:
            parts = [
                ("files", _file_part(p, stack.enter_context(open(p, "rb"))))
                for p in paths
            ]
            data = self.api.post("/files/upload/batch", files=parts)
        return [Attachment.from_dict(a) for a in data or []]

    def delete(self, oss_key: str) -> None:
        self.api.delete("/files", params={"ossKey": oss_key})
        logger.info("Deleted file %s", oss_key)

    def delete_batch(self, oss_keys: Iterable[str]) -> None:
        keys = list(oss_keys)
        self.api.delete("/files/batch", json=keys)
        logger.info("Deleted %d files", len(keys))


def _file_part(path: str, fh):
    mime = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return os.path.basename(path), fh, mime


@dataclass
class Backend:
    settings: Settings
    session: Session
    api: ApiClient
    auth: AuthService
    cases: CaseService
    files: FileService


def build_backend(
    settings: Settings,
    notifier: Optional[Notifier] = None,
    router: Optional[Router] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> Backend:
    notifier = notifier or Notifier()
    session = Session(SessionStore(settings.session_file), notifier)
    api = ApiClient(settings, session, notifier, router=router, transport=transport)
    auth = AuthService(api)
    session.auth = auth
    return Backend(settings, session, api, auth, CaseService(api), FileService(api))
