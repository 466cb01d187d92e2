import json

import httpx
import pytest

from logic.backend import build_backend
from logic.config import Settings
from logic.notify import Notifier


def envelope(data=None, code=200, message="success"):
    return {"code": code, "message": message, "data": data, "timestamp": 1700000000000}


def case_json(case_id="abc123", **overrides):
    d = {
        "id": case_id,
        "title": "某公司窃电案",
        "caseRecord": "2023年查处窃电行为。",
        "legalProvisions": [{"lawName": "电力法", "content": "第七十一条"}],
        "riskSummary": "存在计量装置被改动风险",
        "preventionMeasures": ["定期巡检"],
        "tags": ["窃电"],
        "attachments": [],
        "author": "张三",
        "createDate": "2024-01-02T10:00:00",
        "updateDate": "2024-01-03T10:00:00",
    }
    d.update(overrides)
    return d


def attachment_json(key, name=None, file_type="application/pdf", size=1024):
    return {
        "fileName": name or f"{key}.pdf",
        "fileType": file_type,
        "fileSize": size,
        "uploadDate": "2024-01-02T10:00:00",
        "url": f"http://files.test/{key}",
        "ossKey": key,
    }


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def success(self, message):
        self.messages.append(("success", message))

    def info(self, message):
        self.messages.append(("info", message))

    def error(self, message):
        self.messages.append(("error", message))

    @property
    def errors(self):
        return [m for kind, m in self.messages if kind == "error"]


class FakeApi:
    """Routes (method, path) to canned responses and records every request."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, response):
        self.routes[(method, path)] = response
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        resp = self.routes.get((request.method, path))
        if resp is None:
            return httpx.Response(404, json=envelope(None, code=404, message="not found"))
        if callable(resp):
            resp = resp(request)
        if isinstance(resp, httpx.Response):
            return resp
        return httpx.Response(200, json=resp)

    def calls(self, method=None):
        return [
            (r.method, r.url.path[len("/api"):] if r.url.path.startswith("/api") else r.url.path)
            for r in self.requests
            if method is None or r.method == method
        ]

    def json_body(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def settings(tmp_path):
    return Settings(api_url="http://test/api", timeout=5, config_dir=tmp_path)


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_backend(settings, fake_api, notifier):
    def _make(router=None):
        return build_backend(settings, notifier, router=router,
                             transport=httpx.MockTransport(fake_api.handler))
    return _make
