import pytest

from conftest import attachment_json, case_json, envelope
from logic import attachments as att
from model.models import Attachment, Case


def _items(*keys):
    return [Attachment.from_dict(attachment_json(k)) for k in keys]


@pytest.mark.parametrize("size,text", [
    (0, "0 B"),
    (512, "512 B"),
    (1536, "1.5 KB"),
    (1024 * 1024, "1 MB"),
    (int(2.25 * 1024 ** 3), "2.25 GB"),
])
def test_format_size(size, text):
    assert att.format_size(size) == text


def test_move_reinserts_by_key():
    items = _items("a", "b", "c", "d")

    assert [a.oss_key for a in att.move(items, "a", 2)] == ["b", "c", "a", "d"]
    assert [a.oss_key for a in att.move(items, "d", 0)] == ["d", "a", "b", "c"]
    assert [a.oss_key for a in att.move(items, "b", 99)] == ["a", "c", "d", "b"]
    # original untouched
    assert [a.oss_key for a in items] == ["a", "b", "c", "d"]


def test_move_unknown_key():
    with pytest.raises(KeyError):
        att.move(_items("a"), "zzz", 0)


def test_collapse_beyond_three():
    items = _items("a", "b", "c", "d", "e")

    assert att.needs_collapse(items)
    assert [a.oss_key for a in att.visible(items, expanded=False)] == ["a", "b", "c"]
    assert len(att.visible(items, expanded=True)) == 5
    assert not att.needs_collapse(items[:3])
    assert len(att.visible(items[:3], expanded=False)) == 3


def test_is_image():
    a = Attachment.from_dict(attachment_json("p", file_type="image/png"))
    assert a.is_image
    assert not _items("doc")[0].is_image


def test_single_delete_then_case_update(make_backend, fake_api):
    backend = make_backend()
    case = Case.from_dict(case_json("abc123", attachments=[attachment_json("k1"), attachment_json("k2")]))
    fake_api.on("DELETE", "/files", envelope(None))
    fake_api.on("PUT", "/cases/abc123", envelope(case_json("abc123")))

    assert att.delete_from_case(case, ["k1"], backend.files, backend.cases, confirm=lambda: True)

    assert fake_api.calls() == [("DELETE", "/files"), ("PUT", "/cases/abc123")]
    assert [a["ossKey"] for a in fake_api.json_body()["attachments"]] == ["k2"]
    assert [a.oss_key for a in case.attachments] == ["k2"]


def test_batch_delete_sends_key_list(make_backend, fake_api):
    backend = make_backend()
    case = Case.from_dict(case_json("abc123", attachments=[
        attachment_json("k1"), attachment_json("k2"), attachment_json("k3")]))
    fake_api.on("DELETE", "/files/batch", envelope(None))
    fake_api.on("PUT", "/cases/abc123", envelope(case_json("abc123")))

    att.delete_from_case(case, ["k1", "k3"], backend.files, backend.cases, confirm=lambda: True)

    assert fake_api.calls()[0] == ("DELETE", "/files/batch")
    assert fake_api.json_body(0) == ["k1", "k3"]
    assert [a.oss_key for a in case.attachments] == ["k2"]


def test_deleted_attachment_is_gone_on_next_fetch(make_backend, fake_api):
    backend = make_backend()
    stored = {"attachments": [attachment_json("k1"), attachment_json("k2")]}

    def put_case(request):
        import json
        stored["attachments"] = json.loads(request.content)["attachments"]
        return envelope(case_json("abc123", attachments=stored["attachments"]))

    fake_api.on("GET", "/cases/abc123", lambda r: envelope(case_json("abc123", attachments=stored["attachments"])))
    fake_api.on("DELETE", "/files", envelope(None))
    fake_api.on("PUT", "/cases/abc123", put_case)

    case = backend.cases.get("abc123")
    att.delete_from_case(case, ["k1"], backend.files, backend.cases, confirm=lambda: True)

    assert [a.oss_key for a in backend.cases.get("abc123").attachments] == ["k2"]


def test_delete_cancelled_issues_no_request(make_backend, fake_api):
    backend = make_backend()
    case = Case.from_dict(case_json(attachments=[attachment_json("k1")]))

    assert not att.delete_from_case(case, ["k1"], backend.files, backend.cases, confirm=lambda: False)
    assert fake_api.requests == []
