import httpx
import pytest

from conftest import attachment_json, case_json, envelope
from logic.case_form import CaseForm, split_tags
from logic.errors import ServerError, ValidationError
from model.models import Case


def _big_file(path, size):
    with open(path, "wb") as f:
        f.truncate(size)
    return str(path)


def _filled(form):
    form.title = "合同纠纷案"
    form.case_record = "双方因付款期限发生争议。"
    return form


def test_blank_form_shows_one_empty_row_per_group():
    form = CaseForm()
    assert len(form.provisions) == 1 and form.provisions[0].is_blank()
    assert form.measures == [""]
    assert not form.is_edit


def test_edit_form_is_prefilled():
    case = Case.from_dict(case_json(tags=["窃电", "计量"], preventionMeasures=[]))
    form = CaseForm(case)

    assert form.tags_text == "窃电, 计量"
    assert form.provisions[0].law_name == "电力法"
    assert form.measures == [""]
    assert form.is_edit


@pytest.mark.parametrize("field,value,key", [
    ("title", "  ", "title"),
    ("case_record", "", "case_record"),
])
def test_missing_required_field_blocks_submit(make_backend, fake_api, field, value, key):
    backend = make_backend()
    form = _filled(CaseForm())
    setattr(form, field, value)

    with pytest.raises(ValidationError) as exc:
        form.submit(backend.cases)

    assert key in exc.value.errors
    assert key in form.errors
    assert fake_api.requests == []


def test_half_filled_provision_is_an_error():
    form = _filled(CaseForm())
    form.update_provision(0, law_name="民法典")

    errors = form.validate()

    assert errors == {"provisions.0.content": "请输入条款内容"}


def test_repeatable_groups_add_remove_edit():
    form = CaseForm()
    form.add_provision()
    form.update_provision(1, "民法典", "第五百七十七条")
    form.remove_provision(0)
    form.add_measure()
    form.update_measure(1, "签订书面合同")
    form.remove_measure(0)

    assert [(p.law_name, p.content) for p in form.provisions] == [("民法典", "第五百七十七条")]
    assert form.measures == ["签订书面合同"]


def test_split_tags_handles_both_commas():
    assert split_tags("窃电, 合同纠纷，计量 ,, 窃电") == ["窃电", "合同纠纷", "计量"]
    assert split_tags("") == []


def test_payload_drops_blank_rows():
    form = _filled(CaseForm())
    form.tags_text = "合同纠纷，违约"
    form.update_measure(0, "  明确付款节点 ")
    form.add_measure()
    form.add_provision()
    form.update_provision(1, "民法典", "第五百七十七条")

    payload = form.to_payload()

    assert payload["tags"] == ["合同纠纷", "违约"]
    assert payload["preventionMeasures"] == ["明确付款节点"]
    assert payload["legalProvisions"] == [{"lawName": "民法典", "content": "第五百七十七条"}]
    assert payload["attachments"] == []


def test_submit_creates_new_case(make_backend, fake_api):
    backend = make_backend()
    fake_api.on("POST", "/cases", envelope(case_json("new1")))
    form = _filled(CaseForm())

    saved = form.submit(backend.cases)

    assert saved.id == "new1"
    assert fake_api.calls() == [("POST", "/cases")]
    assert fake_api.json_body()["title"] == "合同纠纷案"


def test_submit_updates_existing_case_with_attachment_order(make_backend, fake_api):
    backend = make_backend()
    case = Case.from_dict(case_json("abc123", attachments=[
        attachment_json("k1"), attachment_json("k2"), attachment_json("k3")]))
    fake_api.on("PUT", "/cases/abc123", envelope(case_json("abc123")))
    form = CaseForm(case)

    form.move_attachment("k3", 0)
    form.submit(backend.cases)

    assert fake_api.calls() == [("PUT", "/cases/abc123")]
    assert [a["ossKey"] for a in fake_api.json_body()["attachments"]] == ["k3", "k1", "k2"]


def test_oversized_file_never_reaches_upload(make_backend, fake_api, tmp_path):
    backend = make_backend()
    big = _big_file(tmp_path / "scan.pdf", 50 * 1024 * 1024 + 1)
    rejected = []
    form = CaseForm()

    uploaded = form.upload([big], backend.files, on_reject=rejected.append)

    assert uploaded == []
    assert rejected == ["scan.pdf 超过 50MB 限制"]
    assert fake_api.requests == []


def test_upload_sends_accepted_files_in_one_batch(make_backend, fake_api, tmp_path):
    backend = make_backend()
    small = tmp_path / "contract.pdf"
    small.write_bytes(b"%PDF-1.4 test")
    photo = tmp_path / "meter.jpg"
    photo.write_bytes(b"\xff\xd8\xff")
    big = _big_file(tmp_path / "video.mp4", 60 * 1024 * 1024)
    fake_api.on("POST", "/files/upload/batch", envelope([
        attachment_json("k-contract", "contract.pdf"),
        attachment_json("k-meter", "meter.jpg", "image/jpeg"),
    ]))
    form = CaseForm()
    form.attachments = [Case.from_dict(case_json(attachments=[attachment_json("k0")])).attachments[0]]

    form.upload([str(small), big, str(photo)], backend.files)

    assert fake_api.calls() == [("POST", "/files/upload/batch")]
    body = fake_api.requests[-1].content
    assert b'filename="contract.pdf"' in body
    assert b'filename="meter.jpg"' in body
    assert b"video.mp4" not in body
    assert [a.oss_key for a in form.attachments] == ["k0", "k-contract", "k-meter"]


def test_exactly_limit_sized_file_is_accepted(tmp_path):
    path = _big_file(tmp_path / "edge.bin", 50 * 1024 * 1024)
    accepted, rejected = CaseForm().check_files([path])
    assert accepted == [path] and rejected == []


def test_remove_attachment_deletes_backend_file_first(make_backend, fake_api):
    backend = make_backend()
    case = Case.from_dict(case_json(attachments=[attachment_json("k1"), attachment_json("k2")]))
    fake_api.on("DELETE", "/files", envelope(None))
    form = CaseForm(case)

    assert form.remove_attachment(0, backend.files, confirm=lambda a: a.oss_key == "k1")

    assert fake_api.calls() == [("DELETE", "/files")]
    assert fake_api.requests[-1].url.params["ossKey"] == "k1"
    assert [a.oss_key for a in form.attachments] == ["k2"]


def test_remove_attachment_cancelled(make_backend, fake_api):
    backend = make_backend()
    form = CaseForm(Case.from_dict(case_json(attachments=[attachment_json("k1")])))

    assert not form.remove_attachment(0, backend.files, confirm=lambda a: False)
    assert fake_api.requests == []
    assert len(form.attachments) == 1


def test_failed_backend_delete_keeps_local_attachment(make_backend, fake_api):
    backend = make_backend()
    fake_api.on("DELETE", "/files", lambda r: httpx.Response(500, json=envelope(None, 500, "err")))
    form = CaseForm(Case.from_dict(case_json(attachments=[attachment_json("k1")])))

    with pytest.raises(ServerError):
        form.remove_attachment(0, backend.files, confirm=lambda a: True)

    assert [a.oss_key for a in form.attachments] == ["k1"]
