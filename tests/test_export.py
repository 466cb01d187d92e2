import pytest

pytest.importorskip("reportlab")

from conftest import attachment_json, case_json
from logic import export
from model.models import Case


def _page_count(pdf):
    return pdf.count(b"/Type /Page") - pdf.count(b"/Type /Pages")


def test_case_renders_to_pdf():
    case = Case.from_dict(case_json(attachments=[attachment_json("k1", "合同.pdf")]))

    data = export.case_to_pdf(case).getvalue()

    assert data.startswith(b"%PDF")


def test_long_record_spills_onto_more_pages():
    short = export.case_to_pdf(Case.from_dict(case_json())).getvalue()
    long = export.case_to_pdf(Case.from_dict(case_json(caseRecord="窃电行为持续多年。" * 600))).getvalue()

    assert _page_count(long) > _page_count(short)


def test_export_writes_file(tmp_path):
    path = export.export_case(Case.from_dict(case_json()), str(tmp_path / "case.pdf"))

    with open(path, "rb") as f:
        assert f.read(4) == b"%PDF"


def test_wrap_splits_cjk_without_spaces():
    lines = export.wrap("窃" * 100, 10, 100)
    assert len(lines) > 1
    assert "".join(lines) == "窃" * 100
    assert export.wrap("", 10, 100) == [""]
