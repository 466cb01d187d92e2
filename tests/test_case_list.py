import math
import threading

import pytest

from conftest import case_json, envelope
from logic.case_list import ASC, DESC, RESET, SORT, CaseListController, CaseListState
from logic.routing import Route
from model.models import Page


def page_json(cases, page=1, size=10, total=None):
    total = len(cases) if total is None else total
    pages = math.ceil(total / size)
    return envelope({
        "content": cases,
        "page": page,
        "size": size,
        "totalElements": total,
        "totalPages": pages,
        "hasNext": page < pages,
        "hasPrevious": page > 1,
    })


def test_query_round_trip_reproduces_state():
    state = CaseListState(keyword="合同", tag="窃电", sort_dir=ASC, page=3)
    route = Route.parse(str(Route("cases", state.to_query())))

    assert CaseListState.from_query(route.query) == state


def test_defaults_are_left_out_of_the_query():
    assert CaseListState().to_query() == {}


def test_bad_query_values_fall_back_to_defaults():
    state = CaseListState.from_query({"page": "abc", "sort": "sideways"})
    assert state.page == 1
    assert state.sort_dir == DESC


def test_filter_changes_reset_page():
    state = CaseListState(page=4)
    state.set_tag("窃电")
    assert state.page == 1
    state.page = 2
    state.set_keyword("  电表 ")
    assert (state.keyword, state.page) == ("电表", 1)


def test_filter_or_sort_resets_when_filters_active():
    state = CaseListState(keyword="x", tag="窃电", page=2)

    assert state.filter_or_sort() == RESET
    assert (state.keyword, state.tag, state.page, state.sort_dir) == ("", "", 1, DESC)


def test_filter_or_sort_toggles_sort_without_filters():
    state = CaseListState()

    assert state.filter_or_sort() == SORT
    assert state.sort_dir == ASC
    assert state.filter_or_sort() == SORT
    assert state.sort_dir == DESC


def test_go_to_ignores_out_of_range():
    state = CaseListState()
    assert not state.go_to(0, 3)
    assert not state.go_to(4, 3)
    assert state.go_to(3, 3)
    assert state.page == 3


def test_request_params_send_tag_and_keyword(make_backend, fake_api):
    backend = make_backend()
    fake_api.on("GET", "/cases", page_json([case_json()]))
    ctrl = CaseListController(backend.cases, page_size=10)
    ctrl.state = CaseListState(keyword="电表", tag="窃电", sort_dir=ASC, page=1)

    ctrl.load()

    params = fake_api.requests[-1].url.params
    assert params["page"] == "1"
    assert params["size"] == "10"
    assert params["sortBy"] == "createDate"
    assert params["sortDir"] == "asc"
    assert params["keyword"] == "电表"
    assert params.get_list("tags[]") == ["窃电"]
    assert set(params) == {"page", "size", "sortBy", "sortDir", "keyword", "tags[]"}


def test_page_size_and_total_pages(make_backend, fake_api):
    backend = make_backend()
    cases = [case_json(str(i)) for i in range(10)]
    fake_api.on("GET", "/cases", page_json(cases, page=1, size=10, total=23))
    ctrl = CaseListController(backend.cases, page_size=10)

    page = ctrl.load()

    assert len(page.content) <= page.size
    assert page.total_pages == math.ceil(page.total_elements / page.size) == 3
    assert page.has_next and not page.has_previous
    assert ctrl.stats.total_count == 23
    assert ctrl.stats.shown_count == 10


def test_total_pages_computed_when_missing():
    page = Page.from_dict({"content": [], "page": 1, "size": 10, "totalElements": 21})
    assert page.total_pages == 3


def test_stale_response_is_discarded(make_backend, fake_api):
    backend = make_backend()
    started = threading.Event()
    release = threading.Event()

    def slow_then_fast(request):
        if request.url.params.get("keyword") == "slow":
            started.set()
            release.wait(timeout=5)
            return page_json([case_json("old")])
        return page_json([case_json("new")])

    fake_api.on("GET", "/cases", slow_then_fast)
    ctrl = CaseListController(backend.cases)

    ctrl.state.set_keyword("slow")
    first_gen = ctrl.next_generation()
    results = {}
    t = threading.Thread(target=lambda: results.setdefault("first", ctrl.load(first_gen)))
    t.start()
    assert started.wait(timeout=5)

    ctrl.state.set_keyword("fast")
    second = ctrl.load()
    release.set()
    t.join(timeout=5)

    assert results["first"] is None
    assert [c.id for c in second.content] == ["new"]
    assert [c.id for c in ctrl.page.content] == ["new"]


def test_delete_calls_backend_and_refetches_page_one(make_backend, fake_api):
    backend = make_backend()
    fake_api.on("DELETE", "/cases/abc123", envelope(None))
    fake_api.on("GET", "/cases", page_json([case_json("other")]))
    ctrl = CaseListController(backend.cases)
    ctrl.state.page = 2

    assert ctrl.delete("abc123", confirm=lambda: True)

    assert fake_api.calls() == [("DELETE", "/cases/abc123"), ("GET", "/cases")]
    assert fake_api.requests[-1].url.params["page"] == "1"
    assert [c.id for c in ctrl.page.content] == ["other"]


def test_delete_needs_confirmation(make_backend, fake_api):
    backend = make_backend()
    ctrl = CaseListController(backend.cases)

    assert not ctrl.delete("abc123", confirm=lambda: False)
    assert fake_api.requests == []


def test_tag_stats_for_header(make_backend, fake_api):
    backend = make_backend()
    fake_api.on("GET", "/cases/tags", envelope([{"tag": "合同纠纷", "count": 3}, {"tag": "窃电", "count": 12}]))
    ctrl = CaseListController(backend.cases)

    ctrl.load_tags()

    assert ctrl.stats.top_tag_name == "窃电"
    assert ctrl.stats.unique_tags == 2


@pytest.mark.parametrize("query,expected", [
    ({"tag": "窃电"}, {"tags[]": ["窃电"]}),
    ({}, {}),
])
def test_url_tag_filter_reaches_request(make_backend, fake_api, query, expected):
    backend = make_backend()
    fake_api.on("GET", "/cases", page_json([]))
    ctrl = CaseListController(backend.cases)
    ctrl.state = CaseListState.from_query(query)

    ctrl.load()

    params = fake_api.requests[-1].url.params
    assert {k: params.get_list(k) for k in expected} == expected
    if not expected:
        assert "tags[]" not in params
