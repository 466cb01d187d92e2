from logic.routing import CASES, DASHBOARD, LOGIN, Route, Router


def test_guard_redirects_to_login_and_remembers_target():
    authed = {"value": False}
    router = Router(lambda: authed["value"])

    route = router.navigate("cases/abc123")

    assert route.path == LOGIN
    authed["value"] = True
    assert str(router.take_pending()) == "cases/abc123"


def test_login_is_reachable_without_session():
    router = Router(lambda: False)
    assert router.navigate(LOGIN).path == LOGIN


def test_take_pending_defaults_to_dashboard():
    router = Router(lambda: True)
    assert router.take_pending().path == DASHBOARD


def test_route_string_round_trip_keeps_filters():
    route = Route(CASES, {"keyword": "合同", "tag": "窃电", "page": "2"})
    assert Route.parse(str(route)) == route


def test_match():
    assert Route.parse("cases/abc123").match() == ("detail", "abc123")
    assert Route.parse("cases?tag=x").match() == (CASES, None)
    assert Route.parse("").match() == (DASHBOARD, None)
    assert Route.parse("nowhere/else").match() == (DASHBOARD, None)


def test_navigate_merges_query_and_skips_blank_values():
    router = Router(lambda: True)
    route = router.navigate(CASES, {"tag": "窃电", "keyword": ""})
    assert route.query == {"tag": "窃电"}


def test_replace_query_does_not_rerender():
    seen = []
    router = Router(lambda: True, on_change=seen.append)
    router.navigate(CASES)
    router.replace_query({"page": "3"})

    assert str(router.current) == "cases?page=3"
    assert len(seen) == 1
