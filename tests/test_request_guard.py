from api.request_guard import LatestRequestGuard


def test_responses_in_issue_order_are_all_current():
    guard = LatestRequestGuard()
    first = guard.begin("medicines.search")
    second = guard.begin("medicines.search")

    assert guard.resolve(first)
    assert guard.resolve(second)
    assert guard.superseded_count == 0


def test_older_response_after_newer_is_superseded():
    guard = LatestRequestGuard()
    first = guard.begin("medicines.search")
    second = guard.begin("medicines.search")

    assert guard.resolve(second)
    assert not guard.resolve(first)
    assert guard.superseded_count == 1


def test_keys_are_independent():
    guard = LatestRequestGuard()
    search = guard.begin("medicines.search")
    profile = guard.begin("users.profile")
    newer_profile = guard.begin("users.profile")

    assert guard.resolve(newer_profile)
    assert guard.resolve(search)
    assert not guard.resolve(profile)


def test_tickets_are_numbered_per_key():
    guard = LatestRequestGuard()

    assert guard.begin("a").number == 1
    assert guard.begin("a").number == 2
    assert guard.begin("b").number == 1
