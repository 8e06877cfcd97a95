from app.services.centers import NO_BASELINE_WARNING, NOT_PARTICIPATING_WARNING, build_center_profile


def test_profile_for_participating_center(store):
    profile = build_center_profile(store.snapshot(), "aaaa")
    assert profile.code == "AAAA"
    assert profile.name == "Alpha Transplant Center"
    assert profile.exists is True
    assert profile.is_iota is True
    assert profile.num_transplants == 120.0
    assert profile.offer_accept_rate == 1.0
    assert profile.graft_survival == 90.0
    assert profile.warning is None


def test_profile_warns_for_non_participating_center(store):
    profile = build_center_profile(store.snapshot(), "CCCC")
    assert profile.exists is True
    assert profile.is_iota is False
    assert profile.name is None
    assert profile.warning == NOT_PARTICIPATING_WARNING


def test_profile_warns_for_unknown_center(store):
    profile = build_center_profile(store.snapshot(), "ZZZZ")
    assert profile.exists is False
    assert profile.num_transplants is None
    assert profile.graft_survival is None
    assert profile.warning == NO_BASELINE_WARNING


def test_profile_has_no_warning_for_partial_code(store):
    profile = build_center_profile(store.snapshot(), "ZZ")
    assert profile.exists is False
    assert profile.warning is None


def test_profile_missing_metrics_are_null(store):
    profile = build_center_profile(store.snapshot(), "NOBL")
    assert profile.exists is True
    assert profile.num_transplants is None
    assert profile.offer_accept_rate is None
    assert profile.graft_survival is None
