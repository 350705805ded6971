import pytest

from discovery.core.platforms import classify_ordering_platform, safe_host


def test_classify_without_url_is_unknown():
    signal = classify_ordering_platform(None)
    assert signal.id == "unknown"
    assert signal.confidence == "low"


def test_classify_invalid_url_is_unknown():
    assert classify_ordering_platform("not a url").id == "unknown"


def test_classify_toast_is_high_confidence():
    signal = classify_ordering_platform("https://order.toasttab.com/x")
    assert signal.id == "toast"
    assert signal.label == "Toast"
    assert signal.confidence == "high"


def test_classify_unrecognized_host_is_other():
    signal = classify_ordering_platform("https://example.com")
    assert signal.id == "other"
    assert signal.confidence == "low"
    assert "example.com" in signal.reason


@pytest.mark.parametrize(
    "url, expected, confidence",
    [
        ("https://www.chownow.com/order/1", "chownow", "high"),
        ("https://joes.slicelife.com", "slice", "medium"),
        ("https://joes.orderonline.ai", "slice", "medium"),
        ("https://joes.olo.com", "olo", "medium"),
        ("https://joes.square.site", "square", "medium"),
        ("https://www.clover.com/online-ordering/joes", "clover", "medium"),
        ("https://joes.getbento.com", "bentobox", "medium"),
        ("https://joes.popmenu.com", "popmenu", "medium"),
    ],
)
def test_classify_known_platforms(url, expected, confidence):
    signal = classify_ordering_platform(url)
    assert signal.id == expected
    assert signal.confidence == confidence


def test_classify_is_pure():
    assert classify_ordering_platform("https://order.toasttab.com/x") == classify_ordering_platform(
        "https://order.toasttab.com/x"
    )


def test_safe_host():
    assert safe_host("https://Www.Example.com/path") == "www.example.com"
    assert safe_host(None) is None
    assert safe_host("http://[invalid") is None
