from orvium_tools.utils import normalize_orcid


def test_normalize_orcid_uppercases_check_digit() -> None:
    assert normalize_orcid("0000-0002-1694-233x") == "0000-0002-1694-233X"


def test_normalize_orcid_rejects_urls() -> None:
    assert normalize_orcid("https://orcid.org/0000-0002-1825-0097") is None
    assert normalize_orcid("0000-0002-1825") is None
