from prudence.platform.config import as_config_list, as_string_list, to_string_list


def test_config_list_from_list():
    items = [{"a": 1}, {"b": 2}]
    assert as_config_list(items) is items


def test_config_list_from_mapping():
    assert as_config_list({"name": "x"}) == [{"name": "x"}]


def test_config_list_from_other():
    assert as_config_list("text") == []
    assert as_config_list(None) == []


def test_string_list_from_list_filters_non_strings():
    assert as_string_list(["a", 1, "b", None]) == ["a", "b"]


def test_string_list_from_string():
    assert as_string_list("/path") == ["/path"]


def test_string_list_from_other():
    assert as_string_list(42) == []
    assert as_string_list({"a": "b"}) == []


def test_to_string_list_keeps_order():
    assert to_string_list(["z", 2.0, "y", "x"]) == ["z", "y", "x"]
    assert to_string_list([]) == []