from clipcore.search import parse_query


def test_plain_terms_keep_order():
    """Free text is split on whitespace and kept in order."""
    parsed = parse_query("  quarterly   report 2024 ")
    assert parsed.terms == ["quarterly", "report", "2024"]
    assert parsed.text == "quarterly report 2024"
    assert parsed.filters.is_empty


def test_empty_and_none_queries():
    for raw in ("", "   ", None):
        parsed = parse_query(raw)
        assert parsed.terms == []
        assert parsed.filters.is_empty


def test_tag_filters_are_lowercased():
    parsed = parse_query("tag:Work -tag:OLD tag:urgent")
    assert parsed.filters.include_tags == {"work", "urgent"}
    assert parsed.filters.exclude_tags == {"old"}
    assert parsed.terms == []


def test_prefixes_are_case_insensitive():
    parsed = parse_query("TAG:Work Type:IMAGE HAS:ocr Pinned:Yes")
    assert parsed.filters.include_tags == {"work"}
    assert parsed.filters.type == "image"
    assert parsed.filters.has_ocr is True
    assert parsed.filters.pinned is True


def test_type_has_and_pinned():
    parsed = parse_query("type:text pinned:no has:ocr invoice")
    assert parsed.filters.type == "text"
    assert parsed.filters.pinned is False
    assert parsed.filters.has_ocr is True
    assert parsed.terms == ["invoice"]


def test_malformed_filters_become_terms():
    """Unknown values and empty tag names are searched as text."""
    parsed = parse_query("type:video pinned:maybe has:text tag: -tag: http://example.com")
    assert parsed.filters.is_empty
    assert parsed.terms == [
        "type:video",
        "pinned:maybe",
        "has:text",
        "tag:",
        "-tag:",
        "http://example.com",
    ]


def test_filters_and_terms_mix():
    parsed = parse_query("invoice tag:work 2024 -tag:draft")
    assert parsed.terms == ["invoice", "2024"]
    assert parsed.filters.include_tags == {"work"}
    assert parsed.filters.exclude_tags == {"draft"}
