from convingest.conversation import extract_text


def test_plain_string_content_verbatim():
    assert extract_text({"content": "  hello\n"}) == "  hello\n"


def test_block_array_joined_with_blank_line():
    raw = {"content": [{"type": "text", "text": "a"}, {"type": "image"}, {"type": "text", "text": "b"}]}
    assert extract_text(raw) == "a\n\nb"


def test_summary_fallback():
    assert extract_text({"summary": "short"}) == "short"


def test_textless_blocks_fall_through_to_summary():
    raw = {"content": [{"type": "tool_use", "name": "x"}], "summary": "sum"}
    assert extract_text(raw) == "sum"


def test_top_level_text_is_last_resort():
    assert extract_text({"text": "from text"}) == "from text"
    assert extract_text({"summary": "s", "text": "t"}) == "s"


def test_content_string_wins_over_everything():
    assert extract_text({"content": "c", "summary": "s", "text": "t"}) == "c"


def test_unknown_shapes_degrade_to_empty():
    assert extract_text({}) == ""
    assert extract_text({"content": 42}) == ""
    assert extract_text({"content": {"text": "nested"}}) == ""
    assert extract_text({"content": ["loose", None]}) == ""
