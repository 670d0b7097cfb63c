from bugsnap.core.text_layout import wrap_text


def _chars(text: str) -> float:
    return float(len(text))


def test_short_text_stays_on_one_line() -> None:
    assert wrap_text("Save button hidden", 40, _chars) == ["Save button hidden"]


def test_lines_respect_width_and_keep_words() -> None:
    text = "The checkout total ignores the discount code entered on the previous step"
    lines = wrap_text(text, 20, _chars)
    assert len(lines) > 1
    assert all(len(line) <= 20 for line in lines)
    assert " ".join(lines).split() == text.split()


def test_overlong_word_gets_its_own_line() -> None:
    lines = wrap_text("see https://example.com/a/very/long/path now", 10, _chars)
    assert lines == ["see", "https://example.com/a/very/long/path", "now"]


def test_blank_text_has_no_lines() -> None:
    assert wrap_text("   ", 10, _chars) == []
