from feedback_pdf.sanitize import strip_emoji

GRIN = chr(0x1F600)
SUN = chr(0x2600)
VS16 = chr(0xFE0F)
ZWJ = chr(0x200D)


def test_strip_emoji_removes_pictographs():
    assert strip_emoji(f"Great job {GRIN}!") == "Great job !"


def test_strip_emoji_removes_variation_selector_and_joiner():
    assert strip_emoji(f"{SUN}{VS16}{ZWJ}ok") == "ok"


def test_strip_emoji_keeps_whitespace_structure():
    text = f"# 제목 {GRIN}\n\n  - item\t{SUN}\n\n\n```\ncode {GRIN}\n```\n"
    cleaned = strip_emoji(text)
    assert cleaned.count("\n") == text.count("\n")
    assert cleaned == "# 제목 \n\n  - item\t\n\n\n```\ncode \n```\n"


def test_strip_emoji_keeps_korean_and_ascii():
    text = "총점은 85점입니다. Score: 85/100"
    assert strip_emoji(text) == text


def test_strip_emoji_empty():
    assert strip_emoji("") == ""
