from esp_analyzer.header_utils import (
    get_all,
    get_one,
    header_section,
    headers_to_map,
    normalize_header_map,
    parse_header_blocks,
    split_header_blocks,
    unfold_headers,
)
from esp_analyzer.models import HeaderBlock


FOLDED = (
    "Received: from example.com\r\n"
    "\tby mail.example.com with SMTP id 12345;\r\n"
    "\tWed, 01 Jan 2024 12:00:00 +0000\r\n"
    "Subject: hello\r\n"
)


def test_unfold_collapses_crlf_and_lf_folding():
    unfolded = unfold_headers(FOLDED)
    assert unfolded.startswith(
        "Received: from example.com by mail.example.com with SMTP id 12345; Wed, 01 Jan"
    )
    assert unfold_headers("A: one\n  two") == "A: one two"


def test_unfold_is_idempotent():
    samples = [
        FOLDED,
        "",
        "Subject: plain",
        "A: x\n\n b",
        "A: x\r\n\r\n\t\tb\r\nB: y",
        "X: 1\n \n\t2",
    ]
    for sample in samples:
        once = unfold_headers(sample)
        assert unfold_headers(once) == once


def test_unfold_accepts_bytes_and_none():
    assert unfold_headers(b"A: b\r\n c") == "A: b c"
    assert unfold_headers(None) == ""


def test_split_header_blocks_lowercases_names_and_keeps_order():
    blocks = split_header_blocks("Received: one\nReceived: two\nX-Test :  value  \n")
    assert blocks == [
        HeaderBlock(name="received", value="one"),
        HeaderBlock(name="received", value="two"),
        HeaderBlock(name="x-test", value="value"),
    ]


def test_split_header_blocks_joins_continuations_and_skips_blanks():
    blocks = split_header_blocks("Subject: first part\nsecond part\n\n\nTo: a@b.c")
    assert blocks[0] == HeaderBlock(name="subject", value="first part second part")
    assert blocks[1] == HeaderBlock(name="to", value="a@b.c")


def test_split_header_blocks_without_headers_is_empty():
    assert split_header_blocks("just some text\nwithout headers") == []
    assert split_header_blocks("") == []


def test_lookups_are_case_insensitive():
    blocks = parse_header_blocks("Received: a\nSubject: s\nReceived: b")
    assert get_all(blocks, "RECEIVED") == ["a", "b"]
    assert get_one(blocks, "Subject") == "s"
    assert get_one(blocks, "missing") is None
    assert headers_to_map(blocks) == {"received": ["a", "b"], "subject": ["s"]}


def test_header_section_stops_at_first_blank_line():
    raw = "From: a@b.c\r\nSubject: hi\r\n\r\nBody: not a header\r\n"
    assert header_section(raw) == "From: a@b.c\nSubject: hi"


def test_normalize_header_map_merges_case_variants():
    merged = normalize_header_map(
        {"Received": ["one", "two"], "RECEIVED": "three", "DKIM-Signature": "d=x.com"}
    )
    assert merged == {"received": ["one", "two", "three"], "dkim-signature": ["d=x.com"]}
    assert normalize_header_map(None) == {}
