"""Unit tests for Markdown to plain text normalization.

WHY: Chat replies reach the phone screen (and TTS) through strip_markdown.
The stage order is observable behavior, so tests cover each stage, the
documented examples, the order-dependent quirks, and totality on
malformed input.
"""

import pytest

from gemini_relay.core.markdown import BULLET, STAGES, strip_markdown


class TestDocumentedExamples:

    def test_bold_and_italic(self):
        assert strip_markdown("**bold** and _italic_") == "bold and italic"

    def test_heading_and_list(self):
        assert strip_markdown("# Title\n- item one\n- item two") == "Title\n• item one\n• item two"

    def test_link_and_inline_code(self):
        assert strip_markdown("See [docs](http://example.com) for `code`.") == "See docs for code."

    def test_empty_string(self):
        assert strip_markdown("") == ""


class TestStages:

    def test_stage_order(self):
        assert [name for name, _pattern, _repl in STAGES] == [
            "fenced_code",
            "inline_code",
            "image",
            "link",
            "heading",
            "emphasis",
            "bullet",
            "blockquote",
        ]

    def test_fenced_code_block_dropped(self):
        assert strip_markdown("Run this:\n```python\nprint(1)\n```\nDone") == "Run this:\n\nDone"

    def test_fences_are_matched_non_greedily(self):
        assert strip_markdown("```a```keep```b```") == "keep"

    def test_image_dropped_with_alt_text(self):
        assert strip_markdown("![logo](http://x/logo.png) Welcome") == "Welcome"

    def test_image_removed_before_link_unwrapping(self):
        assert strip_markdown("[a](b) and ![c](d)") == "a and"

    @pytest.mark.parametrize("level", range(1, 7))
    def test_heading_levels(self, level):
        assert strip_markdown("#" * level + " Heading\nbody") == "Heading\nbody"

    def test_seven_hashes_not_a_heading(self):
        assert strip_markdown("####### seven") == "####### seven"

    def test_hash_without_space_kept(self):
        assert strip_markdown("#hashtag") == "#hashtag"

    @pytest.mark.parametrize("marked", ["*x*", "**x**", "***x***", "_x_", "__x__", "~~x~~"])
    def test_emphasis_markers(self, marked):
        assert strip_markdown(marked) == "x"

    @pytest.mark.parametrize("marker", ["-", "+"])
    def test_bullets(self, marker):
        assert strip_markdown("{} first\n{} second".format(marker, marker)) == (
            BULLET + "first\n" + BULLET + "second"
        )

    def test_single_star_bullet(self):
        assert strip_markdown("* solo") == "• solo"

    def test_indented_bullet(self):
        assert strip_markdown("intro\n  - nested") == "intro\n• nested"

    def test_blockquote(self):
        assert strip_markdown("> quoted\n>tight") == "quoted\ntight"


class TestHeuristicQuirks:
    """Order-dependent outputs kept as-is; this is not a Markdown parser."""

    def test_star_bullets_consumed_as_emphasis(self):
        # "* a\n* b" pairs the two stars before the bullet stage runs
        assert strip_markdown("* a\n* b") == "a\n b"

    def test_intraword_underscores_treated_as_emphasis(self):
        assert strip_markdown("snake_case_name") == "snakecasename"


class TestTotality:

    @pytest.mark.parametrize("text", [
        "2 * 3 = 6",
        "unclosed `tick",
        "```\nno closing fence",
        "[label without url]",
        "![broken](",
        "***",
        "> ",
    ])
    def test_malformed_input_never_raises(self, text):
        assert isinstance(strip_markdown(text), str)

    def test_stray_star_left_literal(self):
        assert strip_markdown("2 * 3 = 6") == "2 * 3 = 6"

    def test_unclosed_fence_left_literal(self):
        assert strip_markdown("```\ncode") == "```\ncode"

    def test_none_is_empty(self):
        assert strip_markdown(None) == ""

    def test_whitespace_only(self):
        assert strip_markdown("  \n\t ") == ""


class TestIdempotence:

    @pytest.mark.parametrize("plain", [
        "Hello world.",
        "Olá, tudo bem? Hoje está ensolarado.",
        "Line one\nLine two",
        "Price: 10 dollars (approx)",
        "Write to a.b@example.com",
        "• already a bullet",
    ])
    def test_plain_text_unchanged(self, plain):
        assert strip_markdown(plain) == plain

    @pytest.mark.parametrize("markdown", [
        "**bold** and _italic_",
        "# Title\n- item one\n- item two",
        "See [docs](http://example.com) for `code`.",
    ])
    def test_second_pass_is_noop(self, markdown):
        once = strip_markdown(markdown)
        assert strip_markdown(once) == once

    def test_surrounding_whitespace_trimmed(self):
        assert strip_markdown("  plain  \n") == "plain"

    def test_byte_order_marks_trimmed(self):
        assert strip_markdown("\ufeffhello\ufeff") == "hello"
        assert strip_markdown("\ufeff \ufeff") == ""


class TestLineTerminators:

    def test_heading_after_carriage_return(self):
        assert strip_markdown("a\r# T") == "a\rT"

    def test_bullet_after_line_separator(self):
        assert strip_markdown("x\u2028- item") == "x\u2028• item"

    def test_blockquote_after_paragraph_separator(self):
        assert strip_markdown("x\u2029> quoted") == "x\u2029quoted"

    def test_crlf_list(self):
        assert strip_markdown("# T\r\n- a") == "T\r• a"
