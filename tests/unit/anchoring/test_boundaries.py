"""Tests for boundary expansion of resolved ranges."""

from __future__ import annotations

from glossator.anchoring.boundaries import (
    absorb_markup,
    balanced_pieces,
    expand_range,
)
from glossator.anchoring.fingerprint import AnchorFingerprint
from glossator.anchoring.resolver import resolve_anchor
from glossator.anchoring.scanner import project_body


def _expand(body: str, fingerprint: AnchorFingerprint) -> str:
    projection = project_body(body)
    candidate = resolve_anchor(fingerprint, projection)
    assert candidate is not None
    start, end = expand_range(body, candidate, projection, fingerprint.selection_text)
    return body[start:end]


class TestExpandRange:
    def test_reference_example_absorbs_emphasis(
        self, republic_body: str, republic_fingerprint: AnchorFingerprint
    ) -> None:
        assert _expand(republic_body, republic_fingerprint) == "**Republic**"

    def test_absorbs_matching_tag_pair(self) -> None:
        body = "See <em>this</em> now"
        assert _expand(body, AnchorFingerprint("this")) == "<em>this</em>"

    def test_unpaired_delimiter_not_absorbed(self) -> None:
        """A run only on one side would leave the emphasis unbalanced."""
        body = "**Bold text** end"
        assert _expand(body, AnchorFingerprint("Bold")) == "Bold"

    def test_mismatched_runs_not_absorbed(self) -> None:
        body = "*a* **word** _b_"
        assert _expand(body, AnchorFingerprint("word")) == "**word**"
        assert _expand("x *word** y", AnchorFingerprint("word")) == "word"

    def test_absorbs_empty_anchor_element(self) -> None:
        body = '<span id="art_1"></span>Art 1 text'
        assert _expand(body, AnchorFingerprint("Art 1 text")) == body

    def test_tag_split_by_line_break_halts(self) -> None:
        body = '<span\nclass="x">word</span>'
        assert _expand(body, AnchorFingerprint("word")) == "word"

    def test_neighbouring_emphasis_not_absorbed(self) -> None:
        """The run closing the preceding word's emphasis stays with it."""
        body = "**a**b**"
        assert _expand(body, AnchorFingerprint("b")) == "b"

    def test_never_passes_neighbouring_text(self) -> None:
        body = "x<i>a</i><b>word</b>"
        projection = project_body(body)
        candidate = resolve_anchor(AnchorFingerprint("word"), projection)
        assert candidate is not None
        start, end = expand_range(body, candidate, projection)
        assert body[start:end] == "<b>word</b>"

    def test_restores_edge_punctuation(self) -> None:
        body = "He said (quote) loudly"
        assert _expand(body, AnchorFingerprint("(quote)")) == "(quote)"

    def test_restores_trailing_period(self) -> None:
        body = "It is founded on labor. Next"
        assert _expand(body, AnchorFingerprint("on labor.")) == "on labor."

    def test_punctuation_not_in_body_is_skipped(self) -> None:
        body = "He said quote loudly"
        assert _expand(body, AnchorFingerprint("«quote»")) == "quote"

    def test_autolink_taken_whole(self) -> None:
        body = "See <https://example.it/art2> now"
        assert _expand(body, AnchorFingerprint("example.it")) == (
            "<https://example.it/art2>"
        )


class TestAbsorbMarkup:
    def test_nested_units_absorbed_outward(self) -> None:
        body = "<b>**word**</b>"
        start, end = absorb_markup(body, 5, 9, 0, len(body))
        assert (start, end) == (0, len(body))

    def test_limits_are_respected(self) -> None:
        body = "<b>**word**</b>"
        assert absorb_markup(body, 5, 9, 3, 11) == (3, 11)


class TestBalancedPieces:
    def test_paired_emphasis_is_one_piece(self) -> None:
        assert balanced_pieces("**Republic**") == [("**Republic**", True)]

    def test_unclosed_emphasis_cut_out(self) -> None:
        assert balanced_pieces("The **Republic") == [
            ("The ", True),
            ("**", False),
            ("Republic", True),
        ]

    def test_unopened_tag_cut_out(self) -> None:
        assert balanced_pieces("bold</b> text") == [
            ("bold", True),
            ("</b>", False),
            (" text", True),
        ]

    def test_crossing_pairs_split_apart(self) -> None:
        """Emphasis closing inside an element breaks both pairs."""
        assert balanced_pieces("**a<b>c**d</b>") == [
            ("**", False),
            ("a", True),
            ("<b>", False),
            ("c", True),
            ("**", False),
            ("d", True),
            ("</b>", False),
        ]

    def test_break_and_autolink_are_text(self) -> None:
        text = "one<br>two <https://example.it>"
        assert balanced_pieces(text) == [(text, True)]
