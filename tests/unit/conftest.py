"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

from glossator.anchoring.fingerprint import AnchorFingerprint

# Body from the resolver's reference scenario
REPUBLIC_BODY = "Art. 1. The **Republic** is founded on labor."

# A provider-style body: anchors on their own paragraph, headings per article
ARTICLES_BODY = (
    '<span id="art_1"></span>\n'
    "\n"
    "## Art. 1\n"
    "\n"
    "L'Italia è una Repubblica democratica, fondata sul lavoro.\n"
    "\n"
    '<span id="art_2"></span>\n'
    "\n"
    "## Art. 2\n"
    "\n"
    "La Repubblica riconosce e garantisce i diritti inviolabili dell'uomo.\n"
)


@pytest.fixture
def republic_fingerprint() -> AnchorFingerprint:
    return AnchorFingerprint(
        selection_text="Republic",
        prefix_context="art 1 the",
        suffix_context="is founded on labor",
    )


@pytest.fixture
def republic_body() -> str:
    return REPUBLIC_BODY


@pytest.fixture
def articles_body() -> str:
    return ARTICLES_BODY
