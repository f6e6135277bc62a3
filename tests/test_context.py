"""Writing context monitor tests."""

from __future__ import annotations

from claimlens.context import (
    ContextMonitor,
    extract_current_paragraph,
    extract_current_section,
    extract_recent_words,
)

DOCUMENT = "# Results\n\nTariffs hurt farm incomes across regions.\n\nExports fell sharply in spring."


def test_paragraph_and_section_around_cursor() -> None:
    cursor = DOCUMENT.index("farm")
    assert extract_current_paragraph(DOCUMENT, cursor) == "Tariffs hurt farm incomes across regions."
    assert extract_current_section(DOCUMENT, cursor) == "Results"


def test_all_caps_heading_and_default_section() -> None:
    text = "METHODS\nWe sampled 40 farms."
    assert extract_current_section(text, len(text)) == "METHODS"
    assert extract_current_section("plain text only", 5) == "Introduction"


def test_recent_words_are_bounded() -> None:
    text = " ".join(f"w{i}" for i in range(500))
    words = extract_recent_words(text, len(text))
    assert len(words) == 200
    assert words[-1] == "w499"


def test_dominant_concepts_are_filtered_and_ordered() -> None:
    monitor = ContextMonitor()
    context = monitor.update_context(DOCUMENT, DOCUMENT.index("farm"), active_hypothesis="h1")
    assert context.dominant_concepts == ["tariffs", "hurt", "farm", "incomes", "across", "regions"]
    assert context.active_hypothesis == "h1"
    assert monitor.current is context


def test_context_change_detection() -> None:
    monitor = ContextMonitor()
    first = monitor.build_context(DOCUMENT, DOCUMENT.index("farm"))
    assert monitor.has_context_changed(first)

    monitor.update_context(DOCUMENT, DOCUMENT.index("farm"))
    assert not monitor.has_context_changed(monitor.build_context(DOCUMENT, DOCUMENT.index("regions")))
    assert monitor.has_context_changed(monitor.build_context(DOCUMENT, DOCUMENT.index("spring")))


def test_empty_contexts_are_unchanged_and_cursor_is_clamped() -> None:
    monitor = ContextMonitor()
    monitor.update_context("", 0)
    assert not monitor.has_context_changed(monitor.build_context("", 10))
    context = monitor.build_context(DOCUMENT, 10_000)
    assert context.current_paragraph == "Exports fell sharply in spring."
    assert monitor.build_context(DOCUMENT, -5).current_section == "Introduction"
