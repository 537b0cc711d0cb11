"""
Unit tests for Markdown paragraph segmentation.
"""
import pytest

from docparse.processing.paragraphs import EMPTY_PLACEHOLDER, markdown_to_paragraphs


def test_headings_prose_and_lists(sample_markdown):
    assert markdown_to_paragraphs(sample_markdown) == [
        "=== # Title ===",
        "Hello world. More text.",
        "- item one",
        "- item two",
        "1. first",
        "2. second",
    ]


@pytest.mark.parametrize("text", ["", "   ", "\n\n\t\n", None])
def test_empty_input_yields_placeholder(text):
    assert markdown_to_paragraphs(text) == [EMPTY_PLACEHOLDER]


def test_consecutive_lines_join_with_single_space():
    text = "First line\n  second line  \nthird line\n\nNext paragraph"
    assert markdown_to_paragraphs(text) == [
        "First line second line third line",
        "Next paragraph",
    ]


def test_heading_interrupts_paragraph_without_blank_line():
    text = "Some intro\n## Section\nBody text"
    assert markdown_to_paragraphs(text) == [
        "Some intro",
        "=== ## Section ===",
        "Body text",
    ]


def test_star_bullets_and_multi_digit_ordinals_stand_alone():
    text = "Before\n* starred\n10. tenth\nAfter"
    assert markdown_to_paragraphs(text) == ["Before", "* starred", "10. tenth", "After"]


def test_list_item_is_not_merged_with_following_prose():
    text = "- item\ncontinuation"
    assert markdown_to_paragraphs(text) == ["- item", "continuation"]


def test_windows_line_endings_are_trimmed():
    text = "# Title\r\n\r\nBody\r\n"
    assert markdown_to_paragraphs(text) == ["=== # Title ===", "Body"]
