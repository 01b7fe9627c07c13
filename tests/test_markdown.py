"""Tests for the free-text Related list."""

from relationships.markdown import (
    parse_related_section,
    parse_related_line,
    render_related_section,
    extract_related_section,
)
from relationships.models import RelatedListEntry

NOTE = """---
FN: Jane Smith
---
# Jane Smith

Some notes about Jane.

## Related
- father [[John Smith]]
- friend: [[Ana Lopez|Ana]]
- [[Sam Lee]] (colleague)
- cousin: Chris Park
- just a loose remark
* sister [[Kim Smith]]

## Notes
- mother [[Not Related Section]]
"""


def test_all_line_styles_are_parsed():
    assert parse_related_section(NOTE) == [
        RelatedListEntry(kind="father", name="John Smith"),
        RelatedListEntry(kind="friend", name="Ana Lopez"),
        RelatedListEntry(kind="colleague", name="Sam Lee"),
        RelatedListEntry(kind="cousin", name="Chris Park"),
        RelatedListEntry(kind="sister", name="Kim Smith"),
    ]


def test_heading_level_and_case_are_ignored():
    content = "### related\n- parent [[Alex]]\n"
    assert parse_related_section(content) == [RelatedListEntry(kind="parent", name="Alex")]


def test_single_hash_heading_is_not_a_related_section():
    assert parse_related_section("# Related\n- parent [[Alex]]\n") == []


def test_custom_heading():
    content = "## Family\n- parent [[Alex]]\n"
    assert parse_related_section(content, heading="Family") == [RelatedListEntry(kind="parent", name="Alex")]
    assert parse_related_section(content) == []


def test_missing_section():
    assert extract_related_section("# Only a title\n") is None
    assert parse_related_section("") == []


def test_non_relationship_lines():
    assert parse_related_line("- just a loose remark") is None
    assert parse_related_line("plain text [[Link]]") is None


def test_render_then_parse():
    entries = [RelatedListEntry(kind="parent", name="Alex"), RelatedListEntry(kind="friend", name="Bo")]
    rendered = render_related_section(entries)
    assert rendered == "## Related\n- parent [[Alex]]\n- friend [[Bo]]\n"
    assert parse_related_section(rendered) == entries
