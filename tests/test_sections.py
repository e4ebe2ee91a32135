"""
Tests for markdown section extraction and stripping.
"""

from meeting_insights.core.sections import extract_section_items, strip_sections

DOCUMENT = """## Meeting Date: Monday, July 7, 2025

### Executive Summary
- Release slipped a week

### Open Items (Carried Forward)
- Fix login bug
• Update onboarding guide
  * Migrate billing database
-
Not a bullet line

### Completed Items
- Ship pricing page
-NoSpaceAfterMarker

### Recommendations
- Add more tests
"""


class TestExtractSectionItems:
    """Test bullet extraction from named sections."""

    def test_extracts_all_marker_styles_in_order(self):
        items = extract_section_items(DOCUMENT, "Open Items")
        assert items == ["Fix login bug", "Update onboarding guide", "Migrate billing database"]

    def test_heading_match_is_case_insensitive_prefix(self):
        assert extract_section_items(DOCUMENT, "open items") == extract_section_items(DOCUMENT, "Open Items")

    def test_requires_space_after_marker(self):
        assert extract_section_items(DOCUMENT, "Completed Items") == ["Ship pricing page"]

    def test_no_matching_heading(self):
        assert extract_section_items(DOCUMENT, "Risks") == []

    def test_last_section_collected_without_trailing_heading(self):
        assert extract_section_items(DOCUMENT, "Recommendations") == ["Add more tests"]

    def test_ignores_bullets_outside_section(self):
        assert "Release slipped a week" not in extract_section_items(DOCUMENT, "Open Items")

    def test_level_two_heading_does_not_end_section(self):
        doc = "### Open Items\n- one\n## Not a level three\n- two\n#### Deeper\n- three"
        assert extract_section_items(doc, "Open Items") == ["one", "two", "three"]


class TestStripSections:
    """Test removal of named sections."""

    def test_removes_named_sections_and_keeps_rest(self):
        stripped = strip_sections(DOCUMENT, ["Open Items", "Completed Items"])
        assert "Fix login bug" not in stripped
        assert "Ship pricing page" not in stripped
        assert "### Executive Summary" in stripped
        assert "- Add more tests" in stripped
        assert stripped.startswith("## Meeting Date:")
        assert stripped == stripped.strip()

    def test_extract_after_strip_is_empty(self):
        for prefix in ["Open Items", "Completed Items", "Recommendations"]:
            assert extract_section_items(strip_sections(DOCUMENT, [prefix]), prefix) == []

    def test_no_prefixes_keeps_document(self):
        assert strip_sections(DOCUMENT, []) == DOCUMENT.strip()
