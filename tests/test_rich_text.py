"""Tests for rich text formatting, title sanitizing and header quoting."""

import unittest

import yaml

from converters.rich_text import (
    double_quote,
    format_date_mention,
    format_runs,
    quote_key,
    quote_value,
    sanitize_title,
    to_utc_iso,
)
from models import RichTextRun


class TestFormatRuns(unittest.TestCase):
    def test_bold_and_italic_markers(self):
        """Test bold and italic runs get their markers."""
        runs = [
            RichTextRun('plain '),
            RichTextRun('strong', bold=True),
            RichTextRun(' and '),
            RichTextRun('slanted', italic=True),
        ]
        self.assertEqual(format_runs(runs), 'plain **strong** and *slanted*')

    def test_bold_italic_nests_italic_outside(self):
        """Test a bold italic run nests the italic marker outside."""
        self.assertEqual(format_runs([RichTextRun('both', bold=True, italic=True)]), '***both***')

    def test_whitespace_runs_are_not_annotated(self):
        """Test whitespace-only runs stay unmarked."""
        self.assertEqual(format_runs([RichTextRun(' ', bold=True)]), ' ')

    def test_markers_hug_text_inside_surrounding_spaces(self):
        """Test padded annotated runs keep their spaces outside the markers."""
        runs = [
            RichTextRun('a'),
            RichTextRun(' bold ', bold=True),
            RichTextRun('b'),
            RichTextRun(' slanted', italic=True),
        ]
        self.assertEqual(format_runs(runs), 'a **bold** b *slanted*')
        self.assertEqual(format_runs([RichTextRun(' bold ', bold=True)]), ' **bold** ')

    def test_annotations_can_be_disabled(self):
        """Test annotate=False drops the markers."""
        self.assertEqual(format_runs([RichTextRun('x', bold=True)], annotate=False), 'x')

    def test_hyperlink(self):
        """Test hyperlinked runs become Markdown links."""
        run = RichTextRun('docs', href='https://example.com/docs')
        self.assertEqual(format_runs([run]), '[docs](https://example.com/docs)')

    def test_date_mention_becomes_day_month_year_link(self):
        """Test date mentions become D.M.YYYY note links."""
        run = RichTextRun('2024-03-05', mention_type='date')
        self.assertEqual(format_runs([run]), '[[5.3.2024]]')

    def test_page_mention_keeps_text_without_link(self):
        """Test page mentions keep their text but drop the href."""
        run = RichTextRun('Other page', href='https://www.notion.so/abc', mention_type='page')
        self.assertEqual(format_runs([run]), 'Other page')

    def test_unparseable_date_mention_keeps_text(self):
        """Test unparseable date mention keeps text."""
        self.assertEqual(format_date_mention('someday'), 'someday')


class TestSanitizeTitle(unittest.TestCase):
    def test_spaces_become_underscores(self):
        """Test spaces become underscores."""
        self.assertEqual(sanitize_title('My Note'), 'My_Note')

    def test_strips_punctuation(self):
        """Test characters outside the safe set are removed."""
        self.assertEqual(sanitize_title('Q&A: 2024/25 (draft)!'), 'QA_202425_draft')

    def test_keeps_dashes_and_underscores(self):
        """Test keeps dashes and underscores."""
        self.assertEqual(sanitize_title('a-b_c'), 'a-b_c')

    def test_truncates_to_200_characters(self):
        """Test truncates to 200 characters."""
        self.assertEqual(len(sanitize_title('x' * 500)), 200)

    def test_empty_title_falls_back(self):
        """Test titles that sanitize to nothing become 'untitled'."""
        self.assertEqual(sanitize_title(''), 'untitled')
        self.assertEqual(sanitize_title('???'), 'untitled')


class TestDates(unittest.TestCase):
    def test_date_only_is_midnight_utc(self):
        """Test date-only values become midnight UTC."""
        self.assertEqual(to_utc_iso('2024-01-05'), '2024-01-05T00:00:00.000Z')

    def test_offset_is_converted_to_utc(self):
        """Test offsets are converted to UTC."""
        self.assertEqual(to_utc_iso('2024-03-01T10:00:00.000+02:00'), '2024-03-01T08:00:00.000Z')

    def test_milliseconds_are_kept(self):
        """Test milliseconds are kept."""
        self.assertEqual(to_utc_iso('2024-03-01T10:00:00.123Z'), '2024-03-01T10:00:00.123Z')

    def test_invalid_date_raises(self):
        """Test unparseable dates raise ValueError."""
        with self.assertRaises(ValueError):
            to_utc_iso('not a date')


class TestQuoting(unittest.TestCase):
    def test_plain_key_is_not_quoted(self):
        """Test plain key is not quoted."""
        self.assertEqual(quote_key('Due date'), 'Due date')

    def test_key_with_punctuation_is_quoted(self):
        """Test keys with punctuation are double-quoted."""
        self.assertEqual(quote_key('Done?'), '"Done?"')

    def test_keys_yaml_would_retype_are_quoted(self):
        """Test numeric, boolean, null and padded keys stay string keys."""
        for key in ('2024', 'true', 'No', 'null', ' padded'):
            with self.subTest(key=key):
                self.assertEqual(yaml.safe_load(f"{quote_key(key)}: true"), {key: True})
        self.assertEqual(quote_key('2024'), '"2024"')

    def test_plain_value_is_not_quoted(self):
        """Test plain value is not quoted."""
        self.assertEqual(quote_value('Done'), 'Done')

    def test_value_with_punctuation_is_quoted(self):
        """Test value with punctuation is quoted."""
        self.assertEqual(quote_value('a: b'), '"a: b"')

    def test_values_yaml_would_retype_are_quoted(self):
        """Test values YAML reads as other types are quoted."""
        for value in ('yes', 'true', '123', 'null', '1.5'):
            with self.subTest(value=value):
                quoted = quote_value(value)
                self.assertEqual(yaml.safe_load(f"key: {quoted}")['key'], value)

    def test_quotes_and_backslashes_survive(self):
        """Test embedded quotes and backslashes are escaped."""
        value = 'say "hi" \\ bye'
        self.assertEqual(yaml.safe_load(f"key: {quote_value(value)}")['key'], value)

    def test_every_line_break_is_escaped(self):
        """Test all YAML line break characters survive double quoting."""
        for value in ('a\nb', 'a\rb', 'a\r\nb', 'a\x85b', 'a\u2028b', 'a\u2029b', 'a\tb'):
            with self.subTest(value=repr(value)):
                quoted = double_quote(value)
                self.assertNotIn('\r', quoted)
                self.assertNotIn('\u2028', quoted)
                self.assertEqual(yaml.safe_load(f"key: {quoted}")['key'], value)

    def test_values_with_line_breaks_read_back_unchanged(self):
        """Test quote_value keeps values containing line breaks intact."""
        for value in ('one\rtwo', 'one\x85two', 'one\u2029two'):
            with self.subTest(value=repr(value)):
                self.assertEqual(yaml.safe_load(f"key: {quote_value(value)}")['key'], value)

    def test_empty_value(self):
        """Test empty value."""
        self.assertEqual(quote_value(''), '""')


if __name__ == '__main__':
    unittest.main()
