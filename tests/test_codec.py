"""
Vote Table Codec Tests

Export format, tolerant import and the unknown-variant guard.
"""

from votes.codec import HEADER, serialize, parse, parse_report, split_fields
from votes.contracts import Vote, Variant


UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko)"
TS1 = "2024-03-01T09:15:00.123Z"
TS2 = "2024-03-01T09:16:30.456Z"

HEADER_LINE = '"variant","choice","timestamp","userAgent"'


def sample_votes():
    return [
        Vote(Variant.NEUTRAL, "politics", TS1, UA),
        Vote(Variant.NUDGED, "mental-health", TS2, ""),
    ]


class TestSerialize:

    def test_header_row(self):
        assert serialize([]) == HEADER_LINE
        assert HEADER == ("variant", "choice", "timestamp", "userAgent")

    def test_rows_are_json_encoded_and_comma_joined(self):
        text = serialize(sample_votes())
        lines = text.split("\n")
        assert lines[0] == HEADER_LINE
        assert lines[1] == f'"neutral","politics","{TS1}","{UA}"'
        assert lines[2] == f'"nudged","mental-health","{TS2}",""'

    def test_quotes_and_newlines_are_escaped(self):
        vote = Vote(Variant.NUDGED, 'say "hi"', TS1, "line1\nline2")
        text = serialize([vote])
        assert len(text.split("\n")) == 2
        assert parse(text) == [vote]

    def test_non_ascii_kept_literal(self):
        text = serialize([Vote(Variant.NEUTRAL, "éducation", TS1)])
        assert "éducation" in text


class TestParse:

    def test_roundtrip_with_commas_in_fields(self):
        votes = sample_votes()
        assert parse(serialize(votes)) == votes

    def test_empty_and_header_only_input(self):
        assert parse("") == []
        assert parse("   \n") == []
        assert parse(HEADER_LINE) == []
        assert parse(HEADER_LINE + "\n") == []

    def test_crlf_line_endings(self):
        text = serialize(sample_votes()).replace("\n", "\r\n") + "\r\n"
        assert parse(text) == sample_votes()

    def test_mixed_line_endings(self):
        lines = serialize(sample_votes()).split("\n")
        text = lines[0] + "\r\n" + lines[1] + "\n" + lines[2]
        assert len(parse(text)) == 2

    def test_columns_resolved_by_name(self):
        text = (
            '"timestamp","userAgent","choice","variant"\n'
            f'"{TS1}","Safari","education","neutral"'
        )
        assert parse(text) == [Vote(Variant.NEUTRAL, "education", TS1, "Safari")]

    def test_missing_column_defaults_to_empty(self):
        text = '"variant","choice"\n"nudged","creativity"'
        assert parse(text) == [Vote(Variant.NUDGED, "creativity", "", "")]

    def test_short_row_defaults_to_empty(self):
        text = HEADER_LINE + '\n"nudged","creativity"'
        assert parse(text) == [Vote(Variant.NUDGED, "creativity", "", "")]

    def test_unknown_variant_row_dropped_siblings_kept(self):
        text = "\n".join([
            HEADER_LINE,
            f'"neutral","politics","{TS1}",""',
            f'"unknown","politics","{TS1}",""',
            f'"nudged","defenses","{TS2}",""',
        ])
        votes = parse(text)
        assert [v.variant for v in votes] == [Variant.NEUTRAL, Variant.NUDGED]

    def test_unparsable_field_falls_back_to_raw_text(self):
        text = HEADER_LINE + f'\n"nudged",politics,"{TS1}",plain agent'
        assert parse(text) == [Vote(Variant.NUDGED, "politics", TS1, "plain agent")]

    def test_unquoted_header_is_tolerated(self):
        text = f'variant,choice,timestamp,userAgent\nneutral,education,{TS1},'
        assert parse(text) == [Vote(Variant.NEUTRAL, "education", TS1, "")]

    def test_json_null_and_numbers(self):
        text = HEADER_LINE + f'\n"neutral",42,"{TS1}",null'
        assert parse(text) == [Vote(Variant.NEUTRAL, "42", TS1, "")]

    def test_blank_row_is_dropped(self):
        text = HEADER_LINE + f'\n\n"neutral","politics","{TS1}",""'
        assert len(parse(text)) == 1


class TestSplitFields:

    def test_comma_inside_json_string(self):
        fields, fallbacks = split_fields('"a,b","c"')
        assert fields == ["a,b", "c"]
        assert fallbacks == 0

    def test_trailing_comma_yields_empty_field(self):
        fields, fallbacks = split_fields('"a",')
        assert fields == ["a", ""]
        assert fallbacks == 1

    def test_unterminated_string_falls_back(self):
        fields, fallbacks = split_fields('"abc,"d"')
        assert fields == ['"abc', "d"]
        assert fallbacks == 1


class TestParseReport:

    def test_report_accounts_for_every_row(self):
        text = "\n".join([
            HEADER_LINE,
            f'"neutral","politics","{TS1}",""',
            f'"control","politics","{TS1}",""',
            f'nudged,raw,"{TS2}",""',
        ])
        report = parse_report(text)
        assert report.row_count == 3
        assert report.success_count == 2
        assert report.dropped_count == 1
        assert report.dropped_rows[0].line_number == 3
        assert "control" in report.dropped_rows[0].reason
        assert report.fallback_fields == 2
        assert report.to_dict()['dropped_count'] == 1

    def test_parse_matches_report_votes(self):
        text = serialize(sample_votes())
        assert parse(text) == parse_report(text).votes


class TestHostileInput:

    def test_deeply_nested_field_falls_back_to_raw_text(self):
        nested = "[" * 5000
        text = '"variant","choice"\n"neutral",' + nested

        votes = parse(text)

        assert votes == [Vote(Variant.NEUTRAL, nested, "", "")]

    def test_whitespace_around_fields_is_ignored(self):
        text = (
            '"variant", "choice", "timestamp", "userAgent"\n'
            f'"neutral", "politics", "{TS1}", "UA"\n'
            f' "neutral" ,"education" , "{TS2}",""'
        )
        assert parse(text) == [
            Vote(Variant.NEUTRAL, "politics", TS1, "UA"),
            Vote(Variant.NEUTRAL, "education", TS2, ""),
        ]

    def test_leading_byte_order_mark_is_stripped(self):
        votes = sample_votes()
        assert parse("\ufeff" + serialize(votes)) == votes

    def test_non_standard_constants_kept_as_raw_text(self):
        text = '"variant","choice","timestamp"\n"neutral",NaN,-Infinity'
        assert parse(text) == [Vote(Variant.NEUTRAL, "NaN", "-Infinity", "")]
