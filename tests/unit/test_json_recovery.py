import pytest

from chartqa.inference.exceptions import InferenceParseError
from chartqa.inference.json_recovery import safe_parse_json


class TestSafeParseJson:
    def test_plain_object(self) -> None:
        assert safe_parse_json('{"qualityScore": 85}') == {"qualityScore": 85}

    def test_fenced_object_wrapped_in_prose(self) -> None:
        raw = 'Here is the analysis:\n```json\n{"qualityScore": 85}\n```\nLet me know.'
        assert safe_parse_json(raw) == {"qualityScore": 85}

    def test_uppercase_fence(self) -> None:
        assert safe_parse_json('```JSON\n{"a": 1}\n```') == {"a": 1}

    def test_literal_line_breaks_inside_strings(self) -> None:
        raw = '{"flaggedIssues": ["missing\nsignature"], "note": "tab\there"}'
        assert safe_parse_json(raw) == {
            "flaggedIssues": ["missing signature"],
            "note": "tab here",
        }

    def test_strips_control_characters(self) -> None:
        assert safe_parse_json('{"a": "b\x07c"}') == {"a": "bc"}

    def test_idempotent_on_clean_json(self) -> None:
        raw = '{"qualityScore": 85, "flaggedIssues": []}'
        first = safe_parse_json(raw)
        assert safe_parse_json(raw) == first

    def test_no_object_raises(self) -> None:
        with pytest.raises(InferenceParseError, match="No JSON object"):
            safe_parse_json("I could not analyze this document.")

    def test_empty_input_raises(self) -> None:
        with pytest.raises(InferenceParseError):
            safe_parse_json("")

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(InferenceParseError, match="Invalid JSON"):
            safe_parse_json('{"qualityScore": 85,,}')

    def test_array_between_braces_is_not_an_object(self) -> None:
        with pytest.raises(InferenceParseError):
            safe_parse_json('[{"a": 1}, {"b": 2}]')
