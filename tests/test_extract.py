"""Tests for fence stripping and report extraction."""

import json

import pydantic
import pytest

from conftest import report_payload
from ux_ray.errors import EmptyResponseError, ParseError
from ux_ray.extract import ResponseExtractor, extract, parse_json, strip_fences
from ux_ray.models import BoundsPolicy


class TestStripFences:
    def test_no_fence_verbatim(self):
        assert strip_fences('  {"a": 1}\n') == '{"a": 1}'

    def test_json_fence(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_generic_fence(self):
        assert strip_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_other_language_tag(self):
        assert strip_fences('```javascript\n{"a": 1}\n```') == '{"a": 1}'

    def test_prose_around_fence(self):
        text = 'Here is my audit:\n\n```json\n{"a": 1}\n```\n\nHope this helps!'

        assert strip_fences(text) == '{"a": 1}'

    def test_tagged_fence_after_prose_on_same_line(self):
        assert strip_fences('Here is the audit: ```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_generic_fence_after_prose_on_same_line(self):
        assert strip_fences('Result: ```{"a": 1}```') == '{"a": 1}'

    def test_json_fence_preferred_over_earlier_generic_fence(self):
        text = '```\nsome notes\n```\n\n```json\n{"a": 1}\n```'

        assert strip_fences(text) == '{"a": 1}'

    def test_single_line_fence(self):
        assert strip_fences('```json {"a": 1} ```') == '{"a": 1}'

    def test_unterminated_fence_takes_rest(self):
        assert strip_fences('```json\n{"a": 1}') == '{"a": 1}'

    def test_nested_fences(self):
        text = '```\n```json\n{"a": 1}\n```\n```'

        assert strip_fences(text) == '{"a": 1}'

    def test_doubly_tagged_nested_fences(self):
        text = '```json\n```json\n{"a": 1}\n```\n```'

        assert strip_fences(text) == '{"a": 1}'

    def test_backticks_inside_string_value_kept(self):
        body = json.dumps({"summary": "wrap code in ``` fences"}, indent=2)

        assert strip_fences(f"```json\n{body}\n```") == body

    def test_backticks_inside_unfenced_json_kept(self):
        body = json.dumps({"summary": "```json is not a fence here```"})

        assert strip_fences(body) == body

    def test_case_insensitive_tag(self):
        assert strip_fences('```JSON\n{"a": 1}\n```') == '{"a": 1}'


class TestParseJson:
    @pytest.mark.parametrize("text", ["", None, "   \n\t"])
    def test_empty_raises_empty_response(self, text):
        with pytest.raises(EmptyResponseError):
            parse_json(text)

    def test_not_json_raises_parse_error_with_cause(self):
        with pytest.raises(ParseError) as exc_info:
            parse_json("not json")

        assert isinstance(exc_info.value.cause, json.JSONDecodeError)
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    def test_non_object_rejected(self):
        with pytest.raises(ParseError):
            parse_json("[1, 2, 3]")

    def test_empty_fence_is_parse_error(self):
        with pytest.raises(ParseError):
            parse_json("```json\n```")


class TestExtract:
    def test_fenced_report(self):
        text = "```json\n" + json.dumps(report_payload()) + "\n```"

        report = extract(text)

        assert report.score == 42
        assert report.summary == "rough"
        assert report.categories.accessibility.score == 35
        assert report.critical_issues == ["Grey-on-grey text", "CTA below the fold"]
        assert [a.id for a in report.annotations] == [1, 2]

    @pytest.mark.parametrize("wrap", [
        lambda s: s,
        lambda s: f"```json\n{s}\n```",
        lambda s: f"```\n{s}\n```",
        lambda s: f"Sure!\n```json\n{s}\n```\nLet me know.",
        lambda s: f"Here is the audit: ```json\n{s}\n```",
        lambda s: f"```\n```json\n{s}\n```\n```",
    ])
    def test_idempotent_across_wrappings(self, report_json, wrap):
        assert extract(wrap(report_json)) == extract(report_json)

    def test_empty_text(self):
        with pytest.raises(EmptyResponseError):
            extract("")

    def test_not_json(self):
        with pytest.raises(ParseError):
            extract("not json")

    @pytest.mark.parametrize("field", ["score", "summary", "categories"])
    def test_missing_required_field(self, field):
        payload = report_payload()
        del payload[field]

        with pytest.raises(ParseError) as exc_info:
            extract(json.dumps(payload))

        assert isinstance(exc_info.value.cause, pydantic.ValidationError)

    def test_missing_category_rejected(self):
        payload = report_payload()
        del payload["categories"]["consistency"]

        with pytest.raises(ParseError):
            extract(json.dumps(payload))

    def test_non_numeric_score_rejected(self):
        with pytest.raises(ParseError):
            extract(json.dumps(report_payload(score="excellent")))

    def test_optional_lists_default_empty(self):
        payload = report_payload()
        for key in ("criticalIssues", "quickFixes", "annotations"):
            del payload[key]

        report = extract(json.dumps(payload))

        assert report.critical_issues == []
        assert report.quick_fixes == []
        assert report.annotations == []

    def test_null_annotations_accepted(self):
        report = extract(json.dumps(report_payload(annotations=None)))

        assert report.annotations == []

    def test_scores_rounded_to_int(self):
        report = extract(json.dumps(report_payload(score=72.6)))

        assert report.score == 73

    def test_rich_category_variant(self):
        payload = report_payload()
        payload["categories"]["usability"] = {
            "score": 61,
            "commentary": "Forms are long",
            "issues": [
                {
                    "id": 7,
                    "title": "No inline validation",
                    "description": "Errors only on submit",
                    "severity": "Warning",
                    "location": "Signup form",
                    "suggestion": "Validate on blur",
                }
            ],
        }

        report = extract(json.dumps(payload))

        usability = report.categories.usability
        assert usability.score == 61
        assert usability.comment == "Forms are long"
        assert usability.issues[0].id == "7"
        assert usability.issues[0].severity == "warning"

    def test_serializes_back_to_camel_case(self, report_json):
        data = extract(report_json).to_dict()

        assert set(data) == {
            "score", "summary", "categories", "criticalIssues", "quickFixes", "annotations",
        }
        assert "visualHierarchy" in data["categories"]


class TestAnnotationValidation:
    def _with_annotations(self, annotations, policy=BoundsPolicy.CLAMP):
        text = json.dumps(report_payload(annotations=annotations))
        return ResponseExtractor(policy).extract(text)

    def _box(self, **overrides):
        box = {
            "x": 10, "y": 10, "width": 10, "height": 10,
            "severity": "warning", "label": "Box", "description": "",
        }
        box.update(overrides)
        return box

    def test_missing_ids_get_discovery_order(self):
        report = self._with_annotations([self._box(), self._box(), self._box()])

        assert [a.id for a in report.annotations] == [1, 2, 3]

    def test_missing_id_skips_explicit_ids(self):
        report = self._with_annotations([self._box(id=2), self._box(), self._box(id=3), self._box()])

        assert [a.id for a in report.annotations] == [2, 4, 3, 5]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ParseError):
            self._with_annotations([self._box(id=1), self._box(id=1)])

    def test_non_positive_id_rejected(self):
        with pytest.raises(ParseError):
            self._with_annotations([self._box(id=0)])

    def test_severity_normalized(self):
        report = self._with_annotations([self._box(severity=" Critical ")])

        assert report.annotations[0].severity == "critical"

    def test_unknown_severity_rejected(self):
        with pytest.raises(ParseError):
            self._with_annotations([self._box(severity="catastrophic")])

    def test_non_numeric_coordinate_rejected(self):
        with pytest.raises(ParseError):
            self._with_annotations([self._box(x="left")])

    def test_out_of_bounds_box_clamped(self):
        report = self._with_annotations(
            [self._box(x=90, y=90, width=20, height=20)], BoundsPolicy.CLAMP
        )

        box = report.annotations[0]
        assert (box.x, box.y, box.width, box.height) == (90, 90, 10, 10)
        assert box.right <= 100 and box.bottom <= 100

    def test_out_of_bounds_box_rejected(self):
        with pytest.raises(ParseError):
            self._with_annotations(
                [self._box(x=90, y=90, width=20, height=20)], BoundsPolicy.REJECT
            )

    def test_out_of_bounds_box_passthrough(self):
        report = self._with_annotations(
            [self._box(x=90, y=90, width=20, height=20)], BoundsPolicy.PASSTHROUGH
        )

        box = report.annotations[0]
        assert (box.x, box.y, box.width, box.height) == (90, 90, 20, 20)

    def test_negative_origin_clamped(self):
        report = self._with_annotations([self._box(x=-5, y=-10, width=20, height=30)])

        box = report.annotations[0]
        assert (box.x, box.y, box.width, box.height) == (0, 0, 15, 20)

    def test_in_bounds_box_accepted_by_reject_policy(self):
        report = self._with_annotations([self._box()], BoundsPolicy.REJECT)

        assert report.annotations[0].width == 10

    @pytest.mark.parametrize("policy, expected", [
        (BoundsPolicy.CLAMP, 100),
        (BoundsPolicy.PASSTHROUGH, 120),
    ])
    def test_score_range_policy(self, policy, expected):
        report = ResponseExtractor(policy).extract(json.dumps(report_payload(score=120)))

        assert report.score == expected

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ParseError):
            ResponseExtractor(BoundsPolicy.REJECT).extract(
                json.dumps(report_payload(score=-3))
            )

    def test_category_score_clamped(self):
        payload = report_payload()
        payload["categories"]["accessibility"]["score"] = 140

        report = extract(json.dumps(payload))

        assert report.categories.accessibility.score == 100
