"""Unit tests for prompt template compilation and rendering."""

from __future__ import annotations

import pytest

from medi_assist.flows.errors import ConfigurationError
from medi_assist.flows.templates import PromptTemplate, TemplateSyntaxError, render, to_text
from medi_assist.models.symptoms import PatientContext, SymptomAnalyzerInput


class TestPlaceholders:
    def test_simple_substitution(self) -> None:
        assert render("Topic: {{topic}}", {"topic": "Cranial Nerves"}) == "Topic: Cranial Nerves"

    def test_triple_braces_do_not_escape(self) -> None:
        assert render("{{{text}}}", {"text": "<b>a & b</b>"}) == "<b>a & b</b>"

    def test_double_braces_do_not_escape_either(self) -> None:
        assert render("{{text}}", {"text": "a < b"}) == "a < b"

    def test_dotted_path(self) -> None:
        data = {"patientContext": {"age": 45, "sex": "male"}}
        assert render("{{patientContext.age}}/{{patientContext.sex}}", data) == "45/male"

    def test_absent_field_renders_empty(self) -> None:
        assert render("[{{missing}}][{{a.b.c}}]", {"a": {}}) == "[][]"

    def test_comment_is_dropped(self) -> None:
        assert render("a{{! note }}b", {}) == "ab"

    def test_pydantic_model_uses_wire_names(self) -> None:
        value = SymptomAnalyzerInput(symptoms="fever and chills", patient_context=PatientContext(age=30))
        assert render("{{symptoms}}; age {{patientContext.age}}", value) == "fever and chills; age 30"


class TestBlocks:
    def test_each_expands_per_element(self) -> None:
        out = render("{{#each items}}<{{this}}>{{/each}}", {"items": ["a", "b", "c"]})
        assert out == "<a><b><c>"

    def test_each_over_objects_with_index_and_parent(self) -> None:
        tpl = "{{#each dx}}{{@index}}:{{name}}@{{../ward}}{{#unless @last}}, {{/unless}}{{/each}}"
        data = {"ward": "ICU", "dx": [{"name": "Sepsis"}, {"name": "AKI"}]}
        assert render(tpl, data) == "0:Sepsis@ICU, 1:AKI@ICU"

    @pytest.mark.parametrize("data", [{}, {"items": []}, {"items": None}])
    def test_each_over_absent_or_empty_renders_nothing(self, data: dict) -> None:
        assert render("x{{#each items}}<{{this}}>{{/each}}y", data) == "xy"

    def test_each_else_branch(self) -> None:
        assert render("{{#each items}}{{this}}{{else}}none{{/each}}", {"items": []}) == "none"

    def test_if_else(self) -> None:
        tpl = "{{#if flag}}yes{{else}}no{{/if}}"
        assert render(tpl, {"flag": True}) == "yes"
        assert render(tpl, {"flag": False}) == "no"
        assert render(tpl, {}) == "no"

    def test_if_on_absent_object_skips_section(self) -> None:
        tpl = "S{{#if patientContext}} age={{patientContext.age}}{{/if}}"
        assert render(tpl, {"symptoms": "x"}) == "S"
        assert render(tpl, {"patientContext": {"age": 3}}) == "S age=3"

    def test_nested_blocks(self) -> None:
        tpl = "{{#each groups}}[{{#each members}}{{this}}{{/each}}]{{/each}}"
        assert render(tpl, {"groups": [{"members": [1, 2]}, {"members": []}]}) == "[12][]"


class TestCompileErrors:
    @pytest.mark.parametrize(
        "source",
        [
            "{{#each items}}no close",
            "{{#if a}}x{{/each}}",
            "{{/if}}",
            "{{#with a}}x{{/with}}",
            "{{else}}",
            "{{}}",
            "{{#if}}x{{/if}}",
        ],
    )
    def test_malformed_template_raises_at_compile_time(self, source: str) -> None:
        with pytest.raises(TemplateSyntaxError):
            PromptTemplate(source)

    def test_syntax_error_is_configuration_error(self) -> None:
        assert issubclass(TemplateSyntaxError, ConfigurationError)


class TestToText:
    def test_values(self) -> None:
        assert to_text(None) == ""
        assert to_text(True) == "true"
        assert to_text(3) == "3"
        assert to_text(["a", "b"]) == "a,b"
        assert to_text({"k": 1}) == '{"k": 1}'

    def test_render_is_pure(self) -> None:
        tpl = PromptTemplate("{{a}}-{{b}}")
        data = {"a": 1, "b": [1, 2]}
        assert tpl.render(data) == tpl.render(data) == "1-1,2"
        assert data == {"a": 1, "b": [1, 2]}
