"""Tests for mustache-style template rendering."""
import pytest

from benchmarker.core.errors import TemplateNotFound, TemplateSyntaxError
from benchmarker.core.template_renderer import TemplateRenderer, render


@pytest.fixture
def renderer():
    return TemplateRenderer()


class TestVariables:
    """Test plain substitution."""

    def test_substitutes_value(self):
        assert render("{{x}}", {"x": "v"}) == "v"

    def test_missing_key_renders_empty(self):
        assert render("{{x}}", {}) == ""

    def test_none_renders_empty(self):
        assert render("[{{x}}]", {"x": None}) == "[]"

    def test_values_are_stringified(self):
        assert render("{{port}} {{debug}}", {"port": 3000, "debug": True}) == "3000 true"

    def test_no_html_escaping(self):
        context = {"command": "make && echo '<ok>' > out"}
        assert render("run {{command}}", context) == "run make && echo '<ok>' > out"
        assert render("{{{command}}}", context) == "make && echo '<ok>' > out"
        assert render("{{& command}}", context) == "make && echo '<ok>' > out"

    def test_dotted_names(self):
        context = {"language": {"version": "2.7"}}
        assert render("ruby:{{language.version}}", context) == "ruby:2.7"
        assert render("{{language.missing}}", context) == ""

    def test_whitespace_inside_tags(self):
        assert render("{{ x }}", {"x": "v"}) == "v"

    def test_jinja_syntax_in_text_is_literal(self):
        template = "{% raw %} {{x}} {# c #} {%- endraw %}"
        assert render(template, {"x": "v"}) == "{% raw %} v {# c #} {%- endraw %}"

    def test_comments_are_dropped(self):
        assert render("a{{! note }}b", {}) == "ab"


class TestSections:
    """Test sections, loops and inverted sections."""

    def test_loop_renders_once_per_element(self):
        template = "{{#files}}COPY {{.}} {{/files}}"
        assert render(template, {"files": ["a", "b"]}) == "COPY a COPY b "

    def test_loop_binds_element_fields(self):
        template = "{{#users}}{{name}}={{role}};{{/users}}"
        context = {"users": [{"name": "ann", "role": "admin"}, {"name": "bob"}], "role": "guest"}
        assert render(template, context) == "ann=admin;bob=guest;"

    def test_nested_loops_see_outer_scope(self):
        template = "{{#langs}}{{#fws}}{{lang}}/{{.}} {{/fws}}{{/langs}}"
        context = {"langs": [{"lang": "go", "fws": ["gin", "echo"]}]}
        assert render(template, context) == "go/gin go/echo "

    def test_truthy_value_renders_once(self):
        assert render("{{#debug}}on{{/debug}}", {"debug": True}) == "on"
        assert render("{{#db}}{{host}}{{/db}}", {"db": {"host": "pg"}}) == "pg"

    def test_falsy_or_missing_section_is_skipped(self):
        assert render("{{#x}}body{{/x}}", {}) == ""
        assert render("{{#x}}body{{/x}}", {"x": []}) == ""
        assert render("{{#x}}body{{/x}}", {"x": False}) == ""

    def test_inverted_section(self):
        assert render("{{^x}}none{{/x}}", {}) == "none"
        assert render("{{^x}}none{{/x}}", {"x": []}) == "none"
        assert render("{{^x}}none{{/x}}", {"x": ["a"]}) == ""

    def test_standalone_tags_remove_their_line(self):
        template = "FROM base\n{{#files}}\nCOPY {{.}} .\n{{/files}}\nCMD run\n"
        expected = "FROM base\nCOPY a .\nCOPY b .\nCMD run\n"
        assert render(template, {"files": ["a", "b"]}) == expected

    def test_indented_standalone_tags(self):
        template = "list:\n  {{#items}}\n  - {{.}}\n  {{/items}}\n"
        assert render(template, {"items": [1, 2]}) == "list:\n  - 1\n  - 2\n"

    def test_inline_tags_keep_their_line(self):
        template = "a {{#x}}b{{/x}} c\n"
        assert render(template, {"x": True}) == "a b c\n"

    def test_unclosed_section_raises(self):
        with pytest.raises(TemplateSyntaxError):
            render("{{#x}}body", {})

    def test_mismatched_close_raises(self):
        with pytest.raises(TemplateSyntaxError):
            render("{{#x}}body{{/y}}", {})


class TestRenderFile:
    """Test file based rendering."""

    def test_render_file(self, renderer, tmp_path):
        template = tmp_path / "Dockerfile"
        template.write_text("FROM {{image}}\n")
        assert renderer.render_file(template, {"image": "alpine"}) == "FROM alpine\n"

    def test_missing_template_raises(self, renderer, tmp_path):
        with pytest.raises(TemplateNotFound) as exc_info:
            renderer.render_file(tmp_path / "missing", {})
        assert "missing" in str(exc_info.value)
