from wadlgen.config import Config
from wadlgen.diagnostics import Diagnostics
from wadlgen.generator.docs import (
    args_section,
    comment,
    doc_lines,
    docs_lines,
    docstring,
    format_doc,
    strip_code_examples,
)
from wadlgen.parser.base import WADL_NS, XHTML_NS, Doc


class TestStripCodeExamples:
    def test_python_block_removed(self):
        text = "Intro\n```python\nclient.get()\n```\nOutro"
        assert strip_code_examples(text) == "Intro\nOutro"

    def test_bare_fence_removed(self):
        assert strip_code_examples("a\n```\nb\n```\nc") == "a\nc"

    def test_plain_text_kept(self):
        assert strip_code_examples("no code here") == "no code here"


class TestFormatDoc:
    def test_xhtml_becomes_markdown(self):
        doc = Doc(content='<p>This is a <a href="https://example.com">test</a></p>', xmlns=XHTML_NS)
        assert format_doc(doc, Config(), Diagnostics()) == "This is a [test](https://example.com)"

    def test_xhtml_code_examples_stripped(self):
        doc = Doc(content="<p>Call it.</p><pre><code>x = 1</code></pre>", xmlns=XHTML_NS)
        text = format_doc(doc, Config(strip_code_examples=True), Diagnostics())
        assert "x = 1" not in text
        assert "Call it." in text

    def test_plain_text_is_dedented(self):
        doc = Doc(content="\n    First line.\n    Second line.\n  ", xmlns=WADL_NS)
        assert format_doc(doc, Config(), Diagnostics()) == "First line.\nSecond line."

    def test_unknown_namespace_warns(self):
        diagnostics = Diagnostics()
        doc = Doc(content="text", xmlns="http://example.com/ns")
        assert format_doc(doc, Config(), diagnostics) == "text"
        assert len(diagnostics.warnings) == 1

    def test_no_namespace_is_quiet(self):
        diagnostics = Diagnostics()
        format_doc(Doc(content="text"), Config(), diagnostics)
        assert diagnostics.warnings == []


class TestDocLines:
    def test_title_is_a_heading(self):
        lines = doc_lines(Doc(title="People", content="All of them."), Config(), Diagnostics())
        assert lines == ["# People", "", "All of them."]

    def test_reformat_hook(self):
        class Shouting(Config):
            def reformat_docstring(self, text):
                return text.upper()

        assert doc_lines(Doc(content="quiet"), Shouting(), Diagnostics()) == ["QUIET"]

    def test_several_docs(self):
        docs = [Doc(content="One."), Doc(content=""), Doc(content="Two.")]
        assert docs_lines(docs, Config(), Diagnostics()) == ["One.", "", "Two."]


class TestArgsSection:
    def test_documented_and_bare(self):
        args = [("text", Doc(content="Text to search for.\nCase-insensitive.")), ("status", None)]
        assert args_section(args, Config(), Diagnostics()) == [
            "Args:",
            "  text: Text to search for.",
            "    Case-insensitive.",
            "  status",
        ]

    def test_empty(self):
        assert args_section([], Config(), Diagnostics()) == []


class TestDocstring:
    def test_single_line(self):
        assert docstring(["Hello."], 1) == ['    """Hello."""\n']

    def test_multi_line(self):
        assert docstring(["Hello.", "", "World."], 0) == ['"""Hello.\n', "\n", "World.\n", '"""\n']

    def test_trailing_quote_goes_multi_line(self):
        assert docstring(['Say "hi"'], 0) == ['"""Say "hi"\n', '"""\n']

    def test_escapes(self):
        assert docstring(['a """ b \\ c'], 0) == ['"""a \\"\\"\\" b \\\\ c"""\n']

    def test_empty(self):
        assert docstring([], 1) == []


class TestComment:
    def test_lines(self):
        assert comment(["One.", "", "Two."], 1) == ["    #: One.\n", "    #:\n", "    #: Two.\n"]
