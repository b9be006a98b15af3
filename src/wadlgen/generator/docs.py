"""Docstrings for generated code."""

import textwrap

from markdownify import markdownify

from wadlgen.diagnostics import Diagnostics
from wadlgen.parser.base import WADL_NS, XHTML_NS, Doc


def strip_code_examples(text: str) -> str:
    """Drop fenced code blocks from markdown text."""
    lines = []
    in_example = False
    for line in text.splitlines():
        if not in_example and (line.startswith("```python") or line == "```"):
            in_example = True
        elif line.startswith("```"):
            in_example = False
        elif not in_example:
            lines.append(line)
    return "\n".join(lines)


def format_doc(doc: Doc, config, diagnostics: Diagnostics) -> str:
    """Render a doc block as plain text; XHTML is converted to markdown."""
    if doc.xmlns == XHTML_NS:
        text = markdownify(doc.content, heading_style="ATX", bullets="*")
        if config.strip_code_examples:
            text = strip_code_examples(text)
        return "\n".join(line.rstrip() for line in text.strip().splitlines())
    if doc.xmlns is not None and doc.xmlns != WADL_NS:
        diagnostics.warn(f"unknown doc namespace {doc.xmlns!r}, keeping text as is")
    return textwrap.dedent(doc.content).strip()


def doc_lines(doc: Doc, config, diagnostics: Diagnostics) -> list[str]:
    """Docstring body lines for ``doc``, title first as a heading."""
    lines = []
    if doc.title:
        lines.extend([f"# {doc.title}", ""])
    text = config.reformat_docstring(format_doc(doc, config, diagnostics))
    lines.extend(text.splitlines())
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def docs_lines(docs: list[Doc], config, diagnostics: Diagnostics) -> list[str]:
    """Join several doc blocks with blank lines between them."""
    lines: list[str] = []
    for doc in docs:
        body = doc_lines(doc, config, diagnostics)
        if not body:
            continue
        if lines:
            lines.append("")
        lines.extend(body)
    return lines


def args_section(args: list[tuple[str, Doc | None]], config, diagnostics: Diagnostics) -> list[str]:
    """A Google-style ``Args:`` block; undocumented args are listed bare."""
    if not args:
        return []
    lines = ["Args:"]
    for name, doc in args:
        body = doc_lines(doc, config, diagnostics) if doc is not None else []
        if not body:
            lines.append(f"  {name}")
            continue
        lines.append(f"  {name}: {body[0]}")
        lines.extend(f"    {line}" if line else "" for line in body[1:])
    return lines


def _escape(line: str) -> str:
    return line.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def docstring(lines: list[str], indent: int) -> list[str]:
    """Wrap body lines in a triple-quoted docstring at ``indent`` levels."""
    if not lines:
        return []
    pad = "    " * indent
    body = [_escape(line) for line in lines]
    if len(body) == 1 and not body[0].endswith('"'):
        return [f'{pad}"""{body[0]}"""\n']
    result = [f'{pad}"""{body[0]}\n']
    result.extend(f"{pad}{line}\n" if line else "\n" for line in body[1:])
    result.append(f'{pad}"""\n')
    return result


def comment(lines: list[str], indent: int, marker: str = "#:") -> list[str]:
    """Render lines as ``#:`` attribute doc comments."""
    pad = "    " * indent
    return [f"{pad}{marker} {line}\n" if line else f"{pad}{marker}\n" for line in lines]
