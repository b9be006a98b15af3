"""Code generator: compiles a parsed WADL document into a Python module."""

import logging

from pydantic import BaseModel, ConfigDict

from wadlgen.config import Config
from wadlgen.diagnostics import Diagnostics
from wadlgen.generator.docs import docs_lines, docstring
from wadlgen.generator.errors import CompilationError, CompilationFailed
from wadlgen.generator.methods import MethodEmitter
from wadlgen.generator.naming import RUNTIME, string_literal, type_identifier
from wadlgen.generator.options import collect_option_names, generate_enum
from wadlgen.generator.representations import RepresentationEmitter
from wadlgen.generator.types import TypeResolver
from wadlgen.parser.base import Application

logger = logging.getLogger(__name__)

HEADER = [
    "from __future__ import annotations\n",
    "\n",
    "import datetime\n",
    "import enum\n",
    "import warnings\n",
    "from typing import Any, Optional, Sequence, Union\n",
    "from urllib.parse import quote, urlencode\n",
    "\n",
    "from pydantic import Field\n",
    "\n",
    f"from wadlgen import runtime as {RUNTIME}\n",
]

# Names the generated module imports; enums must not take them.
IMPORTED_NAMES = ("Any", "Field", "Optional", "Sequence", "Union")


class CompilationResult(BaseModel):
    """Output of one compilation: source fragments plus everything reported."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    fragments: list[str]
    errors: list[CompilationError]
    warnings: list[str]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def text(self) -> str:
        return "".join(self.fragments)


class _Compilation:
    """State of a single compilation run, shared by the emitters."""

    def __init__(self, app: Application, config: Config, diagnostics: Diagnostics):
        self.app = app
        self.config = config
        self.diagnostics = diagnostics
        self.errors: list[CompilationError] = []
        reserved = list(IMPORTED_NAMES)
        reserved.extend(type_identifier(rep.id) for rep in app.representations if rep.id is not None)
        reserved.extend(type_identifier(rt.id) for rt in app.resource_types)
        self.option_names = collect_option_names(app, config, reserved, self.errors)
        self.resolver = TypeResolver(app, config, self.option_names, self.diagnostics)
        self.public: list[str] = []
        self.defined: set[str] = set()

    def record(self, error: CompilationError) -> None:
        logger.debug("Compilation error: %s", error)
        self.errors.append(error)

    def _define(self, name: str, public: bool) -> bool:
        if name in self.defined:
            self.record(CompilationError(f"class {name!r} is defined twice", type_name=name))
            return False
        self.defined.add(name)
        if public:
            self.public.append(name)
        return True

    def run(self) -> list[str]:
        fragments = ["# Generated by wadlgen. Do not edit.\n"]
        doc = docs_lines(self.app.docs, self.config, self.diagnostics)
        if doc:
            fragments.extend(docstring(doc, 0))
            fragments.append("\n")
        fragments.extend(HEADER)

        for name, options in self.option_names.items():
            self._define(name, True)
            fragments.extend(["\n", "\n"])
            fragments.extend(generate_enum(name, options))

        representations = RepresentationEmitter(self)
        for rep in self.app.representations:
            try:
                lines = representations.generate(rep)
                name = representations.class_name(rep)
            except CompilationError as e:
                self.record(e)
                continue
            if not self._define(name, self.config.representation_visibility(name)):
                continue
            fragments.extend(["\n", "\n"])
            fragments.extend(lines)

        methods = MethodEmitter(self)
        for resource_type in self.app.resource_types:
            name = methods.class_name(resource_type)
            lines = methods.generate_resource_type(resource_type)
            if not self._define(name, self.config.resource_type_visibility(name)):
                continue
            fragments.extend(["\n", "\n"])
            fragments.extend(lines)

        fragments.extend(["\n", "\n", "__all__ = [\n"])
        fragments.extend(f"    {string_literal(name)},\n" for name in self.public)
        fragments.append("]\n")
        return fragments


class CodeGenerator:
    """Generates Python client bindings from a parsed WADL document."""

    def __init__(self, config: Config | None = None):
        self.config = config if config is not None else Config()

    def compile(self, app: Application, diagnostics: Diagnostics | None = None) -> CompilationResult:
        """Compile ``app``, collecting errors instead of raising them.

        Warnings already in ``diagnostics``, such as those from parsing,
        are reported with the ones found while compiling.
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        compilation = _Compilation(app, self.config, diagnostics)
        fragments = compilation.run()
        logger.info(
            "Compiled %d enums, %d classes with %d errors and %d warnings",
            len(compilation.option_names), len(compilation.defined) - len(compilation.option_names),
            len(compilation.errors), len(compilation.diagnostics.warnings),
        )
        return CompilationResult(
            fragments=fragments,
            errors=compilation.errors,
            warnings=list(compilation.diagnostics.warnings),
        )

    def generate(self, app: Application) -> str:
        """Return the generated module source; raises CompilationFailed on any error."""
        result = self.compile(app)
        if result.errors:
            raise CompilationFailed(result.errors)
        return result.text


def generate(app: Application, config: Config | None = None) -> str:
    return CodeGenerator(config).generate(app)
