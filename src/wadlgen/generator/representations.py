"""Record classes for JSON representations.

Each JSON representation definition becomes a pydantic model deriving
from ``wadlgen.runtime.Representation``. Fields whose parameter links to
a resource type store the URL, and a property converts between that URL
and the resource type's generated class.
"""

import logging

from wadlgen.generator.docs import comment, doc_lines, docs_lines, docstring
from wadlgen.generator.errors import MissingIdentifierError, UnsupportedMediaTypeError
from wadlgen.generator.naming import (
    MODULE_NAMES,
    RUNTIME,
    escape_reserved,
    field_identifier,
    string_literal,
    type_identifier,
)
from wadlgen.generator.types import RepresentationContainer, ResolvedType, is_nullable, is_sequence, render
from wadlgen.parser.base import JSON_MIME_TYPE, Param, RepresentationDef, media_type_essence

logger = logging.getLogger(__name__)

RECORD_BASE = f"{RUNTIME}.Representation"

# Attributes of pydantic.BaseModel a field must not shadow.
_MODEL_ATTRIBUTES = {
    "construct", "copy", "dict", "fields", "from_json", "from_orm", "json", "parse_file",
    "parse_obj", "parse_raw", "schema", "schema_json", "to_json", "update_forward_refs",
    "validate",
}


def record_field_name(name: str) -> str:
    """Field identifier for a wire name; pydantic reserves leading underscores."""
    ident = field_identifier(name).lstrip("_") or "field"
    if ident[0].isdigit():
        ident = "field_" + ident
    if ident in _MODEL_ATTRIBUTES or ident in MODULE_NAMES or ident.startswith("model_"):
        ident += "_"
    return escape_reserved(ident)


def accessor_name_for(field: str) -> str:
    """``owner_link`` -> ``owner``; other fields get a ``_resource`` suffix."""
    if field.endswith("_link") and len(field) > len("_link"):
        return field[: -len("_link")]
    return f"{field}_resource"


class RepresentationEmitter:
    """Emits record classes; ``gen`` is the running CodeGenerator."""

    def __init__(self, gen):
        self.gen = gen

    def class_name(self, rep: RepresentationDef) -> str:
        if rep.id is None:
            raise MissingIdentifierError("representation has no id")
        return type_identifier(rep.id)

    def generate(self, rep: RepresentationDef) -> list[str]:
        name = self.class_name(rep)
        if media_type_essence(rep.media_type) != JSON_MIME_TYPE:
            raise UnsupportedMediaTypeError(
                f"cannot generate a record for representation {rep.id!r}", type_name=rep.media_type
            )

        logger.debug("Generating record %s for representation %r", name, rep.id)
        container = RepresentationContainer(representation=rep)
        fields = [
            (param, record_field_name(param.name), self.gen.resolver.resolve(container, param))
            for param in rep.params
        ]

        lines = [f"class {name}({RECORD_BASE}):\n"]
        doc = docs_lines(rep.docs, self.gen.config, self.gen.diagnostics)
        lines.extend(docstring(doc, 1))
        body: list[str] = []
        for param, field, resolved in fields:
            if body:
                body.append("\n")
            body.extend(self._field(param, field, resolved))
        for param, field, resolved in fields:
            accessor = self._accessor(param, field, resolved)
            if accessor:
                body.append("\n")
                body.extend(accessor)
        if doc and body:
            lines.append("\n")
        lines.extend(body)
        if not doc and not body:
            lines.append("    pass\n")

        extras = self.gen.config.generate_representation_extras(rep, name)
        if extras:
            lines.append("\n")
            lines.extend(extras)
        return lines

    def _field(self, param: Param, field: str, resolved: ResolvedType) -> list[str]:
        # Nullable fields default to None, so a record whose fields are all
        # nullable can be built with no arguments.
        lines = []
        if param.doc is not None:
            lines.extend(comment(doc_lines(param.doc, self.gen.config, self.gen.diagnostics), 1))
        lines.extend(f"    # {annotation}\n" for annotation in resolved.annotations)
        nullable = is_nullable(resolved.type)
        default = ""
        if field != param.name:
            if nullable:
                default = f" = Field(default=None, alias={string_literal(param.name)})"
            else:
                default = f" = Field(alias={string_literal(param.name)})"
        elif nullable:
            default = " = None"
        lines.append(f"    {field}: {render(resolved.type)}{default}\n")
        return lines

    def _accessor(self, param: Param, field: str, resolved: ResolvedType) -> list[str]:
        link = next((link for link in param.links if link.resource_type is not None), None)
        if link is None or link.resource_type.id() is None:
            return []
        target = self.gen.resolver.declared_resource_type(link.resource_type)
        if target is None:
            self.gen.diagnostics.warn(
                f"no accessor for {field!r}: resource type {str(link.resource_type)!r} is not declared"
            )
            return []
        if is_sequence(resolved.type):
            self.gen.diagnostics.warn(f"no accessor for repeating link field {field!r}")
            return []

        config = self.gen.config
        field_type = target.name
        ret_type = field_type
        map_fn = None
        mapping = config.map_type_for_accessor(field_type)
        if mapping is not None:
            ret_type, map_fn = mapping
        nullable = is_nullable(resolved.type)
        if nullable:
            ret_type = f"Optional[{ret_type}]"

        accessor = config.param_accessor_rename(param.name, ret_type) or accessor_name_for(field)
        if not config.accessor_visibility(accessor, field_type):
            accessor = "_" + accessor

        warn = []
        if config.deprecated_param(param):
            message = string_literal(f"{accessor} is deprecated")
            warn = [f"        warnings.warn({message}, DeprecationWarning, stacklevel=2)\n"]

        value = f"{field_type}(self.{field})"
        if map_fn is not None:
            value = f"{map_fn}({value})"

        lines = ["    @property\n", f"    def {accessor}(self) -> {ret_type}:\n"]
        if param.doc is not None:
            lines.extend(docstring(doc_lines(param.doc, config, self.gen.diagnostics), 2))
        lines.extend(warn)
        if nullable:
            lines.append(f"        if self.{field} is None:\n")
            lines.append("            return None\n")
        lines.append(f"        return {value}\n")
        lines.append("\n")
        lines.append(f"    @{accessor}.setter\n")
        lines.append(f"    def {accessor}(self, value: {ret_type}) -> None:\n")
        lines.extend(warn)
        if nullable:
            lines.append(f"        self.{field} = None if value is None else value.url\n")
        else:
            lines.append(f"        self.{field} = value.url\n")

        extension = config.extend_accessor(param, accessor, ret_type)
        if extension:
            lines.append("\n")
            lines.extend(extension)
        return lines
