"""Resource type classes and their methods.

Every resource type becomes a class holding a URL. Each of its methods
becomes a method that builds the request, sends it through the client
passed in, and decodes the response by status and then by content type.
"""

import logging

from wadlgen.generator.docs import args_section, docs_lines, docstring
from wadlgen.generator.errors import (
    CompilationError,
    MissingIdentifierError,
    UndecodableHeaderError,
    UnsupportedMediaTypeError,
    UnsupportedParamStyleError,
    UnsupportedRequestError,
    UnsupportedResponseError,
)
from wadlgen.generator.naming import MODULE_NAMES, RUNTIME, field_identifier, string_literal, type_identifier
from wadlgen.generator.types import (
    Codec,
    NamedType,
    RequestContainer,
    ResolvedType,
    ResponseContainer,
    base_type,
    format_expr,
    header_decoder,
    is_header_decodable,
    is_nullable,
    is_sequence,
    json_expr,
    readonly,
    render,
)
from wadlgen.parser.base import (
    FORM_MIME_TYPE,
    JSON_MIME_TYPE,
    MULTIPART_MIME_TYPE,
    WADL_MIME_TYPE,
    Method,
    Param,
    ParamStyle,
    RepresentationDef,
    RepresentationReference,
    ResourceType,
    Response,
    media_type_essence,
)

logger = logging.getLogger(__name__)

# Names a method argument must not take: the method's own locals and the
# module names its body uses.
_TAKEN_ARGS = {
    "self", "client", "resp", "url_", "params_", "headers_", "json_", "form_", "files_",
    "item_", "content_type_", RUNTIME,
} | MODULE_NAMES


class _Arg:
    """A method argument and the parameter it came from."""

    def __init__(self, param: Param | None, name: str, type_: str, nullable: bool, resolved: ResolvedType | None = None):
        self.param = param
        self.name = name
        self.type = type_
        self.nullable = nullable
        self.resolved = resolved


class _Body:
    """One way of decoding a response body."""

    def __init__(self, media_type: str, expr: str, type_: str):
        self.media_type = media_type
        self.expr = expr
        self.type = type_


def _union(types: list[str]) -> str:
    distinct = list(dict.fromkeys(types))
    if len(distinct) == 1:
        return distinct[0]
    return f"Union[{', '.join(distinct)}]"


def _value_type(types: list[str]) -> str:
    if not types:
        return "None"
    if len(types) == 1:
        return types[0]
    return f"tuple[{', '.join(types)}]"


def _value_expr(exprs: list[str]) -> str:
    if not exprs:
        return "None"
    if len(exprs) == 1:
        return exprs[0]
    return f"({', '.join(exprs)})"


def _status_condition(status: int | None) -> str:
    if status is None:
        return "200 <= resp.status_code < 300"
    return f"resp.status_code == {status}"


class MethodEmitter:
    """Emits resource type classes; ``gen`` is the running CodeGenerator."""

    def __init__(self, gen):
        self.gen = gen

    @property
    def config(self):
        return self.gen.config

    def class_name(self, resource_type: ResourceType) -> str:
        return type_identifier(resource_type.id)

    def generate_resource_type(self, resource_type: ResourceType) -> list[str]:
        name = self.class_name(resource_type)
        lines = [f"class {name}({RUNTIME}.Resource):\n"]
        doc = docs_lines(resource_type.docs, self.config, self.gen.diagnostics)
        if doc:
            lines.extend(docstring(doc, 1))
            lines.append("\n")
        lines.extend([
            "    def __init__(self, url: str) -> None:\n",
            "        self._url = url\n",
            "\n",
            "    @property\n",
            "    def url(self) -> str:\n",
            "        return self._url\n",
        ])
        used = {"url"}
        for method in resource_type.methods:
            try:
                method_lines = self.generate_method(resource_type.id, method, used)
            except CompilationError as e:
                self.gen.record(e)
                continue
            lines.append("\n")
            lines.extend(method_lines)
        return lines

    def method_name(self, parent_id: str, method: Method) -> str:
        method_id = method.id
        prefix = f"{parent_id}-"
        if method_id.startswith(prefix):
            method_id = method_id[len(prefix):]
        if not method_id:
            method_id = method.name.lower()
        if not method_id:
            raise MissingIdentifierError(f"method of {parent_id!r} has neither id nor name")
        return field_identifier(method_id)

    def _unique(self, name: str, used: set[str]) -> str:
        candidate = name
        n = 2
        while candidate in used:
            candidate = f"{name}_{n}"
            n += 1
        if candidate != name:
            self.gen.diagnostics.warn(f"method name {name!r} is used twice, renamed to {candidate!r}")
        used.add(candidate)
        return candidate

    def generate_method(self, parent_id: str, method: Method, used: set[str]) -> list[str]:
        if not method.name:
            raise MissingIdentifierError("method has no HTTP verb", method_id=method.id)
        name = self._unique(self.method_name(parent_id, method), used)
        logger.debug("Generating method %s for %r", name, method.id)

        args = self._args(method)
        arms, value_type = self._arms(method)
        ret_type = value_type
        mapping = self.config.map_type_for_response(name, value_type)
        map_fn = None
        if mapping is not None:
            ret_type, map_fn = mapping

        if not self.config.method_visibility(name, ret_type):
            name = "_" + name

        lines = self._signature(name, args, ret_type)
        lines.extend(self._docstring(method, args))
        lines.extend(self._request(method, args))
        multi = len(method.responses) > 1
        for status, statements in arms:
            lines.append(f"        if {_status_condition(status)}:\n")
            for depth, text, is_value in statements:
                if is_value:
                    text = "return " + self._wrap(text, multi, map_fn, value_type)
                lines.append(f"{'    ' * (3 + depth)}{text}\n")
        lines.append(f"        raise {RUNTIME}.UnhandledStatus(resp.status_code)\n")

        extension = self.config.extend_method(parent_id, name, ret_type)
        if extension:
            lines.append("\n")
            lines.extend(extension)

        if self._describes_wadl(method):
            lines.append("\n")
            lines.extend(self._wadl_method(name, method))
        return lines

    # Arguments

    def _args(self, method: Method) -> list[_Arg]:
        container = RequestContainer(method=method, request=method.request)
        args: list[_Arg] = []
        seen: set[str] = set()

        def add(param: Param) -> None:
            if param.fixed is not None:
                return
            resolved = self.gen.resolver.resolve(container, param)
            name = field_identifier(param.name)
            if name in _TAKEN_ARGS:
                name += "_"
            if name in seen:
                raise UnsupportedRequestError(
                    "two request parameters share a name", method_id=method.id, param_name=param.name
                )
            seen.add(name)
            args.append(_Arg(param, name, readonly(resolved.type), is_nullable(resolved.type), resolved))

        for param in method.request.params:
            add(param)
        for rep in method.request.representations:
            if isinstance(rep, RepresentationDef):
                for param in rep.params:
                    add(param)
            elif isinstance(rep, RepresentationReference):
                args.append(_Arg(None, "representation", self._reference_type(method, rep), False))
            else:
                raise TypeError(f"unknown representation: {rep!r}")
        return args

    def _reference_type(self, method: Method, rep: RepresentationReference) -> str:
        target = self.gen.app.resolve_representation(rep)
        if target is None:
            self.gen.diagnostics.warn(
                f"method {method.id!r} sends representation {rep.ref.id()!r} that is not defined here"
            )
            return "Any"
        if media_type_essence(target.media_type) not in (None, JSON_MIME_TYPE):
            raise UnsupportedRequestError(
                "request references a non-JSON representation",
                method_id=method.id,
                type_name=target.media_type,
            )
        return type_identifier(target.id)

    def _signature(self, name: str, args: list[_Arg], ret_type: str) -> list[str]:
        client = f"{RUNTIME}.AsyncClient" if self.config.async_ else f"{RUNTIME}.Client"
        parts = ["self", f"client: {client}"]
        if args:
            parts.append("*")
            for arg in args:
                default = " = None" if arg.nullable else ""
                parts.append(f"{arg.name}: {arg.type}{default}")
        keyword = "async def" if self.config.async_ else "def"
        line = f"    {keyword} {name}({', '.join(parts)}) -> {ret_type}:\n"
        if len(line) <= 100:
            return [line]
        lines = [f"    {keyword} {name}(\n"]
        lines.extend(f"        {part},\n" for part in parts)
        lines.append(f"    ) -> {ret_type}:\n")
        return lines

    def _docstring(self, method: Method, args: list[_Arg]) -> list[str]:
        doc = docs_lines(method.docs, self.config, self.gen.diagnostics)
        documented = [(arg.name, arg.param.doc if arg.param is not None else None) for arg in args]
        if not doc and not any(d is not None for _, d in documented):
            return []
        section = args_section(documented, self.config, self.gen.diagnostics)
        if doc and section:
            doc.append("")
        return docstring(doc + section, 2)

    # Request

    def _request(self, method: Method, args: list[_Arg]) -> list[str]:
        by_param = {id(arg.param): arg for arg in args if arg.param is not None}
        url_lines: list[str] = []
        query_lines: list[str] = []
        header_lines: list[str] = []
        for param in method.request.params:
            arg = by_param.get(id(param))
            name = string_literal(param.name)
            if param.style == ParamStyle.QUERY:
                self._emit(query_lines, param, arg, format_expr,
                           lambda v, looped: f"params_.append(({name}, {v}))")
            elif param.style == ParamStyle.HEADER:
                if param.fixed is None and is_sequence(arg.resolved.type):
                    self._emit_header_list(header_lines, name, arg)
                else:
                    self._emit(header_lines, param, arg, format_expr,
                               lambda v, looped: f"headers_[{name}] = {v}")
            elif param.style == ParamStyle.TEMPLATE:
                placeholder = string_literal("{" + param.name + "}")
                self._emit(url_lines, param, arg, format_expr,
                           lambda v, looped: f'url_ = url_.replace({placeholder}, quote({v}, safe=""))')
            elif param.style == ParamStyle.MATRIX:
                prefix = string_literal(f";{param.name}=")
                self._emit(url_lines, param, arg, format_expr,
                           lambda v, looped: f'url_ += {prefix} + quote({v}, safe="")')
            elif param.style == ParamStyle.PLAIN:
                raise UnsupportedParamStyleError(
                    "plain parameter outside a representation", method_id=method.id, param_name=param.name
                )
            else:
                raise TypeError(f"unknown parameter style: {param.style!r}")

        lines = ["        url_ = self.url\n"]
        lines.extend(url_lines)
        kwargs = []
        if query_lines:
            lines.append("        params_: list[tuple[str, str]] = []\n")
            lines.extend(query_lines)
            kwargs.append("params=params_")

        lines.append("        headers_: dict[str, str] = {}\n")
        accept = self._accept(method)
        if accept:
            lines.append(f"        headers_[\"Accept\"] = {string_literal(', '.join(accept))}\n")
        lines.extend(header_lines)
        kwargs.append("headers=headers_")

        body_lines, body_kwargs = self._body(method, by_param)
        lines.extend(body_lines)
        kwargs.extend(body_kwargs)

        call = f"client.request({string_literal(method.name.upper())}, url_, {', '.join(kwargs)})"
        if self.config.async_:
            call = "await " + call
        lines.append(f"        resp = {call}\n")
        return lines

    def _emit(self, lines: list[str], param: Param, arg: _Arg | None, make_value, statement) -> None:
        """Append the statements sending one parameter.

        Fixed values are always sent. Otherwise nullable values are guarded
        by a presence check and sequences are sent item by item.
        """
        if param.fixed is not None:
            lines.append(f"        {statement(string_literal(param.fixed), False)}\n")
            return
        t = arg.resolved.type
        indent = 2
        var = arg.name
        if is_nullable(t):
            lines.append(f"{'    ' * indent}if {var} is not None:\n")
            indent += 1
        looped = is_sequence(t)
        if looped:
            lines.append(f"{'    ' * indent}for item_ in {var}:\n")
            var = "item_"
            indent += 1
        lines.append(f"{'    ' * indent}{statement(make_value(base_type(t), var), looped)}\n")

    def _emit_header_list(self, lines: list[str], name: str, arg: _Arg) -> None:
        """A repeating header is sent once with its values comma separated."""
        t = arg.resolved.type
        indent = 2
        if is_nullable(t):
            lines.append(f"{'    ' * indent}if {arg.name} is not None:\n")
            indent += 1
        value = format_expr(base_type(t), "item_")
        lines.append(f'{"    " * indent}headers_[{name}] = ", ".join({value} for item_ in {arg.name})\n')

    def _accept(self, method: Method) -> list[str]:
        media_types = []
        for response in method.responses:
            for rep in response.representations:
                target = self.gen.app.resolve_representation(rep)
                if target is not None and target.media_type is not None:
                    media_types.append(media_type_essence(target.media_type))
                elif isinstance(rep, RepresentationReference):
                    media_types.append(JSON_MIME_TYPE)
        return list(dict.fromkeys(media_types))

    def _body(self, method: Method, by_param: dict[int, _Arg]) -> tuple[list[str], list[str]]:
        reps = method.request.representations
        if not reps:
            return [], []
        if len(reps) > 1:
            raise UnsupportedRequestError("request declares several representations", method_id=method.id)
        rep = reps[0]
        if isinstance(rep, RepresentationReference):
            target = self.gen.app.resolve_representation(rep)
            if target is None:
                return [], ["json=representation"]
            return [], ["json=representation.to_json()"]
        if not isinstance(rep, RepresentationDef):
            raise TypeError(f"unknown representation: {rep!r}")

        essence = media_type_essence(rep.media_type)
        lines: list[str] = []
        if essence == JSON_MIME_TYPE:
            lines.append("        json_: dict[str, Any] = {}\n")
            for param in rep.params:
                name = string_literal(param.name)

                def statement(v: str, looped: bool, name: str = name) -> str:
                    if looped:
                        return f"json_.setdefault({name}, []).append({v})"
                    return f"json_[{name}] = {v}"

                self._emit(lines, param, by_param.get(id(param)), json_expr, statement)
            return lines, ["json=json_"]
        if essence == FORM_MIME_TYPE:
            lines.append("        form_: list[tuple[str, str]] = []\n")
            for param in rep.params:
                name = string_literal(param.name)
                self._emit(lines, param, by_param.get(id(param)), format_expr,
                           lambda v, looped, name=name: f"form_.append(({name}, {v}))")
            lines.append(f"        headers_[\"Content-Type\"] = {string_literal(FORM_MIME_TYPE)}\n")
            return lines, ["data=urlencode(form_)"]
        if essence == MULTIPART_MIME_TYPE:
            lines.append("        files_: list[tuple[str, Any]] = []\n")
            for param in rep.params:
                name = string_literal(param.name)
                self._emit(lines, param, by_param.get(id(param)), self._multipart_value,
                           lambda v, looped, name=name: f"files_.append(({name}, {v}))")
            return lines, ["files=files_"]
        raise UnsupportedMediaTypeError(
            "unsupported request media type", method_id=method.id, type_name=rep.media_type
        )

    def _multipart_value(self, named: NamedType, value: str) -> str:
        if named.codec != Codec.BINARY:
            value = format_expr(named, value)
        part = self.config.convert_to_multipart(named.name, value)
        return part if part is not None else f"(None, {value})"

    # Response

    def _arms(self, method: Method) -> tuple[list, str]:
        """Statements per status arm, specific statuses first, and the return type."""
        responses = method.responses or [Response()]
        seen: set[int | None] = set()
        arms = []
        types = []
        for response in responses:
            if response.status in seen:
                raise UnsupportedResponseError(
                    f"several responses for status {response.status or 'success'}", method_id=method.id
                )
            seen.add(response.status)
            statements, value_type = self._arm(method, response)
            arms.append((response.status, statements))
            types.append(value_type)

        arms = [arm for arm in arms if arm[0] is not None] + [arm for arm in arms if arm[0] is None]
        if len(responses) > 1:
            ret_type = f"{RUNTIME}.StatusResult[{_union(types)}]"
        else:
            ret_type = types[0]
        return arms, ret_type

    def _arm(self, method: Method, response: Response) -> tuple[list[tuple[int, str, bool]], str]:
        """``(depth, text, is_value)`` statements for one arm, and its value type.

        Statements flagged ``is_value`` hold the expression to return; the
        caller wraps them once the method's return type is known.
        """
        header_exprs, header_types = self._headers(method, response)
        bodies = self._bodies(method, response)
        if not bodies:
            return [(0, _value_expr(header_exprs), True)], _value_type(header_types)

        statements = [(0, f"content_type_ = {RUNTIME}.media_type_of(resp)", False)]
        for body in bodies:
            statements.append((0, f"if content_type_ == {string_literal(body.media_type)}:", False))
            statements.append((1, _value_expr([body.expr] + header_exprs), True))
        statements.append((0, f"raise {RUNTIME}.UnhandledContentType(content_type_)", False))
        body_type = _union([body.type for body in bodies])
        return statements, _value_type([body_type] + header_types)

    def _headers(self, method: Method, response: Response) -> tuple[list[str], list[str]]:
        container = ResponseContainer(method=method, response=response)
        exprs, types = [], []
        for param in response.params:
            if param.style != ParamStyle.HEADER:
                raise UnsupportedParamStyleError(
                    "response parameters must be headers", method_id=method.id, param_name=param.name
                )
            resolved = self.gen.resolver.resolve(container, param)
            t = resolved.type
            named = base_type(t)
            if is_sequence(t) or not is_header_decodable(named):
                raise UndecodableHeaderError(
                    "cannot decode response header", method_id=method.id,
                    param_name=param.name, type_name=render(t),
                )
            decoder = header_decoder(named)
            name = string_literal(param.name)
            if is_nullable(t):
                value = f"resp.headers.get({name})"
                expr = value if decoder is None else f"{RUNTIME}.map_optional({decoder}, {value})"
            else:
                value = f"resp.headers[{name}]"
                expr = value if decoder is None else f"{decoder}({value})"
            exprs.append(expr)
            types.append(render(t))
        return exprs, types

    def _bodies(self, method: Method, response: Response) -> list[_Body]:
        bodies: list[_Body] = []
        seen: set[str] = set()
        for rep in response.representations:
            body = self._body_decoder(method, rep)
            if body is None:
                continue
            if body.media_type in seen:
                raise UnsupportedResponseError(
                    f"several {body.media_type} representations in one response", method_id=method.id
                )
            seen.add(body.media_type)
            bodies.append(body)
        return bodies

    def _body_decoder(self, method: Method, rep) -> _Body | None:
        target = self.gen.app.resolve_representation(rep)
        if isinstance(rep, RepresentationReference) and target is None:
            self.gen.diagnostics.warn(
                f"method {method.id!r} returns representation {rep.ref.id()!r} that is not defined here"
            )
            return _Body(JSON_MIME_TYPE, "resp.json()", "Any")
        if not isinstance(rep, (RepresentationReference, RepresentationDef)):
            raise TypeError(f"unknown representation: {rep!r}")

        essence = media_type_essence(target.media_type)
        if essence is None:
            if isinstance(rep, RepresentationDef):
                self.gen.diagnostics.warn(f"method {method.id!r} has a response representation without a media type")
                return None
            essence = JSON_MIME_TYPE
        if essence == JSON_MIME_TYPE:
            if isinstance(rep, RepresentationReference) and target.id is not None:
                name = type_identifier(target.id)
                return _Body(essence, f"{name}.from_json(resp.json())", name)
            return _Body(essence, "resp.json()", "Any")
        if essence == WADL_MIME_TYPE or essence.startswith("text/") or essence.endswith("+xml"):
            return _Body(essence, "resp.text", "str")
        return _Body(essence, "resp.content", "bytes")

    def _wrap(self, value: str, multi: bool, map_fn: str | None, ret_type: str) -> str:
        if multi:
            value = f"{RUNTIME}.StatusResult(status=resp.status_code, value={value})"
        if map_fn is not None:
            if ret_type.startswith("Optional["):
                return f"{RUNTIME}.map_optional({map_fn}, {value})"
            return f"{map_fn}({value})"
        return value

    # WADL description

    def _describes_wadl(self, method: Method) -> bool:
        for response in method.responses:
            for rep in response.representations:
                target = self.gen.app.resolve_representation(rep)
                if target is not None and media_type_essence(target.media_type) == WADL_MIME_TYPE:
                    return True
        return False

    def _wadl_method(self, name: str, method: Method) -> list[str]:
        fixed = [
            f"({string_literal(p.name)}, {string_literal(p.fixed)})"
            for p in method.request.params
            if p.style == ParamStyle.QUERY and p.fixed is not None
        ]
        if self.config.async_:
            signature = f"    async def {name}_wadl(self, client: {RUNTIME}.AsyncClient) -> {RUNTIME}.WadlResource:\n"
            call = f"await {RUNTIME}.fetch_wadl_resource_async"
        else:
            signature = f"    def {name}_wadl(self, client: {RUNTIME}.Client) -> {RUNTIME}.WadlResource:\n"
            call = f"{RUNTIME}.fetch_wadl_resource"
        return [
            signature,
            '        """Fetch the WADL description of this resource."""\n',
            f"        params_ = [{', '.join(fixed)}]\n",
            f"        return {call}(client, self.url, params=params_)\n",
        ]
