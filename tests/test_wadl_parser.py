from pathlib import Path

import pytest

from wadlgen.diagnostics import Diagnostics
from wadlgen.parser.base import (
    WADL_NS,
    XHTML_NS,
    EmptyResourceTypeRef,
    LinkType,
    NoType,
    Options,
    OptionsType,
    ParamStyle,
    RepresentationDef,
    RepresentationIdRef,
    RepresentationReference,
    ResourceTypeId,
    ResourceTypeLink,
    SimpleType,
)
from wadlgen.parser.errors import (
    InvalidAttributeError,
    IoError,
    MediaTypeError,
    MissingAttributeError,
    UrlError,
    XmlError,
)
from wadlgen.parser.wadl import parse_bytes, parse_file, parse_resource_type_ref, parse_string

FIXTURES = Path(__file__).parent / "fixtures"

MINIMAL = """<?xml version="1.0"?>
<application xmlns="http://wadl.dev.java.net/2009/02">
  <resources base="http://example.com/api/">
    <resource path="users">
      <method name="GET" id="list-users"/>
    </resource>
  </resources>
</application>
"""


def _wrap(body: str) -> str:
    return f'<application xmlns="http://wadl.dev.java.net/2009/02">{body}</application>'


class TestMinimalDocument:
    def test_counts(self):
        app = parse_string(MINIMAL)
        assert len(app.resources) == 1
        assert len(app.resources[0].resources) == 1
        assert len(app.resources[0].resources[0].methods) == 1

    def test_resource_url(self):
        app = parse_string(MINIMAL)
        group = app.resources[0]
        assert group.resources[0].url(group.base) == "http://example.com/api/users"

    def test_method(self):
        method = parse_string(MINIMAL).resources[0].resources[0].methods[0]
        assert method.name == "GET"
        assert method.id == "list-users"
        assert method.responses == []

    def test_bytes_and_string_agree(self):
        assert parse_bytes(MINIMAL.encode("utf-8")) == parse_string(MINIMAL)


class TestSampleDocument:
    @pytest.fixture
    def app(self):
        return parse_file(FIXTURES / "sample.wadl")

    def test_resources(self, app):
        group = app.resources[0]
        assert group.base == "https://api.example.com/1.0/"
        people = group.resources[0]
        assert people.path == "people"
        assert people.type == [ResourceTypeId(type_id="people")]
        assert people.subresources[0].path == "{name}"
        assert people.subresources[0].params[0].style == ParamStyle.TEMPLATE

    def test_query_type_default(self, app):
        assert app.resources[0].resources[0].query_type == "application/x-www-form-urlencoded"

    def test_resource_types(self, app):
        assert [rt.id for rt in app.resource_types] == ["people", "person"]
        person = app.get_resource_type_by_id("person")
        assert [m.id for m in person.methods] == ["person-get", "person-patch", "person-set_status"]

    def test_request_params(self, app):
        find = app.get_resource_type_by_id("people").methods[0]
        ws_op, text, status = find.request.params
        assert ws_op.fixed == "find"
        assert ws_op.style == ParamStyle.QUERY
        assert text.required is True
        assert text.type == SimpleType(name="xsd:string")
        assert text.doc.content == "Text to search for."
        assert status.repeating is True
        assert status.required is False
        assert status.options == Options.from_values(["active", "suspended"])
        assert status.type == OptionsType(options=status.options)

    def test_response_status(self, app):
        people = app.get_resource_type_by_id("people")
        assert people.methods[0].responses[0].status == 200
        person = app.get_resource_type_by_id("person")
        assert person.methods[0].responses[0].status is None

    def test_representation_reference(self, app):
        response = app.get_resource_type_by_id("people").methods[0].responses[0]
        assert response.representations == [
            RepresentationReference(ref=RepresentationIdRef(ref_id="person-page"))
        ]

    def test_inline_representation(self, app):
        create = app.get_resource_type_by_id("people").methods[1]
        rep = create.request.representations[0]
        assert isinstance(rep, RepresentationDef)
        assert rep.media_type == "application/x-www-form-urlencoded"
        assert [p.name for p in rep.params] == ["ws.op", "display_name", "email"]

    def test_link_param(self, app):
        person_full = app.get_representation_by_id("person-full")
        owner = person_full.params[4]
        assert owner.name == "team_owner_link"
        assert owner.type == LinkType(resource_type=ResourceTypeId(type_id="person"))
        assert owner.doc.content == "The team's owner."

    def test_empty_link(self, app):
        page = app.get_representation_by_id("person-page")
        link_param = page.params[1]
        assert link_param.links[0].resource_type is None
        assert link_param.type == LinkType(resource_type=EmptyResourceTypeRef())

    def test_untyped_param(self, app):
        entries = app.get_representation_by_id("person-page").params[2]
        assert entries.type == NoType()
        assert entries.repeating is True

    def test_grammars(self, app):
        assert [g.href for g in app.grammars] == ["people.xsd"]

    def test_application_doc(self, app):
        doc = app.docs[0]
        assert doc.title == "People API"
        assert doc.content == "A small API for people."
        assert doc.xmlns == WADL_NS

    def test_xhtml_doc_keeps_markup(self, app):
        doc = app.get_resource_type_by_id("people").docs[0]
        assert doc.xmlns == XHTML_NS
        assert doc.content == '<p>The collection of <a href="https://example.com/people">people</a>.</p>'


class TestDocs:
    def test_lang(self):
        app = parse_string(_wrap('<doc xml:lang="en">Foo</doc>'))
        assert app.docs[0].lang == "en"
        assert app.docs[0].content == "Foo"

    def test_no_namespace(self):
        app = parse_string("<application><doc>Foo</doc></application>")
        assert app.docs[0].xmlns is None

    def test_default_xhtml_namespace(self):
        app = parse_string(_wrap('<doc xmlns="http://www.w3.org/1999/xhtml"><p>Hi</p></doc>'))
        assert app.docs[0].xmlns == XHTML_NS
        assert app.docs[0].content == "<p>Hi</p>"


class TestResourceTypeRefs:
    def test_id(self):
        assert parse_resource_type_ref("#person") == ResourceTypeId(type_id="person")

    def test_link(self):
        ref = parse_resource_type_ref("https://api.example.com/#person")
        assert ref == ResourceTypeLink(href="https://api.example.com/#person")

    def test_empty(self):
        assert parse_resource_type_ref("") == EmptyResourceTypeRef()

    def test_resource_type_list(self):
        app = parse_string(_wrap(
            '<resources base="http://example.com/">'
            '<resource path="x" type="#a https://example.com/other#b"/>'
            "</resources>"
        ))
        refs = app.resources[0].resources[0].type
        assert [r.id() for r in refs] == ["a", "b"]


class TestWarnings:
    def test_style_not_allowed_here(self):
        diagnostics = Diagnostics()
        parse_string(_wrap(
            '<resource_type id="t"><method name="GET"><response>'
            '<param name="q" style="query" type="xsd:string"/>'
            "</response></method></resource_type>"
        ), diagnostics)
        assert any("'q'" in w for w in diagnostics.warnings)

    def test_several_statuses(self):
        diagnostics = Diagnostics()
        app = parse_string(_wrap(
            '<resource_type id="t"><method name="GET"><response status="200 201"/></method></resource_type>'
        ), diagnostics)
        assert app.resource_types[0].methods[0].responses[0].status == 200
        assert len(diagnostics.warnings) == 1

    def test_several_param_docs(self):
        diagnostics = Diagnostics()
        app = parse_string(_wrap(
            '<resource_type id="t"><param name="x" style="query"><doc>One</doc><doc>Two</doc></param></resource_type>'
        ), diagnostics)
        assert app.resource_types[0].params[0].doc.content == "One"
        assert "param 'x' has 2 doc elements" in diagnostics.warnings[0]


class TestErrors:
    def test_malformed_xml(self):
        with pytest.raises(XmlError):
            parse_string("<application><resources></application>")

    def test_wrong_root(self):
        with pytest.raises(XmlError):
            parse_string("<wadl/>")

    def test_invalid_base_url(self):
        with pytest.raises(UrlError):
            parse_string(_wrap('<resources base="not a url"/>'))

    def test_invalid_media_type(self):
        with pytest.raises(MediaTypeError):
            parse_string(_wrap('<representation id="x" mediaType="json"/>'))

    def test_missing_param_name(self):
        with pytest.raises(MissingAttributeError) as exc:
            parse_string(_wrap('<resource_type id="t"><param style="query"/></resource_type>'))
        assert exc.value.attribute == "name"

    def test_missing_resource_type_id(self):
        with pytest.raises(MissingAttributeError):
            parse_string(_wrap("<resource_type/>"))

    def test_invalid_style(self):
        with pytest.raises(InvalidAttributeError):
            parse_string(_wrap('<resource_type id="t"><param name="x" style="cookie"/></resource_type>'))

    def test_invalid_status(self):
        with pytest.raises(InvalidAttributeError):
            parse_string(_wrap(
                '<resource_type id="t"><method name="GET"><response status="ok"/></method></resource_type>'
            ))

    def test_missing_file(self, tmp_path):
        with pytest.raises(IoError):
            parse_file(tmp_path / "missing.wadl")

    def test_invalid_grammar_href(self):
        with pytest.raises(UrlError):
            parse_string(_wrap('<grammars><include href="schemas/people schema.xsd"/></grammars>'))

    def test_invalid_absolute_grammar_href(self):
        with pytest.raises(UrlError):
            parse_string(_wrap('<grammars><include href="http://"/></grammars>'))


class TestGrammars:
    def test_relative_and_absolute_hrefs(self):
        app = parse_string(_wrap(
            "<grammars>"
            '<include href="../schemas/people.xsd"/>'
            '<include href="https://example.com/schemas/team.xsd"/>'
            "</grammars>"
        ))
        assert [g.href for g in app.grammars] == ["../schemas/people.xsd", "https://example.com/schemas/team.xsd"]
