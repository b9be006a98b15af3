import pytest

from wadlgen.generator.naming import (
    enum_member_name,
    escape_reserved,
    field_identifier,
    sanitize,
    string_literal,
    to_field_name,
    to_type_name,
    type_identifier,
)

NAMES = ["get-some-URL", "person-full", "_foo-bar", "XMLParser", "dateCreated", "ws.op", "F", "foo--bar"]


class TestTypeName:
    @pytest.mark.parametrize("name,expected", [
        ("foo", "Foo"),
        ("person-full", "PersonFull"),
        ("get-some-URL", "GetSomeURL"),
        ("_foo-bar", "_FooBar"),
        ("foo--bar", "FooBar"),
        ("set_status", "SetStatus"),
    ])
    def test_examples(self, name, expected):
        assert to_type_name(name) == expected

    @pytest.mark.parametrize("name", NAMES)
    def test_idempotent(self, name):
        once = to_type_name(name)
        assert to_type_name(once) == once


class TestFieldName:
    @pytest.mark.parametrize("name,expected", [
        ("GetSomeURL", "get_some_url"),
        ("FooBar", "foo_bar"),
        ("_FooBar", "_foo_bar"),
        ("dateCreated", "date_created"),
        ("display-name", "display_name"),
        ("XMLParser", "xmlparser"),
        ("F", "f"),
    ])
    def test_examples(self, name, expected):
        assert to_field_name(name) == expected

    @pytest.mark.parametrize("name", NAMES)
    def test_idempotent(self, name):
        once = to_field_name(name)
        assert to_field_name(once) == once

    def test_acronyms_are_lost_on_round_trip(self):
        assert to_type_name(to_field_name("XMLParser")) == "Xmlparser"


class TestIdentifiers:
    def test_keywords_are_escaped(self):
        assert escape_reserved("class") == "class_"
        assert escape_reserved("None") == "None_"
        assert escape_reserved("person") == "person"

    def test_sanitize(self):
        assert sanitize("ws.op") == "ws_op"
        assert sanitize("2fa") == "_2fa"
        assert sanitize("") == "_"

    def test_type_identifier(self):
        assert type_identifier("none") == "None_"
        assert type_identifier("person-page") == "PersonPage"

    def test_field_identifier(self):
        assert field_identifier("ws.op") == "ws_op"
        assert field_identifier("from") == "from_"
        assert field_identifier("If-Match") == "if_match"


class TestEnumMemberName:
    @pytest.mark.parametrize("value,expected", [
        ("active", "ACTIVE"),
        ("application/json", "APPLICATION_JSON"),
        ("Needs Review", "NEEDS_REVIEW"),
        ("200", "_200"),
        ("", "EMPTY"),
        ("---", "EMPTY"),
    ])
    def test_examples(self, value, expected):
        assert enum_member_name(value) == expected


class TestStringLiteral:
    def test_quotes_are_escaped(self):
        assert string_literal('say "hi"') == '"say \\"hi\\""'

    def test_braces_are_kept(self):
        assert string_literal("{name}") == '"{name}"'
