import pytest

from wadlgen.config import Config, ConfigError, YamlConfig
from wadlgen.generator.types import RepresentationContainer, RequestContainer
from wadlgen.parser.base import Method, Options, OptionsType, Param, ParamStyle, RepresentationDef

SETTINGS = """\
async: true
strip_code_examples: true
type_overrides:
  - param: karma
    container: representation
    type: decimal.Decimal
  - type_name: xsd:dateTime
    type: str
accessor_renames:
  owner_link: owner_person
private: [PersonPage, find]
deprecated_params: [karma]
enum_names:
  format: OutputFormat
"""

REP = RepresentationContainer(representation=RepresentationDef(id="person-full"))
METHOD = Method(id="people-find", name="GET")
REQUEST = RequestContainer(method=METHOD, request=METHOD.request)


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "wadlgen.yaml"
    path.write_text(SETTINGS)
    return YamlConfig.load(path)


def _param(name: str) -> Param:
    options = Options.from_values(["json", "xml"])
    return Param(style=ParamStyle.PLAIN, name=name, type=OptionsType(options=options), options=options)


class TestDefaults:
    def test_plain_bindings(self):
        config = Config()
        param = Param(style=ParamStyle.QUERY, name="x")
        assert config.async_ is False
        assert config.nillable(param) is True
        assert config.override_type_name(REP, "int", "x") is None
        assert config.method_visibility("find", "None") is True
        assert config.reformat_docstring("text") == "text"
        assert config.extend_method("people", "find", "None") == []

    def test_required_is_not_nillable(self):
        assert Config().nillable(Param(style=ParamStyle.QUERY, name="x", required=True)) is False


class TestYamlConfig:
    def test_flags(self, config):
        assert config.async_ is True
        assert config.strip_code_examples is True

    def test_type_override_by_param_and_container(self, config):
        assert config.override_type_name(REP, "int", "karma") == "decimal.Decimal"
        assert config.override_type_name(REQUEST, "int", "karma") is None

    def test_type_override_by_type_name(self, config):
        assert config.override_type_name(REQUEST, "xsd:dateTime", "created") == "str"

    def test_accessor_rename(self, config):
        assert config.param_accessor_rename("owner_link", "Person") == "owner_person"
        assert config.param_accessor_rename("team_link", "Team") is None

    def test_private(self, config):
        assert config.representation_visibility("PersonPage") is False
        assert config.representation_visibility("PersonFull") is True
        assert config.method_visibility("find", "PersonPage") is False

    def test_deprecated(self, config):
        assert config.deprecated_param(_param("karma")) is True
        assert config.deprecated_param(_param("name")) is False

    def test_enum_names(self, config):
        assert config.options_enum_name(_param("format"), lambda name: False) == "OutputFormat"
        assert config.options_enum_name(_param("status"), lambda name: False) is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert YamlConfig.load(path).async_ is False


class TestYamlConfigErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            YamlConfig.load(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("private: [unclosed\n")
        with pytest.raises(ConfigError):
            YamlConfig.load(path)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("privat: [Foo]\n")
        with pytest.raises(ConfigError) as exc:
            YamlConfig.load(path)
        assert "privat" in str(exc.value)

    def test_bad_container(self, tmp_path):
        path = tmp_path / "container.yaml"
        path.write_text("type_overrides:\n  - container: body\n    type: str\n")
        with pytest.raises(ConfigError):
            YamlConfig.load(path)
