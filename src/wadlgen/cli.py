"""CLI entry point for wadlgen."""

import logging
from pathlib import Path

import click
import yaml

from wadlgen.config import Config, ConfigError, YamlConfig
from wadlgen.diagnostics import Diagnostics
from wadlgen.generator.code import CodeGenerator
from wadlgen.generator.validator import validate_files
from wadlgen.parser.base import Application
from wadlgen.parser.errors import ParseError
from wadlgen.parser.wadl import parse_file


def _parse(wadl_path: Path, diagnostics: Diagnostics | None = None) -> Application:
    """Parse a WADL file, turning parse errors into CLI errors."""
    try:
        return parse_file(wadl_path, diagnostics)
    except ParseError as e:
        raise click.ClickException(f"Failed to parse {wadl_path}: {e}") from e


def _load_config(config_path: Path | None) -> Config:
    if config_path is None:
        return Config()
    try:
        return YamlConfig.load(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """wadlgen — generate typed Python HTTP clients from WADL documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("ast")
@click.argument("wadl_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="yaml", type=click.Choice(["yaml", "json"]), help="Output format.")
def ast_cmd(wadl_path: Path, fmt: str):
    """Parse a WADL document and print its structure."""
    app = _parse(wadl_path)
    if fmt == "json":
        click.echo(app.model_dump_json(indent=2))
    else:
        click.echo(yaml.safe_dump(app.model_dump(mode="json"), sort_keys=False, allow_unicode=True), nl=False)


@main.command("compile")
@click.argument("wadl_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the module here instead of stdout.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML generation settings.")
@click.option("--async", "async_", is_flag=True, help="Generate async methods.")
@click.option("--strip-code-examples", is_flag=True, help="Drop code examples from docstrings.")
@click.option("--check", is_flag=True, help="Check the generated module parses before writing it.")
def compile_cmd(
    wadl_path: Path,
    output: Path | None,
    config_path: Path | None,
    async_: bool,
    strip_code_examples: bool,
    check: bool,
):
    """Compile a WADL document into a Python client module."""
    diagnostics = Diagnostics()
    app = _parse(wadl_path, diagnostics)
    config = _load_config(config_path)
    if async_:
        config.async_ = True
    if strip_code_examples:
        config.strip_code_examples = True

    result = CodeGenerator(config).compile(app, diagnostics)
    if result.warnings:
        click.echo(f"{len(result.warnings)} warning(s) while compiling {wadl_path}", err=True)
    if result.errors:
        for error in result.errors:
            click.echo(f"  error: {error}", err=True)
        raise click.ClickException(f"{len(result.errors)} compilation error(s) in {wadl_path}")

    source = result.text
    if check:
        filename = f"{wadl_path.stem}.py"
        errors = validate_files({filename: source})
        if errors:
            raise click.ClickException("; ".join(f"{f}: {msg}" for f, msg in errors.items()))

    if output is None:
        click.echo(source, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(source, encoding="utf-8")
    click.echo(f"Client saved to {output}", err=True)
