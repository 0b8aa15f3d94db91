"""Kaleidoscope front end CLI."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

import click

from kaleido import __version__
from kaleido.codegen import CodeGenerator
from kaleido.config import KaleidoConfig, find_config, load_config
from kaleido.driver import Driver, DriverResult
from kaleido.errors import DiagnosticRenderer, LexError
from kaleido.formatter import KaleidoFormatter
from kaleido.lexer import Lexer
from kaleido.parser import Parser
from kaleido.tokens import TokenKind


def _load(config_path: Path | None) -> KaleidoConfig:
    """Load an explicit config, or the nearest kaleido.toml, or defaults."""
    if config_path is None:
        try:
            config_path = find_config()
        except FileNotFoundError:
            return KaleidoConfig()
    try:
        return load_config(config_path)
    except ValueError as e:
        click.echo(f"error: {config_path}: {e}", err=True)
        raise SystemExit(1)


def _make_parser(config: KaleidoConfig, source: str | TextIO, filename: str) -> Parser:
    return Parser(
        Lexer(source, filename),
        config.precedence_table(),
        nested_errors=config.parser.nested_errors,
    )


def _renderer(config: KaleidoConfig) -> DiagnosticRenderer:
    return DiagnosticRenderer(color=config.repl.color)


def _run_file(config: KaleidoConfig, file: str, *,
              codegen: CodeGenerator | None = None) -> DriverResult:
    """Parse (and optionally generate) every unit of *file*, reporting errors."""
    source = Path(file).read_text()
    parser = _make_parser(config, source, file)
    renderer = _renderer(config)
    renderer.add_source(file, source)
    driver = Driver(parser, codegen, out=click.echo, renderer=renderer, verbose=False)
    return driver.run()


@click.group()
@click.version_option(__version__, prog_name="kaleido")
@click.option("--config", "config_path", default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Path to kaleido.toml (default: nearest one, if any).")
@click.option("--no-color", is_flag=True, help="Disable colored diagnostics.")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, no_color: bool) -> None:
    """The Kaleidoscope language front end."""
    config = _load(config_path)
    if no_color:
        config.repl.color = False
    ctx.obj = config


@main.command()
@click.pass_obj
def repl(config: KaleidoConfig) -> None:
    """Read, parse and generate top-level units from stdin."""
    codegen = CodeGenerator(config.codegen.module_name)
    driver = Driver(
        _make_parser(config, sys.stdin, "<stdin>"),
        codegen,
        out=click.echo,
        renderer=_renderer(config),
        prompt=config.repl.prompt,
    )
    driver.run()
    click.echo("", err=True)
    click.echo(codegen.ir_text(), err=True)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def tokens(config: KaleidoConfig, file: str) -> None:
    """Print the token stream of a source file."""
    source = Path(file).read_text()
    lexer = Lexer(source, file)
    renderer = _renderer(config)
    renderer.add_source(file, source)
    had_errors = False

    while True:
        try:
            tok = lexer.next_token()
        except LexError as e:
            had_errors = True
            click.echo(renderer.render(e.diagnostic), err=True)
            continue
        if tok.kind == TokenKind.EOF:
            break
        click.echo(f"{tok.span.start_line}:{tok.span.start_col} {tok.kind.name} {tok.text}")

    if had_errors:
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def parse(config: KaleidoConfig, file: str) -> None:
    """Parse a source file and print each unit in canonical form."""
    result = _run_file(config, file)
    formatter = KaleidoFormatter(config.precedence_table())
    for unit in result.units:
        click.echo(formatter.format_unit(unit))
    if not result.ok:
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def view(config: KaleidoConfig, file: str) -> None:
    """View the AST of a Kaleidoscope source file."""
    result = _run_file(config, file)
    for unit in result.units:
        _dump_ast(unit, 0)
    if not result.ok:
        raise SystemExit(1)


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, tuple) and all(
                    hasattr(v, "__dataclass_fields__") for v in value):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            else:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def emit(config: KaleidoConfig, file: str) -> None:
    """Generate LLVM IR for a source file."""
    codegen = CodeGenerator(config.codegen.module_name)
    result = _run_file(config, file, codegen=codegen)
    if not result.ok:
        raise SystemExit(1)
    click.echo(codegen.ir_text())


@main.command(name="format")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--check", is_flag=True, help="Check formatting without modifying the file.")
@click.pass_obj
def format_cmd(config: KaleidoConfig, file: str, check: bool) -> None:
    """Format a Kaleidoscope source file."""
    result = _run_file(config, file)
    if not result.ok:
        raise SystemExit(1)

    formatted = KaleidoFormatter(config.precedence_table()).format_units(result.units)
    path = Path(file)
    if formatted == path.read_text():
        return
    if check:
        click.echo(f"would reformat {file}")
        raise SystemExit(1)
    path.write_text(formatted)
    click.echo(f"formatted {file}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def highlight(file: str) -> None:
    """Print a source file with syntax highlighting."""
    from kaleido.highlight import highlight_source

    click.echo(highlight_source(Path(file).read_text()), nl=False)


@main.command()
def lsp() -> None:
    """Start the Kaleidoscope language server."""
    from kaleido.lsp import main as lsp_main

    lsp_main()
