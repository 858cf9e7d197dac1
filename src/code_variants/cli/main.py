"""Main CLI entry point for code-variants."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from code_variants import __version__
from code_variants.config import CodeVariantsConfig, LoadVariantOptions, load_config
from code_variants.config.defaults import DEFAULT_VARIANT_NAME
from code_variants.loaders import create_source_loader
from code_variants.models.enums import Environment, OutputMode
from code_variants.models.results import VariantLoadResult
from code_variants.parsers import parse_plain_text
from code_variants.pipeline.variant import load_code_variant
from code_variants.utils.logging import setup_logging

# Create the main Typer app
app = typer.Typer(
    name="code-variants",
    help="Resolve documentation code samples into packaged variants.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Status and errors go to stderr so stdout stays machine readable
console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"code-variants version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Code Variants.

    Load a code sample, follow the files it depends on and print the result.
    """
    pass


def to_url(target: str) -> str:
    """Turn a local path into a ``file://`` URL; URLs are returned unchanged."""
    if "://" in target:
        return target
    return Path(target).resolve().as_uri()


async def _resolve(
    url: str,
    variant_name: str,
    cfg: CodeVariantsConfig,
    globals_urls: Optional[list[str]],
) -> VariantLoadResult:
    loader = create_source_loader(cfg.loader)
    try:
        options = LoadVariantOptions.from_config(
            cfg,
            load_source=loader.load_source,
            parse_source=parse_plain_text,
            globals_code=[to_url(g) for g in globals_urls] if globals_urls else None,
        )
        return await load_code_variant(url, variant_name, url, options)
    finally:
        await loader.close()


# Common options used across commands
TargetArgument = Annotated[
    str,
    typer.Argument(help="Path or URL of the main file."),
]

VariantOption = Annotated[
    str,
    typer.Option(
        "--variant",
        help="Name of the variant.",
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]

GlobalsOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--globals",
        "-g",
        help="Path or URL of a globals file whose extra files are injected (repeatable).",
    ),
]

MaxDepthOption = Annotated[
    Optional[int],
    typer.Option(
        "--max-depth",
        help="Maximum extra-file nesting depth.",
        min=1,
        max=100,
    ),
]

LogFileOption = Annotated[
    Optional[Path],
    typer.Option(
        "--log-file",
        help="Also write DEBUG logs to this file.",
    ),
]

ProductionOption = Annotated[
    bool,
    typer.Option(
        "--production",
        help="Degrade consistency errors to warnings and allow gzipped output.",
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        help="Verbosity level (0=quiet, 1=normal, 2=verbose, 3=debug).",
        min=0,
        max=3,
        count=True,
    ),
]


@app.command()
def load(
    target: TargetArgument,
    variant: VariantOption = DEFAULT_VARIANT_NAME,
    config: ConfigOption = None,
    output_mode: Annotated[
        Optional[OutputMode],
        typer.Option(
            "--output-mode",
            help="How parsed trees are stored.",
        ),
    ] = None,
    no_parse: Annotated[
        bool,
        typer.Option(
            "--no-parse",
            help="Keep sources as raw text.",
        ),
    ] = False,
    max_depth: MaxDepthOption = None,
    globals_files: GlobalsOption = None,
    out: Annotated[
        Optional[Path],
        typer.Option(
            "--out",
            "-o",
            help="Write the packaged variant to this file instead of stdout.",
        ),
    ] = None,
    verbose: VerboseOption = 0,
    log_file: LogFileOption = None,
    production: ProductionOption = False,
) -> None:
    """Resolve a variant and print its packaged JSON.

    Example:
        code-variants load ./demo/index.ts --variant TypeScript --out demo.json
    """
    cfg = load_config(
        config_path=config,
        output_mode=output_mode.value if output_mode else None,
        disable_parsing=True if no_parse else None,
        max_depth=max_depth,
        environment=Environment.PRODUCTION.value if production else None,
        verbose=verbose,
        log_file=log_file,
    )

    setup_logging(verbosity=cfg.output.verbosity, log_file=cfg.output.log_file)

    try:
        result = asyncio.run(_resolve(to_url(target), variant, cfg, globals_files))
    except KeyboardInterrupt:
        console.print("\n[yellow]Loading interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if cfg.output.verbosity >= 2:
            console.print_exception()
        sys.exit(1)

    payload = json.dumps(result.code.to_packaged(), indent=cfg.output.indent or None)
    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload + "\n", encoding="utf-8")
        console.print(f"[green]Wrote[/green] {out}")
    else:
        typer.echo(payload)


@app.command()
def files(
    target: TargetArgument,
    variant: VariantOption = DEFAULT_VARIANT_NAME,
    config: ConfigOption = None,
    max_depth: MaxDepthOption = None,
    globals_files: GlobalsOption = None,
    verbose: VerboseOption = 0,
    log_file: LogFileOption = None,
    production: ProductionOption = False,
) -> None:
    """List the files and dependencies of a resolved variant.

    Example:
        code-variants files ./demo/index.ts
    """
    cfg = load_config(
        config_path=config,
        disable_parsing=True,
        max_depth=max_depth,
        environment=Environment.PRODUCTION.value if production else None,
        verbose=verbose,
        log_file=log_file,
    )

    setup_logging(verbosity=cfg.output.verbosity, log_file=cfg.output.log_file)

    try:
        result = asyncio.run(_resolve(to_url(target), variant, cfg, globals_files))
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if cfg.output.verbosity >= 2:
            console.print_exception()
        sys.exit(1)

    output = Console()

    table = Table(title=f"Variant: {variant}")
    table.add_column("File", style="cyan")
    table.add_column("Metadata", style="magenta")
    extra_files = result.code.extra_files or {}
    for name in result.code.file_names:
        entry = extra_files.get(name)
        is_metadata = bool(getattr(entry, "metadata", False))
        table.add_row(name, "yes" if is_metadata else "")
    output.print(table)

    deps = Table(title="Dependencies")
    deps.add_column("#", style="dim")
    deps.add_column("URL", style="green")
    for index, url in enumerate(result.dependencies, start=1):
        deps.add_row(str(index), url)
    output.print(deps)

    if result.externals:
        externals = Table(title="Externals")
        externals.add_column("Module", style="cyan")
        externals.add_column("Imports", style="green")
        for module, imports in result.externals.items():
            externals.add_row(module, ", ".join(i.name for i in imports))
        output.print(externals)


if __name__ == "__main__":
    app()
