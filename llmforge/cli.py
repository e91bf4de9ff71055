import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from upath import UPath

from llmforge.config import get_config
from llmforge.exceptions import LLMForgeError
from llmforge.generators import GenerationOptions, TypeCatalogGenerator, write_files
from llmforge.mapping import MappingContext, TargetLanguage, TypeMapper
from llmforge.parsers import ParseResult, available_providers, parse

console = Console()
app = typer.Typer(
    name='llmforge',
    help='Convert LLM provider API descriptions into a canonical schema',
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _report(result: ParseResult) -> None:
    for warning in result.warnings:
        console.print(f'[yellow]Warning:[/yellow] {warning}')
    for error in result.errors:
        console.print(f'[red]Error:[/red] {error}')


def _summary(result: ParseResult) -> None:
    schema = result.schema
    console.print(
        f'[green]Parsed[/green] {schema.metadata.provider_name} '
        f'API {schema.metadata.api_version}'
    )
    console.print(f'  types: {len(schema.types)}')
    console.print(f'  endpoints: {len(schema.endpoints)}')
    console.print(f'  auth schemes: {len(schema.authentication)}')
    console.print(f'  errors: {len(schema.errors)}')


@app.command(name='parse')
def parse_command(
    source: Annotated[str, typer.Argument(help='Path or URL of the provider document')],
    provider: Annotated[
        str, typer.Option('--provider', '-p', help='Provider id selecting the frontend')
    ] = 'openapi',
    name: Annotated[
        str | None, typer.Option('--name', '-n', help='Display name of the provider')
    ] = None,
    output: Annotated[
        str | None,
        typer.Option('--output', '-o', help='Write the canonical schema JSON here'),
    ] = None,
    no_resolve: Annotated[
        bool, typer.Option('--no-resolve', help='Do not bundle external references')
    ] = False,
    strict: Annotated[
        bool, typer.Option('--strict', help='Fail the parse on any warning')
    ] = False,
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Enable debug logging')
    ] = False,
) -> None:
    """Parse a provider document into a canonical schema.

    Examples:
        llmforge parse openapi.yaml --provider openai --name OpenAI
        llmforge parse anthropic.json -p anthropic -o schema.json
    """
    _setup_logging(verbose)

    result = parse(
        source,
        provider=provider,
        provider_name=name,
        resolve_external_refs=not no_resolve,
        strict=strict,
    )
    _report(result)

    if result.schema is None or not result.success:
        console.print(f'[red]Failed to parse {source}[/red]')
        raise typer.Exit(1)

    if output:
        target = UPath(output)
        try:
            target.write_text(result.schema.to_json() + '\n', encoding='utf-8')
        except OSError as e:
            console.print(f'[red]Error:[/red] cannot write {output}: {e}')
            raise typer.Exit(1)
        console.print(f'[dim]Wrote {output}[/dim]')
    else:
        _summary(result)


@app.command()
def generate(
    config: Annotated[
        str | None,
        typer.Option(
            '--config', '-c', help='Path to configuration file (YAML or JSON)'
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Enable debug logging')
    ] = False,
) -> None:
    """Parse every configured document and write its outputs.

    Each document's canonical schema goes to ``schema.json`` in its output
    directory, plus one type catalog per configured target language.

    Examples:
        llmforge generate
        llmforge generate --config llmforge.yaml
    """
    _setup_logging(verbose)

    try:
        forge_config = get_config(config)
    except LLMForgeError as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)

    failed = False
    for document in forge_config.documents:
        with Progress(
            SpinnerColumn(),
            TextColumn('[progress.description]{task.description}'),
            console=console,
        ) as progress:
            task = progress.add_task(f'Parsing {document.source}...', total=None)
            result = parse(
                document.source,
                provider=document.provider,
                provider_name=document.provider_name,
                include_deprecated=document.include_deprecated,
                resolve_external_refs=document.resolve_external_refs,
                strict=document.strict,
            )
            progress.update(task, description=f'Parsed {document.source}')

        _report(result)
        if result.schema is None or not result.success:
            console.print(f'[red]Failed to parse {document.source}[/red]')
            failed = True
            continue

        output_dir = UPath(document.output or '.')
        options = GenerationOptions(
            output_dir=str(output_dir),
            package_name=result.schema.metadata.provider_id,
        )
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            schema_path = output_dir / 'schema.json'
            schema_path.write_text(
                result.schema.to_json(indent=forge_config.indent) + '\n', encoding='utf-8'
            )
            written = [str(schema_path)]
            for language in forge_config.targets:
                catalog = TypeCatalogGenerator(result.schema, options, language).generate()
                written.extend(write_files(catalog.files, output_dir))
        except (OSError, LLMForgeError) as e:
            console.print(f'[red]Error:[/red] {e}')
            failed = True
            continue

        console.print('[dim]Generated files:[/dim]')
        for path in written:
            console.print(f'  - {path}')

    if failed:
        raise typer.Exit(1)


@app.command()
def types(
    source: Annotated[str, typer.Argument(help='Path or URL of the provider document')],
    language: Annotated[
        TargetLanguage, typer.Option('--language', '-l', help='Target language')
    ] = TargetLanguage.TYPESCRIPT,
    provider: Annotated[
        str, typer.Option('--provider', '-p', help='Provider id selecting the frontend')
    ] = 'openapi',
) -> None:
    """Show how the properties of every object type map to a language."""
    result = parse(source, provider=provider)
    _report(result)
    if result.schema is None:
        raise typer.Exit(1)

    mapper = TypeMapper(result.schema, language)
    table = Table(title=f'{result.schema.metadata.provider_name} types ({language.value})')
    table.add_column('Type')
    table.add_column('Field')
    table.add_column('Expression')

    for definition in result.schema.types:
        if definition.id not in mapper.registry:
            continue
        type_name = mapper.type_name(definition.id)
        properties = getattr(definition, 'properties', ())
        if not properties:
            table.add_row(type_name, '', definition.kind)
        for prop in properties:
            mapped = mapper.map_type(prop.type, MappingContext(required=prop.required))
            table.add_row(type_name, prop.name, mapped.expression)

    console.print(table)


@app.command()
def providers() -> None:
    """List the provider ids with a dedicated frontend."""
    for provider_id in available_providers():
        console.print(provider_id)


@app.command()
def version() -> None:
    """Show the version of llmforge."""
    from llmforge._version import version

    console.print(f'llmforge version: {version}')


if __name__ == '__main__':
    app()
