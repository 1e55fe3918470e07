import json
import logging
from pathlib import Path

import click

from .config import GeneratorConfig
from .errors import DescriptorError
from .generator import DescriptorGenerator
from .report import render_report


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option("--include-deprecated", is_flag=True, default=False, help="Include deprecated schemas and operations")
@click.option("--format", "output_format", default="json", type=click.Choice(["json", "text"]))
@click.option("--output", "-o", default=None, type=click.Path(resolve_path=True))
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("path", type=click.Path(exists=True, resolve_path=True))
def openapi_descriptors(config, include_deprecated, output_format, output, verbose, path):
    """Extract code-generation descriptors from the OpenAPI document at PATH."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(path) as f:
        document = json.load(f)

    try:
        if config is not None:
            with open(config) as f:
                config = GeneratorConfig.from_dict(json.load(f))
        else:
            config = GeneratorConfig()

        # CLI flag overrides the config file
        if include_deprecated:
            config.include_deprecated = True

        result = DescriptorGenerator(document, config).generate()
    except DescriptorError as e:
        raise click.ClickException(str(e)) from e

    if output_format == "text":
        out = render_report(result, title=Path(path).stem)
    else:
        out = json.dumps(result.to_dict(), indent=2) + "\n"

    if output is None:
        click.echo(out, nl=False)
    else:
        with open(output, "w") as f:
            f.write(out)
