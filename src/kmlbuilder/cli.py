import configparser
import sys

import click

from kmlbuilder import builder
from kmlbuilder import config
from kmlbuilder import constants
from kmlbuilder import kml
from kmlbuilder import search


def load_configuration(config_filename, overrides):
    try:
        if config_filename:
            parser = config.config_parser_factory(config_filename)
        else:
            parser = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
        configuration = config.configuration(parser, overrides)
    except ValueError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    valid, errors = config.validate(configuration)
    if not valid:
        click.echo("The configuration is invalid:", err=True)
        for msg in errors:
            click.echo(" * " + msg, err=True)
        sys.exit(1)
    return configuration


def write_output(text, output):
    if output:
        with open(output, "tw", encoding="utf-8") as f:
            f.write(text)
        click.echo(f'Wrote {output}')
    else:
        click.echo(text)


@click.group(epilog="For detailed help on each command, run: kmlbuilder COMMAND --help")
def cli():
    """The kmlbuilder utility turns boundaries made of many disjoint parts
    into a single polygon and converts them between KML and GeoJSON."""
    pass

@cli.command()
@click.option('-c', '--config', help='Path to configuration file to create or replace')
def init(config):
    """Populates a configuration file based on user input."""
    click.echo(builder.banner())
    config = builder.init_config(config)
    click.echo(f'Initialized the kmlbuilder configuration file {config}')

@cli.command()
@click.option('-c', '--config', 'config_filename', help='Path to configuration file to display', required=True)
def info(config_filename):
    """Summarizes the contents of a configuration file."""
    click.echo(builder.banner())
    try:
        configuration = config.configuration(config.config_parser_factory(config_filename), {})
    except ValueError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    configuration.show()

@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-c', '--config', 'config_filename', help='Path to configuration file')
@click.option('-m', '--mode', type=click.Choice([constants.ACCURATE, constants.APPROXIMATE]), help='Merge mode (overrides the configuration)')
@click.option('-f', '--format', 'output_format', type=click.Choice([constants.KML_FORMAT, constants.GEOJSON_FORMAT]), default=constants.KML_FORMAT, show_default=True, help='Output format')
@click.option('-o', '--output', help='Output file; defaults to standard output')
@click.option('-v', '--verbose', is_flag=True, help='Log progress to the console and kmlbuilder.log')
def merge(input_file, config_filename, mode, output_format, output, verbose):
    """Merges every boundary in a KML or GeoJSON file into a single polygon."""
    configuration = load_configuration(config_filename, {'mode': mode})
    if verbose:
        builder.init_logging()
    try:
        text = builder.merge_file(input_file, configuration, output_format)
    except Exception as e:
        click.echo(f"\nUnable to merge {input_file}: {e}", err=True)
        sys.exit(1)
    write_output(text, output)

@cli.command('search')
@click.argument('query')
@click.option('-c', '--config', 'config_filename', help='Path to configuration file')
@click.option('-m', '--mode', type=click.Choice([constants.ACCURATE, constants.APPROXIMATE]), help='Merge mode (overrides the configuration)')
@click.option('-p', '--pick', type=int, help='Export the N-th result (1-based) instead of listing')
@click.option('-f', '--format', 'output_format', type=click.Choice([constants.KML_FORMAT, constants.GEOJSON_FORMAT]), default=constants.KML_FORMAT, show_default=True, help='Output format')
@click.option('-o', '--output', help='Output file; defaults to standard output')
def search_command(query, config_filename, mode, pick, output_format, output):
    """Looks up a place by name and exports its boundary as one polygon."""
    configuration = load_configuration(config_filename, {'mode': mode})
    try:
        results = search.search_places(
            query,
            url=configuration.search_url,
            user_agent=configuration.user_agent,
            timeout=configuration.search_timeout,
        )
    except search.SearchError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    if not results:
        click.echo(f'No results for {query!r}')
        return

    if pick is None:
        for i, result in enumerate(results, 1):
            marker = '' if result.geojson else ' (no boundary)'
            click.echo(f'{i:>3}. {result.display_name} [osm {result.osm_id}]{marker}')
        return

    if not 1 <= pick <= len(results):
        click.echo(f'--pick must be between 1 and {len(results)}', err=True)
        sys.exit(1)

    result = results[pick - 1]
    feature = builder.feature_from_search_result(result, configuration.merge_mode, configuration)
    if feature is None:
        click.echo(f'{result.display_name} has no boundary geometry', err=True)
        sys.exit(1)

    if output_format == constants.GEOJSON_FORMAT:
        exported = dict(feature, properties={k: v for k, v in feature['properties'].items() if k != 'originalGeoJson'})
        text = kml.to_geojson_text(exported)
    else:
        text = kml.to_kml(feature, result.display_name)
    write_output(text, output)

if __name__ == "__main__":
    cli()
