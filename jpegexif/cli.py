"""CLI interface for jpegexif -- dump, get, summary, strip, thumbnail subcommands."""

import json
import logging
import sys
from pathlib import Path

import click

import jpegexif
from jpegexif.exif import get_tag_info, get_thumbnail, read_exif, remove_exif
from jpegexif.log import (
    cli_bold, cli_dim, cli_error, cli_header, cli_info, cli_separator, cli_success, cli_warning,
    log_error, log_info, log_warn,
)
from jpegexif.models import IfdType, Status
from jpegexif.report import dump_ifd_table, format_tag_value, tables_to_dict
from jpegexif.tiff.parser import read_tag_string
from jpegexif.tiff.tags import (
    DATE_TIME_ORIGINAL_TAG, GPS_LATITUDE_TAG, MODEL_TAG, get_tag_name,
)

_IFD_CHOICES = {
    '0th': IfdType.PRIMARY,
    'exif': IfdType.EXIF,
    'gps': IfdType.GPS,
    'interop': IfdType.INTEROPERABILITY,
    '1st': IfdType.THUMBNAIL,
}


def status_message(status: Status, name: str) -> str:
    """User-facing sentence for a read/write status."""
    if status == Status.NOT_FOUND:
        return f'[{name}] does not seem to contain the Exif segment.'
    if status == Status.READ_FAILURE:
        return f'failed to open or read [{name}].'
    if status == Status.WRITE_FAILURE:
        return f'failed to write the output for [{name}].'
    if status == Status.INVALID_JPEG:
        return f'[{name}] is not a valid JPEG file.'
    if status == Status.INVALID_APP1HEADER:
        return f'[{name}] does not have valid Exif segment header.'
    if status == Status.INVALID_IFD:
        return f'[{name}] contains one or more IFD errors. use -v for details.'
    return f'[{name}] OK'


def _parse_tag_id(value: str) -> int:
    try:
        tag_id = int(value, 0)
    except ValueError:
        raise click.BadParameter(f'{value!r} is not a decimal or 0x-prefixed tag ID')
    if not 0 <= tag_id <= 0xFFFF:
        raise click.BadParameter(f'tag ID {value} out of range')
    return tag_id


@click.group()
@click.version_option(version=jpegexif.__version__, prog_name='jpegexif')
@click.option('--debug', is_flag=True, help='Log decoder diagnostics to stderr.')
def main(debug):
    """jpegexif -- decode, inspect and strip Exif metadata in JPEG files."""
    if debug:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--verbose', '-v', is_flag=True, help='Show tag IDs, types and per-IFD errors.')
@click.option('--json-out', type=click.Path(), help='Write decoded tags as JSON to file.')
def dump(path, verbose, json_out):
    """Print every IFD decoded from PATH's Exif segment."""
    filepath = Path(path)
    result = read_exif(filepath)

    if result.status == Status.NOT_FOUND:
        click.echo(cli_warning(status_message(result.status, filepath.name)))
        return
    if result.status != Status.OK:
        click.echo(cli_error(status_message(result.status, filepath.name)))
        if verbose:
            for msg in result.errors:
                click.echo(cli_error(f'  {msg}'))

    if verbose and result.header is not None:
        click.echo(cli_dim(f'data: {result.header.byte_order_name}-endian, '
                           f'segment at {result.app1_offset} '
                           f'({result.segment_length} bytes)'))

    for table in result.tables:
        lines = dump_ifd_table(table, verbose)
        click.echo('')
        click.echo(cli_header(lines[0]))
        for line in lines[1:]:
            click.echo(line)

    if verbose and result.tables:
        click.echo(cli_separator())
        click.echo(cli_bold(f'{result.ifd_count} IFD(s) decoded in '
                            f'{result.read_time_ms:.1f} ms'))

    if json_out and result.tables:
        with open(json_out, 'w') as f:
            json.dump(tables_to_dict(result.tables), f, indent=2)
        click.echo(cli_info(f'\nResults written to {json_out}'))

    if not result.tables:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--ifd', 'ifd_name', type=click.Choice(sorted(_IFD_CHOICES)), default='0th',
              show_default=True, help='IFD to look in.')
@click.option('--tag', 'tag_value', required=True, help='Tag ID (decimal or 0x hex).')
def get(path, ifd_name, tag_value):
    """Print one tag's value."""
    filepath = Path(path)
    tag_id = _parse_tag_id(tag_value)
    ifd_type = _IFD_CHOICES[ifd_name]

    result = read_exif(filepath)
    if not result.tables:
        click.echo(cli_warning(status_message(result.status, filepath.name)))
        sys.exit(1)

    tag = get_tag_info(result.tables, ifd_type, tag_id)
    if tag is None:
        click.echo(cli_warning(f'tag 0x{tag_id:04X} not found in {ifd_type.label} IFD'))
        sys.exit(1)
    name = get_tag_name(ifd_type, tag_id)
    click.echo(f'{ifd_type.label} IFD : {name} = {format_tag_value(tag)}'.rstrip())
    if tag.error:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def summary(path):
    """Print the camera model, capture time and GPS latitude of PATH."""
    filepath = Path(path)
    result = read_exif(filepath)
    if result.status != Status.OK:
        click.echo(cli_warning(status_message(result.status, filepath.name)))
    if not result.tables:
        sys.exit(1)

    model = get_tag_info(result.tables, IfdType.PRIMARY, MODEL_TAG)
    if model is not None and not model.error:
        click.echo(f'{IfdType.PRIMARY.label} IFD : Model = [{read_tag_string(model)}]')
    taken = get_tag_info(result.tables, IfdType.EXIF, DATE_TIME_ORIGINAL_TAG)
    if taken is not None and not taken.error:
        click.echo(f'{IfdType.EXIF.label} IFD : DateTimeOriginal = [{read_tag_string(taken)}]')
    latitude = get_tag_info(result.tables, IfdType.GPS, GPS_LATITUDE_TAG)
    if latitude is not None and not latitude.error:
        click.echo(f'{IfdType.GPS.label} IFD : GPSLatitude = {format_tag_value(latitude)}'.rstrip())


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='Output JPEG file.')
@click.option('--log', type=click.Path(), help='Write log to file.')
def strip(path, output, log):
    """Write a copy of PATH with its Exif segment removed."""
    filepath = Path(path)
    log_file = open(log, 'a') if log else None

    def log_line(line):
        if log_file:
            log_file.write(line + '\n')
            log_file.flush()

    try:
        result = remove_exif(filepath, Path(output))
        if result.status == Status.OK:
            click.echo(cli_success(f'{filepath.name}: removed Exif segment '
                                   f'({result.bytes_removed} bytes) -> {output}'))
            log_line(log_info(f'{filepath}: removed {result.bytes_removed} bytes -> {output}'))
        elif result.status == Status.NOT_FOUND:
            click.echo(cli_warning(status_message(result.status, filepath.name)))
            log_line(log_warn(f'{filepath}: no Exif segment'))
        else:
            click.echo(cli_error(status_message(result.status, filepath.name)))
            if result.error:
                click.echo(cli_error(f'  {result.error}'))
            log_line(log_error(f'{filepath}: {result.error}'))
    finally:
        if log_file:
            log_file.close()

    if result.status < 0:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='File to write the thumbnail JPEG to.')
def thumbnail(path, output):
    """Extract the embedded thumbnail from PATH."""
    filepath = Path(path)
    data = get_thumbnail(filepath)
    if data is None:
        click.echo(cli_warning(f'[{filepath.name}] has no readable thumbnail.'))
        sys.exit(1)
    Path(output).write_bytes(data)
    click.echo(cli_success(f'{filepath.name}: wrote {len(data)} byte thumbnail -> {output}'))


if __name__ == '__main__':
    main()
