"""Terminal styling for jpegexif output and plain lines for ``strip --log``.

Styling goes through ``click.style``; it is on when stdout is a terminal
and can be forced either way with ``set_color_enabled``.
"""

import sys
from datetime import datetime

import click

SEPARATOR_WIDTH = 60

_color = sys.stdout.isatty() if hasattr(sys.stdout, 'isatty') else False

# role -> click.style keyword arguments
_STYLES = {
    'header': {'fg': 'cyan', 'bold': True},
    'success': {'fg': 'green'},
    'warning': {'fg': 'yellow'},
    'error': {'fg': 'red', 'bold': True},
    'info': {'fg': 'cyan'},
    'dim': {'dim': True},
    'bold': {'fg': 'white', 'bold': True},
}


def set_color_enabled(enabled: bool):
    global _color
    _color = enabled


def _styled(role: str, text: str) -> str:
    if not _color:
        return text
    return click.style(text, **_STYLES[role])


def cli_header(text: str) -> str:
    """IFD titles in ``dump``."""
    return _styled('header', text)


def cli_success(text: str) -> str:
    return _styled('success', text)


def cli_warning(text: str) -> str:
    """No Exif segment, missing tag, partial decode."""
    return _styled('warning', text)


def cli_error(text: str) -> str:
    return _styled('error', text)


def cli_info(text: str) -> str:
    return _styled('info', text)


def cli_dim(text: str) -> str:
    """Byte order and segment position in verbose dumps."""
    return _styled('dim', text)


def cli_bold(text: str) -> str:
    return _styled('bold', text)


def cli_separator() -> str:
    return _styled('dim', '-' * SEPARATOR_WIDTH)


def _log_line(level: str, msg: str) -> str:
    stamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    return f'[{stamp}] [{level}]'.ljust(29) + f' {msg}'


def log_info(msg: str) -> str:
    return _log_line('INFO', msg)


def log_warn(msg: str) -> str:
    return _log_line('WARN', msg)


def log_error(msg: str) -> str:
    return _log_line('ERROR', msg)
