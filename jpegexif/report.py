"""Text and JSON renderings of decoded IFD tables."""

from typing import Dict, List, Optional, Sequence

from jpegexif.models import IfdTable, Tag, TagType
from jpegexif.tiff.tags import get_tag_name

# UNDEFINED values longer than this are cut short in dumps
MAX_UNDEFINED_PREVIEW = 16


def format_tag_value(tag: Tag) -> str:
    """Render a tag's value the way the dump prints it."""
    if tag.error:
        return '(error)'
    values = tag.values
    if tag.type == TagType.ASCII:
        return f'[{values}]'
    if tag.type == TagType.UNDEFINED:
        shown = values[:MAX_UNDEFINED_PREVIEW]
        parts = [chr(b) if 0x21 <= b <= 0x7E else f'0x{b:02x}' for b in shown]
        text = ' '.join(parts) + ' ' if parts else ''
        if len(shown) < len(values):
            text += '(omitted)'
        return text
    if tag.type in (TagType.RATIONAL, TagType.SRATIONAL):
        return ''.join(f'{n}/{d} ' for n, d in values)
    if values is None:
        return ''
    return ''.join(f'{v} ' for v in values)


def dump_ifd_table(table: Optional[IfdTable], verbose: bool = False) -> List[str]:
    """Lines describing one IFD table and its tags."""
    if table is None:
        return []
    title = f'{{{table.ifd_type.label} IFD}}'
    if verbose:
        title += f' tags={table.tag_count}'
    lines = [title]
    for i, tag in enumerate(table.tags):
        name = get_tag_name(table.ifd_type, tag.tag_id)
        value = format_tag_value(tag)
        if verbose:
            lines.append(f'tag[{i:02d}] 0x{tag.tag_id:04X} {name}')
            lines.append(f'\ttype={tag.type} count={tag.count} val={value}')
        else:
            lines.append(f' - {name}: {value}')
    return lines


def dump_ifd_table_array(tables: Optional[Sequence[IfdTable]],
                         verbose: bool = False) -> List[str]:
    lines = []
    for table in tables or ():
        lines.append('')
        lines.extend(dump_ifd_table(table, verbose))
    return lines


def tag_to_dict(table: IfdTable, tag: Tag) -> Dict:
    values = tag.values
    if isinstance(values, bytes):
        values = values.hex()
    return {
        'id': tag.tag_id,
        'name': get_tag_name(table.ifd_type, tag.tag_id),
        'type': tag.type_name,
        'count': tag.count,
        'error': tag.error,
        'value': values,
    }


def tables_to_dict(tables: Sequence[IfdTable]) -> Dict[str, List[Dict]]:
    """JSON-ready mapping of IFD label to its tags."""
    return {t.ifd_type.label: [tag_to_dict(t, tag) for tag in t.tags] for t in tables}
