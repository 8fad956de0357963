"""
Render packed planes as C source ready to compile into firmware.
"""

import os
from typing import Iterable, List

from .config import BYTES_PER_LINE
from .packer import Plane


def leaf_name(path) -> str:
    """File name without directory or extension."""
    return os.path.splitext(os.path.basename(str(path)))[0]


def fix_name(name: str) -> str:
    """Make name usable as a C identifier."""
    name = ''.join(c if (c.isascii() and c.isalnum()) or c == '_' else '_' for c in name)
    if not name:
        return "_"
    if name[0].isdigit():
        name = '_' + name
    return name


def hex_lines(data: bytes, bytes_per_line: int = BYTES_PER_LINE) -> str:
    """Comma separated hex bytes, bytes_per_line values per line.

    A newline follows every full line, including the last one.
    """
    out = []
    total = len(data)
    for i, value in enumerate(data, start=1):
        out.append(f"0x{value:02x}")
        if i != total:
            out.append(",")
        if i % bytes_per_line == 0:
            out.append("\n")
    return ''.join(out)


def render_plane(plane: Plane, name: str, bytes_per_line: int = BYTES_PER_LINE,
                 label: bool = False) -> str:
    lines = []
    if label:
        lines.append(f"// Plane {plane.index} data\n")
    suffix = "" if plane.packed else f"_{plane.index}"
    lines.append(f"const uint8_t {name}{suffix}[] PROGMEM = {{\n")
    lines.append(hex_lines(plane.data, bytes_per_line))
    lines.append("};\n")
    return ''.join(lines)


def render_header(planes: List[Plane], leaf: str, bytes_per_line: int = BYTES_PER_LINE) -> str:
    """Full text of the generated header file."""
    first = planes[0]
    name = fix_name(leaf)
    parts: List[str] = [
        "//\n// Created with epdimage\n",
        f"//\n// {leaf}\n//\n",
        "// for non-Arduino builds...\n",
        "#ifndef PROGMEM\n#define PROGMEM\n#endif\n",
        f"// Image size: width {first.width}, height {first.height}\n",
        f"// {first.pitch} bytes per line\n",
        f"// {first.size} bytes {'total' if first.packed else 'per plane'}\n",
    ]
    label = len(planes) > 1
    parts.extend(render_plane(p, name, bytes_per_line, label) for p in planes)
    return ''.join(parts)


def write_header(path, planes: Iterable[Plane], leaf: str, bytes_per_line: int = BYTES_PER_LINE) -> int:
    """Write the header file; returns the number of characters written."""
    text = render_header(list(planes), leaf, bytes_per_line)
    with open(path, 'w') as f:
        return f.write(text)
