"""multipart/form-data decoding over raw bytes.

Boundaries are located with literal byte search, so payloads are never
decoded and boundary values may contain any character.
"""

from wifi_upload.models.core import FilePart, FormField, MultipartPart

CRLF = b"\r\n"
PART_DELIMITER = b"\r\n\r\n"


def is_multipart(content_type: str | None) -> bool:
    return bool(content_type) and "multipart/form-data" in content_type.lower()


def extract_boundary(content_type: str | None) -> str | None:
    """Return the ``--``-prefixed boundary from a Content-Type value."""
    if not content_type:
        return None
    key = "boundary="
    index = content_type.lower().find(key)
    if index < 0:
        return None

    value = content_type[index + len(key):].strip()
    if value.startswith('"'):
        closing = value.find('"', 1)
        value = value[1:closing] if closing > 0 else value[1:]
    else:
        value = value.split(";", 1)[0]
    value = value.strip().rstrip(";").strip()
    return f"--{value}" if value else None


def final_boundary_markers(boundary: str) -> tuple[bytes, ...]:
    """Accepted spellings of the closing delimiter, longest first."""
    closing = boundary.encode("utf-8") + b"--"
    return (CRLF + closing + CRLF, CRLF + closing, closing + CRLF, closing)


def ends_with_final_boundary(data: bytes | bytearray, boundary: str) -> bool:
    return data.endswith(final_boundary_markers(boundary))


def _find_all(data: bytes, needle: bytes) -> list[int]:
    positions = []
    start = data.find(needle)
    while start >= 0:
        positions.append(start)
        start = data.find(needle, start + len(needle))
    return positions


def _quoted_attribute(header: str, attribute: str) -> str | None:
    """Find ``attribute="value"`` where the attribute starts a parameter."""
    needle = f'{attribute}="'
    start = header.find(needle)
    while start >= 0:
        if start == 0 or header[start - 1] in " ;\t":
            value_start = start + len(needle)
            value_end = header.find('"', value_start)
            return header[value_start:value_end] if value_end >= 0 else None
        start = header.find(needle, start + 1)
    return None


def _parse_part(segment: bytes) -> MultipartPart | None:
    if segment.startswith(CRLF):
        segment = segment[len(CRLF):]
    header_end = segment.find(PART_DELIMITER)
    if header_end < 0:
        return None

    header_block = segment[:header_end].decode("utf-8", errors="replace")
    payload = segment[header_end + len(PART_DELIMITER):]
    if payload.endswith(CRLF):
        payload = payload[: -len(CRLF)]

    disposition = next(
        (line for line in header_block.split("\r\n") if line.lower().startswith("content-disposition:")),
        None,
    )
    if disposition is None:
        return None

    name = _quoted_attribute(disposition, "name")
    filename = _quoted_attribute(disposition, "filename")
    if filename is not None:
        return FilePart(field_name=name, filename=filename, data=payload)
    if name is not None:
        return FormField(name=name, data=payload)
    return None


def parse_multipart(body: bytes | bytearray, boundary: str) -> list[MultipartPart]:
    """Split ``body`` into parts in order of appearance.

    An occurrence of the boundary followed by ``--`` closes the body. A body
    cut short before its terminator still yields its last part.
    """
    data = bytes(body)
    marker = boundary.encode("utf-8")
    positions = _find_all(data, marker)

    parts: list[MultipartPart] = []
    for index, start in enumerate(positions):
        after = start + len(marker)
        if data[after:after + 2] == b"--":
            break
        end = positions[index + 1] if index + 1 < len(positions) else len(data)
        part = _parse_part(data[after:end])
        if part is not None:
            parts.append(part)
    return parts
