"""
Email parsing utilities for feedback-loop report classification.

This module provides the line-level parsing the classifier is built on:
content normalization, header tokenization, splitting multipart bodies by
boundary, and pulling a bare address out of a display string.

None of these functions raise on malformed input; missing structure
degrades to empty values.
"""

import logging
import re
from typing import Dict, Optional, Sequence, Union

from domain.models import (
    HMXMR_ORIGINAL_RECIPIENT,
    BodySections,
    ContentType,
    ParsedHeaders,
    canonical_field_name,
)

logger = logging.getLogger(__name__)

CRLF = '\r\n'
RECEIVED = 'Received'
CONTENT_TYPE = 'Content-type'

FIELD_LINE = re.compile(r'^([^\s.]*):\s*(.*)$')
CONTINUATION_LINE = re.compile(r'^\s+(.+)')
PARAM_SEGMENT = re.compile(r'^([^=]*)=(.*)$')
ADDRESS_DELIMITERS = re.compile(r'[ "\'<>:()\[\]]')


def decode_email_content(raw: Union[bytes, str]) -> str:
    """
    Decode raw message bytes as UTF-8, dropping undecodable bytes.

    Args:
        raw: Raw message bytes (str is returned unchanged)

    Returns:
        str: Message text
    """
    if isinstance(raw, bytes):
        return raw.decode('utf-8', errors='ignore')
    return raw or ''


def normalize_content(raw: str) -> str:
    """
    Normalize line endings to CRLF and undo two quoted-printable escapes.

    Mixed line endings converge: CRLF is first collapsed to LF, then every
    LF is expanded to CRLF. Afterwards ``=3D`` becomes ``=`` until none is
    left and ``=09`` becomes two spaces, so normalizing twice changes
    nothing.

    Args:
        raw: Raw message text

    Returns:
        str: Normalized text (empty input is returned as-is)

    Example:
        >>> normalize_content("Subject: a\\nX: b=3Dc\\r\\n")
        'Subject: a\\r\\nX: b=c\\r\\n'
    """
    if not raw:
        return raw

    content = raw.replace(CRLF, '\n').replace('\n', CRLF)
    # Chained escapes such as =3D3D collapse fully
    while '=3D' in content:
        content = content.replace('=3D', '=')
    content = content.replace('=09', '  ')
    return content


def _consume_line(fields: Dict[str, str], open_field: Optional[str], line: str) -> Optional[str]:
    """
    Apply one header line to ``fields``.

    Args:
        fields: Field values collected so far (mutated in place)
        open_field: Field that continuation lines currently extend
        line: Header line without its line ending

    Returns:
        The field that continuation lines extend after this line
    """
    match = FIELD_LINE.match(line)
    if match:
        name = canonical_field_name(match.group(1))
        value = match.group(2).strip()

        if name not in fields:
            fields[name] = value
            return name

        # Only Received accumulates; folded lines of any other duplicate
        # extend the first occurrence
        if name == RECEIVED and value and value != fields[name]:
            fields[name] += '|' + value
        return name

    match = CONTINUATION_LINE.match(line)
    if match and open_field is not None:
        fields[open_field] += ' ' + match.group(1).strip()

    return open_field


def _parse_content_type(value: str) -> ContentType:
    segments = value.split(';')
    content_type = ContentType(type=segments[0].strip().lower())

    for segment in segments[1:]:
        match = PARAM_SEGMENT.match(segment)
        if not match:
            continue
        key = match.group(1).strip().lower()
        if key:
            content_type.params[key] = match.group(2).strip().strip('"')

    return content_type


def parse_headers(lines: Union[str, Sequence[str]]) -> ParsedHeaders:
    """
    Parse a header block into canonical fields.

    Field names are canonicalized (first character upper-case, rest
    lower-case). The first occurrence of a field wins, except Received,
    whose distinct values are all kept in order. Folded lines (leading
    whitespace) extend the field opened by the previous header line.

    Args:
        lines: CRLF-delimited header block, or its lines

    Returns:
        ParsedHeaders: Plain fields plus structured Received/Content-Type

    Example:
        >>> headers = parse_headers("SUBJECT: hi\\r\\nX-Foo: bar\\r\\n  baz")
        >>> headers.get('Subject'), headers.get('X-Foo')
        ('hi', 'bar baz')
    """
    if isinstance(lines, str):
        lines = lines.split(CRLF)

    fields: Dict[str, str] = {}
    open_field: Optional[str] = None
    for line in lines:
        open_field = _consume_line(fields, open_field, line)

    headers = ParsedHeaders()

    if RECEIVED in fields:
        headers.received = fields.pop(RECEIVED).split('|')

    if CONTENT_TYPE in fields:
        headers.content_type = _parse_content_type(fields.pop(CONTENT_TYPE))

    headers.fields = {
        HMXMR_ORIGINAL_RECIPIENT if name.lower() == HMXMR_ORIGINAL_RECIPIENT.lower() else name: value
        for name, value in fields.items()
    }
    return headers


def split_body_sections(headers: ParsedHeaders, body: str) -> BodySections:
    """
    Split a multipart report body into its positional sections.

    The body is split on every literal occurrence of the boundary. Segment
    1 is the human-readable part, segment 2 the machine-readable report and
    segment 3 the returned original headers.

    Args:
        headers: Parsed top-level headers
        body: Raw body

    Returns:
        BodySections: Empty sections when there is no boundary
    """
    boundary = headers.boundary
    if not boundary:
        logger.debug("No boundary in Content-Type, body has no sections")
        return BodySections()

    segments = body.split(boundary)
    logger.debug(f"Body split into {len(segments)} segment(s) on boundary {boundary!r}")

    first = segments[1] if len(segments) > 1 else None
    return BodySections(
        first=first,
        first_headers=parse_headers(first) if first is not None else None,
        machine=segments[2] if len(segments) > 2 else None,
        returned=segments[3] if len(segments) > 3 else None,
    )


def extract_email_address(text: str) -> str:
    """
    Extract the first bare address from a display string.

    Args:
        text: Free text such as ``John Doe <john@example.com>``

    Returns:
        str: First token containing ``@``, or ``text`` unchanged if none does

    Example:
        >>> extract_email_address("John Doe <john@example.com>")
        'john@example.com'
    """
    for token in ADDRESS_DELIMITERS.split(text):
        if '@' in token:
            return token
    return text
