"""Parse the model's review reply into a summary and inline comments.

The reply format is set by the prompt template::

    SUMMARY: $$ free text $$
    POEM: $$ free text $$
    PR_COMMENT:path/to/file.py:42: ⚠️ **issue**: $$ comment body $$

The parser is forgiving. A missing marker or delimiter pair gives an empty
section, and a malformed comment block is dropped on its own without
affecting the others. It never raises on model output.
"""

import logging
import re

from cyclone_bot.models.review import ReviewComment, ReviewResult

logger = logging.getLogger(__name__)

SUMMARY_MARKER = "SUMMARY:"
POEM_MARKER = "POEM:"
COMMENT_MARKER = "PR_COMMENT:"
DELIMITER = "$$"

BRANDING_HEADER = "## 🌪️ Cyclone AI Code Review\n\n"
POEM_HEADING = "\n\n---\n\n**And now, a little poem about your changes 🌪️✨**\n"

# Section markers that may follow the last comment block
_TRAILING_MARKER_RE = re.compile(f"{re.escape(SUMMARY_MARKER)}|{re.escape(POEM_MARKER)}")
_LINE_NUMBER_RE = re.compile(r"[+-]?\d+")


def extract_delimited(text: str) -> str:
    """Content between the first ``$$`` and the next one, stripped.

    Returns an empty string when there is no complete pair.
    """
    start = text.find(DELIMITER)
    if start == -1:
        return ""
    start += len(DELIMITER)

    end = text.find(DELIMITER, start)
    if end == -1:
        return ""

    return text[start:end].strip()


def extract_section(text: str, marker: str) -> str:
    """Delimited content following the first occurrence of ``marker``.

    Args:
        text: Raw model reply
        marker: Section keyword, e.g. ``SUMMARY:``

    Returns:
        Section content, or an empty string if the marker or a ``$$`` pair
        after it is missing
    """
    index = text.find(marker)
    if index == -1:
        return ""
    return extract_delimited(text[index + len(marker) :])


def split_comment_blocks(text: str) -> list[str]:
    """Text after each ``PR_COMMENT:`` marker, in reply order.

    A block ends at the next ``PR_COMMENT:``. A ``SUMMARY:`` or ``POEM:``
    section that follows a block's closed ``$$`` pair is cut off; the same
    words inside the comment body are kept.
    """
    blocks = []
    for fragment in text.split(COMMENT_MARKER)[1:]:
        for match in _TRAILING_MARKER_RE.finditer(fragment):
            delimiters_before = fragment.count(DELIMITER, 0, match.start())
            if delimiters_before >= 2 and delimiters_before % 2 == 0:
                fragment = fragment[: match.start()]
                break
        blocks.append(fragment)
    return blocks


def parse_comment_block(block: str) -> ReviewComment | None:
    """Parse the text after one ``PR_COMMENT:`` marker.

    The header before the first ``$$`` is ``path:line:category``; the category
    may itself contain colons. The body runs to the last ``$$`` in the block.

    Returns:
        The comment, or None if the block is malformed
    """
    start = block.find(DELIMITER)
    end = block.rfind(DELIMITER)
    if start == -1 or end < start + len(DELIMITER):
        logger.debug(f"PR_COMMENT block without a $$ pair: {block[:80]!r}")
        return None

    header = block[:start].strip()
    content = block[start + len(DELIMITER) : end].strip()

    parts = header.split(":", 2)
    if len(parts) < 3:
        logger.warning(f"Invalid PR_COMMENT header format: {header}")
        return None

    path = parts[0].strip()
    line_text = parts[1].strip()
    category = parts[2].strip()

    if not path:
        logger.warning(f"PR_COMMENT header has no file path: {header}")
        return None

    if not _LINE_NUMBER_RE.fullmatch(line_text):
        logger.warning(f"Invalid line number in PR_COMMENT: {line_text}")
        return None

    line = int(line_text)
    if line < 1:
        logger.warning(f"Line number must be positive in PR_COMMENT: {line_text}")
        return None

    return ReviewComment(
        path=path,
        line=line,
        side="RIGHT",
        body=f"{category}\n\n{content}",
    )


def compose_summary(summary: str, poem: str) -> str:
    """Branded review body: header, summary, then the poem if there is one."""
    body = summary
    if poem:
        body += POEM_HEADING + poem
    return BRANDING_HEADER + body


def parse_review_response(text: str) -> ReviewResult:
    """Turn a model reply into a review ready for posting.

    Args:
        text: Raw model reply

    Returns:
        ReviewResult with the composed summary and the comments in reply order
    """
    summary = extract_section(text, SUMMARY_MARKER)
    poem = extract_section(text, POEM_MARKER)

    comments: list[ReviewComment] = []
    dropped = 0
    for block in split_comment_blocks(text):
        comment = parse_comment_block(block)
        if comment is None:
            dropped += 1
        else:
            comments.append(comment)

    if not summary:
        logger.warning("Model reply has no SUMMARY section")
    if dropped:
        logger.warning(f"Dropped {dropped} malformed PR_COMMENT block(s)")

    return ReviewResult(summary=compose_summary(summary, poem), comments=comments)
