import logging
import re
from typing import List, Tuple

import yaml

from models import DEFAULT_HEADING_LEVEL, DEFAULT_TITLE, SlideRecord

# --- 1. Patterns ---
# Front matter: a "---" line at the very start, up to the next "---" line
FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)", re.DOTALL | re.MULTILINE)
STYLE_OPEN_RE = re.compile(r"<style\b[^<>]*>", re.IGNORECASE)
STYLE_CLOSE_RE = re.compile(r"</style\s*>", re.IGNORECASE)
COMMENT_OPEN_RE = re.compile(r"<!--")
COMMENT_CLOSE_RE = re.compile(r"-->")

DELIMITER_RE = re.compile(r"^---[ \t]*$")
HEADING_RE = re.compile(r"^(#{1,3}) (.*)$")
CODE_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})")

BLOCK_BREAK_RE = re.compile(r"<br\s*/?>|</(?:p|li|div|h[1-6]|tr|blockquote)\s*>", re.IGNORECASE)
TAG_RE = re.compile(r"</?[A-Za-z][^<>]*>")
# "&amp;amp;lt;" decodes all the way down to "<" in one substitution
ENTITY_RE = re.compile(r"&(?:amp;)*(lt|gt|quot|amp);")
ENTITIES = {"lt": "<", "gt": ">", "quot": '"', "amp": "&"}
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def _remove_blocks(text: str, open_re, close_re) -> str:
    """
    Removes every region from an opener to the next closer.
    An opener without a closer, and everything after it, is left alone.
    """
    parts = []
    pos = 0
    while True:
        opening = open_re.search(text, pos)
        if not opening:
            break
        closing = close_re.search(text, opening.end())
        if not closing:
            break
        parts.append(text[pos:opening.start()])
        pos = closing.end()
    parts.append(text[pos:])
    return ''.join(parts)


# --- 2. Preprocessing ---

def _is_front_matter(block: str) -> bool:
    """A leading block only counts as metadata when it reads as a YAML mapping."""
    if not block.strip():
        return True
    try:
        parsed = yaml.safe_load(block)
    except yaml.YAMLError:
        return False
    return isinstance(parsed, dict)


def preprocess(raw: str) -> str:
    """
    Removes the leading front-matter block, every <style> block and every
    HTML comment (Marp directives and speaker notes), then trims the result.
    """
    text = raw.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff').lstrip()

    match = FRONT_MATTER_RE.match(text)
    if match and _is_front_matter(match.group(1)):
        logging.debug(f"Removing front matter ({match.end()} chars)")
        text = text[match.end():]

    text = _remove_blocks(text, STYLE_OPEN_RE, STYLE_CLOSE_RE)
    text = _remove_blocks(text, COMMENT_OPEN_RE, COMMENT_CLOSE_RE)
    return text.strip()


# --- 3. Markup cleanup ---

def _strip_tags(text: str) -> str:
    text = _remove_blocks(text, COMMENT_OPEN_RE, COMMENT_CLOSE_RE)
    text = BLOCK_BREAK_RE.sub('\n', text)
    return TAG_RE.sub('', text)


def strip_markup(text: str) -> str:
    """
    Turns leftover HTML into plain text.

    Paragraph, line-break and list-item tags become newlines, other tags and
    comments are dropped and &lt; &gt; &quot; &amp; are decoded. Entities can
    spell markup (&lt;b&gt;), so tags are stripped once more after decoding.
    """
    text = _strip_tags(text)
    text = ENTITY_RE.sub(lambda m: ENTITIES[m.group(1)], text)
    text = _strip_tags(text)
    return EXCESS_NEWLINES_RE.sub('\n\n', text)


# --- 4. Segmentation ---

def _is_lone_delimiter(lines: List[str]) -> bool:
    content = [line for line in lines if line.strip()]
    return len(content) == 1 and bool(DELIMITER_RE.match(content[0]))


def split_sections(text: str) -> List[str]:
    """
    Splits text in front of every "---" line and every "#"/"##"/"###" heading line.

    A heading right after a lone "---" belongs to that delimiter's section.
    Nothing inside a fenced code block starts a section.
    """
    sections = []
    current: List[str] = []
    fence = None

    for line in text.split('\n'):
        fence_match = CODE_FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif line.strip() == marker[0] * len(line.strip()) and len(marker) >= len(fence) and marker[0] == fence[0]:
                fence = None
        elif fence is None:
            starts_section = DELIMITER_RE.match(line) or (
                HEADING_RE.match(line) and not _is_lone_delimiter(current)
            )
            if starts_section and current:
                sections.append('\n'.join(current))
                current = []
        current.append(line)

    if current:
        sections.append('\n'.join(current))
    return sections


def _title_and_body(lines: List[str]) -> Tuple[str, str, int]:
    if DELIMITER_RE.match(lines[0]):
        start = 1
        while start < len(lines) and not lines[start].strip():
            start += 1
        if start == len(lines):
            return '', '', DEFAULT_HEADING_LEVEL
        lines = lines[start:]

    heading = HEADING_RE.match(lines[0])
    if heading:
        title = heading.group(2).strip()
        level = len(heading.group(1))
    else:
        # no heading marker: first line is the title as written
        title = lines[0].strip()
        level = DEFAULT_HEADING_LEVEL

    body = '\n'.join(lines[1:]).strip()
    return title, body, level


def segment(cleaned: str) -> List[SlideRecord]:
    """
    Converts preprocessed Markdown into slide records, in document order.
    Sections without a title and without a body are skipped.
    """
    slides = []
    for section in split_sections(cleaned):
        section = section.strip()
        if not section:
            continue

        title, body, level = _title_and_body(section.split('\n'))
        # titles stay on one line
        title = ' '.join(part.strip() for part in strip_markup(title).split('\n') if part.strip())
        body = strip_markup(body).strip()

        if not title and not body:
            logging.debug("Skipping empty section")
            continue

        slides.append(SlideRecord(title=title or DEFAULT_TITLE, body=body, heading_level=level))

    return slides


def convert_markdown_to_slides(raw: str) -> List[SlideRecord]:
    """Runs the full conversion: preprocessing, then segmentation."""
    slides = segment(preprocess(raw))
    logging.info(f"Segmented document into {len(slides)} slide(s)")
    return slides
