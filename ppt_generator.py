import io
import logging
import os
import re
from typing import List

from pptx import Presentation
from pptx.util import Inches, Pt
from pptx.dml.color import RGBColor
from pptx.enum.text import PP_ALIGN, MSO_ANCHOR

from models import SlideRecord


# --- 1. Design Constants ---
# Colors
INTRO_BACKGROUND = RGBColor.from_string('2E86AB')
CONTENT_BACKGROUND = RGBColor.from_string('F3F4F6')
TITLE_COLOR = RGBColor.from_string('1F2937')
BODY_COLOR = RGBColor.from_string('374151')
WHITE = RGBColor(255, 255, 255)
# Slide Dimensions (16:9)
SLIDE_WIDTH = Inches(10)
SLIDE_HEIGHT = Inches(5.625)
# Margins
MARGIN_LEFT = Inches(0.5)
MARGIN_TOP = Inches(0.5)
# Font Sizes
INTRO_TITLE_FONT_SIZE = Pt(36)
SLIDE_TITLE_FONT_SIZE = Pt(28)
BODY_FONT_SIZE = Pt(18)

MAX_TEXT_LENGTH = 1000
BLANK_LAYOUT = 6
DEFAULT_INTRO_TITLE = os.getenv("INTRO_SLIDE_TITLE", "マークダウンから生成")

BULLET_RE = re.compile(r'^\s*[-*+]\s+')

# --- 2. Helper Functions ---

def truncate(text, limit=MAX_TEXT_LENGTH):
    """Truncates text to avoid python-pptx internal naming issues."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def fill_background(slide, color):
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = color


def apply_formatted_text_to_paragraph(p, text, color=BODY_COLOR):
    """
    Parses text with **bold** syntax and adds it as runs
    to a paragraph object.
    """
    if not text:
        return
    # Split text by markers, keeping the markers
    parts = re.split(r'(\*\*.+?\*\*)', text)

    for part in parts:
        if part.startswith('**') and part.endswith('**') and len(part) > 4:
            run = p.add_run()
            run.text = part[2:-2]
            run.font.bold = True
            run.font.color.rgb = color
        elif part:
            run = p.add_run()
            run.text = part
            run.font.color.rgb = color


def set_body_text(text_frame, body):
    """
    Fills a text frame with one paragraph per body line.
    Bullet lines lose their marker and are indented one level.
    """
    text_frame.clear()
    text_frame.word_wrap = True

    first = True
    for line in truncate(body).split('\n'):
        p = text_frame.paragraphs[0] if first else text_frame.add_paragraph()
        first = False
        p.font.size = BODY_FONT_SIZE

        if BULLET_RE.match(line):
            line = "• " + BULLET_RE.sub('', line)
            p.level = 1
        apply_formatted_text_to_paragraph(p, line)

# --- 3. Slide Drawing Functions ---

def draw_intro_slide(slide, title):
    """Draws the fixed introductory title slide."""
    fill_background(slide, INTRO_BACKGROUND)

    title_shape = slide.shapes.add_textbox(
        Inches(1), Inches(2), SLIDE_WIDTH - Inches(2), Inches(1)
    )
    title_tf = title_shape.text_frame
    title_tf.word_wrap = True
    title_tf.vertical_anchor = MSO_ANCHOR.MIDDLE
    p = title_tf.paragraphs[0]
    p.alignment = PP_ALIGN.CENTER
    p.font.size = INTRO_TITLE_FONT_SIZE
    p.font.color.rgb = WHITE
    p.font.bold = True
    p.text = truncate(title)
    logging.info(f"  - Drawing Intro Slide: {title}")


def draw_content_slide(slide, record: SlideRecord):
    """Draws a slide with a title region and a body text region."""
    fill_background(slide, CONTENT_BACKGROUND)

    # Slide Title
    title_shape = slide.shapes.add_textbox(
        MARGIN_LEFT, MARGIN_TOP, SLIDE_WIDTH - MARGIN_LEFT * 2, Inches(1)
    )
    title_tf = title_shape.text_frame
    title_tf.word_wrap = True
    p = title_tf.paragraphs[0]
    p.font.size = SLIDE_TITLE_FONT_SIZE
    p.font.color.rgb = TITLE_COLOR
    p.font.bold = True
    p.text = truncate(record.title)

    # Body
    if record.body:
        body_top = Inches(1.8)
        body_shape = slide.shapes.add_textbox(
            MARGIN_LEFT, body_top, SLIDE_WIDTH - MARGIN_LEFT * 2, SLIDE_HEIGHT - body_top - Inches(0.3)
        )
        set_body_text(body_shape.text_frame, record.body)

    logging.info(f"  - Drawing Content Slide (level {record.heading_level}): {record.title}")

# --- 4. Main Execution Logic ---

def create_presentation(slides: List[SlideRecord], intro_title: str = DEFAULT_INTRO_TITLE):
    """Creates a new presentation: an intro slide, then one slide per record."""
    if not slides:
        raise ValueError("Cannot create a presentation without slides.")

    prs = Presentation()
    prs.slide_width = SLIDE_WIDTH
    prs.slide_height = SLIDE_HEIGHT
    blank_layout = prs.slide_layouts[BLANK_LAYOUT]

    logging.info("Starting presentation generation...")
    intro = prs.slides.add_slide(blank_layout)
    intro.name = "Slide_0_intro"
    draw_intro_slide(intro, intro_title)

    for i, record in enumerate(slides):
        logging.debug(f"Processing slide {i+1}: '{record.title}'")
        slide = prs.slides.add_slide(blank_layout)
        slide.name = f"Slide_{i+1}_content"
        draw_content_slide(slide, record)

    return prs


def render_presentation(slides: List[SlideRecord], intro_title: str = DEFAULT_INTRO_TITLE) -> bytes:
    """Renders the presentation into .pptx bytes."""
    presentation_object = create_presentation(slides, intro_title)
    buffer = io.BytesIO()
    presentation_object.save(buffer)
    return buffer.getvalue()
