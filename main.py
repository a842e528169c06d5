import os
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, File, HTTPException, Response, UploadFile
from fastapi.concurrency import run_in_threadpool

# Local imports
import ppt_generator
from markdown_to_slides import convert_markdown_to_slides
from models import SlideDeck, TextPayload


# Logging configuration
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

# --- Configuration ---
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(1024 * 1024)))
ALLOWED_EXTENSIONS = (".md", ".markdown")
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# --- FastAPI App ---
app = FastAPI(
    title="Markdown to PowerPoint Service",
    description="An API that splits Markdown documents into slides and returns a PowerPoint file.",
    version="1.0.0"
)


# --- Helper Functions ---
def has_allowed_extension(filename: str) -> bool:
    return filename.lower().endswith(ALLOWED_EXTENSIONS)


def pptx_filename(filename: str) -> str:
    """Derives the download name: notes.md -> notes.pptx."""
    stem = os.path.basename(filename)
    for ext in ALLOWED_EXTENSIONS:
        if stem.lower().endswith(ext):
            stem = stem[:-len(ext)]
            break
    return f"{stem or 'presentation'}.pptx"


def content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "presentation.pptx"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def decode_upload(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logging.warning("Rejected upload: not valid UTF-8")
        raise HTTPException(status_code=400, detail="The uploaded file must be UTF-8 encoded text.")


# --- Endpoints --- #
@app.post("/convert/", summary="Convert an uploaded Markdown file into a PowerPoint file")
async def convert_endpoint(file: Optional[UploadFile] = File(None)):
    """Receives a Markdown upload and returns the generated .pptx file."""
    if file is None or not file.filename:
        logging.warning("Rejected upload: no file")
        raise HTTPException(status_code=400, detail="No file was uploaded.")

    if not has_allowed_extension(file.filename):
        logging.warning(f"Rejected upload: unsupported extension '{file.filename}'")
        raise HTTPException(status_code=400, detail="Please upload a Markdown (.md) file.")

    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if not data:
        logging.warning(f"Rejected upload: '{file.filename}' is empty")
        raise HTTPException(status_code=400, detail="The uploaded file is empty.")
    if len(data) > MAX_UPLOAD_BYTES:
        logging.warning(f"Rejected upload: '{file.filename}' exceeds {MAX_UPLOAD_BYTES} bytes")
        raise HTTPException(status_code=413, detail=f"The uploaded file exceeds {MAX_UPLOAD_BYTES} bytes.")

    markdown = decode_upload(data)

    # 1. Split the document into slide records
    slides = await run_in_threadpool(convert_markdown_to_slides, markdown)
    if not slides:
        logging.warning(f"No slides found in '{file.filename}'")
        raise HTTPException(status_code=400, detail="No valid slides were found in the Markdown file.")

    # 2. Render the presentation
    try:
        pptx_bytes = await run_in_threadpool(ppt_generator.render_presentation, slides)
    except Exception as e:
        logging.error(f"An error occurred while rendering '{file.filename}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error.")

    output_name = pptx_filename(file.filename)
    logging.info(f"Generated {output_name} with {len(slides)} content slide(s)")
    return Response(
        content=pptx_bytes,
        media_type=PPTX_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(output_name)},
    )


@app.post("/slides/", response_model=SlideDeck, summary="Preview the slides of a Markdown text")
async def slides_endpoint(payload: TextPayload):
    """Returns the slide records without rendering a presentation."""
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="The text is empty.")

    slides = await run_in_threadpool(convert_markdown_to_slides, payload.text)
    if not slides:
        raise HTTPException(status_code=400, detail="No valid slides were found in the Markdown text.")

    title = os.path.splitext(os.path.basename(payload.filename))[0] if payload.filename else ppt_generator.DEFAULT_INTRO_TITLE
    return SlideDeck(title=title, slides=slides)


@app.get("/")
async def root():
    return {"message": "Markdown to PowerPoint API v1 is running."}
