# md2pptx/models.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

DEFAULT_TITLE = " "
DEFAULT_HEADING_LEVEL = 1


class SlideRecord(BaseModel):
    """One presentation slide derived from a section of the Markdown document."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = DEFAULT_TITLE
    body: str = ""
    heading_level: int = Field(DEFAULT_HEADING_LEVEL, ge=1, alias="headingLevel")

    @property
    def headingLevel(self) -> int:
        return self.heading_level


class SlideDeck(BaseModel):
    title: str
    slides: List[SlideRecord]


class TextPayload(BaseModel):
    text: str
    filename: Optional[str] = None
