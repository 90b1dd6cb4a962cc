from typing import Literal

from pydantic import BaseModel

from app.services.detector import PageType

OUTPUT_FILENAME = "converted-page.html"


class ConvertResponse(BaseModel):
    status: Literal["success"] = "success"
    source: str
    """Where the markup came from: the fetched URL, the uploaded file name, or ``"html"``."""
    page_type: PageType
    title: str
    html: str
    filename: str = OUTPUT_FILENAME
    size: int
