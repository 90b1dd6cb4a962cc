from typing import Optional

from pydantic import BaseModel, Field, HttpUrl

from app.services.detector import PageType


class ConvertUrlRequest(BaseModel):
    url: HttpUrl
    page_type: Optional[PageType] = Field(
        default=None,
        description="Source page builder. Detected from the page markup when omitted.",
    )


class ConvertHtmlRequest(BaseModel):
    html: str = Field(description="Raw page markup to convert.")
    page_type: Optional[PageType] = Field(
        default=None,
        description="Source page builder. Detected from the markup when omitted.",
    )
