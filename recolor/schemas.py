from typing import Optional

from pydantic import BaseModel, Field


class RecolorPayload(BaseModel):
    image: str = Field(..., min_length=1, description="Base64 encoded product image (bare or as a data URL).")
    mimeType: Optional[str] = Field(None, description="Declared media type of the image; defaults to image/jpeg.")
    colorId: str = Field(..., description="A preset color id, or 'custom' together with customHex.")
    customHex: Optional[str] = Field(None, description="Target color as #RRGGBB when colorId is 'custom'.")
    instruction: Optional[str] = Field("", description="Optional free-text instruction narrowing the edit.")


class ColorOption(BaseModel):
    id: str
    name: str
    hex: str
    textColor: str
