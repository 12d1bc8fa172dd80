import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from . import config
from .colors import CUSTOM_PICKER_DEFAULT, PRESET_COLORS, ColorChoice
from .export import data_url, download_filename, to_png
from .gemini_service import GenerationError, MissingCredential, NoImageReturned, RecolorService
from .schemas import ColorOption, RecolorPayload
from .selection import GenerationOutcome, Selection, UploadedImage

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

# --- Application setup ---
app = FastAPI(
    title="AI Product Recolor",
    description="Upload a product photo, pick a color and let Gemini recolor the product.",
    version="1.0.0",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache()
def get_recolor_service() -> RecolorService:
    return RecolorService(api_key=config.GEMINI_API_KEY)


def _render(request: Request, selection: Selection, outcome: Optional[GenerationOutcome] = None,
            result_png: Optional[bytes] = None, status_code: int = 200):
    color = selection.color
    return templates.TemplateResponse(
        request=request,
        name="index.html",
        context={
            "presets": PRESET_COLORS,
            "selection": selection,
            "hint": selection.missing_hint(),
            "custom_hex": color.hex if color is not None and color.is_custom else CUSTOM_PICKER_DEFAULT,
            "outcome": outcome,
            "result_url": data_url(result_png) if result_png else None,
            "download_name": download_filename(color) if result_png and color is not None else None,
        },
        status_code=status_code,
    )


# --- Endpoints ---
@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.get("/api/colors", response_model=List[ColorOption])
async def list_colors():
    return [ColorOption(id=c.id, name=c.name, hex=c.hex, textColor=c.text_color) for c in PRESET_COLORS]


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return _render(request, Selection())


@app.post("/", response_class=HTMLResponse)
async def submit(
    request: Request,
    file: Optional[UploadFile] = File(None),
    image_data: str = Form(""),
    image_mime: str = Form(""),
    color_id: str = Form(""),
    custom_hex: str = Form(""),
    instruction: str = Form(""),
    service: RecolorService = Depends(get_recolor_service),
):
    selection = Selection(instruction=instruction)
    try:
        # A new upload replaces the image carried over from the previous submission.
        if file is not None and file.filename:
            raw = await file.read()
            if raw:
                selection.image = UploadedImage.from_bytes(raw, file.content_type)
        if selection.image is None and image_data:
            selection.image = UploadedImage.from_base64(image_data, image_mime or None)
        selection.color = ColorChoice.from_form(color_id, custom_hex)
        generation_request = selection.to_request()
    except ValueError as e:
        return _render(request, selection, GenerationOutcome.failed(str(e)), status_code=400)

    outcome = await run_in_threadpool(service.run, generation_request)

    result_png = None
    if outcome.is_success:
        try:
            result_png = to_png(outcome.image)
        except OSError as e:
            logger.warning("Generated data could not be read as an image: %s", e)
            outcome = GenerationOutcome.failed(NoImageReturned.default_message)

    return _render(request, selection, outcome, result_png)


@app.post("/api/recolor",
    response_class=Response,
    responses={
        200: {
            "content": {"image/png": {}},
            "description": "The recolored product image in PNG format."
        }
    }
)
async def recolor_api(payload: RecolorPayload, service: RecolorService = Depends(get_recolor_service)):
    try:
        selection = Selection(
            image=UploadedImage.from_base64(payload.image, payload.mimeType),
            color=ColorChoice.from_form(payload.colorId, payload.customHex),
            instruction=payload.instruction or "",
        )
        generation_request = selection.to_request()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        result = await run_in_threadpool(
            service.recolor,
            generation_request.image,
            generation_request.color,
            generation_request.instruction,
        )
    except MissingCredential as e:
        raise HTTPException(status_code=500, detail=e.message) from e
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=e.message) from e

    try:
        png = to_png(result.data)
    except OSError as e:
        raise HTTPException(status_code=502, detail=NoImageReturned.default_message) from e

    filename = download_filename(generation_request.color)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# --- Run the Application ---
def main():
    uvicorn.run("recolor.app:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
