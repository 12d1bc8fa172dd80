import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import google.generativeai as genai

from . import config
from .colors import ColorChoice
from .prompts import build_recolor_prompt
from .selection import GenerationOutcome, GenerationRequest, UploadedImage

logger = logging.getLogger(__name__)


# --- Errors ---

class GenerationError(Exception):
    """Base class for every way a recolor attempt can fail."""

    default_message = "A system error occurred while processing the image."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class MissingCredential(GenerationError):
    default_message = "API key not found. Make sure the GEMINI_API_KEY environment variable is configured."


class EmptyResponse(GenerationError):
    default_message = "No result candidates were received from Gemini (empty response)."


class NoContent(GenerationError):
    default_message = "Gemini did not return any image content."


class NoImageReturned(GenerationError):
    default_message = "Gemini did not return image data. Try again or use a clearer image."


class TransportFailure(GenerationError):
    pass


# --- Response model ---
# The SDK response is a loose object graph; it is narrowed to one of three
# shapes before any result is extracted.

@dataclass(frozen=True)
class ResponsePart:
    text: Optional[str] = None
    image: Optional[bytes] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class NoCandidates:
    block_reason: Optional[str] = None


@dataclass(frozen=True)
class CandidateWithoutContent:
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class CandidateWithContent:
    parts: Tuple[ResponsePart, ...]


ParsedResponse = Union[NoCandidates, CandidateWithoutContent, CandidateWithContent]


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    mime_type: str = "image/png"


def _inline_bytes(data) -> Optional[bytes]:
    if not data:
        return None
    if isinstance(data, str):
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise TransportFailure(f"Inline image data is not valid base64: {e}") from e
    return bytes(data)


def _parse_part(part) -> ResponsePart:
    inline = getattr(part, "inline_data", None)
    image = _inline_bytes(getattr(inline, "data", None)) if inline is not None else None
    mime_type = (getattr(inline, "mime_type", None) or None) if image else None
    return ResponsePart(text=getattr(part, "text", None) or None, image=image, mime_type=mime_type)


def parse_response(response) -> ParsedResponse:
    candidates = list(getattr(response, "candidates", None) or [])
    if not candidates:
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None) if feedback else None
        return NoCandidates(block_reason=str(block_reason) if block_reason else None)

    candidate = candidates[0]
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if parts is None:
        finish_reason = getattr(candidate, "finish_reason", None)
        return CandidateWithoutContent(finish_reason=str(finish_reason) if finish_reason else None)

    return CandidateWithContent(parts=tuple(_parse_part(part) for part in parts))


def extract_image(parsed: ParsedResponse) -> GeneratedImage:
    """Return the first inline image, or raise the matching GenerationError."""
    if isinstance(parsed, NoCandidates):
        if parsed.block_reason:
            logger.warning("Gemini returned no candidates. Block reason: %s", parsed.block_reason)
        raise EmptyResponse()

    if isinstance(parsed, CandidateWithoutContent):
        if parsed.finish_reason:
            logger.warning("Gemini candidate had no content. Finish reason: %s", parsed.finish_reason)
        raise NoContent()

    for part in parsed.parts:
        if part.image:
            return GeneratedImage(data=part.image, mime_type=part.mime_type or "image/png")

    text = next((part.text for part in parsed.parts if part.text), None)
    if text:
        logger.warning("Model returned text instead of image: %s", text)
    raise NoImageReturned()


# --- Service ---

class RecolorService:
    """Sends a product photo and a recolor prompt to Gemini, one attempt per call."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = config.MODEL_NAME,
        model=None,
        temperature: float = config.TEMPERATURE,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self._model = model

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(model_name=self.model_name)
        return self._model

    def recolor(self, image: UploadedImage, color: ColorChoice, instruction: Optional[str] = None) -> GeneratedImage:
        if not self.api_key or not self.api_key.strip():
            raise MissingCredential()

        prompt = build_recolor_prompt(color.prompt_name, instruction)
        contents = [
            {"mime_type": image.mime_type, "data": image.raw},
            prompt,
        ]
        generation_config = {
            "temperature": self.temperature,
            "candidate_count": 1,
        }

        logger.info(
            "Recolor request: color=%s (%s) mime_type=%s instruction=%s",
            color.name, color.hex, image.mime_type, bool(instruction and instruction.strip()),
        )
        try:
            response = self._get_model().generate_content(contents, generation_config=generation_config)
        except Exception as e:
            logger.exception("Gemini API error")
            raise TransportFailure(str(e) or None) from e

        return extract_image(parse_response(response))

    def run(self, request: GenerationRequest) -> GenerationOutcome:
        try:
            result = self.recolor(request.image, request.color, request.instruction)
        except GenerationError as e:
            return GenerationOutcome.failed(e.message)
        return GenerationOutcome.succeeded(result.data, result.mime_type)
