import base64
import binascii
from dataclasses import dataclass
from typing import Optional

from .colors import ColorChoice

DEFAULT_MIME_TYPE = "image/jpeg"


class IncompleteSelection(ValueError):
    """A generation was requested without both an image and a color."""


class InvalidImage(ValueError):
    """The carried-over image payload is not valid base64."""


@dataclass(frozen=True)
class UploadedImage:
    data: str  # base64, without any data: URL prefix
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: Optional[str] = None) -> "UploadedImage":
        return cls(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type or DEFAULT_MIME_TYPE)

    @classmethod
    def from_base64(cls, data: str, mime_type: Optional[str] = None) -> "UploadedImage":
        # Accept full data URLs as well as bare base64.
        if data.startswith("data:") and "," in data:
            header, data = data.split(",", 1)
            if not mime_type:
                mime_type = header[len("data:"):].split(";", 1)[0] or None
        try:
            base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImage(f"Image is not valid base64: {exc}") from exc
        return cls(data=data, mime_type=mime_type or DEFAULT_MIME_TYPE)

    @property
    def raw(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass(frozen=True)
class GenerationRequest:
    image: UploadedImage
    color: ColorChoice
    instruction: str = ""


@dataclass
class Selection:
    """What the user has picked on the form so far."""

    image: Optional[UploadedImage] = None
    color: Optional[ColorChoice] = None
    instruction: str = ""

    @property
    def is_ready(self) -> bool:
        return self.image is not None and self.color is not None

    def missing_hint(self) -> Optional[str]:
        if self.image is None:
            return "Please upload a photo first"
        if self.color is None:
            return "Choose a target color"
        return None

    def to_request(self) -> GenerationRequest:
        if not self.is_ready:
            raise IncompleteSelection(self.missing_hint())
        return GenerationRequest(image=self.image, color=self.color, instruction=self.instruction)


class GenerationOutcome:
    """State of one submission: in progress, succeeded or failed."""

    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def __init__(self, status: str, image: Optional[bytes] = None, mime_type: Optional[str] = None,
                 error: Optional[str] = None):
        self.status = status
        self.image = image
        self.mime_type = mime_type
        self.error = error

    @classmethod
    def in_progress(cls) -> "GenerationOutcome":
        return cls(cls.IN_PROGRESS)

    @classmethod
    def succeeded(cls, image: bytes, mime_type: str = "image/png") -> "GenerationOutcome":
        return cls(cls.SUCCEEDED, image=image, mime_type=mime_type)

    @classmethod
    def failed(cls, message: str) -> "GenerationOutcome":
        return cls(cls.FAILED, error=message)

    @property
    def is_in_progress(self) -> bool:
        return self.status == self.IN_PROGRESS

    @property
    def is_success(self) -> bool:
        return self.status == self.SUCCEEDED

    @property
    def is_failure(self) -> bool:
        return self.status == self.FAILED

    def __repr__(self) -> str:
        return f"GenerationOutcome(status={self.status!r}, error={self.error!r})"
