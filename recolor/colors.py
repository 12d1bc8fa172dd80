import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

BLACK_TEXT = "#000000"
WHITE_TEXT = "#FFFFFF"

CUSTOM_COLOR_ID = "custom"
CUSTOM_COLOR_NAME = "Custom"

# Default value shown by the custom color picker before anything is chosen.
CUSTOM_PICKER_DEFAULT = "#818CF8"

_HEX_PATTERN = re.compile(r"#[0-9a-fA-F]{6}")


class InvalidColor(ValueError):
    """Raised for an unknown preset id or a malformed hex value."""


def contrast_text_color(hex_value: str) -> str:
    """Return black or white text color for legibility on `hex_value`.

    Uses the YIQ luma approximation: Y = (299*R + 587*G + 114*B) / 1000,
    black text when Y >= 128, white otherwise.
    """
    if not _HEX_PATTERN.fullmatch(hex_value or ""):
        raise InvalidColor(f"Expected a color like #RRGGBB, got {hex_value!r}")
    r = int(hex_value[1:3], 16)
    g = int(hex_value[3:5], 16)
    b = int(hex_value[5:7], 16)
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return BLACK_TEXT if yiq >= 128 else WHITE_TEXT


@dataclass(frozen=True)
class ColorChoice:
    id: str
    name: str
    hex: str
    text_color: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "text_color", contrast_text_color(self.hex))

    @property
    def is_custom(self) -> bool:
        return self.id == CUSTOM_COLOR_ID

    @property
    def prompt_name(self) -> str:
        # Custom picks go to the model as the exact hex, not the "Custom" label.
        if self.is_custom:
            return f"hex color {self.hex}"
        return self.name

    @classmethod
    def preset(cls, color_id: str) -> "ColorChoice":
        try:
            return PRESETS_BY_ID[color_id]
        except KeyError:
            raise InvalidColor(f"Unknown preset color: {color_id!r}") from None

    @classmethod
    def custom(cls, hex_value: str) -> "ColorChoice":
        return cls(id=CUSTOM_COLOR_ID, name=CUSTOM_COLOR_NAME, hex=hex_value)

    @classmethod
    def from_form(cls, color_id: Optional[str], custom_hex: Optional[str] = None) -> Optional["ColorChoice"]:
        """Resolve the submitted color fields; None when nothing was picked."""
        if not color_id:
            return None
        if color_id == CUSTOM_COLOR_ID:
            return cls.custom((custom_hex or "").strip())
        return cls.preset(color_id)


PRESET_COLORS: List[ColorChoice] = [
    ColorChoice("white", "White", "#FFFFFF"),
    ColorChoice("black", "Black", "#000000"),
    ColorChoice("red", "Red", "#EF4444"),
    ColorChoice("blue", "Blue", "#3B82F6"),
    ColorChoice("green", "Green", "#22C55E"),
    ColorChoice("beige", "Beige", "#F5F5DC"),
    ColorChoice("cream", "Cream", "#FFFDD0"),
    ColorChoice("pink", "Pink", "#F472B6"),
    ColorChoice("light_brown", "Light Brown", "#D4A373"),
    ColorChoice("dark_brown", "Dark Brown", "#5D4037"),
    ColorChoice("grey", "Grey", "#9CA3AF"),
]

PRESETS_BY_ID: Dict[str, ColorChoice] = {color.id: color for color in PRESET_COLORS}
