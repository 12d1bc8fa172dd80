from typing import Optional

BASE_INSTRUCTION = "Edit the following fashion/product image."

CLOSING_CONSTRAINT = (
    "Ensure shape, lighting, fabric/material texture, and detail remain 100% realistic "
    "and consistent with the original image. Return only the image."
)


def build_recolor_prompt(color_name: str, instruction: Optional[str] = None) -> str:
    """Assemble the edit prompt sent alongside the product image.

    A non-blank `instruction` narrows the edit to what the user asked for and is
    quoted verbatim; otherwise the whole main product is recolored.
    """
    sentences = [BASE_INSTRUCTION]
    if instruction and instruction.strip():
        sentences.append(
            f'Specific instruction: change the color to {color_name} ONLY as requested here: "{instruction}".'
        )
        sentences.append("Do not alter any other part not requested.")
    else:
        sentences.append(f"Change the overall color of the main product in this image to {color_name}.")
    sentences.append(CLOSING_CONSTRAINT)
    return " ".join(sentences)
