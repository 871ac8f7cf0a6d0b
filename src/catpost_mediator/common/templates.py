"""Prompt templating helpers."""
from __future__ import annotations
from typing import Optional

from catpost_mediator.common.schema import GenerationInputs

SYSTEM_INSTRUCTION = (
    "You create cat adoption promotion posts.\n"
    "Follow this exact structure:\n"
    "1) Title line.\n"
    "2) 3-6 short paragraphs.\n"
    "3) Facts bullet list with age, sex, neutered/spayed, and health.\n"
    "4) Clear call-to-action ending.\n"
    "Keep tone consistent with the style preset.\n"
    "Avoid medical guarantees and do not invent personal data.\n"
    "Only use the contact info provided."
)

NOT_SPECIFIED = "Not specified"

# output-length preset -> (prompt hint, character cap)
LENGTH_PRESETS = {
    "short": ("about 500 characters", 500),
    "medium": ("about 1200 characters", 1200),
    "long": ("about 2000 characters", 2000),
}


def _or_default(value: Optional[str], default: str = NOT_SPECIFIED) -> str:
    if value is None:
        return default
    value = value.strip()
    return value or default


def format_temperament(temperament: str | list[str]) -> str:
    """Join tag lists with ", "; blank values become "Not specified"."""
    if isinstance(temperament, list):
        tags = [tag.strip() for tag in temperament if tag and tag.strip()]
        return ", ".join(tags) if tags else NOT_SPECIFIED
    return _or_default(temperament)


def output_char_cap(max_output_chars: int, output_length: Optional[str]) -> int:
    """Effective body cap: the configured maximum, narrowed by a length preset."""
    preset = LENGTH_PRESETS.get(output_length or "")
    if preset is None:
        return max_output_chars
    return min(max_output_chars, preset[1])


def render_prompt(
    inputs: GenerationInputs, style_preset: str, output_length: Optional[str] = None
) -> str:
    """
    Render the cat profile as a fixed-order fact sheet.

    Every field is always present; blanks are rendered as "Not specified"
    ("None" for special needs).

    Args:
        inputs: Profile fields.
        style_preset: Free-form style name chosen in the form.
        output_length: Optional "short" / "medium" / "long" preset.

    Returns:
        Rendered prompt.
    """
    lines = [f"Style preset: {_or_default(style_preset)}", ""]
    preset = LENGTH_PRESETS.get(output_length or "")
    if preset is not None:
        lines.append(f"Target length: {preset[0]}")
    lines += [
        f"Cat name: {_or_default(inputs.cat_name)}",
        f"Age: {_or_default(inputs.age_value)} {inputs.age_unit}",
        f"Sex: {inputs.sex}",
        f"Neutered/Spayed: {inputs.neutered}",
        f"Temperament: {format_temperament(inputs.temperament)}",
        f"Rescue story: {_or_default(inputs.rescue_story)}",
        f"Health notes: {_or_default(inputs.health_notes)}",
        f"Special needs: {_or_default(inputs.special_needs, 'None')}",
        f"Adoption requirements: {_or_default(inputs.adoption_requirements)}",
        f"Contact: {_or_default(inputs.contact)}",
    ]
    return "\n".join(lines)
