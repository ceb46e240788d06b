"""
Tearing styles and the instruction text sent with every edit request.
"""

from enum import Enum


class TearingStyle(str, Enum):
    WILD = "WILD"
    BURNT = "BURNT"
    CLAW = "CLAW"
    MELTING = "MELTING"
    GEOMETRIC = "GEOMETRIC"
    PAPER = "PAPER"


STYLE_LABELS = {
    TearingStyle.WILD: "Wild rip",
    TearingStyle.BURNT: "Burnt edges",
    TearingStyle.CLAW: "Claw slashes",
    TearingStyle.MELTING: "Melting",
    TearingStyle.GEOMETRIC: "Geometric cut",
    TearingStyle.PAPER: "Paper scrap",
}

STYLE_PROMPTS = {
    TearingStyle.WILD: (
        "Torn Surface Effect. The edges of the opening are ragged and frayed, "
        "looking like the surface was violently ripped open."
    ),
    TearingStyle.BURNT: (
        "Burnt Edges. The borders of the opening are charred, blackened and ash-covered, "
        "as if the surface was burned away."
    ),
    TearingStyle.CLAW: (
        "Slash Marks. Clean, sharp diagonal cuts through the surface, as if slashed by claws or a blade."
    ),
    TearingStyle.MELTING: (
        "Surreal Melting. The edges of the opening are dripping and dissolving into liquid, "
        "creating a surreal hole."
    ),
    TearingStyle.GEOMETRIC: (
        "Digital Cutout. The surface is removed in clean, sharp geometric/polygonal shapes, "
        "like a digital glitch or low-poly hole."
    ),
    TearingStyle.PAPER: (
        "Paper-Cut Collage Style. The torn section features wide, roughly-edged white slits "
        "reminiscent of a paper-cut collage. The edges are white and fibrous, exactly like a "
        "glossy photograph that has been physically torn by hand."
    ),
}

DEFAULT_STYLE_PROMPT = "Torn edges revealing an abstract layer underneath."

NEGATIVE_CONSTRAINTS = """\
**NEGATIVE CONSTRAINTS (STRICTLY FORBIDDEN)**:
- NO Hairstyle changes.
- NO Background changes outside the masked area.
- NO Composition changes.
- NO Pose changes.
- Do NOT generate external objects (flowers, smoke) unless specified by style.
- Do NOT distort the original face features."""

CONTENT_RULES = """\
**CONTENT RULES**:
- Never remove, open or shorten clothing worn by a person, and never depict nudity, skin exposure or underwear.
- If the masked area covers a person's clothing, tear the printed photo itself so the torn flap shows only the
  backing layer described below, never the body.
- The backing layer is a solid or textured backing: plain white paper, kraft paper, a contrasting color field,
  or a pattern that complements the image palette."""

ALIGNMENT_RULES = """\
**CRITICAL ALIGNMENT RULES (HIGHEST PRIORITY)**:
1. **SURFACE INTEGRITY**: The tear must follow the geometry of the masked surface. If the surface bends or twists,
   the torn edge and its shadow must follow that bend.
2. **VOLUME & DEPTH**: The revealed layer lies *beneath* the torn surface. Edges curl toward the viewer and cast
   small, consistent shadows onto the layer below.
3. **NO RE-SHAPING**: Do NOT change the size or silhouette of any object. Follow the outlines of the original
   image exactly."""

OUTPUT_REQUIREMENTS = """\
**EXECUTION**:
Output the full image at the same framing with only the masked area replaced. Keep the art style (anime stays
anime, photos stay photographic), match the global lighting direction and intensity, and preserve the rest of
the image perfectly."""


def style_prompt(style) -> str:
    """Instruction fragment for ``style`` (enum member or its name)."""
    try:
        return STYLE_PROMPTS[TearingStyle(style)]
    except ValueError:
        return DEFAULT_STYLE_PROMPT


def build_prompt(style) -> str:
    """Full instruction text for one edit request."""
    return f"""\
Task: Artistic Inpainting & Torn Collage Design.

**OBJECTIVE**:
Create a high-fashion torn-collage "cutout" effect in the masked area (red pixels).
The masked area looks like the photograph itself was torn or cut open, revealing a backing layer.

{NEGATIVE_CONSTRAINTS}

{ALIGNMENT_RULES}

{CONTENT_RULES}

**INPUTS**:
- **Base Image**: Reference for pose, lighting, perspective and art style.
- **Mask Image**: The RED area indicates exactly where the tear effect goes.

**TEARING STYLE**:
{style_prompt(style)}

{OUTPUT_REQUIREMENTS}
"""
