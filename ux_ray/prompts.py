"""
Critique Prompts

Fixed instruction templates sent with every screenshot. They are not user
editable; bump PROMPT_VERSION whenever the wording or the requested schema
changes so exported reports can be traced back to the prompt that made them.
"""

PROMPT_VERSION = "2"

_PERSONA = """You are a Senior Product Designer and HCI Researcher. Analyze the uploaded UI screenshot for a Hackathon project. Critique it ruthlessly but constructively."""

_SCHEMA = """{
  "score": number (0-100),
  "summary": "One sentence savage summary",
  "categories": {
    "visualHierarchy": { "score": number, "comment": string },
    "accessibility": { "score": number, "comment": string },
    "consistency": { "score": number, "comment": string }
  },
  "criticalIssues": ["string", "string"],
  "quickFixes": ["string", "string"]"""

_ANNOTATION_SCHEMA = """,
  "annotations": [
    {
      "id": 1,
      "x": number (0-100, percentage from left),
      "y": number (0-100, percentage from top),
      "width": number (0-100, percentage of image width),
      "height": number (0-100, percentage of image height),
      "severity": "critical" | "warning" | "info",
      "label": "Short label (2-4 words)",
      "description": "Brief description of the issue"
    }
  ]"""

_ANNOTATION_RULES = """For annotations:
- Identify 3-6 specific problem areas in the UI
- Use "critical" for severe issues (accessibility, contrast), "warning" for moderate issues, "info" for suggestions
- Coordinates are percentages: x=0 is left edge, y=0 is top edge, x=100 is right edge, y=100 is bottom edge
- Keep every box inside the image: x + width <= 100 and y + height <= 100
- Be precise with the bounding box to highlight the exact problem area"""


def build_critique_prompt(annotations: bool = True) -> str:
    """
    Build the critique instruction.

    Args:
        annotations: Include the bounding-box section and its rules

    Returns:
        Prompt text asking for JSON only
    """
    prompt = _PERSONA + "\n\n"

    if annotations:
        prompt += (
            "IMPORTANT: You MUST identify specific problem areas in the image and "
            "provide their coordinates as percentages (0-100) of the image dimensions.\n\n"
        )

    prompt += "Return ONLY valid JSON with this structure:\n"
    prompt += _SCHEMA
    if annotations:
        prompt += _ANNOTATION_SCHEMA
    prompt += "\n}"

    if annotations:
        prompt += "\n\n" + _ANNOTATION_RULES

    return prompt


CRITIQUE_PROMPT = build_critique_prompt(annotations=False)
ANNOTATED_CRITIQUE_PROMPT = build_critique_prompt(annotations=True)
