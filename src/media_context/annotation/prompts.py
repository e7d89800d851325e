"""
Prompt templates for the annotation requests.
"""

from __future__ import annotations


CHUNK_PROMPT = """Analyze this text chunk (part {part}) from the file "{name}":

{content}

Please provide:
1) A brief summary of this specific chunk's content
2) Key insights or important information from this chunk
3) Suggested tags for categorization of this chunk's content
4) Any notable features, concepts, or elements that could be useful for context

Focus specifically on this chunk's content, not the entire document."""

MEDIA_PROMPT = (
    "Analyze this media file and provide: "
    "1) A brief summary of the content, "
    "2) Key insights or information extracted, "
    "3) Suggested tags for categorization, "
    "4) Any notable features or elements that could be useful for context "
    "in conversations."
)

JSON_INSTRUCTIONS = """

Respond with a single JSON object with exactly these keys:
"summary", "key_insights", "suggested_tags", "notable_features".
Every value must be a plain string; write lists as comma-separated text."""


def build_chunk_prompt(
    content: str,
    index: int,
    name: str,
    json_mode: bool = False,
) -> str:
    """
    Build the per-chunk prompt. `index` is zero-based; the prompt shows
    the one-based part number.
    """
    prompt = CHUNK_PROMPT.format(part=index + 1, name=name, content=content)
    if json_mode:
        prompt += JSON_INSTRUCTIONS
    return prompt


def build_media_prompt(json_mode: bool = False) -> str:
    if json_mode:
        return MEDIA_PROMPT + JSON_INSTRUCTIONS
    return MEDIA_PROMPT
