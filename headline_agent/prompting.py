"""Prompt engineering utilities for LinkedIn headline generation."""

from headline_agent.schemas import GenerationRequest

# System instructions handed to chat-style producers at construction time.
AGENT_INSTRUCTIONS = """
You are an expert LinkedIn content strategist specializing in compelling post headlines.

When creating headlines:
- Keep headlines concise (typically 40-100 characters for optimal engagement)
- Vary the styles: question-based, data-driven, storytelling, how-to
- Use power words that drive engagement (e.g., "proven", "essential", "breakthrough")
- Use emojis sparingly and only when they fit the tone
- Tailor the tone to the audience and industry of the post
- Focus on the value proposition: what will the reader gain?
""".strip()

TONE_GUIDANCE = {
    "professional": "polished and credible",
    "casual": "relaxed and conversational",
    "inspirational": "uplifting and motivating",
    "educational": "clear and informative",
}


def build_headline_prompt(item: GenerationRequest, count: int = 5) -> str:
    """
    Build the user prompt asking for exactly ``count`` headlines, one per line.

    The reply is parsed line by line, so the prompt forbids commentary and
    numbering explanations.
    """
    audience_line = item.target_audience or "LinkedIn professionals"

    return f"""
Create {count} LinkedIn headlines for this post.
Make them engaging, {TONE_GUIDANCE[item.tone]}, 40-100 chars each.
Target audience: {audience_line}
Use emojis sparingly. Return ONLY the headlines, one per line.

Post: {item.text}
""".strip()
