"""Prompt templates for the language-model actions."""

import json

SYSTEM_PROMPT = (
    "You are a content strategist and scriptwriter for a Brazilian Christian "
    "YouTube channel about prayer and spirituality. The audience is mostly 60+. "
    "Write every piece of content in Brazilian Portuguese, with a warm, hopeful "
    "and welcoming tone. Never use words from the channel blacklist."
)

JSON_ONLY = "Respond with ONLY valid JSON, no additional text."


def _triggers(payload: dict) -> str:
    return ", ".join(payload.get("emotional_triggers") or []) or "hope, inner-peace"


def build_research_prompt(payload: dict) -> str:
    plan = payload.get("plan") or ""
    return f"""Do deep research on the topic: "{payload.get('topic', '')}"

Content type: {payload.get('content_type', '')}
Emotional triggers: {_triggers(payload)}

## Approved research plan
{plan}

Return JSON in this format:
{{
  "facts": ["3-5 relevant biblical or historical facts"],
  "trivia": ["2-3 interesting curiosities about the topic"],
  "citations": ["5-7 related Bible verses"]
}}

{JSON_ONLY}"""


def build_channel_analysis_prompt(payload: dict) -> str:
    return f"""Analyze what works for the spiritual YouTube channel "{payload.get('channel_name', '')}"
for content about "{payload.get('topic', '')}" ({payload.get('content_type', '')}).

Return JSON in this format:
{{
  "success_patterns": ["3-4 success patterns in the spiritual niche"],
  "retention_themes": ["2-3 themes that keep viewers watching"],
  "ideal_duration": "8-12 minutes",
  "engagement_triggers": ["2-3 most effective emotional triggers"]
}}

{JSON_ONLY}"""


def build_competitor_prompt(payload: dict) -> str:
    refs = []
    for i, comp in enumerate(payload.get("competitors") or [], start=1):
        line = f"{i}. {comp.get('title') or comp.get('link') or 'untitled'}"
        if comp.get("transcript"):
            line += f"\n   Transcript excerpt: {comp['transcript'][:1500]}"
        refs.append(line)
    references = "\n".join(refs) or "No reference videos."

    return f"""Analyze these competitor videos about "{payload.get('topic', '')}":

{references}

Return JSON in this format:
{{
  "narrative_structure": "How the narrative is structured, in one paragraph",
  "retention_hooks": ["3-4 hooks used to keep viewers watching"],
  "viral_elements": ["3-4 elements that make these videos spread"]
}}

{JSON_ONLY}"""


def build_options_prompt(payload: dict) -> str:
    research = json.dumps(payload.get("research") or {}, indent=2, ensure_ascii=False)
    return f"""Create 3 different creative options for title and thumbnail.

Topic: "{payload.get('topic', '')}"
Type: {payload.get('content_type', '')}
Emotional triggers: {_triggers(payload)}
Duration: {payload.get('target_duration', '')}

## Research
```json
{research}
```

Return JSON in this format:
{{
  "options": [
    {{
      "option_id": 1,
      "title": "CTR-optimized title",
      "thumbnail_concept": "Visual description of the thumbnail",
      "hook": "Magnetic opening line for the first 15 seconds",
      "thumbnail_prompt": "English prompt to generate the thumbnail image"
    }}
  ]
}}

Rules:
- Titles have at most 60 characters
- Use curiosity and urgency
- Thumbnails show people aged 60+ or celestial elements
- Hooks create an immediate emotional connection

{JSON_ONLY}"""


def build_thumbnail_prompt(payload: dict) -> str:
    subject = payload.get("thumbnail_prompt") or payload.get("thumbnail_concept") or ""
    return (
        "Create a YouTube thumbnail image for a spiritual/prayer channel. "
        f"Style: warm, celestial, hopeful. {subject}. "
        "NO TEXT in the image. Aspect ratio 16:9."
    )


def build_script_prompt(payload: dict) -> str:
    guidelines = json.dumps(payload.get("guidelines") or {}, indent=2, ensure_ascii=False)
    research = json.dumps(payload.get("research") or {}, indent=2, ensure_ascii=False)
    return f"""Write a complete script for the channel "{payload.get('channel_name', '')}".

Topic: "{payload.get('topic', '')}"
Type: {payload.get('content_type', '')}
Title: {payload.get('title', '')}
Opening hook: {payload.get('hook', '')}
Duration: {payload.get('target_duration', '')}
Emotional triggers: {_triggers(payload)}
Notes: {payload.get('special_notes') or 'None'}

## Mandatory guidelines
```json
{guidelines}
```

## Research
```json
{research}
```

Script structure, every section prefixed by a [MM:SS-MM:SS] timestamp and a title:
1. [00:00-00:15] MAGNETIC OPENING using the hook above
2. [00:15-00:30] EMOTIONAL HOOK connecting with the 60+ audience
3. DEVELOPMENT with breathing pauses and a soft tone
4. MIDDLE CTA inviting to the e-book naturally
5. CLOSING with a message of hope
6. FINAL CTA: subscription and VIP group

Rules:
- Never use blacklisted words
- Include [pausa] and [voz suave] cues
- Quote Bible verses when appropriate
- About 1600 words

Return ONLY the formatted script with timestamps."""


def build_refine_prompt(payload: dict) -> str:
    blacklist = ", ".join((payload.get("guidelines") or {}).get("blacklist") or [])
    return f"""Polish the script below. Keep every [MM:SS-MM:SS] timestamp and section
title exactly as is, keep the calls to action, fix rhythm and wording, and remove
any of these words: {blacklist or 'none'}.

{payload.get('script', '')}

Return ONLY the refined script."""


def build_seo_prompt(payload: dict) -> str:
    script = (payload.get("script") or "")[:3000]
    return f"""Optimize the YouTube metadata for this video.

Channel: {payload.get('channel_name', '')}
Topic: "{payload.get('topic', '')}"
Title: {payload.get('title', '')}

## Script excerpt
{script}

Return JSON in this format:
{{
  "title": "Final title, at most 60 characters",
  "description": "Description with a summary, Bible verses and calls to action",
  "tags": ["10-15 search tags"]
}}

{JSON_ONLY}"""
