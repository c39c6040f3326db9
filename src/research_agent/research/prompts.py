"""LLM prompts for research synthesis."""

from .models import ResearchContext, Synthesis

SYNTHESIS_SYSTEM_PROMPT = "You are an expert research assistant."

REPORT_EXCERPT_CHARS = 200


def _style_block(options: dict) -> str:
    lines = [
        f"- Persona: {options.get('persona', '')}",
        f"- Tone: {options.get('tone', '')}",
        f"- Depth: {options.get('depth', '')}",
        f"- Format: {options.get('format', '')}",
        f"- Language: {options.get('language', '')}",
    ]
    if options.get("custom_instructions"):
        lines.append(f"- Additional instructions: {options['custom_instructions']}")
    return "\n".join(lines)


def get_analysis_prompt(context: ResearchContext) -> str:
    """Generate the analysis prompt embedding each result's content and scores."""
    results_text = "\n".join(
        f"""
Source: {r.source.title}
URL: {r.source.url}
Content: {r.content.content}
Relevance: {r.analysis.relevance:.2f}
Quality: {r.analysis.quality:.2f}
Bias: {r.analysis.bias}
"""
        for r in context.results
    )

    verification_text = ""
    if context.verification is not None:
        verification_text = f"\nVerification confidence: {context.verification.confidence:.2f}\n"

    return f"""You are an expert research analyst. Analyze the following research on "{context.topic}" and provide a comprehensive analysis.

Research Results:
{results_text or "(no sources were retained)"}
{verification_text}
Analysis Options:
{_style_block(context.options)}

Respond in markdown with exactly these sections:
## Summary
## Key Points
## Trends
## Gaps

Use one bullet per item under Key Points, Trends and Gaps."""


def get_report_prompt(context: ResearchContext, analysis: Synthesis) -> str:
    """Generate the report prompt from the analysis and short source excerpts."""
    key_points = "\n".join(f"- {p}" for p in analysis.key_points) or "- (none)"
    results_text = "\n".join(
        f"""
Source: {r.source.title}
Content: {r.content.content[:REPORT_EXCERPT_CHARS]}...
"""
        for r in context.results
    )
    fmt = context.options.get("format", "report")
    tone = context.options.get("tone", "professional")

    return f"""Generate a {fmt} research report on "{context.topic}" based on the following analysis:

Analysis Summary:
{analysis.summary}

Key Points:
{key_points}

Research Results:
{results_text}

Format Requirements:
{_style_block(context.options)}

Include proper structure, citations, and follow {tone} tone."""
