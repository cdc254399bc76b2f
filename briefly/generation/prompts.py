"""Prompt builders and response parsers for the text-generation collaborator."""

import re
from typing import List, Optional, Sequence, Tuple

FORMAT_GUIDANCE = {
    "web": "This is a web article. Focus on the news, the people and companies involved, and why it matters.",
    "pdf": "This is a PDF document such as a paper or report. Focus on the findings, methods and implications.",
    "video": "This is a video transcript. Ignore filler and asides; focus on the claims and demonstrations made.",
}

MAX_CONTENT_CHARS = 8000

BULLET_PREFIXES = ("-", "•", "*")
_NUMBERED_RE = re.compile(r"^\d{1,2}[.)]\s*")


def truncate_content(content: str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """Truncate content at a sentence or word boundary."""
    if len(content) <= max_chars:
        return content

    truncated = content[:max_chars]
    last_period = truncated.rfind(". ")
    if last_period > max_chars // 2:
        truncated = truncated[: last_period + 1]
    else:
        last_space = truncated.rfind(" ")
        if last_space > 0:
            truncated = truncated[:last_space]
    return truncated + "..."


def build_summary_prompt(
    text: str,
    format_hint: str,
    title: Optional[str] = None,
    max_words: int = 150,
    key_points: int = 5,
) -> str:
    """Build the summarization prompt for one article."""
    guidance = FORMAT_GUIDANCE.get(format_hint, FORMAT_GUIDANCE["web"])
    title_line = f"Title: {title}\n" if title else ""
    title_format = "" if title else "TITLE:\n[A short, specific title for this content]\n\n"

    return f"""Summarize this content with concrete facts and specific details.

{guidance}

{title_line}Content:
{truncate_content(text)}

Instructions:
- Write a summary of at most {max_words} words
- Include specific names, numbers and dates rather than vague terms
- Then list 3 to {key_points} key points, each stating one concrete fact or insight

Output format:
{title_format}SUMMARY:
[Your summary]

KEY POINTS:
- [Key point 1]
- [Key point 2]
- [Key point 3]"""


def _bullet_text(line: str) -> Optional[str]:
    if line.startswith(BULLET_PREFIXES):
        return line[1:].strip() or None
    match = _NUMBERED_RE.match(line)
    if match:
        return line[match.end():].strip() or None
    return None


def parse_summary_response(response: str) -> Tuple[Optional[str], str, List[str]]:
    """
    Parse a summarization response.

    Returns:
        Tuple of (title, summary, key_points). Title is None when the
        response has no TITLE line. A response without section headers is
        taken as the summary itself.
    """
    title = None
    summary_lines = []
    key_points = []
    section = None
    saw_header = False

    for raw_line in response.splitlines():
        line = raw_line.strip().replace("**", "")
        upper = line.upper()

        if upper.startswith("TITLE:"):
            title = line[len("TITLE:"):].strip() or title
            section = "title"
            saw_header = True
            continue
        if upper.startswith("SUMMARY:"):
            section = "summary"
            saw_header = True
            rest = line[len("SUMMARY:"):].strip()
            if rest:
                summary_lines.append(rest)
            continue
        if upper.startswith("KEY POINTS:") or upper.startswith("KEY TAKEAWAYS:"):
            section = "key_points"
            saw_header = True
            continue

        if not line:
            continue
        if section == "title" and title is None:
            title = line
        elif section == "summary":
            summary_lines.append(line)
        elif section == "key_points":
            point = _bullet_text(line)
            if point:
                key_points.append(point)

    if not saw_header:
        summary_lines = [line.strip() for line in response.splitlines() if line.strip()]

    return title, " ".join(summary_lines).strip(), key_points


def build_cluster_prompt(
    label: str,
    articles: Sequence[Tuple[str, str, str, Sequence[str]]],
    highlighted: Sequence[int],
    max_words: int = 200,
) -> str:
    """
    Build the narrative prompt for one topic cluster.

    Args:
        label: Cluster label
        articles: Every member as (title, url, summary, key_points)
        highlighted: 1-based citation numbers of the top articles
        max_words: Target narrative length
    """
    lines = [
        f'Write a cohesive narrative of about {max_words} words for the "{label}" topic cluster.',
        "",
        "ALL Articles in this cluster:",
    ]
    for number, (title, url, summary, key_points) in enumerate(articles, 1):
        lines.append("")
        lines.append(f"[{number}] {title}")
        lines.append(f"    URL: {url}")
        lines.append(f"    Summary: {summary}")
        if key_points:
            lines.append("    Key Points:")
            lines.extend(f"    - {point}" for point in key_points)

    refs = ", ".join(f"[{number}]" for number in highlighted)
    lines.extend(
        [
            "",
            f"Lead with the highlighted articles: {refs}.",
            "",
            "Instructions:",
            f"- Synthesize ALL {len(articles)} articles above into one story; do not drop any of them",
            "- Use specific facts, numbers, names and dates from the summaries",
            "- Cite sources as [N] after each claim",
            "- Write plain prose paragraphs, no headings",
        ]
    )
    return "\n".join(lines)


def build_executive_prompt(
    sections: Sequence[Tuple[str, int, str]],
    max_words: int = 200,
) -> str:
    """
    Build the global executive-summary prompt.

    Args:
        sections: (label, article_count, narrative) per cluster
        max_words: Target summary length
    """
    parts = [
        f"Write an executive summary of about {max_words} words for a digest covering "
        f"{len(sections)} topics.",
        "Connect the topics into one story and say why they matter together.",
        "",
        "Output format:",
        "TITLE: [A 5-8 word digest title]",
        "[The executive summary]",
        "",
        "Topic narratives:",
    ]
    for label, count, narrative in sections:
        parts.append("")
        parts.append(f"## {label} ({count} articles)")
        parts.append(narrative)
    return "\n".join(parts)


def parse_titled_response(response: str) -> Tuple[Optional[str], str]:
    """Split a leading ``TITLE:`` line from the body of a response."""
    lines = response.strip().splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    if lines and lines[0].strip().replace("**", "").upper().startswith("TITLE:"):
        title = lines[0].strip().replace("**", "")[len("TITLE:"):].strip()
        return title or None, "\n".join(lines[1:]).strip()
    return None, "\n".join(lines).strip()


def build_theme_prompt(title: str, summary: str, themes: Sequence[str]) -> str:
    """Build the theme classification prompt."""
    theme_list = "\n".join(f"- {theme}" for theme in themes)
    return f"""Classify this article into the single best matching theme.

Title: {title}
Summary: {summary}

Themes:
{theme_list}

Respond with exactly two lines:
THEME: [one theme name from the list, or NONE]
RELEVANCE: [a number from 0.0 to 1.0]"""


def parse_theme_response(response: str, themes: Sequence[str]) -> Tuple[Optional[str], float]:
    """Parse a theme classification response. Unknown themes map to None."""
    theme = None
    relevance = 0.0
    by_name = {name.lower(): name for name in themes}

    for line in response.splitlines():
        line = line.strip().replace("**", "")
        upper = line.upper()
        if upper.startswith("THEME:"):
            theme = by_name.get(line[len("THEME:"):].strip().strip("\"'").lower())
        elif upper.startswith("RELEVANCE:"):
            match = re.search(r"\d+(?:\.\d+)?", line)
            if match:
                relevance = min(1.0, max(0.0, float(match.group(0))))

    if theme is None:
        return None, 0.0
    return theme, relevance
