"""Optional theme classification of summarized articles."""

from typing import Optional, Sequence

from rich.console import Console

from ..errors import CollaboratorError
from ..models import Article, Summary
from .llm_provider import LLMProvider

console = Console()


class ThemeClassifier:
    """Tag articles with the best matching enabled theme."""

    def __init__(self, provider: LLMProvider, themes: Sequence[str]) -> None:
        self.provider = provider
        self.themes = list(themes)

    async def classify(self, article: Article, summary: Optional[Summary] = None) -> Article:
        """Return a copy of the article with its theme set. Failures leave it unclassified."""
        if not self.themes:
            return article
        try:
            theme, relevance = await self.provider.classify_theme(
                article, self.themes, summary.text if summary else None
            )
        except CollaboratorError as e:
            console.print(f"[yellow]Theme classification failed for {article.url}: {e}[/yellow]")
            return article
        if theme is None:
            return article
        return article.model_copy(update={"theme": theme, "theme_relevance": relevance})
