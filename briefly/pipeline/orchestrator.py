"""Pipeline orchestrator that turns a list of URLs into a digest."""

import asyncio
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..cache import CacheManager, CacheStore, MemoryCacheStore
from ..clustering import KMeansClusterer, TopicClusterer, cluster_or_degrade
from ..config import Config
from ..errors import (
    CollaboratorUnavailableError,
    FatalPipelineError,
    FetchError,
    PipelineTimeoutError,
    SummarizeError,
)
from ..generation import (
    EmbeddingGenerator,
    LLMProvider,
    MockLLMProvider,
    NarrativeResult,
    NarrativeSynthesizer,
    OpenAIProvider,
    Summarizer,
    ThemeClassifier,
    embedding_text,
)
from ..ingestion import ContentFetcher, is_valid_url, normalize_url, print_fetch_summary
from ..models import Article, Digest, Summary, TopicCluster
from .assembler import DigestAssembler
from .outcome import Degraded, Fatal, Outcome, Skip, Success

console = Console()

T = TypeVar("T")

OTHER_READS_ID = "other-reads"
OTHER_READS_LABEL = "Other Reads"


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.error: Optional[str] = None

    def start(self):
        """Mark stage as started."""
        self.start_time = time.time()

    def complete(self):
        """Mark stage as completed successfully."""
        self.end_time = time.time()
        self.success = True

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.time()
        self.success = False
        self.error = error

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


class FailureRecord(BaseModel):
    """A per-article failure."""

    url: str = Field(..., description="URL that failed")
    kind: str = Field(..., description="Failure kind")
    message: str = Field(..., description="Failure details")


class RunReport(BaseModel):
    """Aggregate statistics for one run."""

    requested: int = Field(0, description="URLs given to the run")
    valid: int = Field(0, description="Distinct valid URLs")
    invalid: int = Field(0, description="URLs rejected by validation")
    fetched: int = Field(0, description="Articles fetched over the network")
    cached: int = Field(0, description="Articles served from cache")
    failed: int = Field(0, description="Articles that failed to fetch")
    summaries_cached: int = Field(0, description="Summaries served from cache")
    summary_fallbacks: int = Field(0, description="Summaries built from excerpts")
    themed: int = Field(0, description="Articles with a classified theme")
    embedded: int = Field(0, description="Articles with an embedding")
    clusters: int = Field(0, description="Topic clusters in the digest")
    cluster_degraded: bool = Field(False, description="Whether clustering fell back to one cluster")
    narrative_fallback: bool = Field(False, description="Whether narrative fallback text was used")
    failures: List[FailureRecord] = Field(default_factory=list, description="Per-article failures")
    usage: Dict[str, Any] = Field(default_factory=dict, description="Collaborator usage statistics")


def get_llm_provider(config: Config) -> LLMProvider:
    """Get configured LLM provider."""
    llm_config = config.get_llm_config()

    if llm_config.get("provider") == "openai":
        api_key = llm_config.get("api_key")
        if not api_key:
            console.print("[yellow]Warning: No OpenAI API key found. Using mock LLM provider.[/yellow]")
            return MockLLMProvider(llm_config["embedding_dimensions"])

        return OpenAIProvider(
            api_key=api_key,
            model=llm_config["model"],
            embedding_model=llm_config["embedding_model"],
            embedding_dimensions=llm_config["embedding_dimensions"],
            base_url=llm_config.get("base_url"),
        )
    if llm_config.get("provider") != "mock":
        console.print("[yellow]Warning: Unknown LLM provider. Using mock provider.[/yellow]")
    return MockLLMProvider(llm_config["embedding_dimensions"])


class DigestPipeline:
    """
    Runs URLs through fetch, summarize, embed, cluster, narrate and assemble.

    Per-article fetch failures are skipped, summarization and narrative
    failures fall back to excerpts and bullet points, and clustering
    failures collapse to one cluster. The run aborts only when no URL is
    valid, every fetch fails, or the collaborator is unreachable.
    """

    def __init__(
        self,
        provider: LLMProvider,
        fetcher: Optional[ContentFetcher] = None,
        cache: Optional[CacheManager] = None,
        summarizer: Optional[Summarizer] = None,
        embedder: Optional[EmbeddingGenerator] = None,
        clusterer: Optional[TopicClusterer] = None,
        synthesizer: Optional[NarrativeSynthesizer] = None,
        assembler: Optional[DigestAssembler] = None,
        themes: Sequence[str] = (),
        max_concurrent: int = 1,
        timeout: Optional[float] = None,
        show_progress: bool = True,
    ) -> None:
        self.provider = provider
        self.fetcher = fetcher or ContentFetcher()
        self.cache = cache or CacheManager(MemoryCacheStore())
        self.summarizer = summarizer or Summarizer(provider)
        self.embedder = embedder or EmbeddingGenerator(provider)
        self.clusterer = clusterer or KMeansClusterer()
        self.synthesizer = synthesizer or NarrativeSynthesizer(provider)
        self.assembler = assembler or DigestAssembler()
        self.theme_classifier = ThemeClassifier(provider, themes) if themes else None
        self.max_concurrent = max(1, max_concurrent)
        self.timeout = timeout
        self.show_progress = show_progress
        self.report = RunReport()
        self.stages: List[PipelineStage] = []
        self.total_start_time: Optional[float] = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        store: Optional[CacheStore] = None,
        provider: Optional[LLMProvider] = None,
    ) -> "DigestPipeline":
        """Build a pipeline from configuration."""
        cfg = config.config
        provider = provider or get_llm_provider(config)

        return cls(
            provider=provider,
            fetcher=ContentFetcher(
                timeout=cfg.fetch.timeout,
                max_redirects=cfg.fetch.max_redirects,
                min_host_interval=cfg.fetch.min_host_interval,
                user_agent=cfg.fetch.user_agent,
            ),
            cache=CacheManager(
                store or MemoryCacheStore(),
                content_ttl=timedelta(hours=cfg.cache.content_ttl_hours),
                summary_ttl=timedelta(days=cfg.cache.summary_ttl_days),
            ),
            summarizer=Summarizer(
                provider,
                max_words=cfg.summarizer.max_words,
                key_points=cfg.summarizer.key_points,
                max_retries=cfg.summarizer.max_retries,
                retry_delay=cfg.summarizer.retry_delay,
            ),
            embedder=EmbeddingGenerator(
                provider,
                dimensions=cfg.llm.embedding_dimensions,
                max_retries=cfg.summarizer.max_retries,
                retry_delay=cfg.summarizer.retry_delay,
            ),
            clusterer=KMeansClusterer(
                min_k=cfg.clustering.min_k,
                max_k=cfg.clustering.max_k,
                k=cfg.clustering.k,
                similarity_threshold=cfg.clustering.similarity_threshold,
                duplicate_threshold=cfg.clustering.duplicate_threshold,
                max_iterations=cfg.clustering.max_iterations,
            ),
            synthesizer=NarrativeSynthesizer(
                provider,
                top_articles=cfg.narrative.top_articles,
                cluster_words=cfg.narrative.cluster_words,
                executive_words=cfg.narrative.executive_words,
                max_retries=cfg.summarizer.max_retries,
                retry_delay=cfg.summarizer.retry_delay,
            ),
            themes=cfg.pipeline.themes,
            max_concurrent=cfg.pipeline.max_concurrent,
            timeout=cfg.pipeline.timeout,
        )

    def _new_stages(self) -> List[PipelineStage]:
        stages = [
            PipelineStage("validate", "Validating URLs"),
            PipelineStage("fetch", "Fetching content"),
            PipelineStage("summarize", "Summarizing articles"),
        ]
        if self.theme_classifier is not None:
            stages.append(PipelineStage("themes", "Classifying themes"))
        stages.extend(
            [
                PipelineStage("embed", "Generating embeddings"),
                PipelineStage("cluster", "Clustering topics"),
                PipelineStage("narrative", "Synthesizing narrative"),
                PipelineStage("assemble", "Assembling digest"),
            ]
        )
        return stages

    def _record_failure(self, url: str, kind: str, message: str) -> None:
        self.report.failures.append(FailureRecord(url=url, kind=kind, message=message))

    async def _bounded(self, items: Sequence[Any], worker: Callable[[Any], Awaitable[T]]) -> List[T]:
        """Run ``worker`` over items with at most ``max_concurrent`` in flight, in input order."""
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def run_one(item: Any) -> T:
            async with semaphore:
                return await worker(item)

        tasks = [asyncio.ensure_future(run_one(item)) for item in items]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _stage(self, progress: Progress, name: str, func: Callable[..., Awaitable[T]], *args) -> T:
        stage = next(s for s in self.stages if s.name == name)
        task = progress.add_task(stage.description, total=1)
        stage.start()
        try:
            result = await func(*args)
        except BaseException as e:
            stage.fail(str(e) or type(e).__name__)
            raise
        stage.complete()
        progress.advance(task, 1)
        progress.remove_task(task)
        return result

    async def run(
        self,
        urls: Sequence[str],
        title: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Digest:
        """
        Run the complete pipeline.

        Args:
            urls: Candidate URLs, in priority order
            title: Digest title; generated when omitted
            timeout: Deadline for the whole run in seconds

        Raises:
            FatalPipelineError: If the run cannot produce a digest
            PipelineTimeoutError: If the deadline passes first
        """
        timeout = timeout if timeout is not None else self.timeout
        self.report = RunReport()
        self.stages = self._new_stages()
        self.total_start_time = time.time()

        try:
            if timeout:
                return await asyncio.wait_for(self._execute(urls, title), timeout)
            return await self._execute(urls, title)
        except asyncio.TimeoutError as e:
            raise PipelineTimeoutError(f"Digest run exceeded its {timeout:g}s deadline") from e
        finally:
            await self.fetcher.close()
            self.report.usage = self.provider.get_usage_stats()
            self._print_summary()

    def run_sync(self, urls: Sequence[str], **kwargs) -> Digest:
        """Synchronous wrapper for run."""
        return asyncio.run(self.run(urls, **kwargs))

    async def _execute(self, urls: Sequence[str], title: Optional[str]) -> Digest:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            disable=not self.show_progress,
        ) as progress:
            valid_urls = await self._stage(progress, "validate", self._validate, urls)
            articles = await self._stage(progress, "fetch", self._fetch, valid_urls)
            articles, summaries = await self._stage(progress, "summarize", self._summarize, articles)
            if self.theme_classifier is not None:
                articles = await self._stage(progress, "themes", self._classify, articles, summaries)
            articles = await self._stage(progress, "embed", self._embed, articles, summaries)
            clusters, articles = await self._stage(progress, "cluster", self._cluster, articles)
            by_id = {article.id: article for article in articles}
            narrative = await self._stage(progress, "narrative", self._narrate, clusters, by_id, summaries)
            return await self._stage(
                progress, "assemble", self._assemble, clusters, by_id, summaries, narrative, title
            )

    async def _validate(self, urls: Sequence[str]) -> List[str]:
        self.report.requested = len(urls)
        valid = []
        seen = set()
        for url in urls:
            if not is_valid_url(url):
                self.report.invalid += 1
                self._record_failure(url, "invalid", "Not an absolute http(s) URL")
                continue
            normalized = normalize_url(url)
            if normalized not in seen:
                seen.add(normalized)
                valid.append(normalized)

        self.report.valid = len(valid)
        if not valid:
            raise FatalPipelineError("No valid URLs to process")
        return valid

    async def _fetch_one(self, item: Tuple[int, str]) -> Outcome:
        position, url = item
        try:
            content, cached = await self.cache.get_or_fetch_content(url, self.fetcher.fetch)
        except FetchError as e:
            return Skip(f"{e.kind}: {e.message}", e)
        return Success((content.to_article(position), cached))

    async def _fetch(self, urls: List[str]) -> List[Article]:
        outcomes = await self._bounded(list(enumerate(urls)), self._fetch_one)

        articles = []
        failures = []
        for outcome in outcomes:
            if isinstance(outcome, Success):
                article, cached = outcome.value
                articles.append(article)
                if cached:
                    self.report.cached += 1
                else:
                    self.report.fetched += 1
            elif isinstance(outcome, Skip):
                failures.append(outcome.error)
                self._record_failure(outcome.error.url, outcome.error.kind, outcome.error.message)

        self.report.failed = len(failures)
        print_fetch_summary(self.report.fetched, self.report.cached, failures)

        if not articles:
            raise FatalPipelineError(f"All {len(urls)} URLs failed to fetch")
        return articles

    async def _summarize_one(self, article: Article) -> Outcome:
        try:
            summary, cached = await self.cache.get_or_create_summary(
                article.url,
                article.content_hash,
                lambda: self.summarizer.summarize(article),
            )
        except CollaboratorUnavailableError as e:
            return Fatal(f"Text-generation collaborator unreachable: {e}", e)
        except SummarizeError as e:
            return Degraded((self.summarizer.fallback_summary(article), False), str(e))

        if summary.is_fallback:
            return Degraded((summary, cached), "Summary fell back to an excerpt")
        return Success((summary, cached))

    async def _summarize(self, articles: List[Article]) -> Tuple[List[Article], Dict[str, Summary]]:
        outcomes = await self._bounded(articles, self._summarize_one)

        updated = []
        summaries = {}
        for article, outcome in zip(articles, outcomes):
            if isinstance(outcome, Fatal):
                raise FatalPipelineError(outcome.reason) from outcome.error
            if isinstance(outcome, Degraded):
                self.report.summary_fallbacks += 1
            summary, cached = outcome.value
            if cached:
                self.report.summaries_cached += 1
            if not article.title and summary.title:
                article = article.model_copy(update={"title": summary.title})
            updated.append(article)
            summaries[article.id] = summary

        return updated, summaries

    async def _classify(self, articles: List[Article], summaries: Dict[str, Summary]) -> List[Article]:
        classified = await self._bounded(
            articles, lambda article: self.theme_classifier.classify(article, summaries.get(article.id))
        )
        self.report.themed = sum(1 for article in classified if article.theme)
        return classified

    async def _embed(self, articles: List[Article], summaries: Dict[str, Summary]) -> List[Article]:
        texts = [embedding_text(article, summaries[article.id]) for article in articles]
        try:
            vectors = await self.embedder.embed_all(texts)
        except CollaboratorUnavailableError as e:
            raise FatalPipelineError(f"Text-generation collaborator unreachable: {e}") from e

        embedded = [
            article.model_copy(update={"embedding": vector}) if vector is not None else article
            for article, vector in zip(articles, vectors)
        ]
        self.report.embedded = sum(1 for vector in vectors if vector is not None)
        return embedded

    async def _cluster(self, articles: List[Article]) -> Tuple[List[TopicCluster], List[Article]]:
        embedded = [article for article in articles if article.embedding is not None]
        unembedded = [article for article in articles if article.embedding is None]

        clusters, reason = cluster_or_degrade(
            self.clusterer, embedded, [article.embedding for article in embedded]
        )
        self.report.cluster_degraded = reason is not None

        if unembedded:
            clusters.append(
                TopicCluster(
                    id=OTHER_READS_ID,
                    label=OTHER_READS_LABEL,
                    article_ids=tuple(article.id for article in unembedded),
                )
            )

        assignment = {}
        for cluster in clusters:
            confidences = cluster.confidences or (None,) * cluster.size
            for article_id, confidence in zip(cluster.article_ids, confidences):
                assignment[article_id] = (cluster.label, confidence)

        annotated = [
            article.model_copy(
                update={
                    "topic_cluster": assignment[article.id][0],
                    "topic_confidence": assignment[article.id][1],
                }
            )
            for article in articles
        ]
        self.report.clusters = len(clusters)
        return clusters, annotated

    async def _narrate(
        self,
        clusters: List[TopicCluster],
        articles: Dict[str, Article],
        summaries: Dict[str, Summary],
    ) -> NarrativeResult:
        result = await self.synthesizer.synthesize(clusters, articles, summaries)
        self.report.narrative_fallback = result.fallback
        return result

    async def _assemble(
        self,
        clusters: List[TopicCluster],
        articles: Dict[str, Article],
        summaries: Dict[str, Summary],
        narrative: NarrativeResult,
        title: Optional[str],
    ) -> Digest:
        return self.assembler.assemble(clusters, articles, summaries, narrative, title=title)

    def _stage_details(self, stage: PipelineStage) -> str:
        report = self.report
        if not stage.success:
            return stage.error or "-"
        if stage.name == "validate":
            return f"{report.valid} valid, {report.invalid} invalid"
        if stage.name == "fetch":
            return f"{report.fetched} fetched, {report.cached} cached, {report.failed} failed"
        if stage.name == "summarize":
            return f"{report.summaries_cached} cached, {report.summary_fallbacks} fallbacks"
        if stage.name == "themes":
            return f"{report.themed} classified"
        if stage.name == "embed":
            return f"{report.embedded} embedded"
        if stage.name == "cluster":
            return f"{report.clusters} clusters" + (" (degraded)" if report.cluster_degraded else "")
        if stage.name == "narrative":
            return "fallback" if report.narrative_fallback else "generated"
        return ""

    def _print_summary(self) -> None:
        """Print pipeline execution summary."""
        total_duration = time.time() - self.total_start_time if self.total_start_time else 0

        table = Table(title="Pipeline Summary")
        table.add_column("Stage", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Duration", style="yellow")
        table.add_column("Details", style="dim")

        for stage in self.stages:
            if stage.start_time is None:
                status = "[dim]-[/dim]"
            else:
                status = "[green]✓[/green]" if stage.success else "[red]✗[/red]"
            duration = f"{stage.duration:.1f}s" if stage.duration > 0 else "-"
            table.add_row(stage.name.title(), status, duration, self._stage_details(stage))

        console.print("\n")
        console.print(table)

        report = self.report
        stats = (
            f"Requested: {report.requested}\n"
            f"Fetched: {report.fetched} • Cached: {report.cached} • Failed: {report.failed}\n"
            f"Summary fallbacks: {report.summary_fallbacks} • Clusters: {report.clusters}\n"
            f"API calls: {report.usage.get('api_calls', 0)} • Tokens: {report.usage.get('total_tokens', 0)}\n"
            f"Duration: {total_duration:.1f} seconds"
        )
        if all(stage.success for stage in self.stages):
            console.print(Panel(f"[green]✅ Digest generated[/green]\n\n{stats}", style="green"))
        else:
            failed = [stage.name for stage in self.stages if stage.error]
            console.print(Panel(
                f"[red]❌ Digest run failed[/red]\n\n"
                f"Failed stages: {', '.join(failed) or '-'}\n{stats}",
                style="red",
            ))
