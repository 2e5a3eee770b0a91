"""Platform-specific listing copy generation."""

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any


from listpro.adapters.llm.base import LLMMessage, LLMProvider
from listpro.adapters.llm.openai import OpenAIProvider
from listpro.adapters.llm.stub import StubLLMProvider
from listpro.config import settings
from listpro.domain.enums import Platform
from listpro.domain.models import CombinedAnalysis, PlatformContent, PlatformFailure
from listpro.errors import ContentGenerationError
from listpro.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlatformSpec:
    """Static constraints for one marketplace."""

    title_limit: int | None
    description_limit: int
    style: str
    focus: tuple[str, ...]
    item_fields: tuple[str, ...]  # item detail fields the copy should mention
    hashtags: bool = False
    call_to_action: bool = False


PLATFORM_SPECS: dict[str, PlatformSpec] = {
    Platform.EBAY: PlatformSpec(
        title_limit=80,
        description_limit=500000,
        style="factual and detailed",
        focus=("brand", "model", "condition", "specifications"),
        item_fields=("brand", "model", "condition"),
    ),
    Platform.POSHMARK: PlatformSpec(
        title_limit=50,
        description_limit=8000,
        style="casual and personal",
        focus=("brand", "style", "story", "hashtags"),
        item_fields=("brand", "size", "color"),
        hashtags=True,
    ),
    Platform.INSTAGRAM: PlatformSpec(
        title_limit=None,
        description_limit=2200,
        style="engaging and visual",
        focus=("lifestyle", "aesthetics", "hashtags", "call-to-action"),
        item_fields=("brand", "color"),
        hashtags=True,
        call_to_action=True,
    ),
    Platform.ETSY: PlatformSpec(
        title_limit=140,
        description_limit=13000,
        style="artisanal and story-driven",
        focus=("craftsmanship", "vintage", "unique features"),
        item_fields=("material", "year", "color"),
    ),
    Platform.FACEBOOK: PlatformSpec(
        title_limit=100,
        description_limit=9000,
        style="community-friendly",
        focus=("local appeal", "value proposition", "condition"),
        item_fields=("condition", "category"),
    ),
    Platform.MERCARI: PlatformSpec(
        title_limit=80,
        description_limit=1000,
        style="concise and price-focused",
        focus=("brand", "condition", "value"),
        item_fields=("brand", "condition"),
    ),
}

_SECTION_HEADER = re.compile(
    r"^\s*(?:\d+[.)]\s*)?[*#]*\s*"
    r"(optimized title|title|compelling description|description|caption|"
    r"relevant hashtags|hashtags|key selling points|selling points|"
    r"suggested caption hooks|caption hooks)"
    r"\s*[*]*\s*:\s*[*]*\s*(.*)$",
    re.IGNORECASE,
)
_HASHTAG = re.compile(r"#\w+")


@dataclass
class ParsedContent:
    """Free-text model output split into listing parts."""

    title: str
    description: str
    hashtags: tuple[str, ...]


@dataclass
class ContentGenerationResult:
    """One entry per requested platform: content or a recorded failure."""

    contents: dict[str, PlatformContent] = field(default_factory=dict)
    failures: dict[str, PlatformFailure] = field(default_factory=dict)

    @property
    def platforms(self) -> list[str]:
        return [*self.contents, *self.failures]

    def to_dict(self) -> dict[str, Any]:
        return {
            **{p: c.to_dict() for p, c in self.contents.items()},
            **{p: f.to_dict() for p, f in self.failures.items()},
        }


def parse_generated_content(text: str) -> ParsedContent:
    """Split model copy into title, description and hashtags.

    Labeled sections (``Title:``, ``Description:``, ``Hashtags:``) are used
    when present; otherwise the first non-empty line is the title.
    """
    title_lines: list[str] = []
    body_lines: list[str] = []
    hashtag_lines: list[str] = []
    current: list[str] | None = None
    saw_header = False

    for line in text.strip().splitlines():
        match = _SECTION_HEADER.match(line)
        if match:
            saw_header = True
            header = match.group(1).lower()
            if "title" in header:
                current = title_lines
            elif "hashtag" in header:
                current = hashtag_lines
            else:
                current = body_lines
            if match.group(2).strip():
                current.append(match.group(2).strip())
            continue
        if current is not None:
            current.append(line.rstrip())
        else:
            body_lines.append(line.rstrip())

    if not saw_header or not title_lines:
        lines = [line for line in body_lines if line.strip()]
        title_lines = lines[:1]
        body_lines = lines[1:] if len(lines) > 1 else lines

    title = " ".join(line.strip() for line in title_lines).strip().strip('"*')
    description = "\n".join(body_lines).strip()

    hashtags: list[str] = []
    for tag in _HASHTAG.findall(text):
        if tag.lower() not in (h.lower() for h in hashtags):
            hashtags.append(tag)

    return ParsedContent(title=title, description=description, hashtags=tuple(hashtags))


def score_content(
    parsed: ParsedContent,
    analysis: CombinedAnalysis,
    spec: PlatformSpec,
) -> float:
    """Optimization score in [0.7, 1.0] from an explicit rubric.

    Checks: title within limit, description within limit, share of the
    platform's emphasized item fields that appear in the copy and, where
    the platform expects them, presence of hashtags.
    """
    checks: list[float] = [
        1.0 if spec.title_limit is None or len(parsed.title) <= spec.title_limit else 0.0,
        1.0 if len(parsed.description) <= spec.description_limit else 0.0,
    ]

    copy = f"{parsed.title}\n{parsed.description}".lower()
    values = [
        str(value).lower()
        for name in spec.item_fields
        if (value := getattr(analysis.item_details, name, None))
    ]
    if values:
        checks.append(sum(1 for v in values if v in copy) / len(values))

    if spec.hashtags:
        checks.append(1.0 if parsed.hashtags else 0.0)

    return round(0.7 + 0.3 * (sum(checks) / len(checks)), 3)


class ContentGenerator:
    """Generates listing copy for each requested marketplace.

    Platforms are independent: one failing platform is recorded and the
    rest still get content.
    """

    SYSTEM_PROMPT = """You write resale marketplace listings. Stay truthful to the item \
analysis and the seller's own voice. Never exceed the character limits you are given.

Answer in this format:
Title: <title>
Description: <description>
Hashtags: <space separated hashtags, only when asked>"""

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        concurrency: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.llm = llm_provider or self._get_default_provider()
        self.concurrency = (
            settings.content_generation_concurrency if concurrency is None else concurrency
        )
        self.timeout_seconds = (
            settings.external_call_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        logger.info("content_generator_initialized", provider=self.llm.name)

    def _get_default_provider(self) -> LLMProvider:
        provider_name = settings.llm_provider.lower()

        if provider_name == "stub":
            return StubLLMProvider()
        if provider_name == "openai" and settings.openai_api_key:
            return OpenAIProvider()

        logger.warning("No LLM API keys configured, using stub provider")
        return StubLLMProvider()

    def build_prompt(self, analysis: CombinedAnalysis, platform: str, spec: PlatformSpec) -> str:
        """Build the per-platform user prompt."""
        details = analysis.item_details.model_dump(by_alias=True, exclude_none=True)
        item = json.dumps(details, indent=2)
        selling_points = "\n".join(f"- {p}" for p in analysis.selling_points) or "- (none)"
        title_limit = (
            f"{spec.title_limit} characters" if spec.title_limit else "no title, caption only"
        )

        lines = [
            f"Create an optimized listing for {platform.upper()} based on this item analysis:",
            "",
            item,
            "",
            "Selling points:",
            selling_points,
            "",
            "Platform requirements:",
            f"- Title limit: {title_limit}",
            f"- Description limit: {spec.description_limit} characters",
            f"- Style: {spec.style}",
            f"- Focus on: {', '.join(spec.focus)}",
        ]
        if spec.hashtags:
            lines.append("- Include relevant hashtags.")
        if spec.call_to_action:
            lines.append("- Include a call-to-action and engagement hooks.")
        if analysis.transcript.text:
            lines += ["", "Seller's words:", f'"{analysis.transcript.text[:2000]}"']
        lines += ["", "Make it authentic and true to the seller's voice."]
        return "\n".join(lines)

    async def generate(
        self,
        analysis: CombinedAnalysis,
        platforms: list[str] | None = None,
    ) -> ContentGenerationResult:
        """Generate content for every requested platform."""
        targets = platforms or settings.default_platforms
        requested = list(dict.fromkeys(p.strip().lower() for p in targets))
        logger.info("content_generation_started", platforms=requested)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(platform: str) -> PlatformContent:
            async with semaphore:
                return await self.generate_for_platform(analysis, platform)

        results = await asyncio.gather(
            *(bounded(platform) for platform in requested),
            return_exceptions=True,
        )

        outcome = ContentGenerationResult()
        for platform, result in zip(requested, results, strict=True):
            if isinstance(result, ContentGenerationError):
                outcome.failures[platform] = PlatformFailure(
                    platform=platform, reason=result.message
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                outcome.contents[platform] = result

        logger.info(
            "content_generation_completed",
            succeeded=sorted(outcome.contents),
            failed=sorted(outcome.failures),
        )
        return outcome

    async def generate_for_platform(
        self,
        analysis: CombinedAnalysis,
        platform: str,
    ) -> PlatformContent:
        """Generate content for one platform.

        Raises:
            ContentGenerationError: For unsupported platforms, model failures,
                timeouts or empty output
        """
        spec = PLATFORM_SPECS.get(platform)
        if spec is None:
            raise ContentGenerationError(f"unsupported platform: {platform}", platform=platform)

        messages = [
            LLMMessage(role="system", content=self.SYSTEM_PROMPT),
            LLMMessage(role="user", content=self.build_prompt(analysis, platform, spec)),
        ]

        try:
            response = await asyncio.wait_for(
                self.llm.complete(messages, temperature=0.7),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            raise ContentGenerationError(
                f"generation timed out after {self.timeout_seconds}s", platform=platform
            ) from e
        except Exception as e:
            logger.warning("platform_content_failed", platform=platform, error=str(e))
            raise ContentGenerationError(str(e) or type(e).__name__, platform=platform) from e

        if not response.content.strip():
            raise ContentGenerationError("model returned empty content", platform=platform)

        parsed = parse_generated_content(response.content)
        score = score_content(parsed, analysis, spec)

        title = parsed.title
        if spec.title_limit is not None:
            title = title[: spec.title_limit].rstrip()

        return PlatformContent(
            platform=platform,
            title=title,
            description=parsed.description[: spec.description_limit].rstrip(),
            hashtags=parsed.hashtags,
            raw_content=response.content,
            optimization_score=score,
        )
