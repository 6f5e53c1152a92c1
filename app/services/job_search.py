"""
Job grounding: turns extracted job titles into live job listings.

Two interchangeable backends implement JobSource. Both are best-effort:
resolve_jobs() never raises and degrades to an empty list.
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from app.core import prompts
from app.core.config import settings
from app.core.exceptions import JobSearchError
from app.schemas.resume import NOT_SPECIFIED, JobListing
from app.services.coercion import coerce_number, coerce_text
from app.services.jsearch_client import JSearchClient
from app.services.openrouter_client import OpenRouterClient

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)
_OPEN_FENCE_RE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CLOSE_FENCE_RE = re.compile(r"\n?[ \t]*```$")


def strip_code_fences(text: str) -> str:
    """
    Return the interior of the first fenced block. Without a complete pair,
    a leading or trailing fence marker is removed on its own.
    """
    text = (text or "").strip()
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    text = _OPEN_FENCE_RE.sub("", text)
    return _CLOSE_FENCE_RE.sub("", text).strip()


def normalize_job_entry(raw: Dict[str, Any]) -> Optional[JobListing]:
    title = coerce_text(raw.get("title"))
    if not title:
        return None
    return JobListing(
        title=title,
        company=coerce_text(raw.get("company")),
        location=coerce_text(raw.get("location")),
        match_percentage=coerce_number(raw.get("match_percentage"), default=0.0, minimum=0.0, maximum=100.0),
        apply_url=coerce_text(raw.get("apply_url")),
        description=coerce_text(raw.get("description")),
        salary_range=coerce_text(raw.get("salary_range"), NOT_SPECIFIED),
        experience_required=coerce_text(raw.get("experience_required"), NOT_SPECIFIED),
        job_type=coerce_text(raw.get("job_type")),
    )


def parse_job_array(text: str) -> List[JobListing]:
    """
    Parse a JSON array of job objects.

    Raises:
        ValueError: the text is not JSON or not an array.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    jobs = []
    for item in data:
        if isinstance(item, dict):
            job = normalize_job_entry(item)
            if job is not None:
                jobs.append(job)
    return jobs


class JobSource(ABC):
    name = "base"

    async def resolve_jobs(self, titles: Sequence[str]) -> List[JobListing]:
        clean = [t.strip() for t in (titles or []) if isinstance(t, str) and t.strip()]
        if not clean:
            return []

        logger.info(f"Resolving jobs via {self.name} for {len(clean)} title(s)")
        try:
            jobs = await self.search(clean)
        except Exception as e:
            # Job matches are enrichment; the analysis completes without them
            logger.error(f"Job search via {self.name} failed, continuing without matches: {e}")
            return []

        logger.info(f"Job search via {self.name} returned {len(jobs)} listing(s)")
        return jobs

    @abstractmethod
    async def search(self, titles: List[str]) -> List[JobListing]:
        """Backend-specific lookup. May raise; resolve_jobs absorbs it."""


class GroundedSearchJobSource(JobSource):
    """Search-grounded generation with one bounded JSON repair attempt."""

    name = "grounded"

    def __init__(self, client: OpenRouterClient, model: Optional[str] = None, locale: Optional[str] = None):
        self.client = client
        self.model = model or settings.ai.search_model
        self.locale = locale or settings.jobs.locale

    async def search(self, titles: List[str]) -> List[JobListing]:
        prompt = prompts.get_prompt(
            prompts.JOB_SEARCH_TEMPLATE,
            locale=self.locale,
            titles='", "'.join(titles),
        )
        reply = await self.client.complete(
            [{"role": "user", "content": prompt}],
            model=self.model,
            plugins=[{"id": "web"}],
        )
        text = strip_code_fences(reply)
        try:
            return parse_job_array(text)
        except ValueError as e:
            logger.warning(f"Failed to parse job search reply, requesting repair: {e}")

        repaired = await self.client.complete(
            [{"role": "user", "content": prompts.get_prompt(prompts.JSON_REPAIR_TEMPLATE, text=text)}],
            model=self.model,
        )
        try:
            return parse_job_array(strip_code_fences(repaired))
        except ValueError as e:
            raise JobSearchError(f"Job search reply still malformed after repair: {e}")


class JSearchJobSource(JobSource):
    """Dedicated job-listing API (JSearch on RapidAPI)."""

    name = "jsearch"

    def __init__(self, client: Optional[JSearchClient] = None):
        self.client = client or JSearchClient()

    async def search(self, titles: List[str]) -> List[JobListing]:
        return await self.client.search(titles)


def get_job_source(client: Optional[OpenRouterClient] = None) -> JobSource:
    source = settings.jobs.source

    if source == "grounded":
        return GroundedSearchJobSource(client or OpenRouterClient())

    if source == "jsearch":
        return JSearchJobSource()

    raise ValueError(f"Unsupported JOB_SOURCE='{source}'")
