"""
Company classifiers.

- EnrichmentResult: what a classifier returns; every field optional
- BaseClassifier: interface; classify(company) -> EnrichmentResult
- OpenAIClassifier: JSON-only chat completion over crawled site text
- NullClassifier: returns an empty result (no API key configured)

Classification is advisory: failures are logged and yield an empty result,
they never fail the ENRICHMENT job.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from openai import OpenAI, OpenAIError

from ..config import EnrichmentOptions

logger = logging.getLogger(__name__)

MAX_PROMPT_CONTENT_CHARS = 4000

SYSTEM_PROMPT = (
    "You are an API that returns only JSON, no additional text. "
    "You analyze businesses and provide structured data."
)

PROMPT_TEMPLATE = """You are a business intelligence AI. Analyze the following website content and provide business classification data.

Domain: {domain}
Website URL: {website_url}

Content excerpt:
{content}

Respond ONLY with valid JSON in this exact format:
{{
  "category": "short business category",
  "niche": "specific niche",
  "tags": ["tag1", "tag2"],
  "confidence": 0.0,
  "industry": "industry name",
  "sizeBucket": "MICRO | SMALL | SMB | MIDMARKET | ENTERPRISE",
  "hqCity": "city or null",
  "hqCountry": "country or null",
  "businessType": "e.g. B2B, B2C, local service",
  "keywords": ["keyword1", "keyword2"],
  "idealCustomerNotes": "one sentence on who buys from them"
}}"""


@dataclass
class EnrichmentResult:
    category: Optional[str] = None
    niche: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    confidence: Optional[float] = None
    industry: Optional[str] = None
    size_bucket: Optional[str] = None
    hq_city: Optional[str] = None
    hq_country: Optional[str] = None
    business_type: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    ideal_customer_notes: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "EnrichmentResult":
        def _s(key: str) -> Optional[str]:
            v = data.get(key)
            if v is None:
                return None
            v = str(v).strip()
            return v if v and v.lower() != "null" else None

        def _list(key: str) -> List[str]:
            v = data.get(key)
            if not isinstance(v, list):
                return []
            return [str(x).strip() for x in v if str(x).strip()]

        confidence = data.get("confidence")
        try:
            confidence = float(confidence) if confidence is not None else None
        except (TypeError, ValueError):
            confidence = None

        return cls(
            category=_s("category"),
            niche=_s("niche"),
            tags=_list("tags"),
            confidence=confidence,
            industry=_s("industry"),
            size_bucket=(_s("sizeBucket") or "").upper() or None,
            hq_city=_s("hqCity"),
            hq_country=_s("hqCountry"),
            business_type=_s("businessType"),
            keywords=_list("keywords"),
            ideal_customer_notes=_s("idealCustomerNotes"),
        )


class BaseClassifier:
    name: str = "base"

    def classify(self, company: Mapping[str, Any]) -> EnrichmentResult:
        """Classify a company row (needs domain, website_url, raw_content)."""
        raise NotImplementedError("BaseClassifier.classify() must be implemented by subclasses")


class NullClassifier(BaseClassifier):
    name = "null"

    def classify(self, company: Mapping[str, Any]) -> EnrichmentResult:
        return EnrichmentResult()


def _strip_code_fence(raw: str) -> str:
    s = raw.strip()
    if s.startswith("```"):
        s = s.strip("`")
        if s.lower().startswith("json"):
            s = s[4:]
    return s.strip()


class OpenAIClassifier(BaseClassifier):
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        options: Optional[EnrichmentOptions] = None,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.api_key = api_key
        self.options = options or EnrichmentOptions()
        self._client = client

    @property
    def client(self) -> OpenAI:
        # built on first use so a missing key never breaks import or wiring
        if self._client is None:
            if not self.api_key:
                raise OpenAIError("OPENAI_API_KEY is not set.")
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def classify(self, company: Mapping[str, Any]) -> EnrichmentResult:
        content = company.get("raw_content") or ""
        domain = company.get("domain")
        if len(content) < self.options.min_content_chars:
            logger.info("Not classifying %s: only %s chars of content", domain, len(content))
            return EnrichmentResult()

        prompt = PROMPT_TEMPLATE.format(
            domain=domain,
            website_url=company.get("website_url") or "N/A",
            content=content[:MAX_PROMPT_CONTENT_CHARS],
        )
        try:
            response = self.client.chat.completions.create(
                model=self.options.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=500,
            )
            raw = (response.choices[0].message.content or "").strip()
        except OpenAIError as e:
            logger.error("AI enrichment failed for %s: %s: %s", domain, type(e).__name__, e)
            return EnrichmentResult()

        if not raw:
            return EnrichmentResult()
        try:
            data = json.loads(_strip_code_fence(raw))
        except ValueError:
            logger.error("Failed to parse AI response as JSON for %s: %s", domain, raw[:500])
            return EnrichmentResult()
        if not isinstance(data, dict):
            logger.error("AI response for %s is not a JSON object: %s", domain, raw[:500])
            return EnrichmentResult()
        return EnrichmentResult.from_payload(data)
