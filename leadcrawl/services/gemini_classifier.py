import json
import logging
import re
import time
from typing import Any, Callable, Optional

import google.generativeai as genai

from leadcrawl.domain.lead import Lead
from leadcrawl.exceptions import ClassifierError
from leadcrawl.services.governor import is_transient

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
BATCH_WORDS = 10_000
MAX_PROMPT_CHARS = 50_000

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

LEAD_FIELDS_SCHEMA = """{
  "leads": [
    {
      "name": "Full name of the individual",
      "title": "Job title or professional designation",
      "company": "Current organization or employer",
      "email": "Email address",
      "phone": "Contact number (mobile or office)"
    }
  ]%s
}"""

EXTRACTION_PROMPT = """You are a business data extraction specialist. Analyze the following webpage content and extract business contact information.

SEARCH CONTEXT:
- Keyword: "{keyword}"
- Website URL: "{url}"

WEBPAGE CONTENT:
{content}

Look in Contact, About Us, Team, Staff Directory, header and footer sections.
Prioritize decision-makers and contacts most relevant to "{keyword}".

Return ONLY valid JSON in this format:
{schema}

Rules:
- Only include information that is present in the content; never guess
- Use empty strings "" for missing values, never null or "N/A"
- Email addresses must contain @ and a domain
- Names must not be generic terms like "Contact" or "Info"
- If nothing relevant is found, return an empty leads array"""

BATCH_PROMPT = """Extract business lead information from this website content.

KEYWORD: "{keyword}"
URL: "{url}"
{context}
CURRENT CONTENT:
{content}

Return ONLY valid JSON in this format:
{schema}

Rules:
- Extract ONLY the 5 fields: name, title, company, email, phone
- Include multiple contacts if found
- Only extract clearly visible contact information; never guess
- If nothing relevant is found, return an empty leads array
- Provide a brief context_summary of key business information for the next batch"""

RELEVANCE_PROMPT = """Evaluate this search result for the keyword "{keyword}" by its business lead generation potential.

Good: business websites with contact information, company directories, professional service providers, local business listings.
Poor: news or blog articles without contact details, social media posts, generic informational content.

URL: {url}
Title: {title}
Snippet: {snippet}

Rate it from 1 to 10 (10 = excellent lead potential). Respond in valid JSON:
{{"score": 8, "reason": "Business website with likely contact information"}}"""


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def split_into_batches(content: str, max_words: int) -> list[str]:
    words = content.split()
    return [" ".join(words[i:i + max_words]) for i in range(0, len(words), max_words)]


class GeminiContentClassifier:
    """Lead extraction and URL relevance scoring with a Gemini model.

    Failures surface as `ClassifierError`, flagged transient when the
    underlying error is worth retrying; the caller's governor decides
    whether to retry or fall back.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        model: Any = None,
        batch_words: int = BATCH_WORDS,
        max_prompt_chars: int = MAX_PROMPT_CHARS,
        batch_delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if model is None:
            if not api_key:
                raise ValueError("api_key is required when no model is supplied")
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
        self._model = model
        self.model_name = model_name
        self.timeout = timeout
        self.batch_words = batch_words
        self.max_prompt_chars = max_prompt_chars
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep

    def _generate(self, prompt: str) -> str:
        try:
            response = self._model.generate_content(
                prompt,
                generation_config=genai.types.GenerationConfig(temperature=0.1),
                request_options={"timeout": self.timeout},
            )
            return response.text
        except Exception as e:
            raise ClassifierError("Gemini request failed", e, transient=is_transient(e)) from e

    def _parse_json(self, raw: str) -> dict:
        try:
            parsed = json.loads(strip_code_fences(raw))
        except ValueError as e:
            raise ClassifierError("Unparseable classifier response", e) from e
        if not isinstance(parsed, dict):
            raise ClassifierError("Invalid response format: expected a JSON object")
        return parsed

    def _parse_leads(self, raw: str, source_url: Optional[str], keyword: str) -> tuple[list[Lead], str]:
        parsed = self._parse_json(raw)
        items = parsed.get("leads")
        if not isinstance(items, list):
            raise ClassifierError("Invalid response format: missing leads array")
        leads = [
            Lead.from_mapping(item, source_url=source_url, keyword=keyword or None)
            for item in items
            if isinstance(item, dict)
        ]
        summary = parsed.get("context_summary") or ""
        return leads, str(summary)

    def classify_leads(self, text: str, keyword: str = "", source_url: Optional[str] = None) -> list[Lead]:
        content = text or ""
        batches = split_into_batches(content, self.batch_words)
        if len(batches) <= 1:
            prompt = EXTRACTION_PROMPT.format(
                keyword=keyword, url=source_url or "", content=content[:self.max_prompt_chars],
                schema=LEAD_FIELDS_SCHEMA % "",
            )
            leads, _ = self._parse_leads(self._generate(prompt), source_url, keyword)
            logger.debug("Classifier found %d lead(s) on %s", len(leads), source_url)
            return leads

        logger.info("Content of %s split into %d batches", source_url, len(batches))
        leads: list[Lead] = []
        summary = ""
        for i, batch in enumerate(batches):
            context = f"\nPREVIOUS CONTEXT:\n{summary}\n" if summary else ""
            prompt = BATCH_PROMPT.format(
                keyword=keyword, url=source_url or "", context=context, content=batch,
                schema=LEAD_FIELDS_SCHEMA % ',\n  "context_summary": "Brief summary of key business information found"',
            )
            batch_leads, summary = self._parse_leads(self._generate(prompt), source_url, keyword)
            leads.extend(batch_leads)
            if i < len(batches) - 1 and self.batch_delay_seconds > 0:
                self._sleep(self.batch_delay_seconds)
        return leads

    def score_url_relevance(self, url: str, title: str = "", snippet: str = "", keyword: str = "") -> int:
        prompt = RELEVANCE_PROMPT.format(
            keyword=keyword, url=url, title=title or "No title", snippet=snippet or "No snippet",
        )
        parsed = self._parse_json(self._generate(prompt))
        try:
            score = int(float(parsed.get("score")))
        except (TypeError, ValueError) as e:
            raise ClassifierError(f"Invalid relevance score for {url}", e) from e
        return max(1, min(10, score))


def build_content_classifier(api_key: Optional[str], model_name: str = DEFAULT_MODEL, timeout: float = 30.0) -> Optional[GeminiContentClassifier]:
    """Return a classifier, or None when no API key is configured."""
    if not api_key:
        logger.info("No Gemini API key configured; using basic extraction")
        return None
    return GeminiContentClassifier(api_key=api_key, model_name=model_name, timeout=timeout)
