import logging
from collections import Counter
from typing import Iterable, Optional

from leadcrawl.domain.crawl_result import AssemblyResult
from leadcrawl.domain.fetch_result import FetchResult
from leadcrawl.domain.lead import Lead
from leadcrawl.services.basic_lead_extractor import BasicLeadExtractor
from leadcrawl.services.gemini_classifier import GeminiContentClassifier
from leadcrawl.services.governor import Governor
from leadcrawl.services.lead_cleaner import LeadCleaner

logger = logging.getLogger(__name__)


class LeadAssembler:
    """Turns fetched pages into a clean, deduplicated list of leads.

    Candidates come from the content classifier through its governor, or
    from the offline regex extractor when no classifier is configured, the
    call fails or the circuit is open. Dedup runs before validation and the
    first occurrence of an identity key wins.
    """

    def __init__(
        self,
        cleaner: LeadCleaner,
        fallback_extractor: BasicLeadExtractor,
        classifier: Optional[GeminiContentClassifier] = None,
        governor: Optional[Governor] = None,
    ):
        if classifier is not None and governor is None:
            raise ValueError("a governor is required when a classifier is configured")
        self.cleaner = cleaner
        self.fallback_extractor = fallback_extractor
        self.classifier = classifier
        self.governor = governor

    def _page_candidates(self, result: FetchResult, keyword: str, failures: Counter) -> tuple[list[Lead], bool]:
        def fallback():
            return self.fallback_extractor.extract(result.text_content, result.url, keyword)

        if self.classifier is None:
            return fallback(), True

        outcome = self.governor.call_with_fallback(
            lambda: self.classifier.classify_leads(result.text_content, keyword, result.url),
            fallback,
        )
        if outcome.used_fallback:
            failures[outcome.reason.value] += 1
        return outcome.value, outcome.used_fallback

    def assemble(self, fetch_results: Iterable[FetchResult], keyword: str = "") -> AssemblyResult:
        candidates: list[Lead] = []
        fallback_pages = 0
        failures: Counter = Counter()
        for result in fetch_results:
            if not result.success:
                continue
            leads, used_fallback = self._page_candidates(result, keyword, failures)
            fallback_pages += int(used_fallback)
            candidates.extend(leads)

        seen: set[tuple[str, str]] = set()
        leads: list[Lead] = []
        duplicates = 0
        reasons: Counter = Counter()
        rejected = 0
        for candidate in candidates:
            lead = self.cleaner.clean(candidate)
            key = self.cleaner.identity_key(lead)
            if key in seen:
                duplicates += 1
                logger.debug("Removing duplicate: %s (%s)", lead.name, lead.email)
                continue
            seen.add(key)

            validation = self.cleaner.validate(lead)
            if not validation.valid:
                rejected += 1
                reasons.update(validation.reasons)
                continue
            leads.append(lead)

        logger.info(
            "Assembled %d lead(s) from %d candidate(s): %d duplicate(s), %d rejected",
            len(leads), len(candidates), duplicates, rejected,
        )
        return AssemblyResult(leads, duplicates, rejected, dict(reasons), fallback_pages, dict(failures))
