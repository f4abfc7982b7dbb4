import logging
import re
from typing import Optional

from leadcrawl.domain.lead import Lead

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"\+?1?[-.\s]?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
_PHONE_LIKE_RE = re.compile(r"\d{3}[-.\s]?\d{3}[-.\s]?\d{4}")

IGNORED_EMAIL_MARKERS = ("example.", "test@", "noreply")
COMPANY_SCAN_LINES = 10


class BasicLeadExtractor:
    """Offline regex extraction, used when the content classifier is unavailable.

    Yields at most one lead per page: the first plausible email and phone
    number plus a company guess from the top of the page.
    """

    def _emails(self, text: str) -> list[str]:
        return [e for e in EMAIL_RE.findall(text) if not any(m in e for m in IGNORED_EMAIL_MARKERS)]

    def _phones(self, text: str) -> list[str]:
        phones = []
        for match in PHONE_RE.finditer(text):
            phone = match.group().strip()
            if 10 <= len(re.sub(r"\D", "", phone)) <= 15:
                phones.append(phone)
        return phones

    def company_name(self, text: str) -> str:
        for line in text.split("\n")[:COMPANY_SCAN_LINES]:
            line = line.strip()
            if 5 < len(line) < 100 and "@" not in line and not _PHONE_LIKE_RE.search(line):
                return line
        return ""

    def extract(self, text: Optional[str], source_url: Optional[str] = None, keyword: Optional[str] = None) -> list[Lead]:
        text = text or ""
        emails = self._emails(text)
        phones = self._phones(text)
        if not emails and not phones:
            return []
        lead = Lead(
            company=self.company_name(text),
            email=emails[0] if emails else "",
            phone=phones[0] if phones else "",
            source_url=source_url,
            keyword=keyword or None,
        )
        logger.debug("Basic extraction on %s: %r", source_url, lead)
        return [lead]
