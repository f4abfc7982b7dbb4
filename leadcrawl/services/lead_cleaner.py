import logging
import re
from dataclasses import replace
from typing import NamedTuple, Optional

from leadcrawl.domain.lead import LISTING_FIELDS, Lead

logger = logging.getLogger(__name__)

HONORIFICS = ("Dr.", "Dr", "Mr.", "Mr", "Mrs.", "Mrs", "Ms.", "Ms", "Prof.", "Professor", "Sir", "Madam")
CORPORATE_SUFFIXES = ("L.L.C.", "LLC", "Inc", "Corporation", "Corp", "Ltd", "Limited", "Co", "PLC", "LLP", "GmbH")
INVALID_EMAIL_PREFIXES = ("test@", "example@", "admin@", "info@", "noreply@", "no-reply@", "donotreply@")
MIN_PHONE_DIGITS = 7

MISSING_NAME = "Missing name"
MISSING_CONTACT = "Missing contact information (email or phone)"

_HONORIFIC_RE = re.compile(
    r"^(?:" + "|".join(re.escape(h) for h in sorted(HONORIFICS, key=len, reverse=True)) + r")\s+",
    re.IGNORECASE,
)
_POST_NOMINAL_RE = re.compile(r",?\s+(?:Esq\.?|Esquire)$", re.IGNORECASE)
_SUFFIX_RE = re.compile(
    r"(?<![\w.])(?:" + "|".join(re.escape(s) for s in CORPORATE_SUFFIXES) + r")\.?(?![\w-])",
    re.IGNORECASE,
)
_EMAIL_SHAPE_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WORD_START_RE = re.compile(r"\b\w")


def _collapse(value: str) -> str:
    return " ".join(value.split())


def clean_name(name: Optional[str]) -> str:
    if not name:
        return ""
    cleaned = name.strip()
    while True:
        stripped = _HONORIFIC_RE.sub("", cleaned, count=1)
        if stripped == cleaned:
            break
        cleaned = stripped
    cleaned = _POST_NOMINAL_RE.sub("", _collapse(cleaned))
    return _WORD_START_RE.sub(lambda m: m.group().upper(), cleaned)


def clean_company(company: Optional[str]) -> str:
    if not company:
        return ""
    cleaned = _collapse(_SUFFIX_RE.sub("", company))
    cleaned = re.sub(r"\s+,", ",", cleaned)
    return cleaned.strip(" ,;&-")


def clean_email(email: Optional[str]) -> str:
    if not email:
        return ""
    cleaned = email.strip().lower()
    if cleaned.startswith("mailto:"):
        cleaned = cleaned[len("mailto:"):]
    cleaned = re.sub(r"[^\w@.-]", "", cleaned)
    if not _EMAIL_SHAPE_RE.match(cleaned):
        return ""
    if cleaned.startswith(INVALID_EMAIL_PREFIXES):
        return ""
    return cleaned


def clean_phone(phone: Optional[str]) -> str:
    if not phone:
        return ""
    digits = re.sub(r"\D", "", phone)
    if len(digits) < MIN_PHONE_DIGITS:
        return ""
    return ("+" if phone.strip().startswith("+") else "") + digits


class ValidationResult(NamedTuple):
    valid: bool
    reasons: list[str]


class LeadCleaner:
    """Field cleanup, identity key and validation rules for leads."""

    def clean(self, lead: Lead) -> Lead:
        listing = {}
        for name in LISTING_FIELDS:
            value = getattr(lead, name)
            if value is not None:
                listing[name] = value.strip()
        return replace(
            lead,
            name=clean_name(lead.name),
            title=(lead.title or "").strip(),
            company=clean_company(lead.company),
            email=clean_email(lead.email),
            phone=clean_phone(lead.phone),
            **listing,
        )

    def identity_key(self, lead: Lead) -> tuple[str, str]:
        return (_collapse(lead.name or "").lower(), lead.email or "")

    def validate(self, lead: Lead) -> ValidationResult:
        reasons = []
        if not lead.name:
            reasons.append(MISSING_NAME)
        if not lead.email and not lead.phone:
            reasons.append(MISSING_CONTACT)
        return ValidationResult(not reasons, reasons)
