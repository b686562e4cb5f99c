"""
Program-name -> MDC program page resolution.

Pathway steps name programs in free text ("Associate in Arts in Engineering -
Mechanical or Civil"). The resolver picks one program out of that text and
returns a link: a known-correct URL from the program tables when a subject
matches, otherwise a slug guessed from the subject.

Pure: no network access, tables are passed in at construction.
"""

import re
from types import MappingProxyType

DEFAULT_BASE_URL = "https://www.mdc.edu/"

# Checked in this order; the first tier with a match wins.
TIER_ORDER = ("bachelor", "associate_arts", "associate_science")

_OPTION_SEPARATORS = (
    re.compile(r"\s+or\s+", re.IGNORECASE),
    re.compile(r"\s+and\s+", re.IGNORECASE),
    re.compile(r",\s+"),
)

_CREDENTIAL_PREFIXES = (
    "Associate in Arts in",
    "Associate in Science in",
    "Associate in",
    "Bachelor of Science in",
    "Bachelor of Arts in",
    "Bachelor of Applied Sciences in",
    "Bachelor of Applied Science in",
    "Bachelor of",
    "Certificate in",
    "Certificate",
    "A.A. in",
    "A.S. in",
    "B.A.S. in",
    "B.S. in",
    "B.A. in",
)
_CREDENTIAL_PREFIX_RES = tuple(
    re.compile(r"^" + r"\s+".join(re.escape(w) for w in prefix.split()) + r"\s+", re.IGNORECASE)
    for prefix in _CREDENTIAL_PREFIXES
)

_ENGINEERING_DASH_RE = re.compile(r"engineering\s*-\s*(.+)$", re.IGNORECASE)
_AA_PREFIX_RE = re.compile(r"^associate in arts in\s*")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_SLUG_DROP_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s-]+")


def normalize_subject(text: str) -> str:
    """Lower-case, collapse every non-alphanumeric run to one space."""
    return _NON_ALNUM_RE.sub(" ", str(text or "").lower()).strip()


def first_program_option(name: str) -> str:
    """
    'Biology or Chemistry' -> 'Biology'.
    Separators are tried in order (' or ', ' and ', ', '); the first one present splits.
    """
    name = str(name or "")
    for separator in _OPTION_SEPARATORS:
        parts = separator.split(name)
        if len(parts) > 1:
            return parts[0].strip()
    return name.strip()


def strip_credential_prefix(name: str) -> str:
    """'Associate in Arts in Biology' -> 'Biology'."""
    name = str(name or "").strip()
    for prefix_re in _CREDENTIAL_PREFIX_RES:
        stripped, count = prefix_re.subn("", name, count=1)
        if count:
            return stripped.strip()
    return name


def rewrite_engineering_subject(subject: str) -> str:
    """'Engineering - Mechanical or Civil' -> 'Mechanical Engineering'."""
    match = _ENGINEERING_DASH_RE.search(subject)
    if not match:
        return subject
    specialization = first_program_option(match.group(1))
    if not specialization:
        return subject
    return f"{specialization} Engineering"


def slugify(subject: str) -> str:
    lowered = _SLUG_DROP_RE.sub("", str(subject or "").lower())
    return _SLUG_SPACE_RE.sub("", lowered)


class ProgramUrlResolver:
    def __init__(self, url_tables: dict, bachelors_programs=(), base_url: str = DEFAULT_BASE_URL):
        tables = {}
        for tier in TIER_ORDER:
            raw = url_tables.get(tier) or {}
            tables[tier] = MappingProxyType(
                {normalize_subject(k): str(v).strip() for k, v in raw.items() if normalize_subject(k)}
            )
        self._tables = MappingProxyType(tables)
        self._bachelors = tuple(
            p for p in (normalize_subject(name) for name in bachelors_programs) if p
        )
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    @classmethod
    def from_catalog(cls, catalog: dict, base_url: str = DEFAULT_BASE_URL) -> "ProgramUrlResolver":
        return cls(
            catalog.get("url_tables", {}),
            catalog.get("bachelors_programs", ()),
            base_url=base_url,
        )

    @property
    def programs_index_url(self) -> str:
        return f"{self.base_url}academics/programs/"

    @property
    def transfer_agreements_url(self) -> str:
        return f"{self.base_url}transfer-information/transfer-agreements/"

    def _url(self, slug: str) -> str:
        return f"{self.base_url}{slug}/"

    def _exact_match(self, subject: str) -> str | None:
        key = normalize_subject(subject)
        for tier in TIER_ORDER:
            slug = self._tables[tier].get(key)
            if slug:
                return slug
        return None

    def match_subject(self, subject: str) -> str | None:
        """Table slug for the subject, or None. Longest key wins inside a tier."""
        padded = f" {normalize_subject(subject)} "
        if not padded.strip():
            return None
        for tier in TIER_ORDER:
            best_key = None
            for key in self._tables[tier]:
                if f" {key} " in padded and (best_key is None or len(key) > len(best_key)):
                    best_key = key
            if best_key is not None:
                return self._tables[tier][best_key]
        return None

    def resolve(self, program_name: str) -> str:
        """Always returns a URL; never raises."""
        if not isinstance(program_name, str) or not program_name.strip():
            return self.programs_index_url

        # Catalog titles that contain "and" or commas must not be split.
        whole_subject = rewrite_engineering_subject(strip_credential_prefix(program_name))
        slug = self._exact_match(whole_subject)
        if slug:
            return self._url(slug)

        subject = strip_credential_prefix(first_program_option(program_name))
        subject = rewrite_engineering_subject(subject)
        slug = self.match_subject(subject)
        if slug:
            return self._url(slug)

        slug = slugify(subject)
        if not slug:
            return self.programs_index_url
        return self._url(slug)

    def is_mdc_bachelors_program(self, program_name: str) -> bool:
        normalized = normalize_subject(program_name)
        return any(program in normalized for program in self._bachelors)

    @staticmethod
    def is_associate_in_arts_program(program_name: str) -> bool:
        """'Associate in Arts in <Subject>', or '... in Engineering - <Specialization>'."""
        normalized = str(program_name or "").lower().strip()
        if not normalized.startswith("associate in arts in"):
            return False
        subject = _AA_PREFIX_RE.sub("", normalized).strip()
        if not subject:
            return False
        if "engineering -" in subject:
            return bool(subject.split("engineering -", 1)[1].strip())
        return True

    def link_for_step(self, step: dict) -> str | None:
        """
        Outbound link shown next to a pathway step.

        transfer -> transfer agreements page
        degree   -> program page, only for MDC associate/certificate programs
                    and listed MDC bachelor's programs
        other    -> None
        """
        if not isinstance(step, dict):
            return None
        step_type = step.get("type")
        if step_type == "transfer":
            return self.transfer_agreements_url
        if step_type != "degree":
            return None

        name = str(step.get("name") or "")
        level = str(step.get("level") or "")
        lowered = name.lower()
        is_bachelor = "bachelor" in lowered

        mdc_associate = (
            "MDC" in level.upper()
            and not is_bachelor
            and ("associate in science" in lowered or self.is_associate_in_arts_program(name))
        )
        if mdc_associate or "certificate" in lowered or (is_bachelor and self.is_mdc_bachelors_program(name)):
            return self.resolve(name)
        return None
