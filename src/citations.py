"""Citation extraction and bibliography assembly for debate statements.

Statements are scanned for URLs, DOIs and a handful of common reference
shapes ("Author (Year)", quoted titles with a year). The collected citations
are deduplicated and grouped into sources cited by both sides, by the
affirmative only and by the negative only.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from src.models import Phase, Session, Side

logger = logging.getLogger(__name__)


class CitationType(str, Enum):
    URL = "url"
    ACADEMIC = "academic"
    BOOK = "book"
    ARTICLE = "article"


@dataclass(frozen=True)
class Citation:
    text: str
    type: CitationType
    model: str
    side: Side
    phase: Phase
    url: str | None = None
    author: str | None = None
    title: str | None = None
    source: str | None = None
    year: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["side"] = self.side.value
        data["phase"] = self.phase.value
        return data


@dataclass(frozen=True)
class Bibliography:
    shared: tuple[Citation, ...] = ()
    affirmative: tuple[Citation, ...] = ()
    negative: tuple[Citation, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.shared or self.affirmative or self.negative)

    def sections(self) -> list[tuple[str, tuple[Citation, ...]]]:
        """Non-empty (heading, citations) pairs in display order."""
        named = [
            ("Cited by Both Sides", self.shared),
            ("Affirmative Sources", self.affirmative),
            ("Negative Sources", self.negative),
        ]
        return [(heading, cites) for heading, cites in named if cites]


_Q = "\"“”"
_AUTHOR = r"[A-Z][a-z]+(?:\s+et\s+al\.|\s+(?:&|and)\s+[A-Z][a-z]+)?"

_URL_RE = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"[-a-zA-Z0-9()@:%_+.~#?&/=]*",
    re.IGNORECASE,
)
_DOI_RE = re.compile(r"(?:doi|DOI):\s*(10\.\d{4,}/\S+)")
_AUTHOR_TITLE_RE = re.compile(
    rf"({_AUTHOR})\s*\((\d{{4}})\)\.\s*[{_Q}]([^{_Q}]+)[{_Q}](?:\.\s*([^.]+))?"
)
_TITLE_BY_RE = re.compile(
    rf"[{_Q}]([^{_Q}]+)[{_Q}](?:\s+by\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*))?\s*\((\d{{4}})\)"
)
_TITLE_SOURCE_RE = re.compile(rf"[{_Q}]([^{_Q}]+)[{_Q}],\s*([^,]+),\s*(\d{{4}})")
_AUTHOR_YEAR_RE = re.compile(rf"({_AUTHOR})\s*\((\d{{4}})\)(?!\.\s*[{_Q}])")

_TRAILING_PUNCT = ".,;:!?"


def _title_from_url(url: str) -> str:
    parts = urlsplit(url)
    segments = [s for s in parts.path.split("/") if s]
    domain = re.sub(r"^www\.", "", parts.hostname or "")
    if not segments:
        return domain or url
    title = re.sub(r"\.[^.]+$", "", segments[-1])
    title = re.sub(r"[-_]", " ", title)
    title = re.sub(r"\b\w", lambda m: m.group().upper(), title).strip()
    return title or domain or url


def _url_fields(m: re.Match[str]) -> dict[str, Any]:
    url = m.group(0).rstrip(_TRAILING_PUNCT)
    return {"text": url, "url": url, "title": _title_from_url(url)}


def _doi_fields(m: re.Match[str]) -> dict[str, Any]:
    doi = m.group(1).rstrip(_TRAILING_PUNCT)
    return {"url": f"https://doi.org/{doi}"}


def _author_title_fields(m: re.Match[str]) -> dict[str, Any]:
    source = m.group(4).strip() if m.group(4) else None
    return {"author": m.group(1), "year": int(m.group(2)), "title": m.group(3), "source": source or None}


def _title_by_fields(m: re.Match[str]) -> dict[str, Any]:
    return {"title": m.group(1), "author": m.group(2), "year": int(m.group(3))}


def _title_source_fields(m: re.Match[str]) -> dict[str, Any]:
    return {"title": m.group(1), "source": m.group(2).strip(), "year": int(m.group(3))}


def _author_year_fields(m: re.Match[str]) -> dict[str, Any]:
    return {"author": m.group(1), "year": int(m.group(2))}


# Most specific first; a later pattern never claims text an earlier one matched.
_PATTERNS: tuple[tuple[re.Pattern[str], CitationType, Callable[[re.Match[str]], dict[str, Any]]], ...] = (
    (_URL_RE, CitationType.URL, _url_fields),
    (_DOI_RE, CitationType.ACADEMIC, _doi_fields),
    (_AUTHOR_TITLE_RE, CitationType.ACADEMIC, _author_title_fields),
    (_TITLE_BY_RE, CitationType.BOOK, _title_by_fields),
    (_TITLE_SOURCE_RE, CitationType.ARTICLE, _title_source_fields),
    (_AUTHOR_YEAR_RE, CitationType.ACADEMIC, _author_year_fields),
)


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip().strip(_Q).strip()
        return value or None
    return value


def extract_citations(text: str, model: str, side: Side, phase: Phase) -> list[Citation]:
    """Find citations in one statement, in pattern order.

    Overlapping matches and repeated citation texts within the statement are
    skipped.
    """
    found: list[Citation] = []
    seen: set[str] = set()
    spans: list[tuple[int, int]] = []

    for pattern, ctype, fields_of in _PATTERNS:
        for m in pattern.finditer(text):
            start, end = m.span()
            raw = m.group(0).strip()
            if raw in seen or any(start < s_end and end > s_start for s_start, s_end in spans):
                continue
            seen.add(raw)
            spans.append((start, end))

            fields = {k: _clean(v) for k, v in fields_of(m).items()}
            fields.setdefault("text", raw)
            found.append(Citation(type=ctype, model=model, side=side, phase=phase, **fields))

    return found


def _normalize_text(text: str) -> str:
    text = re.sub(r"\s+", " ", text.lower().strip())
    return re.sub(r"[.,;:!?'\"]", "", text)


def _normalize_url(url: str) -> str:
    try:
        parts = urlsplit(url)
        normalized = f"{parts.scheme}://{parts.hostname or ''}{parts.path}"
    except ValueError:
        normalized = url.strip()
    return normalized.lower().removesuffix("/")


def citation_key(citation: Citation) -> str:
    """Identity used for deduplication: URL, author and year, title, else text."""
    parts = []
    if citation.url:
        parts.append(f"url:{_normalize_url(citation.url)}")
    if citation.author and citation.year:
        parts.append(f"author:{_normalize_text(citation.author)}:year:{citation.year}")
    if citation.title:
        parts.append(f"title:{_normalize_text(citation.title)}")
    if parts:
        return "|".join(parts)
    return f"text:{_normalize_text(citation.text)}"


def deduplicate(citations: list[Citation]) -> list[Citation]:
    """Keep the first citation for each key, preserving order."""
    unique: dict[str, Citation] = {}
    for citation in citations:
        unique.setdefault(citation_key(citation), citation)
    return list(unique.values())


def collect_citations(session: Session, include_preparation: bool = True) -> list[Citation]:
    """All citations across the session's rounds, affirmative before negative.

    Duplicates across statements are kept so callers can tell which sides
    cited a source.
    """
    citations: list[Citation] = []
    for rnd in session.rounds:
        if rnd.phase is Phase.PREPARATION and not include_preparation:
            continue
        for stmt in (rnd.affirmative, rnd.negative):
            if stmt is not None:
                citations.extend(extract_citations(stmt.content, stmt.model, stmt.side, rnd.phase))
    logger.debug("Collected %d citations from session %s", len(citations), session.id)
    return citations


def _sort_key(c: Citation) -> tuple:
    # Author A-Z, then newest year, then title, then raw text; missing fields last.
    return (
        c.author is None, (c.author or "").casefold(),
        c.year is None, -(c.year or 0),
        c.title is None, (c.title or "").casefold(),
        c.text.casefold(),
    )


def organize_citations(citations: list[Citation]) -> Bibliography:
    """Group deduplicated citations by which sides cited them."""
    first: dict[str, Citation] = {}
    sides: dict[str, set[Side]] = {}
    for citation in citations:
        key = citation_key(citation)
        first.setdefault(key, citation)
        sides.setdefault(key, set()).add(citation.side)

    shared, affirmative, negative = [], [], []
    for key, citation in first.items():
        cited_by = sides[key]
        if len(cited_by) == 2:
            shared.append(citation)
        elif Side.AFFIRMATIVE in cited_by:
            affirmative.append(citation)
        else:
            negative.append(citation)

    return Bibliography(
        shared=tuple(sorted(shared, key=_sort_key)),
        affirmative=tuple(sorted(affirmative, key=_sort_key)),
        negative=tuple(sorted(negative, key=_sort_key)),
    )


def build_bibliography(session: Session) -> Bibliography:
    """Bibliography of what the reader sees; hidden preparation notes are left out."""
    return organize_citations(
        collect_citations(session, include_preparation=session.config.show_preparation)
    )


def format_citation(citation: Citation) -> str:
    """One-line plain-text rendering of a citation."""
    if citation.type is CitationType.URL and citation.url:
        if citation.title and citation.title != citation.url:
            return f"{citation.title} {citation.url}"
        return citation.url

    parts = []
    if citation.author:
        parts.append(citation.author)
    if citation.year:
        parts.append(f"({citation.year})")
    if citation.title:
        parts.append(f'"{citation.title}"')
    if citation.source:
        parts.append(citation.source)
    if citation.url:
        parts.append(citation.url)
    return " ".join(parts) if parts else citation.text
