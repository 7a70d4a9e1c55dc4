"""Tests for src/citations.py."""

import pytest

from src.citations import (
    Citation,
    CitationType,
    build_bibliography,
    citation_key,
    collect_citations,
    deduplicate,
    extract_citations,
    format_citation,
    organize_citations,
)
from src.models import Phase, Side


def _extract(text: str, side: Side = Side.AFFIRMATIVE) -> list[Citation]:
    return extract_citations(text, "agent_a", side, Phase.OPENING)


def _url(url: str, side: Side = Side.AFFIRMATIVE) -> Citation:
    return Citation(text=url, type=CitationType.URL, model="m", side=side, phase=Phase.OPENING, url=url)


def test_url_trailing_punctuation_stripped():
    [cite] = _extract("Data at https://www.example.org/reports/remote_work-2023.pdf.")
    assert cite.type is CitationType.URL
    assert cite.url == "https://www.example.org/reports/remote_work-2023.pdf"
    assert cite.title == "Remote Work 2023"
    assert cite.model == "agent_a"
    assert cite.side is Side.AFFIRMATIVE
    assert cite.phase is Phase.OPENING


def test_url_without_path_titled_by_domain():
    [cite] = _extract("See https://www.example.com for more.")
    assert cite.title == "example.com"


def test_doi_becomes_resolver_url():
    [cite] = _extract("Output rose, see doi: 10.1000/xyz123.")
    assert cite.type is CitationType.ACADEMIC
    assert cite.url == "https://doi.org/10.1000/xyz123"
    assert cite.text == "doi: 10.1000/xyz123."


def test_author_year_title_source():
    [cite] = _extract('Bloom (2015). "Does Working from Home Work". Quarterly Journal of Economics.')
    assert cite.type is CitationType.ACADEMIC
    assert cite.author == "Bloom"
    assert cite.year == 2015
    assert cite.title == "Does Working from Home Work"
    assert cite.source == "Quarterly Journal of Economics"


def test_article_title_source_year():
    [cite] = _extract('“Hybrid Is Here”, Harvard Business Review, 2021 says so.')
    assert cite.type is CitationType.ARTICLE
    assert cite.title == "Hybrid Is Here"
    assert cite.source == "Harvard Business Review"
    assert cite.year == 2021


def test_book_match_suppresses_overlapping_author_year():
    cites = _extract('"Remote" by Jason Fried (2013) is persuasive.')
    assert len(cites) == 1
    assert cites[0].type is CitationType.BOOK
    assert cites[0].author == "Jason Fried"
    assert cites[0].year == 2013


def test_et_al_author_year():
    [cite] = _extract("Smith et al. (2020) found gains.")
    assert cite.author == "Smith et al."
    assert cite.year == 2020
    assert cite.title is None


def test_repeated_citation_in_one_statement_kept_once():
    cites = _extract("Jones (2019) argued it, and Jones (2019) repeated it.")
    assert len(cites) == 1


def test_plain_text_has_no_citations():
    assert _extract("Offices foster spontaneous collaboration.") == []


@pytest.mark.parametrize(
    "a,b",
    [
        ("https://Example.com/Study/", "https://example.com/study"),
        ("https://example.com/study?utm=1", "https://example.com/study#top"),
    ],
)
def test_citation_key_normalizes_urls(a, b):
    assert citation_key(_url(a)) == citation_key(_url(b))


def test_citation_key_author_year_ignores_case_and_punctuation():
    a = Citation("Smith (2020)", CitationType.ACADEMIC, "m", Side.AFFIRMATIVE, Phase.OPENING,
                 author="Smith", year=2020)
    b = Citation("SMITH. (2020)", CitationType.ACADEMIC, "m", Side.NEGATIVE, Phase.CLOSING,
                 author="SMITH.", year=2020)
    assert citation_key(a) == citation_key(b)


def test_deduplicate_keeps_first():
    first = _url("https://example.com/a/")
    cites = [first, _url("https://example.com/a", Side.NEGATIVE), _url("https://example.com/b")]
    assert deduplicate(cites) == [first, cites[2]]


def test_organize_splits_by_side_and_sorts():
    cites = [
        _url("https://example.com/shared"),
        _url("https://example.com/shared", Side.NEGATIVE),
        Citation("Young (2018)", CitationType.ACADEMIC, "m", Side.AFFIRMATIVE, Phase.OPENING,
                 author="Young", year=2018),
        Citation("Adams (2015)", CitationType.ACADEMIC, "m", Side.AFFIRMATIVE, Phase.OPENING,
                 author="Adams", year=2015),
        _url("https://example.com/aff-only"),
        _url("https://example.com/neg-only", Side.NEGATIVE),
    ]
    bib = organize_citations(cites)

    assert [c.url for c in bib.shared] == ["https://example.com/shared"]
    assert [c.author for c in bib.affirmative] == ["Adams", "Young", None]
    assert [c.url for c in bib.negative] == ["https://example.com/neg-only"]
    assert [heading for heading, _ in bib.sections()] == [
        "Cited by Both Sides", "Affirmative Sources", "Negative Sources",
    ]


def test_newer_year_sorts_first_for_same_author():
    older = Citation("Lee (2010)", CitationType.ACADEMIC, "m", Side.NEGATIVE, Phase.OPENING, author="Lee", year=2010)
    newer = Citation("Lee (2022)", CitationType.ACADEMIC, "m", Side.NEGATIVE, Phase.OPENING, author="Lee", year=2022)
    assert organize_citations([older, newer]).negative == (newer, older)


def test_empty_bibliography_is_falsy():
    bib = organize_citations([])
    assert not bib
    assert bib.sections() == []


def test_format_citation_variants():
    [url] = _extract("https://example.com/remote-work-study")
    assert format_citation(url) == "Remote Work Study https://example.com/remote-work-study"
    [book] = _extract('"The Office Paradox" by Jane Doe (2019)')
    assert format_citation(book) == 'Jane Doe (2019) "The Office Paradox"'
    [article] = _extract('"Hybrid Is Here", Harvard Business Review, 2021')
    assert format_citation(article) == '(2021) "Hybrid Is Here" Harvard Business Review'


async def test_collect_citations_walks_rounds(cited_session):
    session = await cited_session()
    cites = collect_citations(session)

    assert [(c.side, c.phase) for c in cites] == [
        (Side.AFFIRMATIVE, Phase.PREPARATION),
        (Side.AFFIRMATIVE, Phase.OPENING),
        (Side.AFFIRMATIVE, Phase.OPENING),
        (Side.NEGATIVE, Phase.OPENING),
        (Side.NEGATIVE, Phase.OPENING),
    ]
    assert len(collect_citations(session, include_preparation=False)) == 4


async def test_build_bibliography_shared_source(cited_session):
    bib = build_bibliography(await cited_session())

    assert [c.url for c in bib.shared] == ["https://example.com/remote-work-study/"]
    assert [c.author for c in bib.affirmative] == ["Smith et al.", None]
    assert bib.affirmative[1].url == "https://prep.example.org/notes"
    assert [c.title for c in bib.negative] == ["The Office Paradox"]


async def test_build_bibliography_skips_hidden_preparation(cited_session):
    bib = build_bibliography(await cited_session(show_preparation=False))
    assert [c.author for c in bib.affirmative] == ["Smith et al."]
