"""Shared fixtures: small in-memory catalogs."""

import pytest

from libraryqa.models.book import Book, Section
from libraryqa.retrieval.index import Index, build_index

CARBON_PARAGRAPH = "Carbon markets price emissions through tradable permits."


def make_book(book_id: str, title: str, sections: dict[str, list[str]], **extra: object) -> Book:
    return Book(
        id=book_id,
        title=title,
        sections=tuple(Section(heading=h, paragraphs=tuple(p)) for h, p in sections.items()),
        **extra,
    )


@pytest.fixture
def climate_atlas() -> Book:
    return make_book("climate-atlas", "Climate Atlas", {"Carbon Markets": [CARBON_PARAGRAPH]})


@pytest.fixture
def library() -> list[Book]:
    return [
        make_book(
            "climate-atlas",
            "Climate Atlas",
            {
                "Carbon Markets": [
                    CARBON_PARAGRAPH,
                    "A cap limits the total permits issued, so scarcity sets the carbon price.",
                    "Offsets fund reductions elsewhere.",
                    "Permits can be banked for later years.",
                ],
                "Adaptation": [
                    "Coastal cities adapt to rising seas with barriers and wetlands.",
                ],
            },
            tags=("climate", "economics"),
        ),
        make_book(
            "garden-almanac",
            "The Garden Almanac",
            {
                "Soil": [
                    "Compost feeds the worms and microbes in healthy soil.",
                    "Test the soil pH every spring.",
                ],
                "Seasons": [
                    "Sow peas and lettuce in early spring.",
                ],
            },
            tags=("gardening", "nature"),
        ),
    ]


@pytest.fixture
def library_index(library: list[Book]) -> Index:
    return build_index(library)
