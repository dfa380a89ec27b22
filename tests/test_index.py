"""Tests for index construction and the index holder."""

import logging
import threading

import pytest

from libraryqa.errors import CorpusUnavailable
from libraryqa.models.book import Book, Section
from libraryqa.retrieval.index import Index, IndexHolder, build_index

from conftest import CARBON_PARAGRAPH, make_book


class TestBuildIndex:
    def test_counts_every_paragraph(self, library: list[Book]) -> None:
        index = build_index(library)
        assert index.total_paragraphs == 8
        assert index.book_ids == ("climate-atlas", "garden-almanac")

    def test_postings_record_frequency(self) -> None:
        book = make_book("b1", "Permits", {"One": ["permits permits trade", "permits"]})
        index = build_index([book])
        postings = index.postings("permits")
        assert [(p.paragraph_id, p.frequency) for p in postings] == [(0, 2), (1, 1)]
        assert index.document_frequency("permits") == 2
        assert index.document_frequency("trade") == 1

    def test_unknown_term_has_no_postings(self, library_index: Index) -> None:
        assert library_index.postings("opera") == ()
        assert library_index.document_frequency("opera") == 0

    def test_stop_words_not_indexed(self, library_index: Index) -> None:
        assert library_index.postings("the") == ()

    def test_paragraph_length_excludes_stop_words(self, climate_atlas: Book) -> None:
        index = build_index([climate_atlas])
        paragraph = index.paragraph(0)
        assert paragraph.text == CARBON_PARAGRAPH
        assert paragraph.length == 6
        assert paragraph.section_heading == "Carbon Markets"
        assert paragraph.book_title == "Climate Atlas"

    def test_references_follow_document_order(self, library_index: Index) -> None:
        keys = [p.ref.sort_key for p in library_index.paragraphs]
        assert keys == sorted(keys)
        last = library_index.paragraphs[-1].ref
        assert (last.book_id, last.book_order, last.section_index, last.paragraph_index) == (
            "garden-almanac",
            1,
            1,
            0,
        )

    def test_empty_catalog_is_fatal(self) -> None:
        with pytest.raises(CorpusUnavailable):
            build_index([])

    def test_section_without_paragraphs_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        book = make_book("b1", "Partial", {"Empty": [], "Full": ["Tradable permits"]})
        with caplog.at_level(logging.WARNING):
            index = build_index([book])
        assert index.total_paragraphs == 1
        assert index.paragraph(0).ref.section_index == 1
        assert index.skipped == 1
        assert "no paragraphs" in caplog.text

    def test_blank_paragraph_is_skipped_keeping_positions(self) -> None:
        book = make_book("b1", "Gaps", {"One": ["first permit", "   ", "third permit"]})
        index = build_index([book])
        assert [p.ref.paragraph_index for p in index.paragraphs] == [0, 2]

    def test_book_without_text_does_not_abort_build(self, climate_atlas: Book) -> None:
        empty = Book(id="empty", title="Empty", sections=(Section(heading="Nothing"),))
        index = build_index([empty, climate_atlas])
        assert index.total_paragraphs == 1
        assert index.has_book("climate-atlas")
        assert index.paragraph(0).ref.book_order == 1

    def test_section_paragraph_ids(self, library_index: Index) -> None:
        assert library_index.section_paragraph_ids(2) == [0, 1, 2, 3]
        assert library_index.section_paragraph_ids(4) == [4]
        assert library_index.section_paragraph_ids(6) == [5, 6]


class TestIndexHolder:
    def test_builds_lazily_once(self, library: list[Book]) -> None:
        calls = []

        def loader() -> list[Book]:
            calls.append(1)
            return library

        holder = IndexHolder(loader)
        assert not holder.is_built
        first = holder.get()
        second = holder.get()
        assert first is second
        assert len(calls) == 1

    def test_reload_swaps_to_new_index(self, library: list[Book], climate_atlas: Book) -> None:
        holder = IndexHolder(lambda: library)
        old = holder.get()
        new = holder.reload([climate_atlas])
        assert holder.get() is new
        assert new is not old
        assert old.total_paragraphs == 8
        assert new.total_paragraphs == 1

    def test_failed_reload_keeps_current_index(self, library: list[Book]) -> None:
        holder = IndexHolder(lambda: library)
        current = holder.get()
        with pytest.raises(CorpusUnavailable):
            holder.reload([])
        assert holder.get() is current

    def test_concurrent_first_access_builds_once(self, library: list[Book]) -> None:
        calls = []

        def loader() -> list[Book]:
            calls.append(1)
            return library

        holder = IndexHolder(loader)
        results = []
        threads = [threading.Thread(target=lambda: results.append(holder.get())) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(result is results[0] for result in results)
