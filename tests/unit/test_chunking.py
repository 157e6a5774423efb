"""Tests for the recursive text splitter."""

import pytest

from boardlens.exceptions import ConfigurationError
from boardlens.services.file.chunking import (
    DEFAULT_SEPARATORS,
    RecursiveTextSplitter,
    SplitterConfig,
    recursive_text_splitter,
)


def words(start: int, end: int) -> list[str]:
    return [f"w{i}" for i in range(start, end)]


class CharTokenizer:
    def count_tokens(self, text: str) -> int:
        return len(text)


class TestSplitterConfig:
    """Tests for SplitterConfig validation."""

    def test_defaults(self):
        config = SplitterConfig()
        assert config.chunk_size == 7500
        assert config.chunk_overlap == 200
        assert config.separators == DEFAULT_SEPARATORS

    @pytest.mark.parametrize("chunk_size", [0, -1, 2.5])
    def test_invalid_chunk_size(self, chunk_size):
        """Invalid sizes fail at construction, not mid-recursion."""
        with pytest.raises(ConfigurationError):
            SplitterConfig(chunk_size=chunk_size)

    def test_negative_overlap(self):
        with pytest.raises(ConfigurationError):
            SplitterConfig(chunk_overlap=-5)

    def test_separators_string_rejected(self):
        """A bare string is a common mistake for a one-item list."""
        with pytest.raises(ConfigurationError):
            SplitterConfig(separators="\n")

    def test_separators_list_becomes_tuple(self):
        config = SplitterConfig(separators=["\n", " "])
        assert config.separators == ("\n", " ")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SplitterConfig(chunk_size=-10)


class TestRecursiveTextSplitter:
    """Tests for recursive splitting behavior."""

    def test_short_text_single_chunk(self, word_tokenizer):
        chunks = recursive_text_splitter("one two three", SplitterConfig(chunk_size=10), word_tokenizer)
        assert chunks == ["one two three"]

    def test_empty_text(self, word_tokenizer):
        """Empty input comes back as a single empty chunk."""
        assert recursive_text_splitter("", SplitterConfig(chunk_size=10), word_tokenizer) == [""]

    def test_no_separator_present(self, word_tokenizer):
        """Text without any separator is returned whole."""
        config = SplitterConfig(chunk_size=1, separators=("\n\n", "\n"))
        assert recursive_text_splitter("alpha beta gamma", config, word_tokenizer) == ["alpha beta gamma"]

    def test_prefers_paragraph_boundaries(self, word_tokenizer):
        text = "a b c\n\nd e f\n\ng h i"
        config = SplitterConfig(chunk_size=6, chunk_overlap=0)
        chunks = recursive_text_splitter(text, config, word_tokenizer)
        assert chunks == ["a b c\n\nd e f", "g h i"]

    def test_chunks_respect_budget(self, word_tokenizer):
        text = " ".join(words(0, 500))
        config = SplitterConfig(chunk_size=40, chunk_overlap=5, separators=(" ",))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert len(chunks) > 1
        assert all(word_tokenizer.count_tokens(c) <= 40 for c in chunks)

    def test_overlap_between_consecutive_chunks(self, word_tokenizer):
        """Each chunk starts with the last `overlap` words of the previous one."""
        text = " ".join(words(0, 100))
        config = SplitterConfig(chunk_size=10, chunk_overlap=3, separators=(" ",))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert chunks[0] == " ".join(words(0, 10))
        assert chunks[1] == " ".join(words(7, 17))
        for previous, current in zip(chunks, chunks[1:]):
            assert current.split()[:3] == previous.split()[-3:]

    def test_no_information_loss_single_separator(self, word_tokenizer):
        """Dropping the overlap prefix of each chunk reconstructs the text."""
        text = " ".join(words(0, 103))
        config = SplitterConfig(chunk_size=10, chunk_overlap=3, separators=(" ",))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        rebuilt = chunks[0].split()
        for chunk in chunks[1:]:
            rebuilt.extend(chunk.split()[3:])
        assert " ".join(rebuilt) == text

    def test_zero_overlap_disables_seeding(self, word_tokenizer):
        text = " ".join(words(0, 30))
        config = SplitterConfig(chunk_size=10, chunk_overlap=0, separators=(" ",))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert chunks == [" ".join(words(0, 10)), " ".join(words(10, 20)), " ".join(words(20, 30))]
        assert " ".join(chunks) == text

    def test_overlap_window_scales_with_separator_length(self, word_tokenizer):
        """With a two-character separator the window is overlap // 2 segments."""
        text = "\n\n".join(words(0, 20))
        config = SplitterConfig(chunk_size=5, chunk_overlap=4, separators=("\n\n",))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert chunks[1].split("\n\n")[:2] == chunks[0].split("\n\n")[-2:]

    def test_overlap_capped_at_overlap_budget(self, word_tokenizer):
        """Paragraph overlap carries at most `chunk_overlap` tokens, so chunks keep advancing."""
        paragraphs = [" ".join(f"p{n}w{i}" for i in range(100)) for n in range(200)]
        text = "\n\n".join(paragraphs)
        chunks = recursive_text_splitter(text, SplitterConfig(), word_tokenizer)

        assert len(chunks) == 3
        assert all(word_tokenizer.count_tokens(c) <= 7500 for c in chunks)
        assert sum(word_tokenizer.count_tokens(c) for c in chunks) <= 20000 + 2 * 200
        for previous, current in zip(chunks, chunks[1:]):
            assert current.split("\n\n")[:2] == previous.split("\n\n")[-2:]
        assert chunks[-1].endswith(paragraphs[-1])

    def test_overlap_larger_than_chunk_stays_within_budget(self, word_tokenizer):
        text = " ".join(words(0, 50))
        config = SplitterConfig(chunk_size=5, chunk_overlap=10, separators=(" ",))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert all(word_tokenizer.count_tokens(c) <= 5 for c in chunks)
        assert chunks[-1].split()[-1] == "w49"

    def test_oversized_segment_resplit_with_finer_separator(self, word_tokenizer):
        paragraph = " ".join(words(0, 12))
        text = f"intro\n\n{paragraph}\n\noutro"
        config = SplitterConfig(chunk_size=5, chunk_overlap=0)
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert chunks[0] == "intro"
        assert chunks[-1] == "outro"
        assert " ".join(chunks[1:-1]) == paragraph
        assert all(word_tokenizer.count_tokens(c) <= 5 for c in chunks)

    def test_unsplittable_segment_emitted_whole(self):
        """At the finest separator an oversized piece exceeds the budget rather than failing."""
        config = SplitterConfig(chunk_size=4, chunk_overlap=0, separators=(" ", ""))
        chunks = recursive_text_splitter("ab abcdefgh cd", config, CharTokenizer())

        assert chunks == ["ab", "abcdefgh", "cd"]

    def test_order_preserved_after_resplit(self, word_tokenizer):
        """After an oversized piece the next chunk does not repeat stale overlap."""
        big = " ".join(words(10, 25))
        text = f"{' '.join(words(0, 3))}\n{big}\n{' '.join(words(25, 28))}"
        config = SplitterConfig(chunk_size=5, chunk_overlap=1, separators=("\n", " "))
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        flattened = [w for c in chunks for w in c.split()]
        positions = [int(w[1:]) for w in flattened]
        assert positions == sorted(positions)

    def test_whitespace_chunks_not_filtered(self):
        config = SplitterConfig(chunk_size=1, chunk_overlap=0, separators=("\n\n",))
        chunks = recursive_text_splitter("a\n\n \n\nb", config, CharTokenizer())
        assert chunks == ["a", " ", "b"]

    def test_default_tokenizer_not_loaded_when_given(self, word_tokenizer):
        splitter = RecursiveTextSplitter(SplitterConfig(chunk_size=3), word_tokenizer)
        assert splitter.tokenizer is word_tokenizer


class TestLargeDocumentScenario:
    """A 20,000-token text with lines but no blank lines."""

    def test_produces_bounded_overlapping_chunks(self, word_tokenizer):
        lines = [" ".join(f"l{n}w{i}" for i in range(10)) for n in range(2000)]
        text = "\n".join(lines)
        assert word_tokenizer.count_tokens(text) == 20000

        config = SplitterConfig(chunk_size=7500, chunk_overlap=200)
        chunks = recursive_text_splitter(text, config, word_tokenizer)

        assert len(chunks) >= 3
        assert all(word_tokenizer.count_tokens(c) <= 7500 for c in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert current.split("\n")[0] in previous.split("\n")
        assert chunks[0].startswith(lines[0])
        assert chunks[-1].endswith(lines[-1])
