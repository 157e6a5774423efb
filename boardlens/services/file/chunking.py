"""Recursive token-aware text splitter for fitting documents into model context."""

from dataclasses import dataclass

from boardlens.exceptions import ConfigurationError
from boardlens.services.file.tokenizer import Tokenizer, estimate_token_count, get_tokenizer

# Chunk size in tokens (optimized for text-embedding-3-large)
DEFAULT_CHUNK_SIZE = 7500
# Overlap budget between consecutive chunks
DEFAULT_CHUNK_OVERLAP = 200
# Coarsest to finest; "" means no further splitting is possible
DEFAULT_SEPARATORS = ("\n\n", "\n", " ", "")

__all__ = [
    "DEFAULT_CHUNK_OVERLAP",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_SEPARATORS",
    "RecursiveTextSplitter",
    "SplitterConfig",
    "estimate_token_count",
    "recursive_text_splitter",
]


@dataclass(frozen=True)
class SplitterConfig:
    """Size, overlap and separator settings for one split call."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP
    separators: tuple[str, ...] = DEFAULT_SEPARATORS

    def __post_init__(self) -> None:
        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be a positive integer, got {self.chunk_size!r}")
        if not isinstance(self.chunk_overlap, int) or self.chunk_overlap < 0:
            raise ConfigurationError(
                f"chunk_overlap must be a non-negative integer, got {self.chunk_overlap!r}"
            )
        if isinstance(self.separators, str):
            raise ConfigurationError("separators must be a sequence of strings, not a string")
        separators = tuple(self.separators)
        if not all(isinstance(s, str) for s in separators):
            raise ConfigurationError("separators must all be strings")
        object.__setattr__(self, "separators", separators)


class RecursiveTextSplitter:
    """
    Split text into token-bounded chunks on the coarsest boundary that works.

    Separators are tried in order. Text is split on the first separator it
    contains and the pieces are packed greedily into chunks of at most
    `chunk_size` tokens. A piece that is too large on its own is split
    again with the finer separators that follow. Consecutive chunks share
    at most the last `chunk_overlap // len(separator)` pieces of the previous
    chunk, trimmed from the front until they fit in `chunk_overlap` tokens.

    Length is always measured on the rejoined buffer, so the separator's
    own tokens count against the budget.
    """

    def __init__(self, config: SplitterConfig | None = None, tokenizer: Tokenizer | None = None):
        self.config = config or SplitterConfig()
        self.tokenizer = tokenizer or get_tokenizer()

    def split(self, text: str) -> list[str]:
        """
        Split text into an ordered list of chunks.

        Never raises for a str input: empty text and text without any of
        the separators come back as a single chunk. A piece that cannot be
        split further is returned whole even if it exceeds the budget.
        Empty or whitespace-only chunks are not filtered out.
        """
        return self._split(text, self.config.separators)

    def _split(self, text: str, separators: tuple[str, ...]) -> list[str]:
        if not separators:
            return [text]

        separator, finer = separators[0], separators[1:]
        if separator == "" or separator not in text:
            return self._split(text, finer)

        chunk_size = self.config.chunk_size
        window = self.config.chunk_overlap // len(separator)

        chunks: list[str] = []
        buffer: list[str] = []

        for segment in text.split(separator):
            candidate = [*buffer, segment]
            if self._measure(candidate, separator) <= chunk_size:
                buffer = candidate
                continue

            overlap: list[str] = []
            if buffer:
                chunks.append(separator.join(buffer))
                if window:
                    overlap = buffer[-window:]

            if self.tokenizer.count_tokens(segment) > chunk_size:
                chunks.extend(self._split(segment, finer))
                buffer = []
            else:
                buffer = self._seed(overlap, segment, separator)

        if buffer:
            chunks.append(separator.join(buffer))

        return chunks

    def _seed(self, overlap: list[str], segment: str, separator: str) -> list[str]:
        """Start a new buffer with as much of the overlap window as still fits."""
        while overlap and self._measure(overlap, separator) > self.config.chunk_overlap:
            overlap = overlap[1:]
        while overlap and self._measure([*overlap, segment], separator) > self.config.chunk_size:
            overlap = overlap[1:]
        return [*overlap, segment]

    def _measure(self, segments: list[str], separator: str) -> int:
        return self.tokenizer.count_tokens(separator.join(segments))


def recursive_text_splitter(
    text: str,
    config: SplitterConfig | None = None,
    tokenizer: Tokenizer | None = None,
) -> list[str]:
    """
    Split text into token-bounded chunks while keeping semantic boundaries.

    Args:
        text: The text to split
        config: Chunk size, overlap and separators (defaults: 7500/200,
            paragraph > line > word > anywhere)
        tokenizer: Token counter; defaults to the text-embedding-3-large encoding

    Returns:
        Ordered list of text chunks
    """
    return RecursiveTextSplitter(config, tokenizer).split(text)
