"""
In-memory shape of a translatable document.

A document is a sequence of paragraphs, each a sequence of runs. A run's
formatting is kept as an opaque serialized blob: it is stored and copied,
never inspected.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True)
class Run:
    text: str
    formatting: Optional[bytes] = None


@dataclass(frozen=True)
class Paragraph:
    runs: Tuple[Run, ...] = ()


@dataclass(frozen=True)
class DocumentStructure:
    paragraphs: Tuple[Paragraph, ...] = ()

    def iter_runs(self) -> Iterator[Run]:
        """Yield every run in document order"""
        for paragraph in self.paragraphs:
            yield from paragraph.runs

    @property
    def run_count(self) -> int:
        return sum(len(paragraph.runs) for paragraph in self.paragraphs)


@dataclass(frozen=True)
class TextSpan:
    """Half-open range [start, end) of one run inside the flattened text"""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Chunk:
    source_text: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.source_text)


@dataclass(frozen=True)
class TranslatedChunk:
    text: str = field(default="")
