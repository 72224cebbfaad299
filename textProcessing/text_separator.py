# /textProcessing/text_separator.py
from typing import List, Sequence

from config.log_config import app_logger
from .document_structure import Chunk, DocumentStructure, Paragraph, Run, TextSpan, TranslatedChunk

RUN_SEPARATOR = " "
CHUNK_SEPARATOR = " "
DEFAULT_MAX_CHUNK_LENGTH = 500


def flatten_structure(structure: DocumentStructure) -> str:
    """Join all run texts in document order, one space between every two runs"""
    return RUN_SEPARATOR.join(run.text for run in structure.iter_runs())


def compute_run_spans(structure: DocumentStructure) -> List[TextSpan]:
    """Locate each run inside the flattened text"""
    spans = []
    cursor = 0
    for index, run in enumerate(structure.iter_runs()):
        if index > 0:
            cursor += len(RUN_SEPARATOR)
        spans.append(TextSpan(cursor, cursor + len(run.text)))
        cursor += len(run.text)
    return spans


def split_by_spans(text: str, spans: Sequence[TextSpan]) -> List[str]:
    """Cut the flattened text back into per-run texts"""
    return [text[span.start:span.end] for span in spans]


def split_text_by_char_limit(text: str, max_length: int = DEFAULT_MAX_CHUNK_LENGTH) -> List[Chunk]:
    """
    Split text into consecutive chunks of at most max_length characters.

    Cuts are made purely by character count, so a word may be split across
    two chunks. Only the last chunk can be shorter than max_length.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be at least 1, got {max_length}")

    chunks = [Chunk(text[offset:offset + max_length], offset) for offset in range(0, len(text), max_length)]
    app_logger.debug(f"Split {len(text)} characters into {len(chunks)} chunks (limit {max_length})")
    return chunks


def join_translated_chunks(translated_chunks: Sequence[TranslatedChunk]) -> str:
    """Join chunk translations in chunk order"""
    return CHUNK_SEPARATOR.join(chunk.text for chunk in translated_chunks)


def restore_translated_structure(structure: DocumentStructure, translated_text: str,
                                 max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH) -> DocumentStructure:
    """
    Lay the translated text over the original paragraph/run skeleton.

    Every run receives the next slice of the translated text, sized
    min(max_chunk_length, remaining), and keeps its original formatting.
    Slice sizes do not follow the original run lengths, so translated run
    boundaries will usually not line up with the source ones. Once the text
    is used up, the remaining runs get empty text.
    """
    if max_chunk_length < 1:
        raise ValueError(f"max_chunk_length must be at least 1, got {max_chunk_length}")

    cursor = 0
    total_length = len(translated_text)
    paragraphs = []

    for paragraph in structure.paragraphs:
        runs = []
        for run in paragraph.runs:
            slice_length = min(max_chunk_length, total_length - cursor)
            runs.append(Run(translated_text[cursor:cursor + slice_length], run.formatting))
            cursor += slice_length
        paragraphs.append(Paragraph(tuple(runs)))

    if cursor < total_length:
        app_logger.warning(
            f"{total_length - cursor} translated characters did not fit into "
            f"{structure.run_count} runs and were dropped"
        )

    return DocumentStructure(tuple(paragraphs))
