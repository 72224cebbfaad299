import re
from config.log_config import app_logger
from rich import box
from rich import markup
from rich.table import Table
from rich.console import Console


SCRIPT_PATTERNS = {
    "ar": r'[\u0600-\u06ff\u0750-\u077f\ufb50-\ufdff\ufe70-\ufefc]',  # Arabic
    "fa": r'[\u0600-\u06ff\ufb50-\ufdff]',  # Persian
    "he": r'[\u0590-\u05ff]',  # Hebrew
    "zh": r'[\u4e00-\u9fff]',  # Chinese
    "ja": r'[\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf]',  # Japanese
    "ko": r'[\uac00-\ud7af\u1100-\u11ff]',  # Korean
    "ru": r'[\u0400-\u04ff]',  # Russian
    "th": r'[\u0e00-\u0e7f]',  # Thai
}


def detect_language_characters(text, lang_code):
    """
    Detect if text contains characters of the script used by lang_code.
    Returns None when the language has no distinctive script.
    """
    pattern = SCRIPT_PATTERNS.get(lang_code)
    if pattern is None:
        return None
    return bool(re.search(pattern, text))


def describe_chunk_problem(source_text, translated_text, dst_lang):
    """Return a short reason when a chunk translation looks wrong, else None"""
    if not source_text.strip():
        return None

    if not translated_text.strip():
        return "empty translation"

    if translated_text.strip() == source_text.strip():
        return "identical to source"

    if detect_language_characters(translated_text, dst_lang) is False:
        return f"no {dst_lang} characters"

    return None


def check_translation_results(chunks, translated_chunks, dst_lang=None, console=None):
    """
    Compare each chunk with its translation and report suspicious results.

    Problems are reported, never raised: the service answered successfully,
    so the run goes on. Returns the indices of the problem chunks.
    """
    problems = []
    for index, (chunk, translated) in enumerate(zip(chunks, translated_chunks)):
        reason = describe_chunk_problem(chunk.source_text, translated.text, dst_lang)
        if reason:
            problems.append((index, chunk, translated, reason))

    if not problems:
        app_logger.info(f"All {len(chunks)} chunks translated")
        return []

    app_logger.warning(f"{len(problems)} of {len(chunks)} chunks look untranslated")

    problem_table = Table(
        box=box.ASCII2,
        expand=True,
        title="Suspicious Translations",
        highlight=True,
        show_lines=True,
        border_style="yellow",
        collapse_padding=True,
    )
    problem_table.add_column("Chunk", style="cyan", no_wrap=True)
    problem_table.add_column("Offset", style="cyan", no_wrap=True)
    problem_table.add_column("Original", style="white", overflow="fold")
    problem_table.add_column("Translated", style="yellow", overflow="fold")
    problem_table.add_column("Reason", style="bright_red", no_wrap=True)

    for index, chunk, translated, reason in problems:
        problem_table.add_row(
            str(index),
            str(chunk.offset),
            markup.escape(chunk.source_text),
            markup.escape(translated.text or '""'),
            reason
        )

    (console or Console(highlight=True, tab_size=4)).print(problem_table)
    return [index for index, _, _, _ in problems]
