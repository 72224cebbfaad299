from pipeline.word_translation_pipeline import extract_word_structure, write_word_document
from textProcessing.base_translator import DocumentTranslator


class WordTranslator(DocumentTranslator):
    """Translator for .docx documents: body paragraphs and their runs."""

    def extract_structure(self, data):
        return extract_word_structure(data)

    def write_translated_document(self, structure):
        return write_word_document(structure)
