"""
End-to-end tests for the Word translation pipeline with a mocked service.
"""

import os
import random
import tempfile
import threading
import time
import unittest
from unittest.mock import MagicMock

from docx_factory import BOLD_RED, ITALIC, build_docx
from config.system_config import TranslationConfig
from pipeline.word_translation_pipeline import extract_word_structure
from serviceWrapper.translation_service import TranslationServiceClient
from textProcessing.translation_errors import (
    MalformedDocumentError, RateLimitExceededError, TranslationServiceError, TranslationTimeoutError
)
from translator.word_translator import WordTranslator

ARABIC_HELLO_WORLD = "مرحبا بالعالم"


class FakeResponse:

    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload or {}

    def json(self):
        return self.payload


def translated(text):
    return FakeResponse(200, {"responseData": {"translatedText": text}})


def make_translator(responses=None, post=None, progress_callback=None, **config_options):
    config = TranslationConfig(**config_options)
    session = MagicMock()
    if post is not None:
        session.post.side_effect = post
    else:
        session.post.side_effect = responses
    client = TranslationServiceClient(config, session=session, sleep=lambda seconds: None)
    return WordTranslator(config, client=client, progress_callback=progress_callback), session


def upper_case_service(url, data, timeout):
    return translated(data["q"].upper())


class TestWordTranslatorEndToEnd(unittest.TestCase):

    def test_hello_world(self):
        source_docx = build_docx([[("Hello ", BOLD_RED), ("world", ITALIC)]])
        translator, session = make_translator([translated(ARABIC_HELLO_WORLD)])

        output = translator.translate_bytes(source_docx)

        session.post.assert_called_once()
        self.assertEqual(session.post.call_args.kwargs["data"], {"q": "Hello  world", "langpair": "en|ar"})

        source = extract_word_structure(source_docx)
        result = extract_word_structure(output)

        self.assertEqual(len(result.paragraphs), 1)
        runs = result.paragraphs[0].runs
        self.assertEqual(len(runs), 2)
        self.assertEqual("".join(run.text for run in runs), ARABIC_HELLO_WORLD)
        for run in runs:
            self.assertLessEqual(len(run.text), 500)
        self.assertEqual(
            [run.formatting for run in runs],
            [run.formatting for run in source.paragraphs[0].runs]
        )
        self.assertEqual(translator.problem_chunks, [])

    def test_formatting_survives_empty_texts(self):
        source_docx = build_docx([[("", BOLD_RED)], [("", ITALIC), ("", None)]])
        translator, session = make_translator([translated("")])

        result = extract_word_structure(translator.translate_bytes(source_docx))
        source = extract_word_structure(source_docx)

        # The flattened text is just the two run separators
        self.assertEqual(session.post.call_args.kwargs["data"]["q"], "  ")
        self.assertEqual([run.text for run in result.iter_runs()], ["", "", ""])
        self.assertEqual(
            [run.formatting for run in result.iter_runs()],
            [run.formatting for run in source.iter_runs()]
        )

    def test_empty_document(self):
        translator, session = make_translator([])
        result = extract_word_structure(translator.translate_bytes(build_docx([])))

        session.post.assert_not_called()
        self.assertEqual(result.paragraphs, ())

    def test_chunks_are_translated_in_order(self):
        translator, session = make_translator(post=upper_case_service, max_chunk_length=5)

        self.assertEqual(translator.translate_text("abcdefghijkl"), "ABCDE FGHIJ KL")
        self.assertEqual(
            [call.kwargs["data"]["q"] for call in session.post.call_args_list],
            ["abcde", "fghij", "kl"]
        )

    def test_concurrent_chunks_keep_order(self):
        def slow_upper_case_service(url, data, timeout):
            time.sleep(random.uniform(0, 0.02))
            return translated(data["q"].upper())

        translator, _ = make_translator(post=slow_upper_case_service, max_chunk_length=3, thread_count=4)
        text = "abcdefghijklmnopqrstuvwxyz"

        result = translator.translate_text(text)

        expected = " ".join(text[i:i + 3].upper() for i in range(0, len(text), 3))
        self.assertEqual(result, expected)

    def test_progress_reaches_completion(self):
        updates = []
        translator, _ = make_translator(
            [translated(ARABIC_HELLO_WORLD)],
            progress_callback=lambda progress, desc=None: updates.append((progress, desc))
        )
        translator.translate_bytes(build_docx([[("Hello", None)]]))
        self.assertEqual(updates[-1], (1, "Translation completed"))

    def test_characters_not_allowed_in_xml_are_removed(self):
        translator, _ = make_translator([translated("مرحبا\x0bبالعالم\x00")])

        result = extract_word_structure(translator.translate_bytes(build_docx([[("Hello", None)]])))

        self.assertEqual([run.text for run in result.iter_runs()], ["مرحبابالعالم"])

    def test_untranslated_chunks_are_reported(self):
        translator, _ = make_translator([translated("")])
        translator.translate_bytes(build_docx([[("Hello", None)]]))
        self.assertEqual(translator.problem_chunks, [0])


class TestWordTranslatorFailures(unittest.TestCase):

    def test_malformed_input(self):
        translator, session = make_translator([])
        with self.assertRaises(MalformedDocumentError):
            translator.translate_bytes(b"not a word document")
        session.post.assert_not_called()

    def test_service_error_aborts_run(self):
        translator, _ = make_translator([translated("ok"), FakeResponse(502)], max_chunk_length=3)
        with self.assertRaises(TranslationServiceError) as ctx:
            translator.translate_bytes(build_docx([[("abcdef", None)]]))
        self.assertEqual(ctx.exception.status_code, 502)

    def test_rate_limit_exhaustion_aborts_run(self):
        translator, _ = make_translator([FakeResponse(429)] * 3, max_retries=2)
        with self.assertRaises(RateLimitExceededError):
            translator.translate_bytes(build_docx([[("Hello", None)]]))

    def test_no_output_written_on_failure(self):
        translator, _ = make_translator([FakeResponse(500)])
        with tempfile.TemporaryDirectory() as tmp:
            input_path = os.path.join(tmp, "report.docx")
            result_dir = os.path.join(tmp, "result")
            with open(input_path, "wb") as f:
                f.write(build_docx([[("Hello", None)]]))

            with self.assertRaises(TranslationServiceError):
                translator.process(input_path, result_dir)

            self.assertFalse(os.path.exists(translator.output_path_for(input_path, result_dir)))

    def test_deadline_expires_while_waiting_for_service(self):
        release = threading.Event()

        def blocked_service(url, data, timeout):
            release.wait(5)
            return translated("late")

        translator, _ = make_translator(post=blocked_service, deadline_seconds=0.2)
        started = time.monotonic()
        try:
            with self.assertRaises(TranslationTimeoutError) as ctx:
                translator.translate_bytes(build_docx([[("Hello", None)]]))
        finally:
            release.set()

        self.assertIsInstance(ctx.exception, TimeoutError)
        self.assertTrue(translator.stop_event.is_set())
        self.assertLess(time.monotonic() - started, 3)

    def test_deadline_interrupts_backoff(self):
        config = TranslationConfig(deadline_seconds=0.2, base_delay_ms=60000)
        session = MagicMock()
        session.post.return_value = FakeResponse(429)
        translator = WordTranslator(config, client=TranslationServiceClient(config, session=session))

        started = time.monotonic()
        with self.assertRaises(TranslationTimeoutError):
            translator.translate_bytes(build_docx([[("Hello", None)]]))

        self.assertLess(time.monotonic() - started, 3)
        self.assertEqual(session.post.call_count, 1)


class TestTranslatorReuse(unittest.TestCase):

    def test_workers_from_failed_run_stay_stopped(self):
        started = threading.Event()
        release = threading.Event()

        def service(url, data, timeout):
            if data["q"] == "abc":
                started.wait(5)
                return FakeResponse(500)
            if data["q"] == "def":
                started.set()
                release.wait(5)
                return FakeResponse(429)
            return translated(data["q"].upper())

        translator, session = make_translator(post=service, max_chunk_length=3, thread_count=2)
        try:
            with self.assertRaises(TranslationServiceError):
                translator.translate_bytes(build_docx([[("abcdef", None)]]))
            self.assertTrue(started.is_set())

            result = extract_word_structure(translator.translate_bytes(build_docx([[("xyz", None)]])))
            self.assertEqual([run.text for run in result.iter_runs()], ["XYZ"])

            translator.close()
            session.close.assert_not_called()
        finally:
            release.set()

        translator.close_thread.join(5)
        session.close.assert_called_once()
        retried = [call for call in session.post.call_args_list if call.kwargs["data"]["q"] == "def"]
        self.assertEqual(len(retried), 1)

    def test_close_without_failed_run(self):
        translator, session = make_translator([translated(ARABIC_HELLO_WORLD)])
        translator.translate_bytes(build_docx([[("Hello", None)]]))

        translator.close()

        session.close.assert_called_once()
        self.assertIsNone(translator.close_thread)


class TestProcessFile(unittest.TestCase):

    def test_process_writes_result_file(self):
        translator, _ = make_translator([translated(ARABIC_HELLO_WORLD)])
        with tempfile.TemporaryDirectory() as tmp:
            input_path = os.path.join(tmp, "greeting.docx")
            result_dir = os.path.join(tmp, "result")
            with open(input_path, "wb") as f:
                f.write(build_docx([[("Hello ", BOLD_RED), ("world", None)]]))

            output_path = translator.process(input_path, result_dir)

            self.assertEqual(output_path, os.path.join(result_dir, "greeting_en2ar.docx"))
            with open(output_path, "rb") as f:
                result = extract_word_structure(f.read())

        self.assertEqual("".join(run.text for run in result.iter_runs()), ARABIC_HELLO_WORLD)


if __name__ == "__main__":
    unittest.main()
