import os
import threading
import time
import uuid
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor, FIRST_COMPLETED, wait

from config.log_config import app_logger
from config.system_config import TranslationConfig
from serviceWrapper.translation_service import TranslationServiceClient
from .document_structure import TranslatedChunk
from .text_separator import (
    flatten_structure, split_text_by_char_limit, join_translated_chunks,
    restore_translated_structure
)
from .translation_checker import check_translation_results
from .translation_errors import StopTranslationException, TranslationTimeoutError


class DocumentTranslator:
    """
    Translate one document: extract, flatten, chunk, translate, reassemble.

    Every call to translate_bytes gets its own stop event, so workers left over
    from an aborted run never resume when the instance is used again. Subclasses
    supply the document format through extract_structure and write_translated_document.
    """

    def __init__(self, config=None, client=None, progress_callback=None):
        self.config = config or TranslationConfig()
        self.client = client or TranslationServiceClient(self.config)
        self.stop_event = threading.Event()
        self.abandoned_executors = []
        self.close_thread = None
        self.progress_callback = progress_callback
        self.last_ui_update_time = 0

        self.translation_id = str(uuid.uuid4())
        self.translation_start_time = None
        self.translation_end_time = None
        self.deadline = None

        self.chunks = []
        self.translated_chunks = []
        self.problem_chunks = []

    def extract_structure(self, data):
        """Parse document bytes into a DocumentStructure - to be implemented by subclass"""
        raise NotImplementedError

    def write_translated_document(self, structure):
        """Serialize a DocumentStructure to document bytes - to be implemented by subclass"""
        raise NotImplementedError

    def update_ui_safely(self, progress, desc):
        """Update UI with rate limiting"""
        current_time = time.time()
        if progress < 1 and current_time - self.last_ui_update_time < 0.1:
            return
        try:
            if self.progress_callback:
                self.progress_callback(progress, desc=desc)
                self.last_ui_update_time = current_time
        except Exception as e:
            app_logger.warning(f"Error updating UI: {e}")

    def _remaining_time(self):
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def _check_deadline(self):
        remaining = self._remaining_time()
        if remaining is not None and remaining <= 0:
            self.stop_event.set()
            raise TranslationTimeoutError(
                f"Translation did not finish within {self.config.deadline_seconds} seconds"
            )

    def translate_chunks(self, chunks):
        """
        Translate chunks on a pool of thread_count workers.

        Results come back in chunk order regardless of completion order. The
        first failure, or the deadline expiring, stops the outstanding work
        and fails the whole run.
        """
        if not chunks:
            return []

        total = len(chunks)
        app_logger.info(f"Translating {total} chunks using {self.config.thread_count} threads...")

        stop_event = self.stop_event
        executor = ThreadPoolExecutor(max_workers=self.config.thread_count)
        failed = False
        try:
            futures = [executor.submit(self.client.translate, chunk.source_text, stop_event) for chunk in chunks]
            pending = set(futures)
            completed = 0

            while pending:
                self._check_deadline()
                done, pending = wait(pending, timeout=self._remaining_time(), return_when=FIRST_COMPLETED)
                if not done:
                    self._check_deadline()
                    continue

                for future in done:
                    error = future.exception()
                    if error is not None:
                        raise error

                completed += len(done)
                p = completed / total
                app_logger.info(f"Progress: {p:.2%}")
                self.update_ui_safely(p, "Translating...")

            return [TranslatedChunk(future.result()) for future in futures]

        except BaseException:
            failed = True
            stop_event.set()
            raise
        finally:
            executor.shutdown(wait=not failed, cancel_futures=True)
            if failed:
                self.abandoned_executors.append(executor)

    def translate_text(self, text):
        """Chunk the flattened text, translate every chunk and join the results"""
        self.chunks = split_text_by_char_limit(text, self.config.max_chunk_length)
        try:
            self.translated_chunks = self.translate_chunks(self.chunks)
        except StopTranslationException:
            # A worker saw the stop event; report why the run stopped
            self._check_deadline()
            raise

        self.problem_chunks = check_translation_results(
            self.chunks, self.translated_chunks, dst_lang=self.config.dst_lang
        )
        return join_translated_chunks(self.translated_chunks)

    def translate_bytes(self, data):
        """Translate a whole document given as bytes and return the new document bytes"""
        self.translation_start_time = datetime.now()
        self.stop_event = threading.Event()
        self.deadline = None
        if self.config.deadline_seconds is not None:
            self.deadline = time.monotonic() + self.config.deadline_seconds

        app_logger.info(f"Starting translation {self.translation_id} ({self.config.lang_pair})")

        self.update_ui_safely(0, "Extracting text...")
        structure = self.extract_structure(data)

        flattened_text = flatten_structure(structure)
        app_logger.info(f"Flattened {structure.run_count} runs into {len(flattened_text)} characters")

        self.update_ui_safely(0, "Translating content...")
        translated_text = self.translate_text(flattened_text)
        self._check_deadline()

        self.update_ui_safely(1, "Restoring structure...")
        translated_structure = restore_translated_structure(
            structure, translated_text, self.config.max_chunk_length
        )
        output = self.write_translated_document(translated_structure)

        self.translation_end_time = datetime.now()
        duration = (self.translation_end_time - self.translation_start_time).total_seconds()
        app_logger.info(f"Translation {self.translation_id} completed in {duration:.1f}s")
        self.update_ui_safely(1, "Translation completed")
        return output

    def output_path_for(self, input_file_path, result_dir=None):
        """Result path using the source_lang2target_lang suffix, e.g. report_en2ar.docx"""
        result_folder = result_dir or self.config.result_dir
        base_name, file_extension = os.path.splitext(os.path.basename(input_file_path))
        lang_suffix = f"{self.config.src_lang}2{self.config.dst_lang}"
        return os.path.join(result_folder, f"{base_name}_{lang_suffix}{file_extension}")

    def process(self, input_file_path, result_dir=None):
        """Translate a document file and write the result; returns the output path"""
        with open(input_file_path, 'rb') as f:
            data = f.read()

        output = self.translate_bytes(data)

        final_output_path = self.output_path_for(input_file_path, result_dir)
        os.makedirs(os.path.dirname(final_output_path) or ".", exist_ok=True)
        with open(final_output_path, 'wb') as f:
            f.write(output)

        app_logger.info(f"Translated document saved to: {final_output_path}")
        return final_output_path

    def close(self):
        """
        Close the translation client.

        Workers abandoned by a failed run may still be inside a request, so in
        that case the client is closed from a background thread once they exit.
        """
        abandoned, self.abandoned_executors = self.abandoned_executors, []
        if not abandoned:
            self.client.close()
            return

        def close_when_idle():
            for executor in abandoned:
                executor.shutdown(wait=True)
            self.client.close()
            app_logger.debug("Translation client closed after abandoned workers finished")

        self.close_thread = threading.Thread(target=close_when_idle, daemon=True)
        self.close_thread.start()
