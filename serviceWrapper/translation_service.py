import re
import threading

import requests

from config.log_config import app_logger
from textProcessing.translation_errors import (
    RateLimitExceededError, StopTranslationException, TranslationServiceError
)

HTTP_TOO_MANY_REQUESTS = 429

# Characters that XML 1.0 does not allow in text content
INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def interruptible_sleep(seconds, stop_event):
    """Sleep for seconds, raising StopTranslationException as soon as stop_event is set"""
    if stop_event.wait(seconds):
        raise StopTranslationException("Translation stopped while waiting to retry")


def is_success_status(status_code):
    return 200 <= status_code < 300


def remove_invalid_xml_chars(text):
    """Drop characters that cannot be stored in a Word document"""
    cleaned = INVALID_XML_CHARS.sub("", text)
    if len(cleaned) != len(text):
        app_logger.warning(f"Removed {len(text) - len(cleaned)} character(s) not allowed in XML from translation")
    return cleaned


class TranslationServiceClient:
    """
    Client for a MyMemory-style translation endpoint.

    Every chunk is sent as a form-encoded POST with ``q`` and ``langpair``.
    A 429 answer is retried with exponential backoff; any other failure
    status is fatal.

    Args:
        config: TranslationConfig with endpoint, language pair and retry settings.
        session: requests.Session to send requests with. One is created if omitted.
        stop_event: default threading.Event for calls that do not pass their own.
        sleep: callable(seconds) used between retries. Defaults to an
            interruptible sleep on the stop event of the call.
    """

    def __init__(self, config, session=None, stop_event=None, sleep=None):
        self.config = config
        self.session = session or requests.Session()
        self.stop_event = stop_event or threading.Event()
        self._sleep = sleep

    def build_form(self, text):
        return {"q": text, "langpair": self.config.lang_pair}

    def check_for_stop(self, stop_event=None):
        if (stop_event or self.stop_event).is_set():
            raise StopTranslationException("Translation stopped")

    def backoff_delay(self, retry):
        """Seconds to wait before the given retry (1-based)"""
        return self.config.base_delay_seconds * (2 ** retry)

    def pause(self, seconds, stop_event):
        if self._sleep is not None:
            self._sleep(seconds)
        else:
            interruptible_sleep(seconds, stop_event)

    def attempt(self, text, attempt_number, stop_event=None):
        """Send one request for text and return the response, whatever its status"""
        self.check_for_stop(stop_event)
        app_logger.debug(f"Sending translation request (attempt {attempt_number + 1}, {len(text)} chars)")
        try:
            return self.session.post(
                self.config.endpoint_url,
                data=self.build_form(text),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise TranslationServiceError(None, f"Translation request failed: {e}") from e

    def translate(self, text, stop_event=None):
        """
        Translate one chunk, retrying on rate limiting.

        stop_event belongs to the pipeline run that submitted the chunk; once it
        is set no further request or retry is made for that chunk.
        """
        stop_event = stop_event or self.stop_event
        retries = 0

        while True:
            response = self.attempt(text, retries, stop_event)
            status_code = response.status_code

            if is_success_status(status_code):
                return self.parse_translation(response)

            if status_code != HTTP_TOO_MANY_REQUESTS:
                app_logger.error(f"Translation service returned HTTP {status_code}")
                raise TranslationServiceError(status_code)

            if retries >= self.config.max_retries:
                app_logger.error(f"Rate limit still exceeded after {retries} retries")
                raise RateLimitExceededError(retries)

            retries += 1
            delay = self.backoff_delay(retries)
            app_logger.warning(f"Rate limited, retry {retries}/{self.config.max_retries} in {delay:.1f} seconds")
            self.pause(delay, stop_event)

    def parse_translation(self, response):
        """Read responseData.translatedText, using an empty string when it is missing"""
        try:
            payload = response.json()
        except ValueError as e:
            raise TranslationServiceError(response.status_code, f"Translation response is not valid JSON: {e}") from e

        response_data = payload.get("responseData") if isinstance(payload, dict) else None
        translated_text = response_data.get("translatedText") if isinstance(response_data, dict) else None

        if translated_text is None:
            app_logger.warning("Translation response has no responseData.translatedText, using empty text")
            return ""

        if isinstance(payload, dict) and payload.get("responseStatus") not in (None, 200, "200"):
            app_logger.warning(f"Translation service reported status {payload.get('responseStatus')}: "
                               f"{payload.get('responseDetails', '')}")

        return remove_invalid_xml_chars(str(translated_text))

    def close(self):
        self.session.close()
