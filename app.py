import os
import socket

import gradio as gr

from config.log_config import app_logger, file_logger
from config.system_config import (
    TranslationConfig, read_system_config, update_system_config, get_custom_paths
)
from textProcessing.translation_errors import (
    MalformedDocumentError, RateLimitExceededError, TranslationServiceError, TranslationTimeoutError
)
from translator.word_translator import WordTranslator
from ui_layout import get_custom_css, create_header, create_settings_section, create_main_interface

APP_TITLE = "Word Document Translator"
SUPPORTED_EXTENSIONS = (".docx",)

#-------------------------------------------------------------------------
# System Configuration Functions
#-------------------------------------------------------------------------

def update_max_retries(max_retries):
    """Update system config with new max retries setting"""
    return update_system_config("max_retries", int(max_retries))

def update_thread_count(thread_count):
    """Update system config with new thread count setting"""
    return update_system_config("thread_count", int(thread_count))

def find_available_port(start_port=9980, max_attempts=20):
    """Find available port starting from start_port"""
    for port in range(start_port, start_port + max_attempts):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(("127.0.0.1", port))
                return port
        except OSError:
            continue
    raise RuntimeError("No available port found.")

#-------------------------------------------------------------------------
# Translation Functions
#-------------------------------------------------------------------------

def describe_failure(error):
    """User-facing message for a failed translation"""
    if isinstance(error, MalformedDocumentError):
        return "The uploaded file is not a valid Word document."
    if isinstance(error, RateLimitExceededError):
        return "Too many requests. Please try again later."
    if isinstance(error, TranslationServiceError):
        if error.status_code is None:
            return "Could not reach the translation service."
        return f"Translation service error (HTTP {error.status_code})."
    if isinstance(error, TranslationTimeoutError):
        return "Translation took too long and was cancelled."
    return f"Error: {error}"

def translate_file(file_path, max_retries, thread_count, progress=gr.Progress()):
    """Translate one uploaded Word document and offer the result for download"""
    if not file_path:
        return gr.update(value=None, visible=False), "File not selected"

    file_name = os.path.basename(file_path)
    file_extension = os.path.splitext(file_name)[1].lower()
    if file_extension not in SUPPORTED_EXTENSIONS:
        return gr.update(value=None, visible=False), f"Unsupported file type '{file_extension}'."

    system_config = read_system_config()
    result_dir, log_dir = get_custom_paths(system_config)
    file_logger.create_file_log(file_name, log_dir=log_dir)
    app_logger.info(f"Processing file: {file_name}")

    try:
        config = TranslationConfig.from_dict({
            **system_config,
            "max_retries": int(max_retries),
            "thread_count": int(thread_count),
        })
    except ValueError as e:
        app_logger.error(f"Invalid configuration: {e}")
        return gr.update(value=None, visible=False), f"Invalid configuration: {e}"

    def progress_callback(progress_value, desc=None):
        progress(progress_value, desc=desc)

    translator = WordTranslator(config, progress_callback=progress_callback)
    try:
        translated_file_path = translator.process(file_path, result_dir)
    except (MalformedDocumentError, RateLimitExceededError, TranslationServiceError, TranslationTimeoutError) as e:
        app_logger.error(f"Translation failed: {e}")
        return gr.update(value=None, visible=False), describe_failure(e)
    except Exception as e:
        app_logger.exception("Error processing file")
        return gr.update(value=None, visible=False), describe_failure(e)
    finally:
        translator.close()

    final_msg = "Translation completed"
    if translator.problem_chunks:
        final_msg = f"{final_msg} | Warning: {len(translator.problem_chunks)} chunk(s) may be untranslated"

    return gr.update(value=translated_file_path, visible=True), final_msg

#-------------------------------------------------------------------------
# Gradio UI Construction
#-------------------------------------------------------------------------

config = read_system_config()

with gr.Blocks(title=APP_TITLE, css=get_custom_css()) as demo:
    create_header(APP_TITLE)

    lang_pair_box, max_retries_slider, thread_count_slider = create_settings_section(config)
    file_input, output_file, status_message, translate_button = create_main_interface()

    max_retries_slider.change(update_max_retries, inputs=max_retries_slider, outputs=None)
    thread_count_slider.change(update_thread_count, inputs=thread_count_slider, outputs=None)

    translate_button.click(
        translate_file,
        inputs=[file_input, max_retries_slider, thread_count_slider],
        outputs=[output_file, status_message]
    )

#-------------------------------------------------------------------------
# Application Launch
#-------------------------------------------------------------------------

if __name__ == "__main__":
    available_port = find_available_port(start_port=9980)

    # Enable queue for progress tracking
    demo.queue()

    if config.get("lan_mode", False):
        demo.launch(server_name="0.0.0.0", server_port=available_port, share=False)
    else:
        demo.launch(server_port=available_port, share=False, inbrowser=True)
