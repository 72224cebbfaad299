"""
UI Layout Module for the Word document translator
Separated layout components and CSS styles
"""

import gradio as gr


def get_custom_css():
    """Return custom CSS styles"""
    return """
    .gradio-container {
        max-width: 860px !important;
        margin: 0 auto !important;
    }

    #lang-pair-box textarea {
        text-align: center;
        font-weight: 600;
    }

    #translate-btn {
        min-height: 44px;
    }
    """


def create_header(app_title):
    """Create app header"""
    return gr.HTML(f"""
    <div style="text-align: center;">
        <h1>{app_title}</h1>
        <p>Upload a Word document to translate it while keeping its paragraphs and run formatting.</p>
    </div>
    """)


def create_settings_section(config):
    """Create settings section"""
    initial_max_retries = config.get("max_retries", 5)
    initial_thread_count = config.get("thread_count", 1)
    lang_pair = config.get("lang_pair", "en|ar")

    with gr.Row():
        lang_pair_box = gr.Textbox(
            label="Language Pair",
            value=lang_pair.replace("|", " → "),
            interactive=False,
            elem_id="lang-pair-box"
        )

    with gr.Row():
        with gr.Column(scale=1):
            max_retries_slider = gr.Slider(
                minimum=0,
                maximum=10,
                step=1,
                value=initial_max_retries,
                label="Max Retries (rate limit)"
            )

        with gr.Column(scale=1):
            thread_count_slider = gr.Slider(
                minimum=1,
                maximum=8,
                step=1,
                value=initial_thread_count,
                label="Thread Count"
            )

    return lang_pair_box, max_retries_slider, thread_count_slider


def create_main_interface():
    """Create main translation interface"""
    file_input = gr.File(
        label="Upload Word Document (.docx)",
        file_types=[".docx"],
        file_count="single",
        type="filepath"
    )

    output_file = gr.File(label="Download Translated File", visible=False)
    status_message = gr.Textbox(label="Status Message", interactive=False, visible=True)

    translate_button = gr.Button("Translate", elem_id="translate-btn")

    return file_input, output_file, status_message, translate_button
