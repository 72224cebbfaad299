# pipeline/word_translation_pipeline.py
from io import BytesIO
from zipfile import ZipFile, ZIP_DEFLATED, BadZipFile

from lxml import etree

from config.log_config import app_logger
from textProcessing.document_structure import DocumentStructure, Paragraph, Run
from textProcessing.translation_errors import MalformedDocumentError

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOCUMENT_XML_PATH = "word/document.xml"

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
XML_NS = "http://www.w3.org/XML/1998/namespace"
namespaces = {'w': W_NS}

CONTENT_TYPES_XML = (
    b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    b'<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    b'<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    b'<Default Extension="xml" ContentType="application/xml"/>'
    b'<Override PartName="/word/document.xml" '
    b'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    b'</Types>'
)

PACKAGE_RELS_XML = (
    b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    b'<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    b'<Relationship Id="rId1" '
    b'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    b'Target="word/document.xml"/>'
    b'</Relationships>'
)


def _w(tag):
    return f"{{{W_NS}}}{tag}"


def _xml_parser():
    return etree.XMLParser(resolve_entities=False, no_network=True)


def read_document_xml(docx_bytes):
    """Return the raw main document part of a .docx container"""
    try:
        with ZipFile(BytesIO(docx_bytes), 'r') as docx:
            return docx.read(DOCUMENT_XML_PATH)
    except BadZipFile as e:
        raise MalformedDocumentError(f"Not a valid .docx container: {e}") from e
    except KeyError as e:
        raise MalformedDocumentError(f"Document part {DOCUMENT_XML_PATH} is missing") from e


def extract_run(run):
    """Visible text and serialized run properties of a w:r element"""
    text = "".join(t.text or "" for t in run.iter(_w("t")))
    run_properties = run.find('w:rPr', namespaces)
    formatting = serialize_formatting(run_properties) if run_properties is not None else None
    return Run(text, formatting)


def serialize_formatting(run_properties):
    # Exclusive C14N keeps only the namespaces the element uses, so the blob
    # is the same wherever the element sits.
    return etree.tostring(run_properties, method="c14n", exclusive=True, with_tail=False)


def extract_word_structure(docx_bytes):
    """Extract body paragraphs and their runs from .docx bytes in document order"""
    document_xml = read_document_xml(docx_bytes)

    try:
        document_tree = etree.fromstring(document_xml, _xml_parser())
    except etree.XMLSyntaxError as e:
        raise MalformedDocumentError(f"Document XML could not be parsed: {e}") from e

    body = document_tree.find('w:body', namespaces)
    if body is None:
        raise MalformedDocumentError("Document has no body")

    paragraphs = []
    for paragraph in body.findall('w:p', namespaces):
        runs = tuple(extract_run(run) for run in paragraph.findall('w:r', namespaces))
        paragraphs.append(Paragraph(runs))

    structure = DocumentStructure(tuple(paragraphs))
    app_logger.info(f"Extracted {len(paragraphs)} paragraphs with {structure.run_count} runs")
    return structure


def load_word_structure(file_path):
    """Extract the structure of a .docx file on disk"""
    with open(file_path, 'rb') as f:
        return extract_word_structure(f.read())


def build_run_element(paragraph_element, run):
    """Append a w:r with a fresh copy of the run formatting and its text"""
    run_element = etree.SubElement(paragraph_element, _w("r"))

    if run.formatting is not None:
        run_element.append(etree.fromstring(run.formatting, _xml_parser()))

    text_element = etree.SubElement(run_element, _w("t"))
    text_element.text = run.text
    if run.text != run.text.strip():
        text_element.set(f"{{{XML_NS}}}space", "preserve")

    return run_element


def build_document_tree(structure):
    document = etree.Element(_w("document"), nsmap=namespaces)
    body = etree.SubElement(document, _w("body"))

    for paragraph in structure.paragraphs:
        paragraph_element = etree.SubElement(body, _w("p"))
        for run in paragraph.runs:
            build_run_element(paragraph_element, run)

    return document


def write_word_document(structure):
    """Serialize a structure into a new minimal .docx package and return its bytes"""
    document_tree = build_document_tree(structure)
    document_xml = etree.tostring(document_tree, xml_declaration=True, encoding="UTF-8", standalone=True)

    buffer = BytesIO()
    with ZipFile(buffer, 'w', ZIP_DEFLATED) as new_doc:
        new_doc.writestr("[Content_Types].xml", CONTENT_TYPES_XML)
        new_doc.writestr("_rels/.rels", PACKAGE_RELS_XML)
        new_doc.writestr(DOCUMENT_XML_PATH, document_xml)

    app_logger.info(f"Built Word document with {len(structure.paragraphs)} paragraphs and {structure.run_count} runs")
    return buffer.getvalue()
