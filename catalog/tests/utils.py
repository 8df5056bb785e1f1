import os
import shutil
import tempfile

from catalog.rdf import NAMESPACES

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

LCSH = NAMESPACES["dc"] + "LCSH"
LCC = NAMESPACES["dc"] + "LCC"


def build_rdf(*elements, gutenberg_id=1):
    """
    Return a record document whose ebook element contains ``elements``,
    each given as an XML string using the prefixes of the published catalog.
    """
    body = "\n".join(elements)
    return f"""<?xml version="1.0" encoding="utf-8"?>
<rdf:RDF xml:base="http://www.gutenberg.org/"
  xmlns:dcterms="{NAMESPACES['dc']}"
  xmlns:dcam="{NAMESPACES['dcam']}"
  xmlns:marcrel="{NAMESPACES['marcrel']}"
  xmlns:pgterms="{NAMESPACES['pg']}"
  xmlns:rdf="{NAMESPACES['rdf']}">
  <pgterms:ebook rdf:about="ebooks/{gutenberg_id}">
{body}
  </pgterms:ebook>
</rdf:RDF>
"""


def rights_element(text="Public domain in the USA."):
    return f"<dcterms:rights>{text}</dcterms:rights>"


def title_element(text):
    return f"<dcterms:title>{text}</dcterms:title>"


def agent_element(name=None, birth=None, death=None, *, role="dcterms:creator"):
    parts = []
    if name is not None:
        parts.append(f"<pgterms:name>{name}</pgterms:name>")
    if birth is not None:
        parts.append(f"<pgterms:birthdate>{birth}</pgterms:birthdate>")
    if death is not None:
        parts.append(f"<pgterms:deathdate>{death}</pgterms:deathdate>")
    return (
        f"<{role}><pgterms:agent rdf:about=\"2009/agents/1\">"
        + "".join(parts)
        + f"</pgterms:agent></{role}>"
    )


def described_value(tag, value, scheme=None):
    member_of = f'<dcam:memberOf rdf:resource="{scheme}"/>' if scheme else ""
    return (
        f"<{tag}><rdf:Description>{member_of}"
        f"<rdf:value>{value}</rdf:value></rdf:Description></{tag}>"
    )


def subject_element(value, scheme=LCSH):
    return described_value("dcterms:subject", value, scheme)


def bookshelf_element(label):
    return described_value("pgterms:bookshelf", label, "2009/pgterms/Bookshelf")


def language_element(code):
    return described_value("dcterms:language", code)


def type_element(value):
    return described_value(
        "dcterms:type", value, "http://purl.org/dc/terms/DCMIType"
    )


def file_element(url, content_type):
    return (
        f'<dcterms:hasFormat><pgterms:file rdf:about="{url}">'
        + described_value(
            "dcterms:format", content_type, "http://purl.org/dc/terms/IMT"
        )
        + "</pgterms:file></dcterms:hasFormat>"
    )


def write_record(root, gutenberg_id, content):
    record_dir = os.path.join(root, str(gutenberg_id))
    os.makedirs(record_dir, exist_ok=True)
    path = os.path.join(record_dir, f"pg{gutenberg_id}.rdf")
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def create_record_tree(testcase, records, extra_dirs=()):
    """
    Create a temporary record tree removed at the end of ``testcase``.

    Args:
        testcase: The running TestCase, used to register cleanup.
        records: Mapping of ebook number to record document content.
        extra_dirs: Names of additional, non-record directories to create.
    """
    root = tempfile.mkdtemp(prefix="catalog-test-")
    testcase.addCleanup(shutil.rmtree, root, ignore_errors=True)
    for gutenberg_id, content in records.items():
        write_record(root, gutenberg_id, content)
    for name in extra_dirs:
        os.makedirs(os.path.join(root, name), exist_ok=True)
    return root


def minimal_record(gutenberg_id, title="A Title", rights="Public domain in the USA."):
    return build_rdf(
        title_element(title),
        rights_element(rights),
        gutenberg_id=gutenberg_id,
    )
