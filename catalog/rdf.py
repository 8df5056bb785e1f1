"""
Parse Project Gutenberg RDF/XML records into ``WorkRecord`` objects.

Each work in the catalog archive is described by one ``pg{id}.rdf`` document
with a single ``pgterms:ebook`` element. Every field is optional except the
rights statement; elements that are missing or incomplete are skipped rather
than treated as errors.
"""

import re
from dataclasses import dataclass
from logging import getLogger
from typing import Iterator, Optional

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from .exceptions import MissingRequiredFieldError, ParseError

logger = getLogger(__name__)

NAMESPACES = {
    "dc": "http://purl.org/dc/terms/",
    "dcam": "http://purl.org/dc/dcam/",
    "marcrel": "http://id.loc.gov/vocabulary/relators/",
    "pg": "http://www.gutenberg.org/2009/pgterms/",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
}

#: Line breaks together with the spaces and tabs around them
LINE_BREAK_PATTERN = re.compile(r"[ \t]*[\n\r]+[ \t]*")

#: Written as a compact name in some records and expanded in the published feed
LCSH_SCHEMES = frozenset(["dc:LCSH", NAMESPACES["dc"] + "LCSH"])

PUBLIC_DOMAIN_PREFIX = "Public domain in the USA."
COPYRIGHTED_PREFIX = "Copyrighted."

DEFAULT_TYPE = "Text"

NO_IMAGES_MARKER = "noimages"

YEAR_PATTERN = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Person:
    name: str
    birth_year: Optional[int] = None
    death_year: Optional[int] = None


@dataclass(frozen=True)
class Format:
    content_type: str
    url: str


@dataclass(frozen=True)
class WorkRecord:
    """
    The normalized description of one work, built fresh for every parse.
    """

    gutenberg_id: int
    title: Optional[str] = None
    authors: tuple[Person, ...] = ()
    translators: tuple[Person, ...] = ()
    type: str = DEFAULT_TYPE  # NOQA: A003
    subjects: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()
    formats: tuple[Format, ...] = ()
    bookshelves: tuple[str, ...] = ()
    copyright: Optional[bool] = None


# Namespaced element access


def qualified_name(prefix: str, local_name: str) -> str:
    """
    Return the ElementTree ``{namespace}local`` form of ``prefix:local_name``.
    """
    return f"{{{NAMESPACES[prefix]}}}{local_name}"


def find_all(element, prefix: str, local_name: str) -> Iterator:
    """
    Yield every descendant of ``element`` (at any depth, in document order)
    named ``prefix:local_name``. The element itself is never included.
    """
    for descendant in element.iter(qualified_name(prefix, local_name)):
        if descendant is not element:
            yield descendant


def find_first(element, prefix: str, local_name: str):
    """
    Return the first descendant named ``prefix:local_name``, or None.
    """
    return next(find_all(element, prefix, local_name), None)


def get_attribute(element, prefix: str, local_name: str) -> Optional[str]:
    return element.get(qualified_name(prefix, local_name))


def text_content(element) -> str:
    """
    Return the concatenated text of ``element`` and all of its descendants.
    """
    return "".join(element.itertext())


def find_value(element, prefix: str, local_name: str) -> Optional[str]:
    """
    Return the text of the ``rdf:value`` nested in the first
    ``prefix:local_name`` descendant of ``element``, or None if either is missing.
    """
    container = find_first(element, prefix, local_name)
    if container is None:
        return None
    value = find_first(container, "rdf", "value")
    if value is None:
        return None
    return text_content(value)


# Field normalization


def fix_subtitles(title: str) -> str:
    """
    Join the lines of a multi-line title.

    The first line break separates the title from its subtitle and becomes
    ``": "``; any further line breaks become ``"; "``.

        >>> fix_subtitles("Alice\\nIn Wonderland\\nSecond Edition")
        'Alice: In Wonderland; Second Edition'
    """
    new_title = LINE_BREAK_PATTERN.sub(": ", title, count=1)
    return LINE_BREAK_PATTERN.sub("; ", new_title)


def classify_rights(rights: str) -> Optional[bool]:
    """
    Map a rights statement to a copyright flag.

    Returns False for works in the public domain in the USA, True for
    copyrighted works and None when the statement says neither.
    """
    if rights.startswith(PUBLIC_DOMAIN_PREFIX):
        return False
    elif rights.startswith(COPYRIGHTED_PREFIX):
        return True
    return None


def parse_year(text: Optional[str]) -> Optional[int]:
    """
    Return the integer at the start of ``text``, ignoring anything after it,
    or None when the text does not start with a number.
    """
    if text is None:
        return None
    match = YEAR_PATTERN.match(text)
    if not match:
        return None
    return int(match.group(1))


def keep_format(formats, content_type: str) -> bool:
    """
    Decide whether a file of ``content_type`` should be added to ``formats``.

    A file is kept when no earlier file has the same content type, or when an
    earlier file of that content type is a "noimages" variant. The second
    condition means that once a "noimages" file is present every later file
    of the same type is kept as well.
    """
    same_type = [f for f in formats if f.content_type == content_type]
    return not same_type or any(NO_IMAGES_MARKER in f.url for f in same_type)


# Record extraction


def _parse_people(ebook, prefix: str, local_name: str) -> list[Person]:
    people = []
    for element in find_all(ebook, prefix, local_name):
        name = find_first(element, "pg", "name")
        if name is None:
            logger.debug("Skipping %s:%s entry without a name", prefix, local_name)
            continue
        birth = find_first(element, "pg", "birthdate")
        death = find_first(element, "pg", "deathdate")
        people.append(
            Person(
                name=text_content(name),
                birth_year=None if birth is None else parse_year(text_content(birth)),
                death_year=None if death is None else parse_year(text_content(death)),
            )
        )
    return people


def _parse_subjects(ebook) -> list[str]:
    subjects = []
    for subject in find_all(ebook, "dc", "subject"):
        member_of = find_first(subject, "dcam", "memberOf")
        if member_of is None:
            continue
        if get_attribute(member_of, "rdf", "resource") not in LCSH_SCHEMES:
            continue
        value = find_first(subject, "rdf", "value")
        if value is not None:
            subjects.append(text_content(value))
    return sorted(subjects)


def _parse_bookshelves(ebook) -> list[str]:
    bookshelves = []
    for bookshelf in find_all(ebook, "pg", "bookshelf"):
        value = find_first(bookshelf, "rdf", "value")
        if value is not None:
            bookshelves.append(text_content(value))
    return bookshelves


def _parse_copyright(ebook, path) -> Optional[bool]:
    rights = find_first(ebook, "dc", "rights")
    if rights is None:
        raise MissingRequiredFieldError(
            f"The record {path} has no rights statement", path=path, field="rights"
        )
    return classify_rights(text_content(rights))


def _parse_formats(ebook) -> list[Format]:
    formats = []
    for file_element in find_all(ebook, "pg", "file"):
        content_type = find_value(file_element, "dc", "format")
        if content_type is None:
            continue
        if keep_format(formats, content_type):
            url = get_attribute(file_element, "rdf", "about") or ""
            formats.append(Format(content_type=content_type, url=url))
    return formats


def _parse_languages(ebook) -> list[str]:
    languages = []
    for language in find_all(ebook, "dc", "language"):
        value = find_first(language, "rdf", "value")
        if value is not None:
            languages.append(text_content(value))
    return languages


def build_record(gutenberg_id, root, path=None) -> WorkRecord:
    """
    Build a ``WorkRecord`` from the parsed root element of a record document.

    Args:
        gutenberg_id: The ebook number, as an int or a decimal string.
        root: The document's root element.
        path: The document's location, used in error messages.

    Raises:
        ParseError: If the document has no ``pgterms:ebook`` element.
        MissingRequiredFieldError: If the ebook has no rights statement.
    """
    if root.tag == qualified_name("pg", "ebook"):
        ebook = root
    else:
        ebook = find_first(root, "pg", "ebook")
    if ebook is None:
        raise ParseError(f"The record {path} has no ebook description", path=path)

    title = find_first(ebook, "dc", "title")
    book_type = find_value(ebook, "dc", "type")

    return WorkRecord(
        gutenberg_id=int(gutenberg_id),
        title=fix_subtitles(text_content(title)) if title is not None else None,
        authors=tuple(_parse_people(ebook, "dc", "creator")),
        translators=tuple(_parse_people(ebook, "marcrel", "trl")),
        type=book_type if book_type is not None else DEFAULT_TYPE,
        subjects=tuple(_parse_subjects(ebook)),
        languages=tuple(_parse_languages(ebook)),
        formats=tuple(_parse_formats(ebook)),
        bookshelves=tuple(_parse_bookshelves(ebook)),
        copyright=_parse_copyright(ebook, path),
    )


def parse_record(gutenberg_id, path) -> WorkRecord:
    """
    Parse the RDF/XML record document at ``path``.

    Raises:
        ParseError: If the file cannot be read or is not well-formed XML, or
            if it does not describe an ebook.
        MissingRequiredFieldError: If the ebook has no rights statement.
    """
    try:
        tree = ET.parse(path)
    except (ET.ParseError, DefusedXmlException, OSError) as exc:
        raise ParseError(
            f"The XML file {path} could not be parsed: {exc}", path=path
        ) from exc

    return build_record(gutenberg_id, tree.getroot(), path=path)
