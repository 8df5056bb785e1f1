import os
from unittest import mock

from django.db import OperationalError
from django.test import SimpleTestCase, TestCase, override_settings

from catalog.exceptions import (
    AcquisitionError,
    MappingError,
    MissingRequiredFieldError,
    ParseError,
    StorageError,
)
from catalog import sync
from catalog.models import Book
from catalog.rdf import parse_record
from catalog.sync import (
    is_record_directory,
    list_subdirectories,
    record_path,
    store_connection,
    sync_directory,
    upsert_book,
)

from .utils import (
    agent_element,
    build_rdf,
    create_record_tree,
    file_element,
    minimal_record,
    rights_element,
    title_element,
)


class RecordDirectoryTests(SimpleTestCase):
    def test_is_record_directory(self):
        self.assertTrue(is_record_directory("84"))
        self.assertTrue(is_record_directory("0012"))
        self.assertFalse(is_record_directory("README"))
        self.assertFalse(is_record_directory("1e3"))
        self.assertFalse(is_record_directory("-1"))
        self.assertFalse(is_record_directory(""))

    def test_list_subdirectories_ignores_files(self):
        root = create_record_tree(self, {2: minimal_record(2)}, extra_dirs=["README"])
        with open(os.path.join(root, "1.txt"), "w") as f:
            f.write("not a directory")
        self.assertEqual(list_subdirectories(root), ["2", "README"])

    def test_list_subdirectories_missing_root(self):
        root = create_record_tree(self, {})
        with self.assertRaises(AcquisitionError):
            list_subdirectories(os.path.join(root, "missing"))

    def test_record_path(self):
        self.assertEqual(
            record_path("/data/cache/epub", "84"),
            os.path.join("/data/cache/epub", "84", "pg84.rdf"),
        )


class StoreConnectionTests(SimpleTestCase):
    def test_connection_is_closed(self):
        connection = mock.MagicMock()
        with mock.patch("catalog.sync.connections", {"default": connection}):
            with store_connection() as conn:
                self.assertIs(conn, connection)
                connection.ensure_connection.assert_called_once_with()
                connection.close.assert_not_called()
        connection.close.assert_called_once_with()

    def test_connection_is_closed_on_error(self):
        connection = mock.MagicMock()
        with mock.patch("catalog.sync.connections", {"default": connection}):
            with self.assertRaises(ParseError):
                with store_connection():
                    raise ParseError("Broken record")
        connection.close.assert_called_once_with()

    def test_connection_failure(self):
        connection = mock.MagicMock()
        connection.ensure_connection.side_effect = OperationalError("refused")
        with mock.patch("catalog.sync.connections", {"other": connection}):
            with self.assertRaises(StorageError):
                with store_connection("other"):
                    self.fail("The block should not run")
        connection.close.assert_not_called()

    def test_unknown_alias(self):
        with self.assertRaisesRegex(StorageError, "Unknown database 'missing'"):
            with store_connection("missing"):
                self.fail("The block should not run")


class UpsertBookTests(TestCase):
    def test_insert_uses_model_defaults(self):
        book, created = upsert_book(
            {"gutenberg_id": 5, "title": "Five", "copyright": None}
        )
        self.assertTrue(created)
        book.refresh_from_db()
        self.assertIsNone(book.downloads)
        self.assertEqual(book.type, "Text")
        self.assertEqual(book.authors, [])

    def test_update_replaces_fields(self):
        Book.objects.create(
            gutenberg_id=5,
            title="Old",
            subjects=["Old subject"],
            downloads=42,
            copyright=True,
        )
        book, created = upsert_book(
            {"gutenberg_id": 5, "title": "New", "subjects": [], "copyright": False}
        )
        self.assertFalse(created)
        book.refresh_from_db()
        self.assertEqual(book.title, "New")
        self.assertEqual(book.subjects, [])
        self.assertIs(book.copyright, False)
        self.assertEqual(book.downloads, 42)
        self.assertEqual(Book.objects.count(), 1)

    def test_database_error(self):
        with self.assertRaises(StorageError):
            upsert_book({"gutenberg_id": 6, "title": None})
        self.assertFalse(Book.objects.filter(gutenberg_id=6).exists())


class SyncDirectoryTests(TestCase):
    def create_tree(self, records=None, extra_dirs=("README",)):
        if records is None:
            records = {
                11: build_rdf(
                    title_element("Alice's Adventures in Wonderland"),
                    agent_element("Carroll, Lewis", 1832, 1898),
                    file_element("https://example.com/11.html.images", "text/html"),
                    rights_element(),
                    gutenberg_id=11,
                ),
                84: minimal_record(84, title="Frankenstein"),
                1342: minimal_record(
                    1342, title="Pride and Prejudice", rights="Copyrighted. Maybe."
                ),
            }
        return create_record_tree(self, records, extra_dirs=extra_dirs)

    def test_sync_directory(self):
        root = self.create_tree()

        result = sync_directory(root)

        self.assertEqual(sorted(result.processed), [11, 84, 1342])
        self.assertEqual(result.skipped, ["README"])
        self.assertEqual(result.failed, [])

        alice = Book.objects.get(gutenberg_id=11)
        self.assertEqual(alice.title, "Alice's Adventures in Wonderland")
        self.assertEqual(
            alice.authors,
            [{"name": "Carroll, Lewis", "birth_year": 1832, "death_year": 1898}],
        )
        self.assertEqual(
            alice.formats,
            [
                {
                    "content_type": "text/html",
                    "url": "https://example.com/11.html.images",
                }
            ],
        )
        self.assertIs(alice.copyright, False)
        self.assertIsNone(alice.downloads)
        self.assertIs(Book.objects.get(gutenberg_id=1342).copyright, True)

    def test_non_record_directories_are_never_parsed(self):
        root = self.create_tree(extra_dirs=["README", "catalog-notes"])

        with mock.patch("catalog.sync.parse_record", wraps=parse_record) as parse_mock:
            sync_directory(root)

        parsed = sorted(call.args[0] for call in parse_mock.call_args_list)
        self.assertEqual(parsed, ["11", "1342", "84"])

    def test_sync_is_idempotent(self):
        root = self.create_tree()

        sync_directory(root)
        first = list(
            Book.objects.values(
                "gutenberg_id", "title", "authors", "formats", "copyright", "type"
            )
        )
        sync_directory(root)
        second = list(
            Book.objects.values(
                "gutenberg_id", "title", "authors", "formats", "copyright", "type"
            )
        )

        self.assertEqual(first, second)
        self.assertEqual(Book.objects.count(), 3)
        for gutenberg_id in (11, 84, 1342):
            self.assertEqual(Book.objects.filter(gutenberg_id=gutenberg_id).count(), 1)

    def test_failure_aborts_remaining_records(self):
        root = self.create_tree(
            {
                1: minimal_record(1),
                2: "<rdf:RDF>not xml",
                3: minimal_record(3),
            }
        )

        with self.assertRaises(ParseError):
            sync_directory(root)

        self.assertTrue(Book.objects.filter(gutenberg_id=1).exists())
        self.assertFalse(Book.objects.filter(gutenberg_id=3).exists())

    def test_missing_record_file_aborts(self):
        root = self.create_tree({1: minimal_record(1)}, extra_dirs=["2"])

        with self.assertRaises(ParseError):
            sync_directory(root)

    def test_continue_on_error(self):
        root = self.create_tree(
            {
                1: minimal_record(1),
                2: "<rdf:RDF>not xml",
                3: build_rdf(title_element("No rights"), gutenberg_id=3),
                4: minimal_record(4),
            }
        )

        result = sync_directory(root, continue_on_error=True)

        self.assertEqual(result.processed, [1, 4])
        self.assertEqual(result.failed, [2, 3])
        self.assertEqual(
            list(Book.objects.values_list("gutenberg_id", flat=True)), [1, 4]
        )

    @override_settings(CATALOG_SYNC={"CONTINUE_ON_ERROR": True})
    def test_continue_on_error_setting(self):
        root = self.create_tree({1: "<rdf:RDF>not xml", 2: minimal_record(2)})

        result = sync_directory(root)

        self.assertEqual(result.failed, [1])
        self.assertEqual(result.processed, [2])

    def test_missing_rights_is_fatal_by_default(self):
        root = self.create_tree({1: build_rdf(title_element("No rights"))})

        with self.assertRaises(MissingRequiredFieldError):
            sync_directory(root)

    def test_untitled_record_is_fatal_by_default(self):
        root = self.create_tree({1: build_rdf(rights_element()), 2: minimal_record(2)})

        with self.assertRaises(MappingError):
            sync_directory(root)

        self.assertFalse(Book.objects.exists())

    def test_continue_on_error_skips_untitled_record(self):
        root = self.create_tree(
            {
                1: minimal_record(1),
                2: build_rdf(rights_element(), gutenberg_id=2),
                3: minimal_record(3),
            }
        )

        result = sync_directory(root, continue_on_error=True)

        self.assertEqual(result.processed, [1, 3])
        self.assertEqual(result.failed, [2])
        self.assertEqual(
            list(Book.objects.values_list("gutenberg_id", flat=True)), [1, 3]
        )

    def test_storage_error_is_always_fatal(self):
        root = self.create_tree({1: minimal_record(1), 2: minimal_record(2)})

        with mock.patch(
            "catalog.sync.Book.objects.using",
            side_effect=OperationalError("database is locked"),
        ):
            with self.assertRaises(StorageError):
                sync_directory(root, continue_on_error=True)

        self.assertFalse(Book.objects.exists())

    def test_stored_records_are_logged_with_their_id(self):
        root = self.create_tree({7: minimal_record(7)}, extra_dirs=())

        with mock.patch.object(sync.structured_logger, "_logger") as mock_logger:
            sync_directory(root)

        args, kwargs = mock_logger.debug.call_args
        self.assertEqual(kwargs["event_code"], "catalog_record_stored")
        self.assertEqual(kwargs["gutenberg_id"], 7)
        self.assertIs(kwargs["created"], True)
