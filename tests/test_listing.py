"""Tests for the directory lister."""

from __future__ import annotations

import locale
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from photo_browser.errors import InvalidRequest, NotADirectory, NotFound
from photo_browser.listing import collation_key, list_directory, sort_key
from photo_browser.models import EntryKind, ResolvedPath, image_set
from photo_browser.paths import PathResolver


class ListDirectoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.resolver = PathResolver(str(self.root), confined=True, home=str(self.root))

        (self.root / "zeta").mkdir()
        (self.root / "Alpha").mkdir()
        (self.root / ".git").mkdir()
        (self.root / "zeta" / "inner.png").write_bytes(b"x")
        for name in ("b.png", "B.png", "a.JPG", "notes.txt", "README", ".hidden.jpg"):
            (self.root / name).write_bytes(b"data")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _list(self, path: str = ""):
        return list_directory(self.resolver.resolve(path), self.resolver)

    def test_hidden_entries_are_excluded(self) -> None:
        names = [entry.name for entry in self._list().entries]
        self.assertNotIn(".git", names)
        self.assertNotIn(".hidden.jpg", names)
        self.assertEqual(len(names), 7)

    def test_directories_come_before_files(self) -> None:
        kinds = [entry.kind for entry in self._list().entries]
        first_file = kinds.index(EntryKind.FILE)
        self.assertTrue(all(kind == EntryKind.DIRECTORY for kind in kinds[:first_file]))
        self.assertTrue(all(kind == EntryKind.FILE for kind in kinds[first_file:]))
        self.assertEqual(first_file, 2)

    def test_each_group_follows_the_sort_key(self) -> None:
        entries = self._list().entries
        self.assertEqual(entries, sorted(entries, key=sort_key))

    def test_repeated_listings_are_identical(self) -> None:
        first = self._list().to_dict()
        second = self._list().to_dict()
        self.assertEqual(first, second)

    def test_extension_is_lowercased_and_empty_for_directories(self) -> None:
        by_name = {entry.name: entry for entry in self._list().entries}
        self.assertEqual(by_name["a.JPG"].extension, ".jpg")
        self.assertEqual(by_name["README"].extension, "")
        self.assertEqual(by_name["Alpha"].extension, "")
        self.assertEqual(by_name["Alpha"].kind, EntryKind.DIRECTORY)

    def test_relative_paths_round_trip_through_resolver(self) -> None:
        listing = self._list("zeta")
        self.assertEqual([entry.relative_path for entry in listing.entries], ["zeta/inner.png"])
        resolved = self.resolver.resolve(listing.entries[0].relative_path)
        self.assertEqual(resolved.absolute, str(self.root / "zeta" / "inner.png"))

    def test_parent_and_json_shape(self) -> None:
        root_listing = self._list()
        self.assertIsNone(root_listing.parent)
        data = self._list("zeta").to_dict()
        self.assertEqual(data["parent"], ".")
        self.assertEqual(data["absolutePath"], str(self.root / "zeta"))
        self.assertEqual(
            data["items"],
            [{"name": "inner.png", "type": "file", "path": "zeta/inner.png", "ext": ".png"}],
        )

    def test_image_set_keeps_listing_order(self) -> None:
        listing = self._list()
        images = image_set(listing)
        self.assertEqual({entry.name for entry in images}, {"b.png", "B.png", "a.JPG"})
        order = [entry.name for entry in listing.entries if entry.name in {"b.png", "B.png", "a.JPG"}]
        self.assertEqual([entry.name for entry in images], order)

    def test_missing_directory_is_not_found(self) -> None:
        with self.assertRaises(NotFound) as ctx:
            self._list("nope")
        self.assertEqual(ctx.exception.status, 404)

    def test_file_is_not_a_directory(self) -> None:
        with self.assertRaises(NotADirectory) as ctx:
            self._list("notes.txt")
        self.assertEqual(ctx.exception.status, 400)

    def test_empty_directory(self) -> None:
        os.mkdir(self.root / "empty")
        self.assertEqual(self._list("empty").entries, [])

    def test_nul_in_absolute_path_is_invalid_request(self) -> None:
        resolved = ResolvedPath(requested="a\x00b", absolute=str(self.root / "a\x00b"), within_root=True)
        with self.assertRaises(InvalidRequest) as ctx:
            list_directory(resolved, self.resolver)
        self.assertEqual(ctx.exception.status, 400)


UTF8_LOCALES = ("en_US.UTF-8", "en_US.utf8", "en_GB.UTF-8", "en_GB.utf8", "de_DE.UTF-8", "de_DE.utf8")


class LocaleCollationTests(unittest.TestCase):
    def setUp(self) -> None:
        self._saved = locale.setlocale(locale.LC_COLLATE)
        for name in UTF8_LOCALES:
            try:
                locale.setlocale(locale.LC_COLLATE, name)
                break
            except locale.Error:
                continue
        else:
            self.skipTest("no UTF-8 collation locale installed")

        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.resolver = PathResolver(str(self.root))
        for name in ("Banana.png", "apple.png", "cherry.png"):
            (self.root / name).write_bytes(b"x")
        (self.root / "Zoo").mkdir()
        (self.root / "archive").mkdir()

    def tearDown(self) -> None:
        locale.setlocale(locale.LC_COLLATE, self._saved)
        self._tmp.cleanup()

    def test_names_follow_locale_order_not_code_points(self) -> None:
        listing = list_directory(self.resolver.resolve(""), self.resolver)
        names = [entry.name for entry in listing.entries]
        self.assertEqual(names, ["archive", "Zoo", "apple.png", "Banana.png", "cherry.png"])
        self.assertNotEqual(names[2:], sorted(names[2:]))


class CollationKeyTests(unittest.TestCase):
    def test_falls_back_to_name_when_collation_fails(self) -> None:
        name = "caf\udce9.jpg"
        error = UnicodeEncodeError("utf-8", name, 3, 4, "surrogates not allowed")
        with mock.patch("photo_browser.listing.locale.strxfrm", side_effect=error):
            self.assertEqual(collation_key(name), name)

    def test_embedded_nul_falls_back_to_name(self) -> None:
        self.assertEqual(collation_key("a\x00b"), "a\x00b")


if __name__ == "__main__":
    unittest.main()
