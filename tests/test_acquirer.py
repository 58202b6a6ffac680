import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

import requests

from cpsat_build.acquirer import acquire_archive, archive_suffix, expected_dir_name, release_url
from cpsat_build.config import BuildSettings
from cpsat_build.errors import DownloadFailed
from cpsat_build.platform_resolver import PlatformIdentifiers
from tests.archive_helpers import fake_get, fake_response, make_tar_gz, make_zip

LINUX_IDS = PlatformIdentifiers("amd64_ubuntu-22.04", "x86_64_Ubuntu-22.04")
WINDOWS_IDS = PlatformIdentifiers("x64_VisualStudio2022", "x64_VisualStudio2022")


class TestReleaseNames(unittest.TestCase):

    def setUp(self):
        self.settings = BuildSettings.from_config({})

    def test_tar_url(self):
        self.assertEqual(
            release_url(self.settings, LINUX_IDS, windows=False),
            "https://github.com/google/or-tools/releases/download/v9.12/"
            "or-tools_amd64_ubuntu-22.04_cpp_v9.12.4544.tar.gz",
        )

    def test_zip_url(self):
        url = release_url(self.settings, WINDOWS_IDS, windows=True)
        self.assertTrue(url.endswith("/v9.12/or-tools_x64_VisualStudio2022_cpp_v9.12.4544.zip"))

    def test_url_follows_configured_release(self):
        settings = BuildSettings.from_config({"ortools": {"version": "9.10", "patch": 4067, "host": "mirror.example"}})
        self.assertEqual(
            release_url(settings, LINUX_IDS, windows=False),
            "https://mirror.example/google/or-tools/releases/download/v9.10/"
            "or-tools_amd64_ubuntu-22.04_cpp_v9.10.4067.tar.gz",
        )

    def test_expected_dir_uses_dir_form(self):
        self.assertEqual(expected_dir_name(self.settings, LINUX_IDS), "or-tools_x86_64_Ubuntu-22.04_cpp_v9.12.4544")

    def test_suffix(self):
        self.assertEqual(archive_suffix(True), "zip")
        self.assertEqual(archive_suffix(False), "tar.gz")


class TestAcquireArchive(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.scratch = os.path.join(self.tmp, "scratch")
        self.settings = BuildSettings.from_config({})

    def tearDown(self):
        shutil.rmtree(self.tmp)

    @patch('cpsat_build.acquirer.requests.get')
    def test_tar_download(self, mock_get):
        dir_name = expected_dir_name(self.settings, LINUX_IDS)
        body = make_tar_gz({f"{dir_name}/include/h.h": b"h", f"{dir_name}/lib/libortools.a": b"a"})
        response = fake_response(body)
        mock_get.return_value = fake_get(response).return_value

        library = acquire_archive(self.settings, LINUX_IDS, self.scratch, windows=False)

        self.assertEqual(library, os.path.join(self.scratch, dir_name))
        self.assertTrue(os.path.isfile(os.path.join(library, "lib", "libortools.a")))
        mock_get.assert_called_once_with(release_url(self.settings, LINUX_IDS, False), stream=True, timeout=None)

    @patch('cpsat_build.acquirer.requests.get')
    def test_zip_download(self, mock_get):
        dir_name = expected_dir_name(self.settings, WINDOWS_IDS)
        body = make_zip({f"{dir_name}/include/h.h": b"h", f"{dir_name}/lib/ortools.lib": b"l"})
        mock_get.return_value = fake_get(fake_response(body)).return_value

        library = acquire_archive(self.settings, WINDOWS_IDS, self.scratch, windows=True)

        self.assertEqual(library, os.path.join(self.scratch, dir_name))
        with open(os.path.join(library, "lib", "ortools.lib"), "rb") as f:
            self.assertEqual(f.read(), b"l")

    @patch('cpsat_build.acquirer.requests.get')
    def test_missing_include_and_lib_are_not_checked_here(self, mock_get):
        mock_get.return_value = fake_get(fake_response(make_tar_gz({"README": b"r"}))).return_value
        library = acquire_archive(self.settings, LINUX_IDS, self.scratch, windows=False)
        self.assertFalse(os.path.exists(library))

    @patch('cpsat_build.acquirer.requests.get')
    def test_http_404(self, mock_get):
        mock_get.return_value = fake_get(fake_response(b"Not Found", status_code=404, reason="Not Found")).return_value

        with self.assertRaises(DownloadFailed) as cm:
            acquire_archive(self.settings, LINUX_IDS, self.scratch, windows=False)

        self.assertEqual(cm.exception.url, release_url(self.settings, LINUX_IDS, False))
        self.assertEqual(cm.exception.status, "404 Not Found")
        self.assertIn(cm.exception.url, cm.exception.format_message())
        self.assertFalse(os.path.exists(self.scratch))
        self.assertEqual(mock_get.call_count, 1)

    @patch('cpsat_build.acquirer.requests.get')
    def test_transport_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("connection refused")

        with self.assertRaises(DownloadFailed) as cm:
            acquire_archive(self.settings, LINUX_IDS, self.scratch, windows=False)

        self.assertIsNone(cm.exception.status)
        self.assertIn("connection refused", cm.exception.message)
        self.assertEqual(mock_get.call_count, 1)

    @patch('cpsat_build.acquirer.requests.get')
    def test_connection_lost_mid_stream(self, mock_get):
        body = make_tar_gz({"x": os.urandom(16384)})

        def broken_chunks(chunk_size):
            yield body[:100]
            raise requests.exceptions.ChunkedEncodingError("connection reset")

        response = fake_response(body)
        response.iter_content.side_effect = broken_chunks
        mock_get.return_value = fake_get(response).return_value

        with self.assertRaises(DownloadFailed) as cm:
            acquire_archive(self.settings, LINUX_IDS, self.scratch, windows=False)
        self.assertIn("connection reset", cm.exception.message)

    @patch('cpsat_build.acquirer.requests.get')
    def test_configured_timeout(self, mock_get):
        settings = BuildSettings.from_config({"ortools": {"timeout": 30}})
        mock_get.return_value = fake_get(fake_response(make_tar_gz({"x": b"x"}))).return_value
        acquire_archive(settings, LINUX_IDS, self.scratch, windows=False)
        self.assertEqual(mock_get.call_args[1]["timeout"], 30.0)


if __name__ == "__main__":
    unittest.main()
