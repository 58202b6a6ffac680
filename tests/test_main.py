import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from click.testing import CliRunner

from cpsat_build.environment import OsProbeResult
from cpsat_build.main import cli

ARM = "aarch64-unknown-linux-gnu"


class TestMain(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.mkdtemp()
        self.env = {"ORTOOLS_PREFIX": None, "DOCS_RS": None, "ORTOOLS_FORCE_DOWNLOAD": None,
                    "CARGO_FEATURE_BUILD_FORCE": None, "TARGET": None, "OUT_DIR": os.path.join(self.tmp, "out")}

    def tearDown(self):
        shutil.rmtree(self.tmp)

    @patch('cpsat_build.commands.resolve.probe_os', return_value=OsProbeResult())
    def test_resolve(self, mock_probe):
        result = self.runner.invoke(cli, ["--path", self.tmp, "resolve", "--target", ARM], env=self.env)
        self.assertEqual(result.exit_code, 0)
        self.assertIn("aarch64_Debian-12", result.output)
        self.assertIn("or-tools_aarch64_debian-12_cpp_v9.12.4544.tar.gz", result.output)

    @patch('cpsat_build.commands.resolve.probe_os', return_value=OsProbeResult("ubuntu", (99, 99)))
    def test_resolve_fallback_release(self, mock_probe):
        result = self.runner.invoke(cli, ["--path", self.tmp, "resolve", "--target", "x86_64-unknown-linux-gnu"],
                                    env=self.env)
        self.assertEqual(result.exit_code, 0)
        self.assertIn("amd64_ubuntu-22.04", result.output)

    @patch('cpsat_build.commands.resolve.probe_os', return_value=OsProbeResult())
    def test_resolve_unsupported_target(self, mock_probe):
        result = self.runner.invoke(cli, ["--path", self.tmp, "resolve", "--target", "mips-unknown-linux-gnu"],
                                    env=self.env)
        self.assertEqual(result.exit_code, 1)

    @patch('cpsat_build.pipeline.compile_schemas')
    @patch('cpsat_build.commands.build.probe_os', return_value=OsProbeResult())
    @patch('cpsat_build.acquirer.requests.get')
    def test_build_with_broken_override_fails(self, mock_get, mock_probe, mock_schemas):
        env = dict(self.env, ORTOOLS_PREFIX=os.path.join(self.tmp, "nope"))
        result = self.runner.invoke(cli, ["--path", self.tmp, "build", "--target", ARM], env=env)
        self.assertEqual(result.exit_code, 1)
        mock_get.assert_not_called()

    @patch('cpsat_build.pipeline.compile_schemas')
    @patch('cpsat_build.commands.build.probe_os', return_value=OsProbeResult())
    def test_build_docs_rs_skips_native(self, mock_probe, mock_schemas):
        env = dict(self.env, DOCS_RS="1")
        result = self.runner.invoke(cli, ["--path", self.tmp, "build", "--target", ARM], env=env)
        self.assertEqual(result.exit_code, 0)
        mock_schemas.assert_called_once()
        self.assertNotIn("cargo:rustc-link-lib", result.output)

    @patch('cpsat_build.commands.build.run_build', return_value=None)
    @patch('cpsat_build.commands.build.probe_os', return_value=OsProbeResult())
    def test_build_force_download_flag(self, mock_probe, mock_run_build):
        result = self.runner.invoke(cli, ["--path", self.tmp, "build", "--target", ARM, "--force-download"],
                                    env=self.env)
        self.assertEqual(result.exit_code, 0)
        env_snapshot = mock_run_build.call_args[0][0]
        self.assertTrue(env_snapshot.force_download)
        self.assertEqual(env_snapshot.target, ARM)

    def test_clean(self):
        out_dir = os.path.join(self.tmp, "out")
        os.makedirs(os.path.join(out_dir, "shim"))
        result = self.runner.invoke(cli, ["clean", "--out-dir", out_dir])
        self.assertEqual(result.exit_code, 0)
        self.assertFalse(os.path.exists(out_dir))

    def test_clean_nothing_to_do(self):
        result = self.runner.invoke(cli, ["clean", "--out-dir", os.path.join(self.tmp, "absent")])
        self.assertEqual(result.exit_code, 0)

    def test_log_named_file(self):
        log_dir = os.path.join(self.tmp, "logs")
        os.makedirs(log_dir)
        with open(os.path.join(log_dir, "run.log"), "w") as f:
            f.write("[12:00:00] [INFO] fetched archive\n")
        with patch('cpsat_build.commands.log.LOG_DIR', log_dir):
            result = self.runner.invoke(cli, ["log", "--filename", "run.log"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("fetched archive", result.output)

    def test_log_filename_outside_log_dir_is_refused(self):
        log_dir = os.path.join(self.tmp, "logs")
        os.makedirs(log_dir)
        with open(os.path.join(self.tmp, "secret.log"), "w") as f:
            f.write("do not show\n")
        with patch('cpsat_build.commands.log.LOG_DIR', log_dir):
            result = self.runner.invoke(cli, ["log", "--filename", "../secret.log"])
        self.assertEqual(result.exit_code, 2)
        self.assertNotIn("do not show", result.output)

    def test_version(self):
        result = self.runner.invoke(cli, ["version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("cpsat-build", result.output)

    @patch('cpsat_build.commands.doctor.shutil.which', return_value="/usr/bin/tool")
    @patch('cpsat_build.commands.doctor.probe_os', return_value=OsProbeResult())
    def test_doctor_ready(self, mock_probe, mock_which):
        prefix = os.path.join(self.tmp, "ortools")
        os.makedirs(os.path.join(prefix, "include"))
        os.makedirs(os.path.join(prefix, "lib"))
        os.makedirs(os.path.join(self.tmp, "src"))
        open(os.path.join(self.tmp, "src", "cp_sat_wrapper.cpp"), "w").close()
        env = dict(self.env, TARGET=ARM, ORTOOLS_PREFIX=prefix)
        result = self.runner.invoke(cli, ["--path", self.tmp, "doctor"], env=env)
        self.assertEqual(result.exit_code, 0)

    @patch('cpsat_build.commands.doctor.shutil.which', return_value=None)
    @patch('cpsat_build.commands.doctor.probe_os', return_value=OsProbeResult())
    def test_doctor_missing_tools(self, mock_probe, mock_which):
        env = dict(self.env, TARGET=ARM)
        result = self.runner.invoke(cli, ["--path", self.tmp, "doctor"], env=env)
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
