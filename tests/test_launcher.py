from __future__ import annotations

import pathlib
import sys
import tempfile
import unittest

from nobs.errors import EXIT_LAUNCH_FAILURE, LaunchFailure
from nobs.launcher import (
    ProcessLauncher,
    command_for,
    compile_command,
    link_command,
    normalize_returncode,
)
from nobs.models import BuildContext, CompileSpec, LinkSpec


class LauncherTests(unittest.TestCase):
    def test_compile_command_splits_flags_on_whitespace(self) -> None:
        spec = CompileSpec(
            source_file=pathlib.Path("src/main.cpp"),
            object_file=pathlib.Path("/b/src/main.cpp.o"),
            compile_flags="-std=c++23  -DNAME=two words",
            source_timestamp=1,
        )
        self.assertEqual(
            compile_command(spec, "g++"),
            [
                "g++",
                "-std=c++23",
                "-DNAME=two",
                "words",
                "-c",
                "-o",
                "/b/src/main.cpp.o",
                "src/main.cpp",
            ],
        )

    def test_link_command_lists_objects_in_order(self) -> None:
        spec = LinkSpec(
            object_files=[pathlib.Path("/b/a.cpp.o"), pathlib.Path("/b/b.cpp.o")],
            target_file=pathlib.Path("/b/demo"),
        )
        self.assertEqual(
            link_command(spec, "clang++"),
            ["clang++", "-o", "/b/demo", "/b/a.cpp.o", "/b/b.cpp.o"],
        )

    def test_command_for_uses_context_tools(self) -> None:
        ctx = BuildContext(
            build_directory=pathlib.Path("/b"),
            project_directory=pathlib.Path("/p"),
            compiler="cc",
            linker="ld",
        )
        link = LinkSpec(object_files=[], target_file=pathlib.Path("/b/t"))
        self.assertEqual(command_for(link, ctx)[0], "ld")

    def test_spawn_missing_executable_is_launch_failure(self) -> None:
        launcher = ProcessLauncher()
        with self.assertRaises(LaunchFailure) as ctx:
            launcher.spawn(["/nonexistent/nobs-compiler", "-c"])
        self.assertEqual(ctx.exception.exit_code, EXIT_LAUNCH_FAILURE)

    def test_poll_and_wait_report_child_exit_code(self) -> None:
        launcher = ProcessLauncher()
        with tempfile.TemporaryDirectory(prefix="nobs_launch_") as tmp:
            proc = launcher.spawn(
                [sys.executable, "-c", "import sys; sys.exit(7)"],
                cwd=pathlib.Path(tmp),
            )
            self.assertEqual(launcher.wait(proc), 7)
            self.assertEqual(launcher.poll(proc), 7)

    def test_signal_exit_maps_to_shell_convention(self) -> None:
        self.assertEqual(normalize_returncode(-9), 137)
        self.assertEqual(normalize_returncode(3), 3)


if __name__ == "__main__":
    unittest.main()
