from __future__ import annotations

import os
import pathlib
import tempfile
import unittest
from unittest import mock

from nobs.models import Target
from nobs.project import (
    add_target,
    add_target_include_directories,
    load_project,
)
from nobs.scheduler_args import build_context, parse_args, resolve_parallel_jobs, validate_args

PROJECT_TOML = """
[build]
directory = "out"
jobs = 4

[[target]]
name = "demo"
sources = ["main.cpp", "subdir/bar.cpp"]
include_directories = ["lib1/includes"]
compile_flags = ["-std=c++23"]

[[target]]
name = "tool"
kind = "library"
sources = ["tool.cpp"]

[self_rebuild]
source = "build.cpp"
"""


class ProjectLoadingTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory(prefix="nobs_project_")
        self.addCleanup(self._tmp.cleanup)
        self.root = pathlib.Path(self._tmp.name).resolve()
        for rel in ("main.cpp", "subdir/bar.cpp", "tool.cpp", "build.cpp"):
            path = self.root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("", encoding="utf-8")
        self.project_file = self.root / "nobs.toml"
        self.project_file.write_text(PROJECT_TOML, encoding="utf-8")

    def test_load_project_reads_targets_in_order(self) -> None:
        project = load_project(self.project_file)

        self.assertEqual(project.project_directory, self.root)
        self.assertEqual([t.name for t in project.targets], ["demo", "tool"])
        self.assertEqual([t.kind for t in project.targets], ["executable", "library"])
        demo = project.targets[0]
        self.assertEqual(demo.sources, [pathlib.Path("main.cpp"), pathlib.Path("subdir/bar.cpp")])
        self.assertEqual(demo.compile_flags, ["-Ilib1/includes", "-std=c++23"])
        self.assertEqual(project.settings["build"]["compiler"], "g++")
        assert project.self_rebuild is not None
        self.assertEqual(project.self_rebuild.source, pathlib.Path("build.cpp"))
        self.assertEqual(project.self_rebuild.compile_flags, ["--std=c++23"])

    def test_missing_source_is_rejected(self) -> None:
        (self.root / "tool.cpp").unlink()
        with self.assertRaises(FileNotFoundError):
            load_project(self.project_file)

    def test_duplicate_target_name_is_rejected(self) -> None:
        targets: list[Target] = []
        add_target(targets, "demo")
        with self.assertRaises(ValueError):
            add_target(targets, "demo")

    def test_unknown_target_kind_is_rejected(self) -> None:
        self.project_file.write_text(
            PROJECT_TOML.replace('kind = "library"', 'kind = "plugin"'), encoding="utf-8"
        )
        with self.assertRaises(ValueError):
            load_project(self.project_file)

    def test_include_directories_become_flags(self) -> None:
        target = Target(name="demo")
        add_target_include_directories(target, ["./a", "b/inc"])
        self.assertEqual(target.compile_flags, ["-I./a", "-Ib/inc"])

    def test_environment_overrides_compiler(self) -> None:
        with mock.patch.dict(os.environ, {"NOBS_COMPILER": "clang++"}):
            project = load_project(self.project_file)
        self.assertEqual(project.settings["build"]["compiler"], "clang++")

    def test_build_context_merges_file_and_arguments(self) -> None:
        project = load_project(self.project_file)

        ctx = build_context(project, parse_args([]))
        self.assertEqual(ctx.build_directory, self.root / "out")
        self.assertEqual(ctx.parallel_jobs, 4)
        self.assertFalse(ctx.clean_mode)

        ctx = build_context(project, parse_args(["-m", "2", "-c", "--linker", "ld"]))
        self.assertEqual(ctx.parallel_jobs, 2)
        self.assertTrue(ctx.clean_mode)
        self.assertEqual(ctx.linker, "ld")


class ArgsTests(unittest.TestCase):
    def test_validate_args_rejects_zero_jobs(self) -> None:
        with self.assertRaises(ValueError):
            validate_args(parse_args(["--jobs", "0"]))

    def test_zero_jobs_in_settings_means_cpu_count(self) -> None:
        with mock.patch("nobs.models.os.cpu_count", return_value=12):
            self.assertEqual(resolve_parallel_jobs(0), 12)
        self.assertEqual(resolve_parallel_jobs(3), 3)
        with self.assertRaises(ValueError):
            resolve_parallel_jobs("many")


if __name__ == "__main__":
    unittest.main()
