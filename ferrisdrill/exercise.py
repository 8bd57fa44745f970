"""Exercises: loading, compiling, running and checking for completion."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = Path("./exercises/clippy/Cargo.toml")
BUILD_SCRIPT_CARGO_TOML_PATH = Path("./exercises/tests/Cargo.toml")


def temp_file() -> str:
    """Return a temporary executable name unique to this process and thread."""
    thread_id = "".join(
        c for c in f"ThreadId({threading.get_ident()})" if c.isalnum()
    )
    return f"./temp_{os.getpid()}_{thread_id}"


def clean() -> None:
    """Remove the temporary executable, ignoring any error."""
    with suppress(OSError):
        os.remove(temp_file())


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ExerciseOutput:
    stdout: str
    stderr: str


@dataclass(frozen=True)
class ContextLine:
    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state: done when there is no pending context."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


class CompilationError(Exception):
    """Raised when an exercise fails to compile."""

    def __init__(self, exercise: Exercise, output: ExerciseOutput) -> None:
        super().__init__(f"compilation of {exercise} failed")
        self.exercise = exercise
        self.output = output


class ExerciseRunError(Exception):
    """Raised when a compiled exercise exits unsuccessfully."""

    def __init__(self, exercise: Exercise, output: ExerciseOutput) -> None:
        super().__init__(f"running {exercise} failed")
        self.exercise = exercise
        self.output = output


def _execute(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(args, capture_output=True)


def _output(proc: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=proc.stdout.decode("utf-8", "replace"),
        stderr=proc.stderr.decode("utf-8", "replace"),
    )


def _lines(text: str) -> list[str]:
    parts = text.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


@dataclass
class Exercise:
    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _write_cargo_toml(self, target: Path) -> None:
        cargo_toml = (
            "[package]\n"
            f'name = "{self.name}"\n'
            'version = "0.0.1"\n'
            'edition = "2021"\n'
            "[[bin]]\n"
            f'name = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )
        message = (
            "Failed to write Clippy Cargo.toml file."
            if "NO_EMOJI" in os.environ
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        try:
            target.write_text(cargo_toml)
        except OSError as exc:
            raise OSError(message) from exc

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompilationError on failure."""
        out = temp_file()
        source = str(self.path)
        match self.mode:
            case Mode.COMPILE:
                proc = _execute(
                    ["rustc", source, "-o", out, *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
                )
            case Mode.TEST:
                proc = _execute(
                    ["rustc", "--test", source, "-o", out,
                     *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
                )
            case Mode.CLIPPY:
                self._write_cargo_toml(CLIPPY_CARGO_TOML_PATH)
                # Build an executable too, so clippy exercises can be run.
                _execute(
                    ["rustc", source, "-o", out, *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
                )
                manifest = str(CLIPPY_CARGO_TOML_PATH)
                _execute(["cargo", "clean", "--manifest-path", manifest, *RUSTC_COLOR_ARGS])
                proc = _execute(
                    ["cargo", "clippy", "--manifest-path", manifest, *RUSTC_COLOR_ARGS,
                     "--", "-D", "warnings", "-D", "clippy::float_cmp"]
                )
            case Mode.BUILD_SCRIPT:
                self._write_cargo_toml(BUILD_SCRIPT_CARGO_TOML_PATH)
                proc = _execute(
                    ["cargo", "test", "--manifest-path", str(BUILD_SCRIPT_CARGO_TOML_PATH)]
                )
        if proc.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompilationError(self, _output(proc))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        proc = _execute(args)
        output = _output(proc)
        if proc.returncode != 0:
            raise ExerciseRunError(self, output)
        return output

    def state(self) -> State:
        """Inspect the source for an ``I AM NOT DONE`` marker."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()
        lines = _lines(source)
        matched = next(i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line))
        low = max(matched - CONTEXT, 0)
        high = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=i + 1, important=i == matched)
                for i, line in enumerate(lines)
                if low <= i <= high
            )
        )

    def looks_done(self) -> bool:
        """Whether the marker has been removed; no compilation is done."""
        return self.state().done()


class CompiledExercise:
    """A successfully built exercise whose executable is removed on close."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        return self.exercise._run()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from a TOML file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        return [
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
            for entry in data["exercises"]
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"invalid exercise list in {path}: {exc}") from exc