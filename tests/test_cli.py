import json
import subprocess
import threading
from pathlib import Path

import pytest

from ferrisdrill.cli import (
    ExerciseCheckList,
    ExerciseNotFound,
    ExerciseResult,
    ExerciseStatistics,
    build_parser,
    cicv_verify,
    find_exercise,
    list_exercises,
    main,
    rustc_exists,
)
from ferrisdrill.exercise import load_exercises

SOURCES = {
    "compFailure.rs": "fn main() {\n    let\n}\n",
    "compNoExercise.rs": "fn main() {\n}\n",
    "testFailure.rs": "#[test]\nfn passing() {\n    asset!(true);\n}\n",
    "testNotPassed.rs": "#[test]\nfn not_passing() {\n    assert!(false);\n}\n",
    "finished_exercise.rs": "// fake_exercise\n\nfn main() {\n\n}\n",
    "pending_exercise.rs": "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n",
    "pending_test_exercise.rs": "// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n",
    "compSuccess.rs": "fn main() {\n}\n",
    "testSuccess.rs": (
        "#[test]\nfn passing() {\n"
        '    println!("THIS TEST TOO SHALL PASS");\n    assert!(true);\n}\n'
    ),
    "intro1.rs": "fn main() {}\n",
}

FIXTURES = {
    "success": [
        ("compSuccess", "compile", ""),
        ("testSuccess", "test", ""),
    ],
    "failure": [
        ("compFailure", "compile", ""),
        ("compNoExercise", "compile", ""),
        ("testFailure", "test", "Hello!"),
        ("testNotPassed", "test", ""),
    ],
    "state": [
        ("pending_exercise", "compile", ""),
        ("pending_test_exercise", "test", ""),
        ("finished_exercise", "compile", ""),
    ],
    "root": [("intro1", "compile", "")],
}


def make_fixture(base: Path, name: str) -> Path:
    directory = base / name
    directory.mkdir()
    entries = []
    for exercise, mode, hint in FIXTURES[name]:
        (directory / f"{exercise}.rs").write_text(SOURCES[f"{exercise}.rs"])
        entries.append(
            "[[exercises]]\n"
            f'name = "{exercise}"\n'
            f'path = "{exercise}.rs"\n'
            f'mode = "{mode}"\n'
            f'hint = "{hint}"\n'
        )
    (directory / "info.toml").write_text("\n".join(entries))
    return directory


class FakeToolchain:
    COMPILE_FAILURES = {"compFailure.rs", "testFailure.rs"}

    def __init__(self):
        self.binaries = {}
        self.lock = threading.Lock()

    def __call__(self, args, **kwargs):
        args = [str(a) for a in args]
        if args[0] == "rustc":
            if "--version" in args:
                return subprocess.CompletedProcess(args, 0, b"", b"")
            source = Path(next(a for a in args if a.endswith(".rs"))).name
            if source in self.COMPILE_FAILURES:
                return subprocess.CompletedProcess(args, 1, b"", b"error: expected pattern")
            with self.lock:
                self.binaries[args[args.index("-o") + 1]] = source
            return subprocess.CompletedProcess(args, 0, b"", b"")
        with self.lock:
            source = self.binaries.get(args[0])
        if source is None:
            raise FileNotFoundError(args[0])
        if source == "testNotPassed.rs":
            return subprocess.CompletedProcess(args, 101, b"test not_passing ... FAILED\n", b"")
        if source == "testSuccess.rs" and "--show-output" in args:
            return subprocess.CompletedProcess(args, 0, b"THIS TEST TOO SHALL PASS\n", b"")
        return subprocess.CompletedProcess(args, 0, b"", b"")


class PopenRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        return self


@pytest.fixture(autouse=True)
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def popen(monkeypatch):
    recorder = PopenRecorder()
    monkeypatch.setattr(subprocess, "Popen", recorder)
    return recorder


@pytest.fixture
def in_fixture(tmp_path, monkeypatch):
    def enter(name):
        directory = make_fixture(tmp_path, name)
        monkeypatch.chdir(directory)
        return directory

    return enter


def test_runs_without_arguments(in_fixture, capsys):
    in_fixture("success")
    assert main([]) == 0
    assert "Thanks for installing" in capsys.readouterr().out


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1


def test_version(capsys):
    assert main(["-v"]) == 0
    assert capsys.readouterr().out == "v5.5.1\n"


def test_missing_rustc(in_fixture, monkeypatch, capsys):
    in_fixture("success")

    def no_rustc(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(subprocess, "run", no_rustc)
    assert main(["verify"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


def test_verify_all_success(in_fixture):
    in_fixture("success")
    assert main(["verify"]) == 0


def test_verify_fails_if_some_fails(in_fixture):
    in_fixture("failure")
    assert main(["verify"]) == 1


@pytest.mark.parametrize(
    "fixture, name, code",
    [
        ("success", "compSuccess", 0),
        ("failure", "compFailure", 1),
        ("success", "testSuccess", 0),
        ("failure", "testFailure", 1),
        ("failure", "testNotPassed.rs", 1),
        ("failure", "compNoExercise.rs", 1),
    ],
)
def test_run_single(in_fixture, fixture, name, code):
    in_fixture(fixture)
    assert main(["run", name]) == code


def test_run_single_test_no_filename(in_fixture, capsys):
    in_fixture("success")
    with pytest.raises(SystemExit) as excinfo:
        main(["run"])
    assert excinfo.value.code == 1


def test_reset_single_exercise(in_fixture, popen):
    in_fixture("root")
    assert main(["reset", "intro1"]) == 0
    assert popen.calls == [["git", "stash", "--", "intro1.rs"]]


def test_reset_no_exercise(in_fixture, capsys):
    in_fixture("root")
    with pytest.raises(SystemExit) as excinfo:
        main(["reset"])
    assert excinfo.value.code == 1
    assert "positional arguments not provided" in capsys.readouterr().err


def test_get_hint_for_single_test(in_fixture, capsys):
    in_fixture("failure")
    assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


@pytest.mark.parametrize("name", ["pending_exercise", "pending_test_exercise"])
def test_run_exercise_does_not_prompt(in_fixture, capsys, name):
    in_fixture("state")
    assert main(["run", name]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_single_test_success_with_output(in_fixture, capsys):
    in_fixture("success")
    assert main(["--nocapture", "run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_single_test_success_without_output(in_fixture, capsys):
    in_fixture("success")
    assert main(["run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_list_no_pending(in_fixture, capsys):
    in_fixture("success")
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "compSuccess" in out


def test_list_both_done_and_pending(in_fixture, capsys):
    in_fixture("state")
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Done" in out and "Pending" in out


def test_list_without_pending(in_fixture, capsys):
    in_fixture("state")
    assert main(["list", "--solved"]) == 0
    assert "Pending" not in capsys.readouterr().out


def test_list_without_done(in_fixture, capsys):
    in_fixture("state")
    assert main(["list", "--unsolved"]) == 0
    assert "Done" not in capsys.readouterr().out


def test_list_exercises_names_and_filter(in_fixture):
    in_fixture("success")
    exercises = load_exercises("info.toml")
    lines = list_exercises(exercises, False, True, "COMP", False, False)
    assert lines == [
        "compSuccess",
        "Progress: You completed 2 / 2 exercises (100.0 %).",
    ]


def test_list_exercises_paths_unsolved(in_fixture):
    in_fixture("state")
    exercises = load_exercises("info.toml")
    lines = list_exercises(exercises, True, False, None, True, False)
    assert lines == [
        "pending_exercise.rs",
        "pending_test_exercise.rs",
        "Progress: You completed 1 / 3 exercises (33.3 %).",
    ]


def test_list_exercises_table_row(in_fixture):
    in_fixture("state")
    exercises = load_exercises("info.toml")
    lines = list_exercises(exercises, False, False, "finished", False, False)
    assert lines[0] == f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"
    assert lines[1] == f"{'finished_exercise':<17}\t{'finished_exercise.rs':<46}\t{'Done':<7}"
    assert len(lines) == 3


def test_find_exercise_next(in_fixture):
    in_fixture("state")
    exercises = load_exercises("info.toml")
    assert find_exercise("next", exercises).name == "pending_exercise"


def test_find_exercise_next_all_done(in_fixture):
    in_fixture("success")
    exercises = load_exercises("info.toml")
    with pytest.raises(ExerciseNotFound, match="Congratulations"):
        find_exercise("next", exercises)


def test_find_exercise_missing(in_fixture):
    in_fixture("success")
    exercises = load_exercises("info.toml")
    with pytest.raises(ExerciseNotFound, match="No exercise found for 'nope'!"):
        find_exercise("nope", exercises)


def test_rustc_exists(monkeypatch):
    assert rustc_exists() is True

    def failing(args, **kwargs):
        return subprocess.CompletedProcess(args, 1, b"", b"")

    monkeypatch.setattr(subprocess, "run", failing)
    assert rustc_exists() is False


def test_check_list_to_json():
    check_list = ExerciseCheckList(
        exercises=[ExerciseResult(name="intro1", result=True)],
        statistics=ExerciseStatistics(total_exercations=1, total_succeeds=1),
    )
    assert json.loads(check_list.to_json()) == {
        "exercises": [{"name": "intro1", "result": True}],
        "user_name": None,
        "statistics": {
            "total_exercations": 1,
            "total_succeeds": 1,
            "total_failures": 0,
            "total_time": 0,
        },
    }


def test_cicvverify(in_fixture):
    directory = in_fixture("success")
    (directory / ".github" / "result").mkdir(parents=True)
    assert main(["--nocapture", "cicvverify"]) == 0
    report = json.loads((directory / ".github/result/check_result.json").read_text())
    assert report["statistics"]["total_exercations"] == 2
    assert report["statistics"]["total_succeeds"] == 2
    assert report["statistics"]["total_failures"] == 0
    assert {e["name"] for e in report["exercises"]} == {"compSuccess", "testSuccess"}


def test_cicv_verify_counts_failures(in_fixture, tmp_path):
    in_fixture("failure")
    exercises = load_exercises("info.toml")
    output = tmp_path / "report.json"
    check_list = cicv_verify(exercises, False, output)
    results = {r.name: r.result for r in check_list.exercises}
    assert results == {
        "compFailure": False,
        "compNoExercise": True,
        "testFailure": False,
        "testNotPassed": False,
    }
    assert check_list.statistics.total_succeeds == 1
    assert check_list.statistics.total_failures == 3
    assert json.loads(output.read_text())["statistics"]["total_failures"] == 3


def test_build_parser_list_options():
    args = build_parser().parse_args(["list", "-p", "-f", "a,b", "-s"])
    assert (args.command, args.paths, args.names, args.filter, args.solved, args.unsolved) == (
        "list",
        True,
        False,
        "a,b",
        True,
        False,
    )


def test_build_parser_watch_success_hints():
    args = build_parser().parse_args(["--nocapture", "watch", "--success-hints"])
    assert args.command == "watch"
    assert args.success_hints is True
    assert args.nocapture is True