"""Checking exercises in order and prompting the learner on completion."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum, auto

from .exercise import (
    CompilationError,
    CompiledExercise,
    Exercise,
    ExerciseRunError,
    Mode,
)
from .ui import ProgressBar, Spinner, blue, bold, no_emoji, success, warn


class RunMode(Enum):
    """Whether a passing exercise should prompt for completion."""

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()


class ExerciseFailed(Exception):
    """Raised when an exercise does not compile, run or pass, or is still pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"exercise {exercise} failed")
        self.exercise = exercise


def _percentage(done: int, total: int) -> float:
    return done / total * 100.0 if total else 100.0


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool,
    success_hints: bool,
) -> None:
    """Check each exercise in turn; raise ExerciseFailed at the first that fails."""
    num_done, total = progress
    bar = ProgressBar(total)
    percentage = _percentage(num_done, total)
    bar.set_position(num_done)
    bar.set_message(f"({percentage:.1f} %)")

    for exercise in exercises:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                passed = _compile_and_test(
                    exercise, RunMode.INTERACTIVE, verbose, success_hints
                )
            case Mode.COMPILE:
                passed = _compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                passed = _compile_only(exercise, success_hints)
        if not passed:
            raise ExerciseFailed(exercise)
        if total:
            percentage += 100.0 / total
        bar.inc(1)
        bar.set_message(f"({percentage:.1f} %)")


def test(exercise: Exercise, verbose: bool) -> None:
    """Compile and run the exercise's test harness without prompting."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise, spinner: Spinner) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationError as err:
        spinner.finish_and_clear()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        raise ExerciseFailed(exercise) from err


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with Spinner(f"Compiling {exercise}...") as spinner:
        with _compile(exercise, spinner):
            pass
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with Spinner(f"Compiling {exercise}...") as spinner:
        with _compile(exercise, spinner) as compiled:
            spinner.set_message(f"Running {exercise}...")
            try:
                output = compiled.run()
            except ExerciseRunError as err:
                spinner.finish_and_clear()
                warn(f"Ran {exercise} with errors")
                print(err.output.stdout)
                print(err.output.stderr)
                raise ExerciseFailed(exercise) from err
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: RunMode, verbose: bool, success_hints: bool
) -> bool:
    with Spinner(f"Testing {exercise}...") as spinner:
        with _compile(exercise, spinner) as compiled:
            try:
                output = compiled.run()
            except ExerciseRunError as err:
                spinner.finish_and_clear()
                warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
                print(err.output.stdout)
                raise ExerciseFailed(exercise) from err
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def _separator() -> str:
    return bold("=" * 20)


_SUCCESS_TITLES = {
    Mode.COMPILE: "Successfully ran {}!",
    Mode.TEST: "Successfully tested {}!",
    Mode.CLIPPY: "Successfully compiled {}!",
    Mode.BUILD_SCRIPT: "Successfully compiled {}!",
}


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is done; otherwise show where to continue."""
    state = exercise.state()
    if state.done():
        return True

    success(_SUCCESS_TITLES[exercise.mode].format(exercise))

    plain = no_emoji()
    clippy_msg = (
        "The code is compiling, and Clippy is happy!"
        if plain
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_msg = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_msg,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    if plain:
        print(f"~*~ {success_msg} ~*~")
    else:
        print(f"🎉 🎉  {success_msg} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        print(_separator())
        print(prompt_output)
        print(_separator())
        print()
    if success_hints:
        print("Hints:")
        print(_separator())
        print(exercise.hint)
        print(_separator())
        print()

    print("You can keep working on this exercise,")
    print(
        "or jump into the next one by removing the "
        f"{bold('`I AM NOT DONE`')} comment:"
    )
    print()
    for context_line in state.context:
        text = bold(context_line.line) if context_line.important else context_line.line
        print(f"{blue(bold(f'{context_line.number:>2}'))} {blue('|')}  {text}")

    return False