# ferrisdrill

`ferrisdrill` walks you through a collection of small Rust exercises. Each
exercise is a single `.rs` file that fails to compile or fails its tests until
you fix it. The tool compiles and runs the exercises for you, shows you the
compiler output, tracks which ones you have finished and can watch your files
so that every save is checked straight away.

## Requirements

- Python 3.11 or later
- `rustc` on your `PATH`. Every command except `--version` checks for it and
  exits with status 1 if `rustc --version` cannot be run. `cargo` is also
  needed for exercises that use Clippy or a build script.
- An exercise directory with an `info.toml` file at its top. Run every command
  from that directory; without `info.toml` the tool exits with status 1.

## Installation

```
pip install ferrisdrill
```

## The exercise list

`info.toml` lists the exercises in the order they are meant to be done:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment when you are ready."
```

Every entry needs all four keys. `mode` is one of:

- `compile`: compile the file with `rustc` as a program and run it
- `test`: compile the file with `rustc --test` and run its tests
- `clippy`: write `exercises/clippy/Cargo.toml`, compile the file, then run
  `cargo clean` and `cargo clippy` on it with warnings treated as errors
- `buildscript`: write `exercises/tests/Cargo.toml` and run `cargo test` on it

An exercise counts as pending while its file still contains a line consisting
of the comment `// I AM NOT DONE` (or `/// I AM NOT DONE`). When a pending
exercise compiles and passes, the tool stops and shows you that comment with
two lines of context on each side. Delete it to move on.

The compiled program is written to a temporary file `./temp_<pid>_<thread>`
in the current directory and removed again afterwards.

## Commands

```
ferrisdrill                     # welcome text and a short introduction
ferrisdrill --version           # print the version
ferrisdrill watch               # check the exercises in order and re-check on every save
ferrisdrill watch --success-hints
ferrisdrill verify              # check all exercises in order, stop at the first failure
ferrisdrill run <name>          # compile and run (or test) one exercise
ferrisdrill run next            # the first exercise not yet done
ferrisdrill hint <name>         # print the hint for an exercise
ferrisdrill reset <name>        # undo your changes to an exercise with `git stash`
ferrisdrill list                # table of every exercise with its status
ferrisdrill lsp                 # write rust-project.json for rust-analyzer
ferrisdrill cicvverify          # grade every exercise and write a JSON report
```

`run`, `verify` and `reset` exit with status 1 when the exercise fails or
cannot be found. Add `--nocapture` before the subcommand to see the output of
test exercises:

```
ferrisdrill --nocapture run <name>
```

### Listing exercises

```
ferrisdrill list --paths        # only the file paths   (-p)
ferrisdrill list --names        # only the names        (-n)
ferrisdrill list --filter loop,vec                     # (-f)
ferrisdrill list --solved                              # (-s)
ferrisdrill list --unsolved                            # (-u)
```

`--filter` takes comma-separated patterns and keeps exercises whose name or
path contains any of them. The list ends with your overall progress, for
example `Progress: You completed 3 / 10 exercises (30.0 %).`

### Watch mode

`watch` checks the exercises in order. When one fails or is still pending it
waits for `.rs` files under `./exercises` to be created or changed, then checks
the changed exercise first, followed by every other exercise not yet done.

While it is running you can type:

- `hint`: print the hint for the current exercise
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a command, for example `!rustc --explain E0381`
- `help`: show this list

### Grading

`cicvverify` runs every exercise concurrently, prints the result of each one as
it finishes and writes a summary to `.github/result/check_result.json`: one
entry per exercise with its name and whether it passed, plus the totals and
the time taken in seconds. The directory `.github/result` must already exist.

### rust-analyzer

`lsp` finds every `.rs` file under `exercises/` and writes a compact
`rust-project.json` so that rust-analyzer treats each one as its own crate
with the `test` cfg enabled. The standard library sources are taken from
`RUST_SRC_PATH` if it is set, and otherwise from the sysroot that
`rustc --print sysroot` reports.

## Environment

- `NO_EMOJI`: set to any value to replace emoji in the output with plain
  symbols.
- `CLICOLOR_FORCE`: set to a value other than `0` to force colours.
- `CLICOLOR=0`: turn colours off. Otherwise colours are used only when the
  output is a terminal.

## Using it from Python

The pieces behind the commands can also be used directly:

```python
from ferrisdrill.exercise import load_exercises
from ferrisdrill.verify import verify
from ferrisdrill.cli import list_exercises

exercises = load_exercises("info.toml")
pending = [e for e in exercises if not e.looks_done()]
print(f"{len(pending)} exercises left")

for line in list_exercises(exercises, unsolved=True):
    print(line)

verify(exercises, (0, len(exercises)), False, False)
```

- `ferrisdrill.exercise`: `Exercise`, `Mode`, `load_exercises()`.
  `Exercise.compile()` returns a `CompiledExercise` (a context manager that
  removes the temporary program on exit) or raises `CompilationError`;
  `CompiledExercise.run()` returns an `ExerciseOutput` or raises
  `ExerciseRunError`. `Exercise.state()` returns a `State` whose `context`
  holds the `ContextLine`s around the pending marker.
- `ferrisdrill.verify`: `verify()` raises `ExerciseFailed` at the first
  exercise that does not compile, does not pass or is still marked as not
  done; `test()` runs a test exercise without the completion prompt.
- `ferrisdrill.run`: `run()` and `reset()`, raising `ExerciseFailed` on
  failure.
- `ferrisdrill.project`: `RustAnalyzerProject` for building
  `rust-project.json`.
- `ferrisdrill.cli`: `main()`, `find_exercise()` (raises `ExerciseNotFound`),
  `list_exercises()` and `cicv_verify()`.