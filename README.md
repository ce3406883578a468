# mimish

A small interactive command shell. It reads a line and checks its syntax. It
then expands variables, reads any here-documents and sets up redirections.
Last, it runs the commands of the pipeline. External programs are found
through the `PATH` entry of the shell's environment.

## Installing

```
pip install .
```

## Running

```
mimish
```

The shell prints a short banner and then the prompt `mimish> `. Press Ctrl+D to
leave. The shell then writes `exit` and ends with the last exit status. The
shell takes no arguments. If you pass any, `main` returns 1 without starting.

## What it understands

- Pipelines, such as `ls | grep py | wc -l`. The exit status is the status of
  the last command.
- Redirections `<`, `>` and `>>`, and here-documents with `<<`. Only the last
  input file and the last output file of a command are used.
- Here-documents are read into temporary files named `.mimish_N` in `/tmp`.
  The files are removed once the line has run. A command with more than 16
  here-documents prints `maximum here-document count exceeded` and ends the
  shell with status 2.
- Single and double quotes. Variables are not expanded inside single quotes.
- The variables `$NAME` and `$?`. `$?` is the last exit status.
- Builtins:
  - `echo`, with one or more leading `-n` options
  - `cd`, which also updates `PWD` and `OLDPWD`
  - `pwd`
  - `export`, with `NAME=value`, `NAME+=value` or a bare `NAME`. With no
    argument it prints a sorted `declare -x` listing.
  - `unset`
  - `env`
  - `exit`, with an optional numeric status
- A builtin that runs alone changes the shell's own state. A builtin inside a
  pipeline works on a copy of the environment.
- A command that cannot be found prints `command not found` and sets the
  status to 127. A line made of only `.`, `/` or `[` does the same.

These lines are refused as syntax errors, and the status is set to 2:

- an unclosed quote
- a pipe with nothing on one side
- three or more `<` or `>` in a row
- a redirection that has no target

## What it does not do

The shell has no `;`, `&&` or `||` lists. It has no wildcard expansion, no
subshells and no job control. Its environment starts as a copy of the
process environment. External programs see only the entries of that
environment that have a value.

## Using it from Python

```python
import io
from mimish.shell import Shell

out = io.StringIO()
shell = Shell({"PATH": "/usr/bin:/bin", "HOME": "/tmp"}, out, io.StringIO())
shell.run_line("export GREETING=hello")
shell.run_line("echo $GREETING world")
print(out.getvalue())  # hello world
```

`Shell.run_line` returns the new exit status. It raises
`mimish.builtins.ShellExit` when the line asks the shell to end.
`Shell.loop(lines)` runs every line of an iterable and returns the final
status. Here-documents read their lines from the same iterable.

Each step can also be used on its own:

- `mimish.quotes` holds `split_quoted`, `split_words`, `remove_quotes` and
  `is_between_quotes`.
- `mimish.syntax.validate` checks a line and raises `ShellSyntaxError` if it
  is malformed.
- `mimish.environment` holds `Environment` and `expand`.
- `mimish.commands.build_commands` turns a line into `Command` objects with
  their `Redirection`s.
- `mimish.heredoc.collect_heredocs` reads the here-documents of a line.
- `mimish.executor.execute` runs a list of commands and returns the exit
  status.