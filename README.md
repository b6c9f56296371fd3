# cslabkit

Two small toolkits in one package:

* **A benchmark driver** for two image kernels, *rotate* and *smooth*,
  working on square images of RGB pixels. Every selected kernel is checked
  for correctness and then timed; the driver reports the time per element
  (CPE) for several image sizes and the speedup over a set of baseline
  figures, summarised by a geometric mean.
* **A tiny shell with job control** (`tsh`) together with small helper
  programs that exercise it.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## The benchmark driver

```
perflab-driver [-hqg] [-f <func_file>] [-d <dump_file>]
```

| Option      | Meaning                                                       |
|-------------|---------------------------------------------------------------|
| `-h`        | print the help message                                        |
| `-q`        | quit after dumping (use with `-d`)                            |
| `-g`        | autograder mode: only `rotate()` and `smooth()` are checked   |
| `-f <file>` | take the names of the kernels to test from a dump file        |
| `-d <file>` | write a dump file of all kernel names for later use with `-f` |
| `-t`        | skip printing the team information                            |
| `-s <seed>` | seed for the random test images (default 1729)                |

A dump file holds one line per kernel, `R:<description>` for rotate
kernels and `S:<description>` for smooth kernels. Delete lines from it to
narrow down which kernels a later `-f` run measures. In autograder mode
the final line is `bestscores:<rotate>:<smooth>:`; otherwise a summary of
the best mean speedup for each kernel kind is printed.

### Kernels

`cslabkit.kernels` holds `naive_rotate`, `rotate`, `rotate2`, `rotate3`,
`rotate4`, `naive_smooth` and `smooth`. Each takes the image dimension and
a flat, row-major list of `Pixel` values and returns a new image.
`rotate` to `rotate4` work in 4, 8, 16 and 32 pixel square blocks and need
a dimension that is a multiple of the block size. `rotate_kernels()` and
`smooth_kernels()` return the registered `Kernel` entries in the order the
driver runs them; `average` and `ridx` are the helpers they share.

### Using the driver from Python

```python
from cslabkit.driver import Driver

driver = Driver(seed=1729)
driver.select_all()
rotate_best, smooth_best = driver.run()
```

`Driver.test_rotate(index)` and `Driver.test_smooth(index)` test a single
benchmark and return its mean speedup, or `None` if it produced a wrong
image. `check_rotate` and `check_smooth` raise `CorrectnessError` for a
wrong result; `speedup` computes per-size ratios and their geometric mean.

### Timing

`cslabkit.sampler.measure(func, args, config)` repeats a call until the K
best samples agree within a tolerance or a sample limit is reached, and
returns the smallest sample (K = 3, up to 20 samples, 1% tolerance by
default; see `MeasurementConfig`). It can read through a cache-sized
buffer (`CacheClearer`) before each sample and compensate for time lost
to timer interrupts with `cslabkit.timing.CompensatedCounter`. The driver
turns both on, with a 16 KB buffer.

## The tiny shell

```
tsh [-hvp]
```

* `-h` print a help message
* `-v` print additional diagnostic information (jobs as they are added)
* `-p` do not print a prompt (handy for scripted testing)

Commands are run in their own process groups, in the foreground or, with
a trailing `&`, in the background. Built-ins:

* `quit` — leave the shell
* `jobs` — list current jobs
* `bg <job>` — continue a stopped job in the background
* `fg <job>` — continue a job in the foreground

A job is named by its process ID or by `%` followed by its job ID.
Ctrl-C and Ctrl-Z are forwarded to the foreground job; SIGQUIT ends the
shell. Words enclosed in single quotes form a single argument. The job
list (`cslabkit.jobs.JobTable`) holds at most 16 jobs.

### Helper programs

Each takes one argument, a number of seconds `n`:

* `myspin n` — sleeps for `n` seconds in one-second steps
* `myint n` — sleeps `n` seconds, then sends itself SIGINT
* `mystop n` — sleeps `n` seconds, then sends SIGTSTP to the process group it leads
* `mysplit n` — forks a child that sleeps `n` seconds and waits for it

For example, inside `tsh`:

```
tsh> /path/to/myspin 5 &
tsh> jobs
tsh> fg %1
```

## What this package does not do

* Timing uses Python's high-resolution clock, counting nanoseconds, not a
  processor cycle counter. The reported CPE figures are therefore
  nanoseconds per element, and the speedups compare them with fixed
  baseline figures rather than with a measurement of the naive kernels on
  the same machine.
* The shell does not search `PATH`: a command must be given as a path to
  the program. It has no pipes, redirection, variables or globbing.
* The shell and its helper programs need a POSIX system.