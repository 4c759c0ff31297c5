import logging
import os
import subprocess
import sys
from contextlib import ExitStack
from typing import IO, List, Optional, Union

from mysh import messages
from mysh.ast_tree import BackgroundProcess, Pipeline, Stage
from mysh.errors import (
    CommandNotFoundError,
    RedirectKind,
    RedirectOpenError,
    SpawnFailureError,
)

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127

OUTPUT_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
OUTPUT_MODE = 0o644

Stream = Union[None, int, IO]
# a live child, or the exit status of a stage that never started
Spawned = Union[subprocess.Popen, int]


def _close(fd: Optional[int]) -> None:
    if fd is not None:
        os.close(fd)


def _failure_status(error: CommandNotFoundError) -> int:
    if isinstance(error.cause, PermissionError):
        return EXIT_NOT_EXECUTABLE
    return EXIT_NOT_FOUND


class PipelineExecutor:
    """
    Spawns one process per stage and waits according to the pipeline shape.

    ``stdin`` and ``stdout`` are what the pipeline's open ends inherit; the
    default ``None`` means the interpreter's own standard streams.
    """

    def __init__(
        self,
        stdin: Stream = None,
        stdout: Stream = None,
        stderr: Optional[IO[str]] = None,
    ) -> None:
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.jobs: List[BackgroundProcess] = []

    def run(self, pipeline: Pipeline) -> int:
        if pipeline.is_single:
            return self._run_single(pipeline[0])
        return self._run_pipe(pipeline)

    def reap_background(self) -> List[BackgroundProcess]:
        finished = [job for job in self.jobs if job.process.poll() is not None]
        for job in finished:
            self.jobs.remove(job)
            logger.debug(
                "reaped background pid %d with status %d",
                job.pid,
                job.process.returncode,
            )
            messages.notice(f"[{job.pid}] done  {job.cmd}")
        return finished

    def _run_single(self, stage: Stage) -> int:
        with ExitStack() as stack:
            try:
                stdin = self.stdin
                stdout = self.stdout
                if stage.input_file is not None:
                    stdin = self._open(stack, stage.input_file, RedirectKind.INPUT)
                if stage.output_file is not None:
                    stdout = self._open(stack, stage.output_file, RedirectKind.OUTPUT)
            except RedirectOpenError as e:
                messages.report(e, self.stderr)
                return EXIT_FAILURE

            try:
                process = self._spawn(stage, stdin, stdout)
            except CommandNotFoundError as e:
                messages.report(e, self.stderr)
                return _failure_status(e)

        if stage.background:
            self.jobs.append(BackgroundProcess(process, str(stage)))
            messages.notice(f"[{process.pid}]")
            return 0

        return self._wait_all([process])[0]

    def _run_pipe(self, pipeline: Pipeline) -> int:
        for stage in pipeline:
            if stage.input_file or stage.output_file or stage.background:
                logger.debug("ignoring redirection and background of %r in pipe", stage)

        last = len(pipeline) - 1
        processes: List[Spawned] = []
        read_end: Optional[int] = None
        try:
            for i, stage in enumerate(pipeline):
                stdin = self.stdin if read_end is None else read_end
                next_read = write_end = None
                try:
                    if i < last:
                        next_read, write_end = self._pipe()
                    stdout = self.stdout if write_end is None else write_end
                    processes.append(self._spawn_stage(stage, stdin, stdout))
                except BaseException:
                    _close(next_read)
                    raise
                finally:
                    # the parent never reads or writes through pipe ends
                    _close(read_end)
                    _close(write_end)
                    read_end = None
                read_end = next_read
        finally:
            codes = self._wait_all(processes)

        return codes[-1]

    def _spawn_stage(self, stage: Stage, stdin: Stream, stdout: Stream) -> Spawned:
        try:
            return self._spawn(stage, stdin, stdout)
        except CommandNotFoundError as e:
            messages.report(e, self.stderr)
            return _failure_status(e)

    def _spawn(self, stage: Stage, stdin: Stream, stdout: Stream) -> subprocess.Popen:
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            process = subprocess.Popen(stage.args, stdin=stdin, stdout=stdout)
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            raise CommandNotFoundError(stage.name, e) from e
        except OSError as e:
            raise SpawnFailureError("fork", e) from e
        logger.debug("spawned pid %d: %s", process.pid, stage.args)
        return process

    def _pipe(self):
        try:
            read_end, write_end = os.pipe()
        except OSError as e:
            raise SpawnFailureError("pipe", e) from e
        logger.debug("created pipe %d -> %d", write_end, read_end)
        return read_end, write_end

    def _open(self, stack: ExitStack, path: str, kind: RedirectKind) -> int:
        try:
            if kind is RedirectKind.INPUT:
                fd = os.open(path, os.O_RDONLY)
            else:
                fd = os.open(path, OUTPUT_FLAGS, OUTPUT_MODE)
        except OSError as e:
            raise RedirectOpenError(kind, path, e) from e
        stack.callback(os.close, fd)
        return fd

    def _wait_all(self, processes: List[Spawned]) -> List[int]:
        codes = []
        interrupted = False
        for process in processes:
            if isinstance(process, int):
                codes.append(process)
                continue
            while True:
                try:
                    code = process.wait()
                    break
                except KeyboardInterrupt:
                    interrupted = True
            logger.debug("pid %d exited with status %d", process.pid, code)
            codes.append(code)
        if interrupted:
            raise KeyboardInterrupt
        return codes
