import logging
import os
import sys
from typing import IO, Optional

from mysh import messages
from mysh.builtins import BuiltinDispatcher
from mysh.config import ShellConfig
from mysh.errors import ShellError
from mysh.executer import PipelineExecutor
from mysh.history import HistoryStore
from mysh.parser import ShellParser

logger = logging.getLogger(__name__)


def read_unbuffered(fd: int) -> Optional[str]:
    """
    Read one line from ``fd`` a byte at a time.

    Nothing past the newline is consumed, so a child that inherits the
    descriptor sees the rest of the input.
    """
    data = bytearray()
    while True:
        byte = os.read(fd, 1)
        if not byte:
            if not data:
                return None
            break
        if byte == b"\n":
            break
        data += byte
    return data.decode(errors="replace")


class Shell:
    """
    The controlling process: owns the history and runs one line per cycle.
    """

    def __init__(
        self,
        config: Optional[ShellConfig] = None,
        executor: Optional[PipelineExecutor] = None,
        out: Optional[IO[str]] = None,
    ) -> None:
        self.config = config or ShellConfig()
        self.history = HistoryStore(self.config.history_size)
        self.parser = ShellParser()
        self.executor = executor or PipelineExecutor()
        self.builtins = BuiltinDispatcher(
            self.history,
            self.executor,
            parser=self.parser,
            out=out,
            max_replay_depth=self.config.max_replay_depth,
        )

    def process_line(self, line: str) -> None:
        if not line.strip():
            return

        earlier = self.history.copy()
        self.history.record(line)
        try:
            pipeline = self.parser.parse_pipeline(line)
            if pipeline.is_single and self.builtins.dispatch(
                pipeline[0], history=earlier
            ):
                return
            self.executor.run(pipeline)
        except ShellError as e:
            logger.debug("line %r failed: %r", line, e)
            messages.report(e)

    def read_line(self, interactive: bool) -> Optional[str]:
        if interactive:
            try:
                return input(self.config.prompt)
            except EOFError:
                return None
        return read_unbuffered(sys.stdin.fileno())

    def run(self) -> None:
        interactive = sys.stdin.isatty()
        while True:
            self.executor.reap_background()
            try:
                line = self.read_line(interactive)
                if line is None:
                    if interactive:
                        print()
                    break
                self.process_line(line)
            except KeyboardInterrupt:
                print()
                continue
