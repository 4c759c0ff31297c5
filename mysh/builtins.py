import logging
import os
import sys
from typing import IO, Optional

from mysh import messages
from mysh.ast_tree import Stage
from mysh.config import MAX_REPLAY_DEPTH
from mysh.errors import (
    DirectoryChangeError,
    HistoryRecursionLimitError,
    MissingArgumentError,
    NoSuchHistoryIndexError,
)
from mysh.executer import PipelineExecutor
from mysh.history import HistoryStore
from mysh.parser import ShellParser

logger = logging.getLogger(__name__)

REPLAY_PREFIX = "!"


class BuiltinDispatcher:
    """
    Runs built-in commands in the interpreter process itself.

    ``dispatch`` returns True when the stage was a built-in. Failures are
    raised as ShellError subclasses for the caller to report.
    """

    def __init__(
        self,
        history: HistoryStore,
        executor: PipelineExecutor,
        parser: Optional[ShellParser] = None,
        out: Optional[IO[str]] = None,
        max_replay_depth: int = MAX_REPLAY_DEPTH,
    ) -> None:
        self.history = history
        self.executor = executor
        self.parser = parser or ShellParser()
        self.out = out
        self.max_replay_depth = max_replay_depth

    def dispatch(
        self,
        stage: Stage,
        depth: int = 0,
        history: Optional[HistoryStore] = None,
    ) -> bool:
        """
        Run ``stage`` if it is a built-in.

        ``history`` is the view a top-level `!N` is resolved against; the
        shell passes the history as it was before the current line was
        recorded. Nested replays always use the live history.
        """
        name = stage.name
        args = stage.args[1:]

        if name == "exit":
            self._builtin_exit()
        elif name == "cd":
            self._builtin_cd(args)
        elif name == "history":
            self._builtin_history()
        elif name.startswith(REPLAY_PREFIX):
            if history is None:
                history = self.history
            self._replay(name[len(REPLAY_PREFIX):], depth, history)
        else:
            return False
        return True

    def _builtin_exit(self) -> None:
        print(messages.FAREWELL, file=self.out or sys.stdout, flush=True)
        sys.exit(0)

    def _builtin_cd(self, args) -> None:
        if not args:
            raise MissingArgumentError("cd")
        try:
            os.chdir(args[0])
        except OSError as e:
            raise DirectoryChangeError(args[0], e) from e

    def _builtin_history(self) -> None:
        out = self.out or sys.stdout
        for line in self.history.render():
            print(line, file=out)
        out.flush()

    def _replay(self, number: str, depth: int, history: HistoryStore) -> None:
        if not (number.isascii() and number.isdigit()):
            raise NoSuchHistoryIndexError()
        if depth >= self.max_replay_depth:
            raise HistoryRecursionLimitError(self.max_replay_depth)

        line = history.get(int(number))
        logger.debug("replaying history entry %s: %r", number, line)

        pipeline = self.parser.parse_pipeline(line)
        if pipeline.is_single and self.dispatch(pipeline[0], depth + 1):
            return
        self.executor.run(pipeline)
