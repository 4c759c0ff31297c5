import subprocess
from typing import Iterator, List, NamedTuple, Optional

from mysh.errors import EmptyCommandError, EmptyPipelineError


class Stage:
    """
    One command of a pipeline with its redirections and background flag.
    """

    def __init__(
        self,
        args: List[str],
        input_file: Optional[str] = None,
        output_file: Optional[str] = None,
        background: bool = False,
    ) -> None:
        if not args or not args[0]:
            raise EmptyCommandError()
        self.args = args
        self.input_file = input_file
        self.output_file = output_file
        self.background = background

    @property
    def name(self) -> str:
        return self.args[0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return (
            self.args == other.args
            and self.input_file == other.input_file
            and self.output_file == other.output_file
            and self.background == other.background
        )

    def __str__(self) -> str:
        parts = list(self.args)
        if self.input_file is not None:
            parts.append(f"< {self.input_file}")
        if self.output_file is not None:
            parts.append(f"> {self.output_file}")
        if self.background:
            parts.append("&")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"Stage({self.args}, in={self.input_file}, "
            f"out={self.output_file}, bg={self.background})"
        )


class Pipeline:
    """
    Stages connected left to right by anonymous pipes.
    """

    def __init__(self, stages: List[Stage]) -> None:
        if not stages:
            raise EmptyPipelineError()
        self.stages = stages

    @property
    def is_single(self) -> bool:
        return len(self.stages) == 1

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __getitem__(self, index: int) -> Stage:
        return self.stages[index]

    def __str__(self) -> str:
        return " | ".join(str(stage) for stage in self.stages)

    def __repr__(self) -> str:
        return f"Pipeline({self.stages})"


class HistoryEntry(NamedTuple):
    index: int
    line: str

    def __str__(self) -> str:
        return f"[{self.index}] {self.line}"


class BackgroundProcess:
    """
    A background child waiting to be reaped on a later prompt cycle.
    """

    def __init__(self, process: subprocess.Popen, cmd: str) -> None:
        self.process = process
        self.cmd = cmd

    @property
    def pid(self) -> int:
        return self.process.pid

    def __repr__(self) -> str:
        return f"BackgroundProcess(pid=({self.pid}), cmd=({self.cmd}))"
