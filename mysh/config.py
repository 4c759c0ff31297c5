import os
from typing import Mapping, NamedTuple, Optional

from mysh.errors import ConfigError

HISTORY_SIZE = 100
MAX_REPLAY_DEPTH = 10
PROMPT = "mysh> "


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(name, raw) from None
    if value < 1:
        raise ConfigError(name, raw)
    return value


class ShellConfig(NamedTuple):
    """
    Settings for one interpreter session.
    """

    history_size: int = HISTORY_SIZE
    max_replay_depth: int = MAX_REPLAY_DEPTH
    prompt: str = PROMPT
    use_colors: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ShellConfig":
        if environ is None:
            environ = os.environ
        return cls(
            history_size=_positive_int(environ, "MYSH_HISTORY_SIZE", HISTORY_SIZE),
            max_replay_depth=_positive_int(
                environ, "MYSH_REPLAY_DEPTH", MAX_REPLAY_DEPTH
            ),
            prompt=environ.get("MYSH_PROMPT", PROMPT),
            use_colors=not environ.get("MYSH_NO_COLOR"),
        )
