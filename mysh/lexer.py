from enum import Enum, auto
from typing import List, NamedTuple

from mysh.errors import EmptyPipelineError

PIPE = "|"


class ShellTokenType(Enum):
    COMMAND = auto()
    ARGUMENT = auto()
    REDIRECT_IN = auto()  # <
    REDIRECT_OUT = auto()  # >
    BACKGROUND = auto()  # &


OPERATORS = {
    "<": ShellTokenType.REDIRECT_IN,
    ">": ShellTokenType.REDIRECT_OUT,
    "&": ShellTokenType.BACKGROUND,
}


class ShellToken(NamedTuple):
    lex: str
    token_type: ShellTokenType

    @property
    def is_operator(self) -> bool:
        return self.token_type in OPERATORS.values()

    def __str__(self) -> str:
        return f"ShellToken('{self.lex}', {self.token_type})"


class ShellLexer:
    """
    Splits a command line into pipeline segments and typed tokens.

    Tokens are whitespace-delimited; there is no quoting or escaping, so
    an operator character is only an operator when it stands alone.
    """

    def split_pipeline(self, line: str) -> List[str]:
        line = line.strip()
        if not line:
            raise EmptyPipelineError()
        return line.split(PIPE)

    def tokenize(self, text: str) -> List[ShellToken]:
        tokens = []
        expect_command = True
        after_redirect = False

        for word in text.split():
            token_type = OPERATORS.get(word)
            if after_redirect:
                # a redirect target is always a plain word
                token_type = ShellTokenType.ARGUMENT
                after_redirect = False
            elif token_type is None:
                if expect_command:
                    token_type = ShellTokenType.COMMAND
                    expect_command = False
                else:
                    token_type = ShellTokenType.ARGUMENT
            elif token_type is not ShellTokenType.BACKGROUND:
                after_redirect = True
            tokens.append(ShellToken(word, token_type))

        return tokens
