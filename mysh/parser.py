import logging
from typing import List, Optional

from mysh.ast_tree import Pipeline, Stage
from mysh.errors import EmptyCommandError, MissingRedirectTargetError, RedirectKind
from mysh.lexer import ShellLexer, ShellToken, ShellTokenType

logger = logging.getLogger(__name__)


class ShellParser:
    """
    Turns command-line text into Stage and Pipeline objects.
    """

    def __init__(self, lexer: Optional[ShellLexer] = None) -> None:
        self.lexer = lexer or ShellLexer()
        self.tokens: List[ShellToken] = []
        self.pos = 0

    def parse_pipeline(self, line: str) -> Pipeline:
        segments = self.lexer.split_pipeline(line)
        return Pipeline([self.parse_stage(segment) for segment in segments])

    def parse_stage(self, text: str) -> Stage:
        self.tokens = self.lexer.tokenize(text)
        self.pos = 0

        command = None
        args = []
        input_file = None
        output_file = None
        background = False

        while self.pos < len(self.tokens):
            token = self.consume()
            if token.token_type is ShellTokenType.BACKGROUND:
                background = True
            elif token.token_type is ShellTokenType.REDIRECT_IN:
                input_file = self.consume_target(RedirectKind.INPUT)
            elif token.token_type is ShellTokenType.REDIRECT_OUT:
                output_file = self.consume_target(RedirectKind.OUTPUT)
            elif token.token_type is ShellTokenType.COMMAND:
                command = token.lex
            else:
                args.append(token.lex)

        if command is None:
            raise EmptyCommandError()

        stage = Stage([command] + args, input_file, output_file, background)
        logger.debug("parsed stage %r", stage)
        return stage

    def consume(self) -> ShellToken:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def consume_target(self, kind: RedirectKind) -> str:
        if self.pos >= len(self.tokens):
            raise MissingRedirectTargetError(kind)
        return self.consume().lex
