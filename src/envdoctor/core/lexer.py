"""
Lossless lexer for actual env files (.env.local).

Every line becomes a token that keeps its original text, so the file can
be rebuilt byte-for-byte:
    write(parse(content)) == content

Values are stored exactly as written after the first '=' (no trimming, no
unquoting). Only the line ending is dropped.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .types import VariableDefinition


ASSIGNMENT_RE = re.compile(r"^\s*(export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=")

# One line with its ending. Only \n, \r\n and \r end a line.
LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")


class TokenType(Enum):
    """What a line of .env.local holds."""
    ASSIGNMENT = "assignment"
    COMMENT = "comment"
    BLANK = "blank"


@dataclass
class Token:
    """A single line of an env file."""
    type: TokenType
    raw: str  # Original text including the line ending
    key: Optional[str] = None
    value: Optional[str] = None
    has_export: bool = False

    def __repr__(self):
        if self.type == TokenType.ASSIGNMENT:
            return f"<Token {self.key}={self.value!r}>"
        return f"<Token {self.type.value} {self.raw.rstrip()!r}>"


def split_lines(content: str) -> List[str]:
    """Split content into lines, keeping each line ending."""
    return LINE_RE.findall(content)


def _strip_line_ending(text: str) -> str:
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n") or text.endswith("\r"):
        return text[:-1]
    return text


class Lexer:
    """
    Line tokenizer for env files.

    Anything that is neither blank nor a NAME=value assignment is kept as a
    comment token so that it survives a rewrite untouched.
    """

    def __init__(self, content: str):
        self.content = content
        self.lines = split_lines(content)

    def tokenize(self) -> List[Token]:
        return [self._parse_line(line) for line in self.lines]

    def _parse_line(self, line: str) -> Token:
        if not line.strip():
            return Token(type=TokenType.BLANK, raw=line)

        if line.lstrip().startswith("#"):
            return Token(type=TokenType.COMMENT, raw=line)

        match = ASSIGNMENT_RE.match(line)
        if match:
            return Token(
                type=TokenType.ASSIGNMENT,
                raw=line,
                key=match.group(2),
                value=_strip_line_ending(line[match.end():]),
                has_export=match.group(1) is not None,
            )

        return Token(type=TokenType.COMMENT, raw=line)


@dataclass
class EnvFile:
    """Parsed actual env file: exact values plus the original token stream."""
    tokens: List[Token] = field(default_factory=list)

    @property
    def values(self) -> Dict[str, str]:
        """Name -> value. A repeated name keeps its last value."""
        return get_keys(self.tokens)

    @property
    def original_content(self) -> str:
        return write(self.tokens)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(name, default)

    def __contains__(self, name: str) -> bool:
        return name in self.values


def parse(content: str) -> List[Token]:
    """Parse env file content into tokens."""
    return Lexer(content).tokenize()


def parse_env_file(content: str) -> EnvFile:
    """Parse env file content into an EnvFile."""
    return EnvFile(tokens=parse(content))


def write(tokens: Iterable[Token]) -> str:
    """Join the raw lines back together. Inverse of parse()."""
    return "".join(token.raw for token in tokens)


def get_keys(tokens: Iterable[Token]) -> Dict[str, str]:
    """Assigned names and their exact values. Later assignments win."""
    values: Dict[str, str] = {}
    for token in tokens:
        if token.type == TokenType.ASSIGNMENT:
            values[token.key] = token.value
    return values


def update_value(tokens: List[Token], key: str, new_value: str) -> List[Token]:
    """
    Replace the value of every assignment to `key`.

    The export prefix and the original line ending are preserved.
    """
    updated = []
    for token in tokens:
        if token.type == TokenType.ASSIGNMENT and token.key == key:
            export_prefix = "export " if token.has_export else ""
            line_ending = token.raw[len(_strip_line_ending(token.raw)):]
            updated.append(Token(
                type=TokenType.ASSIGNMENT,
                raw=f"{export_prefix}{key}={new_value}{line_ending}",
                key=key,
                value=new_value,
                has_export=token.has_export,
            ))
        else:
            updated.append(token)

    return updated


def render_updates(
    env_file: EnvFile,
    updates: Mapping[str, str],
    schema: Iterable["VariableDefinition"] = (),
) -> str:
    """
    Apply resolved values to an env file and return the new content.

    Names already assigned are rewritten in place. New names are appended
    after a blank line, each preceded by its schema description as a
    comment when it has one.
    """
    tokens = list(env_file.tokens)
    present = set(get_keys(tokens))

    for key, value in updates.items():
        if key in present:
            tokens = update_value(tokens, key, value)

    descriptions = {d.name: d.description for d in schema}
    appended: List[str] = []
    for key, value in updates.items():
        if key in present:
            continue
        if descriptions.get(key):
            appended.append(f"# {descriptions[key]}\n")
        appended.append(f"{key}={value}\n")
        appended.append("\n")

    content = write(tokens)
    if not appended:
        return content

    if content and not content.endswith("\n"):
        content += "\n"
    if content.strip() and not content.endswith("\n\n"):
        content += "\n"

    # Drop the separator after the last appended variable.
    return content + "".join(appended[:-1])
