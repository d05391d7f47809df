"""
Parser for /etc/default/grub style files.

Only shell variable assignments are parsed, everything else is kept as-is.
Values are treated as space separated token lists, which is how grub-mkconfig uses the cmdline variables.
"""

__author__ = "desultory"
__version__ = "1.0.1"

from pathlib import Path
from re import compile
from typing import Union

ASSIGNMENT_REGEX = compile(
    r"""^(?P<indent>\s*)(?P<export>export\s+)?(?P<name>[A-Za-z_][A-Za-z0-9_]*)="""
    r"""(?P<value>"(?:[^"\\]|\\.)*"|'[^']*'|[^\s"'#]*)(?P<trailer>(?:[\s#].*)?)$"""
)
# Matches the start of any assignment, including values which ASSIGNMENT_REGEX can't parse
ASSIGNMENT_NAME_REGEX = compile(r"^\s*(?:export\s+)?(?P<name>[A-Za-z_][A-Za-z0-9_]*)=")


class GrubAssignment:
    """A single NAME=value line, the value is held as a list of tokens."""

    def __init__(self, name: str, tokens: list[str], quote='"', indent="", export="", trailer="", line=None):
        self.name = name
        self.tokens = tokens
        self.quote = quote
        self.indent = indent
        self.export = export
        self.trailer = trailer
        self.line = line  # The original line, written back unchanged unless the tokens are modified

    @classmethod
    def from_line(cls, line: str):
        """Returns a GrubAssignment for the line, or None if the line is not an assignment."""
        if not (match := ASSIGNMENT_REGEX.match(line)):
            return None

        value = match["value"]
        if value[:1] in ['"', "'"]:
            quote, value = value[0], value[1:-1]
        else:
            quote = ""

        return cls(
            match["name"],
            value.split(),
            quote=quote,
            indent=match["indent"],
            export=match["export"] or "",
            trailer=match["trailer"],
            line=line,
        )

    def get_param(self, key: str) -> list[str]:
        """Returns all tokens which set the key, such as 'resume=...' for 'resume'."""
        return [token for token in self.tokens if token.partition("=")[0] == key and "=" in token]

    def remove_params(self, *keys: str) -> list[str]:
        """Removes all key=value tokens for the passed keys, returns the removed tokens.
        Bare words like 'noresume' and 'resume' without a value are not matched."""
        removed = [token for token in self.tokens if "=" in token and token.partition("=")[0] in keys]
        if removed:
            self.tokens = [token for token in self.tokens if token not in removed]
            self.line = None
        return removed

    def add_param(self, param: str) -> None:
        """Appends a token to the value."""
        self.tokens.append(param)
        self.line = None

    @property
    def value(self) -> str:
        return " ".join(self.tokens)

    def __str__(self) -> str:
        if self.line is not None:
            return self.line
        quote = self.quote
        if not quote and len(self.tokens) > 1:
            quote = '"'  # Multiple bare words would be run as a command by the shell
        return f"{self.indent}{self.export}{self.name}={quote}{self.value}{quote}{self.trailer}"


class GrubDefaults:
    """Holds the lines of a grub defaults file, assignments are parsed into GrubAssignment objects."""

    def __init__(self, text: str):
        self.trailing_newline = text.endswith("\n")
        self.lines = []
        for line in text.splitlines():
            if assignment := GrubAssignment.from_line(line):
                self.lines.append(assignment)
            else:
                self.lines.append(line)

    @classmethod
    def from_file(cls, path: Union[Path, str]):
        return cls(Path(path).read_text())

    def assignments(self, name: str) -> list[GrubAssignment]:
        """Returns all assignments for the variable, in file order."""
        return [line for line in self.lines if isinstance(line, GrubAssignment) and line.name == name]

    def unparsed(self, name: str) -> list[str]:
        """Returns lines which assign the variable but could not be parsed,
        such as quoted values which continue on the next line."""
        return [
            line
            for line in self.lines
            if isinstance(line, str) and (match := ASSIGNMENT_NAME_REGEX.match(line)) and match["name"] == name
        ]

    def __str__(self) -> str:
        text = "\n".join(str(line) for line in self.lines)
        return text + "\n" if self.trailing_newline else text
