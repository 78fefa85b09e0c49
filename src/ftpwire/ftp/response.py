"""Completed server replies and the text extracted from them."""

from dataclasses import dataclass
from typing import List

from ftpwire.ftp.exceptions import FTPProtocolError


@dataclass(frozen=True)
class Response:
    """A complete reply read off the control connection."""
    code: str
    raw: bytes
    encoding: str = "utf-8"

    @property
    def is_multiline(self) -> bool:
        """True if the reply opened with ``CCC-``."""
        return self.raw[3:4] == b"-"

    @property
    def lines(self) -> List[str]:
        """Decoded reply lines without their CR LF terminators."""
        lines = self.raw.decode(self.encoding, errors="replace").split("\r\n")
        if lines and lines[-1] == "":
            lines.pop()
        return lines

    @property
    def text(self) -> str:
        """
        Reply text with the control symbols removed.

        The code and separator are stripped from the first line and, for
        multi-line replies, from the closing line. Continuation lines are
        kept verbatim and joined with bare LF; the CR LF line endings of the
        raw reply are not preserved. Use ``raw`` for byte-exact output.
        """
        lines = self.lines
        if not lines:
            return ""
        first = lines[0][4:]
        if not self.is_multiline or len(lines) == 1:
            return first
        closing = lines[-1]
        if closing.startswith(self.code + " "):
            closing = closing[4:]
        return "\n".join([first] + lines[1:-1] + [closing])

    def quoted_path(self) -> str:
        """
        Extract the quoted pathname from a 257 reply.

        Doubled quotes inside the name stand for one literal quote.

        Raises:
            FTPProtocolError: If the first line carries no quoted name
        """
        line = self.lines[0] if self.lines else ""
        start = line.find('"')
        if start < 0:
            raise FTPProtocolError("path extraction", self.raw, self.encoding)

        name = []
        i = start + 1
        while i < len(line):
            char = line[i]
            i += 1
            if char == '"':
                if line[i:i + 1] == '"':
                    name.append('"')
                    i += 1
                    continue
                return "".join(name)
            name.append(char)

        # Unterminated quote
        raise FTPProtocolError("path extraction", self.raw, self.encoding)

    def __str__(self) -> str:
        return self.raw.decode(self.encoding, errors="replace").rstrip("\r\n")
