"""
Console rendering.

Renderers are pure: they turn data into a Frame (a list of styled lines) and never
touch the terminal. A Terminal draws frames and reads input; ConsoleTerminal is the
real one, tests use a scripted fake.
"""
import os
import sys
from enum import Enum
from typing import NamedTuple, Optional, Protocol, Sequence, TextIO

from tabulate import tabulate

from models.query import QueryResult


class Style(str, Enum):
    TITLE = "title"
    SUCCESS = "success"
    ERROR = "error"
    PROMPT = "prompt"
    RESULT = "result"
    QUERY = "query"
    HEADER = "header"
    ROW = "row"
    ROW_ALT = "row_alt"


class Line(NamedTuple):
    text: str
    style: Style = Style.RESULT


Frame = list[Line]


class Key(str, Enum):
    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    OTHER = "other"


class Terminal(Protocol):
    def write(self, frame: Frame) -> None: ...
    def erase(self, frame: Frame) -> None: ...
    def read_line(self) -> str: ...
    def read_key(self) -> Key: ...
    def set_cursor_visible(self, visible: bool) -> None: ...


# ── Pure renderers ────────────────────────────────────────────────────────────

def message(text: str, style: Style = Style.RESULT) -> Frame:
    return [Line(t, style) for t in text.split("\n")]


def render_menu(options: Sequence[str], selected: int) -> Frame:
    return [Line(f"> {options[selected]}", Style.SUCCESS)]


def render_answer(explanation: str, sql: str) -> Frame:
    frame = [Line(""), Line("Your answer:", Style.PROMPT), Line("-------------------", Style.PROMPT)]
    frame += message(explanation, Style.RESULT)
    if sql:
        frame += [Line(""), Line("Generated SQL Query:", Style.PROMPT), Line("-------------------", Style.PROMPT)]
        frame += message(sql, Style.QUERY)
    return frame


def _cell(value, max_width: int) -> str:
    s = "NULL" if value is None else str(value)
    if len(s) > max_width:
        s = s[: max(max_width - 3, 0)] + "..."
    return s


def render_results(result: QueryResult, max_width: int = 40) -> Frame:
    """Tabular view of a query result, cells capped at `max_width` characters."""
    if not result.rows:
        return [Line("Query executed successfully, but no rows were returned.", Style.SUCCESS)]

    rows = [[_cell(v, max_width) for v in row] for row in result.rows]
    table = tabulate(rows, headers=result.columns, tablefmt="simple", disable_numparse=True)
    lines = table.split("\n")

    frame = [Line(lines[0], Style.HEADER), Line(lines[1], Style.HEADER)]
    for i, text in enumerate(lines[2:], start=1):
        frame.append(Line(text, Style.ROW_ALT if i % 2 == 0 else Style.ROW))
    frame += [Line(""), Line(f"✅ Total rows: {result.row_count}", Style.SUCCESS)]
    return frame


# ── Interaction helpers ───────────────────────────────────────────────────────

def select_option(terminal: Terminal, options: Sequence[str]) -> int:
    """Arrow-key menu over `options`; returns the chosen index on ENTER."""
    if not options:
        raise ValueError("No options to select from")
    selected = 0
    terminal.set_cursor_visible(False)
    try:
        while True:
            frame = render_menu(options, selected)
            terminal.write(frame)
            key = terminal.read_key()
            terminal.erase(frame)
            if key == Key.ENTER:
                return selected
            if key == Key.UP and selected > 0:
                selected -= 1
            elif key == Key.DOWN and selected < len(options) - 1:
                selected += 1
    finally:
        terminal.set_cursor_visible(True)


def confirm(terminal: Terminal, question: str) -> bool:
    terminal.write(message(question, Style.PROMPT))
    return terminal.read_line().strip().lower() in ("y", "yes")


# ── Real terminal ─────────────────────────────────────────────────────────────

_ANSI = {
    Style.TITLE: "\033[96m",
    Style.SUCCESS: "\033[92m",
    Style.ERROR: "\033[91m",
    Style.PROMPT: "\033[93m",
    Style.RESULT: "\033[97m",
    Style.QUERY: "\033[95m",
    Style.HEADER: "\033[96m",
    Style.ROW: "\033[37m",
    Style.ROW_ALT: "\033[97m",
}
_RESET = "\033[0m"


class ConsoleTerminal:
    """ANSI terminal on stdin/stdout. Colors are off when stdout is not a tty or NO_COLOR is set."""

    def __init__(self, out: Optional[TextIO] = None, inp: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.inp = inp or sys.stdin
        self.color = self.out.isatty() and "NO_COLOR" not in os.environ

    def write(self, frame: Frame) -> None:
        for line in frame:
            if self.color and line.text:
                self.out.write(f"{_ANSI[line.style]}{line.text}{_RESET}\n")
            else:
                self.out.write(f"{line.text}\n")
        self.out.flush()

    def erase(self, frame: Frame) -> None:
        if not self.out.isatty():
            return
        for _ in frame:
            self.out.write("\033[1A\033[2K")
        self.out.write("\r")
        self.out.flush()

    def set_cursor_visible(self, visible: bool) -> None:
        if self.out.isatty():
            self.out.write("\033[?25h" if visible else "\033[?25l")
            self.out.flush()

    def read_line(self) -> str:
        self._discard_pending_input()
        line = self.inp.readline()
        # EOF reads as a blank line, which ends the session
        return line.rstrip("\r\n")

    def read_key(self) -> Key:
        if not self.inp.isatty():
            return _key_from_line(self.inp.readline())
        if os.name == "nt":
            return _read_key_windows()
        return _read_key_posix(self.inp)

    def _discard_pending_input(self) -> None:
        if os.name == "nt" or not self.inp.isatty():
            return
        import termios
        termios.tcflush(self.inp.fileno(), termios.TCIFLUSH)


def _key_from_line(line: str) -> Key:
    # Piped input: "k"/"j" move, anything else (including EOF) selects
    value = line.strip().lower()
    if value in ("k", "up"):
        return Key.UP
    if value in ("j", "down"):
        return Key.DOWN
    return Key.ENTER


def _read_key_posix(inp: TextIO) -> Key:
    import termios
    import tty

    fd = inp.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = os.read(fd, 1)
        if ch == b"\x1b":
            seq = os.read(fd, 2)
            return {b"[A": Key.UP, b"[B": Key.DOWN}.get(seq, Key.OTHER)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)
    if ch in (b"\r", b"\n"):
        return Key.ENTER
    if ch == b"\x03":
        raise KeyboardInterrupt
    return {b"k": Key.UP, b"j": Key.DOWN}.get(ch, Key.OTHER)


def _read_key_windows() -> Key:
    import msvcrt

    ch = msvcrt.getwch()
    if ch in ("\x00", "\xe0"):
        return {"H": Key.UP, "P": Key.DOWN}.get(msvcrt.getwch(), Key.OTHER)
    if ch == "\r":
        return Key.ENTER
    if ch == "\x03":
        raise KeyboardInterrupt
    return {"k": Key.UP, "j": Key.DOWN}.get(ch, Key.OTHER)
