"""Terminal progress indicators for long waits on the daemon."""

from rich.console import Console

BAR_FRAMES = (
    ">     ",
    "=>    ",
    "==>   ",
    "===>  ",
    "====> ",
    "=====>",
    " =====",
    "  ====",
    "   ===",
    "    ==",
    "     =",
)

CIRCLE_FRAMES = ("◷", "◶", "◵", "◴")


class ProgressIndicator:
    """Cycles through animation frames. Each wait owns its own instance."""

    def __init__(self, frames: tuple[str, ...] = BAR_FRAMES):
        self.frames = frames
        self.current = ""

    def next(self) -> str:
        """Advance to the frame after the current one (the first after a reset)."""
        try:
            index = self.frames.index(self.current) + 1
        except ValueError:
            index = 0
        self.current = self.frames[index % len(self.frames)]
        return self.current

    def reset(self) -> None:
        self.current = ""


class WaitingDisplay:
    """Single-line "message n/total" counter redrawn in place on a terminal."""

    def __init__(
        self,
        message: str,
        console: Console | None = None,
        enabled: bool = True,
        frames: tuple[str, ...] = CIRCLE_FRAMES,
    ):
        self.message = message
        self.console = console or Console(stderr=True)
        self.enabled = enabled
        self.indicator = ProgressIndicator(frames)
        self._drawn = False

    def update(self, attempt: int, total: int) -> None:
        if not self.enabled:
            return
        line = f"{self.message} {self.indicator.next()} {attempt}/{total}"
        if self.console.is_terminal:
            # Rich strips carriage returns, so redraw through the raw stream
            self.console.file.write(f"\r{line}")
            self.console.file.flush()
        else:
            self.console.print(line, highlight=False)
        self._drawn = True

    def finish(self) -> None:
        """End the in-place line so following output starts on a fresh one."""
        if self._drawn and self.console.is_terminal:
            self.console.file.write("\n")
            self.console.file.flush()
        self._drawn = False


def convert_bc_verification(progress: float) -> str:
    """Format a 0..1 verification progress as a percentage string, e.g. '12.34'."""
    return f"{progress * 100:.2f}"
