from typing import Optional, Protocol, runtime_checkable

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from genshin_dictionary.dictionary.constants import Language


def format_status(language: Language, vocabulary_id: int, translation: str, preview_length: int) -> str:
    """Status line shown under the bar: language, id and a translation preview"""
    preview = translation[:preview_length].replace("\n", " ")
    return f"{language.value} {vocabulary_id}: {preview}"


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives the bulk writer's per-language progress"""

    def start(self, language: Language, total: int) -> None:
        ...

    def advance(self, message: str) -> None:
        ...

    def finish(self) -> None:
        ...


class NullProgressReporter:
    """Reporter that discards every update"""

    def start(self, language: Language, total: int) -> None:
        pass

    def advance(self, message: str) -> None:
        pass

    def finish(self) -> None:
        pass


class RichProgressReporter:
    """
    Live progress bar for the bulk writer.

    Renders `[elapsed] bar pos/len` with the record currently being inserted
    on the line below. Purely informative.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def start(self, language: Language, total: int) -> None:
        self._progress = Progress(
            TextColumn("{task.fields[language]}", style="bold", markup=False),
            TimeElapsedColumn(),
            BarColumn(bar_width=40, style="blue", complete_style="cyan"),
            MofNCompleteColumn(),
            # Translations may contain "[" so the preview is never parsed as markup
            TextColumn("\n{task.description}", markup=False),
            console=self.console,
            transient=False,
        )
        self._progress.start()
        self._task = self._progress.add_task("", total=total, language=language.value)

    def advance(self, message: str) -> None:
        if self._progress is None or self._task is None:
            return
        self._progress.update(self._task, advance=1, description=message)

    def finish(self) -> None:
        if self._progress is None:
            return
        self._progress.stop()
        self._progress = None
        self._task = None
