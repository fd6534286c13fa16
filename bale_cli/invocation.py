"""Parsed command-line state and build plans."""

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

DEFAULT_ENTRY_TYPE = "js"


class Invocation(BaseModel):
    """Immutable snapshot of one command-line invocation.

    Flags come from the command line merged over ``bale.yaml``; ``args`` keeps
    the positional arguments in the order they were given.
    """

    model_config = ConfigDict(frozen=True)

    copy_files: bool = Field(default=False, description="Copy files into the output instead of symlinking")
    development: bool = Field(default=False, description="Include development-only dependencies")
    global_name: str | None = Field(default=None, description="Expose the entry as this global export")
    output: Path | None = Field(default=None, description="Explicit output directory")
    quiet: bool = False
    verbose: bool = False
    watch: bool = False
    root: Path | None = Field(default=None, description="Explicit project root")
    entry_type: str = Field(default=DEFAULT_ENTRY_TYPE, description="Content type for stdin builds")
    use: tuple[str, ...] = Field(default=(), description="Transform plugin names, in order")
    engine: str | None = Field(default=None, description="Alternative engine as 'module:Class'")
    args: tuple[str, ...] = ()


class BuildTarget(str, Enum):
    """Which orchestrator code path runs."""

    HELP = "help"
    STDIN_STDOUT = "stdin-stdout"
    SINGLE_STDOUT = "single-stdout"
    SINGLE_DIRECTORY = "single-directory"
    MULTI_DIRECTORY = "multi-directory"

    @property
    def writes_stdout(self) -> bool:
        return self in (BuildTarget.STDIN_STDOUT, BuildTarget.SINGLE_STDOUT)


@dataclass(frozen=True)
class BuildPlan:
    """A build target with the entries and output directory it applies to."""

    target: BuildTarget
    entries: tuple[str, ...] = field(default_factory=tuple)
    output_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.output_dir is not None and self.target.writes_stdout:
            raise ValueError(f"{self.target.value} build cannot have an output directory")
