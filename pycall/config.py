from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "PYCALL_"


@dataclass(frozen=True)
class ProgramConfig:
    # executable looked up on PATH; receives the script path as its only argument
    interpreter: str = "python3"

    # generated text layout
    indent_unit: str = "\t"
    newline: str = "\n"
    encoding: str = "utf-8"

    # dict literals: insertion order unless asked for a canonical order
    sort_keys: bool = False

    # durable file backing run() / save_as()
    tmp_dir: Optional[str] = None
    tmp_prefix: str = "pycall_"
    tmp_suffix: str = ".py"

    def normalised(self) -> ProgramConfig:
        interpreter = (self.interpreter or "").strip() or "python3"
        newline = self.newline if self.newline in ("\n", "\r\n") else "\n"
        tmp_dir = (self.tmp_dir or "").strip() or None

        return ProgramConfig(
            interpreter=interpreter,
            indent_unit=self.indent_unit,
            newline=newline,
            encoding=(self.encoding or "").strip() or "utf-8",
            sort_keys=bool(self.sort_keys),
            tmp_dir=tmp_dir,
            tmp_prefix=str(self.tmp_prefix),
            tmp_suffix=str(self.tmp_suffix),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> ProgramConfig:
        tmp_dir = d.get("tmp_dir", None)
        return ProgramConfig(
            interpreter=str(d.get("interpreter", "python3")),
            indent_unit=str(d.get("indent_unit", "\t")),
            newline=str(d.get("newline", "\n")),
            encoding=str(d.get("encoding", "utf-8")),
            sort_keys=bool(d.get("sort_keys", False)),
            tmp_dir=None if tmp_dir in (None, "") else str(tmp_dir),
            tmp_prefix=str(d.get("tmp_prefix", "pycall_")),
            tmp_suffix=str(d.get("tmp_suffix", ".py")),
        ).normalised()

    @staticmethod
    def from_env(**overrides: Any) -> ProgramConfig:
        """
        Build a config from PYCALL_* environment variables
        (PYCALL_INTERPRETER, PYCALL_SORT_KEYS, ...). Keyword overrides win.
        """
        return ProgramConfig.from_dict(ProgramSettings(**overrides).model_dump())


class ProgramSettings(BaseSettings):
    """Environment view of ProgramConfig."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    interpreter: str = "python3"
    indent_unit: str = "\t"
    newline: str = "\n"
    encoding: str = "utf-8"
    sort_keys: bool = False
    tmp_dir: Optional[str] = None
    tmp_prefix: str = "pycall_"
    tmp_suffix: str = ".py"
