from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class OptionLetter(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @classmethod
    def parse(cls, raw: str) -> OptionLetter | None:
        normalized = raw.strip().upper()
        if len(normalized) != 1:
            return None
        try:
            return cls(normalized)
        except ValueError:
            return None


OPTION_ORDER: tuple[OptionLetter, ...] = (
    OptionLetter.A,
    OptionLetter.B,
    OptionLetter.C,
    OptionLetter.D,
)


@dataclass(frozen=True, slots=True)
class TriviaQuestion:
    question_id: int
    text: str
    options: tuple[str, str, str, str]
    correct_option: OptionLetter
    difficulty: int
    fun_fact: str | None = None
    category: str | None = None
    tournament_id: UUID | None = None

    def option_text(self, letter: OptionLetter) -> str:
        return self.options[OPTION_ORDER.index(letter)]

    def options_by_letter(self) -> dict[OptionLetter, str]:
        return dict(zip(OPTION_ORDER, self.options))

    def is_correct(self, letter: OptionLetter) -> bool:
        return letter == self.correct_option
