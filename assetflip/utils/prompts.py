# assetflip/utils/prompts.py
from __future__ import annotations

from typing import Callable, Sequence, Tuple, TypeVar

from assetflip.errors import PromptUnavailable

T = TypeVar("T")

YES = ("y", "yes")
NO = ("n", "no")


class Prompter:
    """
    Terminal prompts for the release and cleanup flows.
    input_fn/output_fn are injectable so tests can script the answers.
    """

    def __init__(self, input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print):
        self._input = input_fn
        self._output = output_fn

    def confirm(self, message: str, default: bool = False) -> bool:
        suffix = "[y/N]" if not default else "[Y/n]"
        while True:
            try:
                answer = self._input(f"? {message} {suffix} ").strip().lower()
            except EOFError:
                return default
            if not answer:
                return default
            if answer in YES:
                return True
            if answer in NO:
                return False
            self._output("Please answer y or n.")

    def choose(self, message: str, choices: Sequence[Tuple[str, T]]) -> T:
        """Numbered list; returns the value paired with the chosen caption."""
        if not choices:
            raise ValueError("choose() needs at least one choice")
        self._output(f"? {message}")
        for idx, (caption, _value) in enumerate(choices, start=1):
            self._output(f"  {idx:>2}) {caption}")
        while True:
            try:
                answer = self._input(f"  Answer [1-{len(choices)}]: ").strip()
            except EOFError:
                raise PromptUnavailable(message) from None
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1][1]
            self._output(f"Please enter a number between 1 and {len(choices)}.")

