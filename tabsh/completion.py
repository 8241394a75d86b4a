"""Grammar-driven suggestions for a partially typed command line."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from tabsh.models.sources import PRODUCER_REGISTRY
from tabsh.schema import COMPARISON_OPERATORS, DEFAULT_GRAMMAR, DIRECTIONS, ArgRole, Grammar


def _matching(candidates: Iterable[str], partial: str) -> List[str]:
    prefix = partial.casefold()
    out: List[str] = []
    for c in candidates:
        if c.casefold().startswith(prefix) and c not in out:
            out.append(c)
    return out


def _split_last(line: str):
    """Finished tokens of the last pipeline segment and the partial token being typed."""
    tokens = line.split("|")[-1].split()
    if line and not line[-1].isspace() and line[-1] != "|" and tokens:
        return tokens[:-1], tokens[-1]
    return tokens, ""


def suggest(line: str, grammar: Grammar = DEFAULT_GRAMMAR, builtins: Sequence[str] = ()) -> List[str]:
    """Candidates for the token under the cursor (the end of `line`)."""
    segments = line.split("|")
    done, partial = _split_last(line)

    if len(segments) == 1:
        if done:
            return []
        return _matching(sorted({*PRODUCER_REGISTRY, *builtins}), partial)

    if not done:
        return _matching(grammar.stages, partial)

    stage = grammar.stages.get(done[0])
    if stage is None:
        return []
    spec = stage.spec_at(len(done) - 1)
    if spec is None:
        return []

    if spec.role is ArgRole.FIELD:
        source_tokens = segments[0].split()
        source = source_tokens[0] if source_tokens else ""
        columns = [c.name for c in grammar.columns_for(source) if c.type in spec.allow]
        return _matching(columns, partial)
    if spec.role is ArgRole.OPERATOR:
        return _matching(COMPARISON_OPERATORS, partial)
    if spec.role is ArgRole.DIRECTION:
        return _matching(DIRECTIONS, partial)
    return []


class GrammarCompleter(Completer):
    """Tab completion for the interactive shell, driven by ``suggest``."""

    def __init__(self, grammar: Grammar = DEFAULT_GRAMMAR, builtins: Sequence[str] = ()):
        self.grammar = grammar
        self.builtins = list(builtins)

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text_before_cursor
        _, partial = _split_last(text)
        for candidate in suggest(text, self.grammar, self.builtins):
            yield Completion(candidate, start_position=-len(partial))
