from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from tabsh.errors import TabshUserError
from tabsh.models.sinks import Sink
from tabsh.models.sources import PlainOutput, Source
from tabsh.models.table import Table
from tabsh.models.transforms import Transform
from tabsh.parser import split_pipeline
from tabsh.schema import DEFAULT_GRAMMAR, Grammar
from tabsh.util import TableSchema

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """
    A producer followed by zero or more filter stages, rendered by a Sink.
    """
    start: Source
    steps: List[Transform] = field(default_factory=list)
    sink: Sink = field(default_factory=Sink)
    grammar: Grammar = DEFAULT_GRAMMAR

    @classmethod
    def from_line(cls, line: str, *, cwd: Optional[str] = None, sink: Optional[Sink] = None,
                  grammar: Grammar = DEFAULT_GRAMMAR) -> "Pipeline":
        invocations = split_pipeline(line)
        if not invocations:
            raise TabshUserError(
                "E_EMPTY_STAGE",
                "Nothing to run.",
                hint="Example: ls | where Size > 10kb",
            )
        first, rest = invocations[0], invocations[1:]
        pipe = cls(Source(first.name, first.args, cwd=cwd), sink=sink or Sink(), grammar=grammar)
        for inv in rest:
            pipe = pipe.then(Transform(inv.name, inv.args))
        return pipe

    def then(self, step: Transform) -> "Pipeline":
        if not isinstance(step, Transform):
            raise TabshUserError(
                "E_PIPELINE_STEP",
                "Pipeline.then expects a Transform.",
                hint="Example: pipe.then(Transform('limit', ('5',))).",
            )
        return Pipeline(self.start, self.steps + [step], self.sink, self.grammar)

    def __str__(self) -> str:
        return " | ".join([str(self.start), *(str(s) for s in self.steps)])

    def preflight(self) -> None:
        """
        Reject an invalid chain before anything runs.

        This checks:
        - only table producers may be followed by stages
        - every stage is a registered filter stage
        - every stage's argument shape matches the grammar
        """
        if self.steps and not self.start.is_tabular:
            raise TabshUserError(
                "E_NOT_TABULAR",
                f"'{self.start.command}' produces plain text; filter stages only accept tables.",
                hint="Table producers: ls, dir, ps.",
                stage=self.start.command,
            )
        for step in self.steps:
            step.params(self.grammar)

    def run(self, options: Optional[Dict[str, Any]] = None) -> PipelineContext:
        self.preflight()
        ctx = PipelineContext(grammar=self.grammar)
        if not self.start.is_tabular:
            ctx.plain = self.start.run_plain()
            return ctx

        ctx.schema = self.start.peek_schema(self.grammar)
        preview_rows = int((options or {}).get("preview_rows", 5))
        try:
            table = self.start.table(options)
            for i, step in enumerate(self.steps):
                # the previous table is released as soon as the stage hands back its result
                table = step.apply(table, context=ctx)
                ctx.schema = step.output_schema(ctx.schema, self.grammar)

                ctx.checkpoints.append(
                    (
                        "step",
                        {
                            "index": i,
                            "kind": "transform",
                            "op": step.op,
                            "args": list(step.args),
                            "header": list(table.columns),
                            "rows": len(table),
                            "preview": [[c.render() for c in row] for row in table.rows[:preview_rows]],
                        },
                    )
                )
            ctx.table = table
            ctx.rendered = self.sink.render(table)
        except MemoryError as e:
            ctx.table = None
            raise TabshUserError(
                "E_ALLOCATION",
                "Out of memory while building a table; the pipeline was abandoned.",
                hint="Narrow the input, e.g. add '| limit N' earlier in the chain.",
            ) from e

        logger.debug("pipeline %s: %d row(s) rendered", self, len(ctx.table))
        return ctx


@dataclass
class PipelineContext:
    checkpoints: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)
    schema: Optional[TableSchema] = None
    grammar: Grammar = DEFAULT_GRAMMAR
    table: Optional[Table] = None
    rendered: Optional[str] = None
    plain: Optional[PlainOutput] = None

    @property
    def output(self) -> str:
        if self.rendered is not None:
            return self.rendered
        if self.plain is not None:
            return self.plain.stdout
        return ""
