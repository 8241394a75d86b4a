from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import petl as etl

from tabsh.compare import SIZE_SEMANTICS, compare, holds, sort_key
from tabsh.errors import TabshUserError
from tabsh.models.table import Table
from tabsh.models.values import Float, Integer, Size, Text, Value, parse_size
from tabsh.schema import DEFAULT_GRAMMAR, Grammar, semantic_of
from tabsh.util import GENERIC_TYPE, TableSchema

logger = logging.getLogger(__name__)

_re_int_prefix = re.compile(r"\s*([+-]?\d+)")
_re_float_prefix = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _parse_int_literal(text: str, *, stage: str) -> int:
    """Leading integer of ``text``; malformed input is recovered as 0."""
    m = _re_int_prefix.match(text)
    if m:
        return int(m.group(1))
    logger.warning("%s: %r is not a number; using 0", stage, text)
    return 0


def _parse_float_literal(text: str, *, stage: str) -> float:
    m = _re_float_prefix.match(text)
    if m:
        try:
            return float(m.group(1))
        except ValueError:
            pass
    logger.warning("%s: %r is not a number; using 0", stage, text)
    return 0.0


# ---------------- Transform implementation registry ----------------

class TransformImpl:
    """Internal implementation for a filter stage.

    Users interact with `Transform(op, args)`.
    Implementations are registered by op name and invoked by `Transform.apply`.
    """

    op: str = ""

    @classmethod
    def params_from_args(cls, bound: List[str]) -> Dict[str, Any]:
        """Turn grammar-checked positional arguments into named params."""
        return {"args": list(bound)}

    @classmethod
    def apply(cls, table: Table, *, params: Dict[str, Any], context: "PipelineContext") -> Table:
        raise TabshUserError(
            "E_OP_NOT_IMPL",
            f"Stage '{cls.op}' is not implemented.",
            hint="Implement it as a TransformImpl and register it.",
        )

    @classmethod
    def output_schema(cls, input_schema: Optional[TableSchema], params: Dict[str, Any]) -> Optional[TableSchema]:
        """Running schema after this stage; most stages keep the columns as they are."""
        return input_schema


TRANSFORM_REGISTRY: Dict[str, Type[TransformImpl]] = {}


def register_transform(op: str) -> Callable[[Type[TransformImpl]], Type[TransformImpl]]:
    """Decorator to register a TransformImpl under an op string."""

    def deco(cls: Type[TransformImpl]) -> Type[TransformImpl]:
        cls.op = op
        TRANSFORM_REGISTRY[op] = cls
        return cls

    return deco


@register_transform("where")
class WhereTransform(TransformImpl):
    @classmethod
    def params_from_args(cls, bound: List[str]) -> Dict[str, Any]:
        return {"field": bound[0], "op": bound[1], "value": bound[2]}

    @classmethod
    def _literal_for(cls, cell: Value, literal: str, semantic: str) -> Value:
        if isinstance(cell, Size) or semantic in SIZE_SEMANTICS:
            return Size(literal, parse_size(literal))
        if isinstance(cell, Integer):
            return Integer(_parse_int_literal(literal, stage=cls.op))
        if isinstance(cell, Float):
            return Float(_parse_float_literal(literal, stage=cls.op))
        return Text(literal)

    @classmethod
    def apply(cls, table: Table, *, params: Dict[str, Any], context: "PipelineContext") -> Table:
        idx = table.index_of(params["field"])
        semantic = semantic_of(context.schema, table.columns[idx]).value
        op = params["op"]
        literal = params["value"]

        # one parsed literal per cell variant, so a malformed literal warns only once
        parsed: Dict[type, Value] = {}

        def _keep(rec) -> bool:
            cell = rec[idx]
            rhs = parsed.get(type(cell))
            if rhs is None:
                rhs = parsed[type(cell)] = cls._literal_for(cell, literal, semantic)
            return holds(op, compare(cell, rhs, semantic))

        return Table.from_petl(etl.select(table.to_petl(), _keep))


@register_transform("sort-by")
class SortByTransform(TransformImpl):
    @classmethod
    def params_from_args(cls, bound: List[str]) -> Dict[str, Any]:
        direction = bound[1] if len(bound) > 1 else "asc"
        return {"field": bound[0], "descending": direction == "desc"}

    @classmethod
    def apply(cls, table: Table, *, params: Dict[str, Any], context: "PipelineContext") -> Table:
        idx = table.index_of(params["field"])
        semantic = semantic_of(context.schema, table.columns[idx]).value
        key_idx = len(table.columns)

        # sort on a temporary trailing key column, addressed by index
        keyed = etl.addfield(table.to_petl(), "__sort_key__", lambda rec: sort_key(rec[idx], semantic))
        ordered = etl.sort(keyed, key=key_idx, reverse=params["descending"])
        return Table.from_petl(etl.cutout(ordered, key_idx))


@register_transform("select")
class SelectTransform(TransformImpl):
    @classmethod
    def params_from_args(cls, bound: List[str]) -> Dict[str, Any]:
        return {"columns": list(bound)}

    @classmethod
    def apply(cls, table: Table, *, params: Dict[str, Any], context: "PipelineContext") -> Table:
        indices = [table.index_of(c) for c in params["columns"]]
        return Table.from_petl(etl.cut(table.to_petl(), *indices))

    @classmethod
    def output_schema(cls, input_schema: Optional[TableSchema], params: Dict[str, Any]) -> Optional[TableSchema]:
        if not input_schema or "fields" not in input_schema:
            return input_schema
        by_name = {f.get("name", "").casefold(): f for f in input_schema.get("fields", []) if isinstance(f, dict)}
        fields = []
        for c in params.get("columns") or []:
            f = by_name.get(c.casefold())
            fields.append(dict(f) if f else {"name": c, "type": GENERIC_TYPE})
        return {"fields": fields}


@register_transform("contains")
class ContainsTransform(TransformImpl):
    @classmethod
    def params_from_args(cls, bound: List[str]) -> Dict[str, Any]:
        return {"field": bound[0], "pattern": bound[1]}

    @classmethod
    def apply(cls, table: Table, *, params: Dict[str, Any], context: "PipelineContext") -> Table:
        idx = table.index_of(params["field"])
        needle = params["pattern"].casefold()
        return Table.from_petl(etl.select(table.to_petl(), lambda rec: needle in rec[idx].render().casefold()))


@register_transform("limit")
class LimitTransform(TransformImpl):
    @classmethod
    def params_from_args(cls, bound: List[str]) -> Dict[str, Any]:
        return {"count": bound[0]}

    @classmethod
    def apply(cls, table: Table, *, params: Dict[str, Any], context: "PipelineContext") -> Table:
        n = max(_parse_int_literal(params["count"], stage=cls.op), 0)
        return Table.from_petl(etl.head(table.to_petl(), n))


@dataclass(frozen=True)
class Transform:
    op: str
    args: Tuple[str, ...] = field(default_factory=tuple)

    def _impl(self) -> Type[TransformImpl]:
        impl = TRANSFORM_REGISTRY.get(self.op)
        if impl is None:
            raise TabshUserError(
                "E_UNKNOWN_STAGE",
                f"'{self.op}' is not a filter stage; only filter stages may follow a pipe.",
                hint="Stages: " + ", ".join(sorted(TRANSFORM_REGISTRY.keys())),
                stage=self.op,
            )
        return impl

    def params(self, grammar: Grammar = DEFAULT_GRAMMAR) -> Dict[str, Any]:
        """Check the argument shape against the grammar and return the stage's params."""
        impl = self._impl()
        bound = grammar.bind(self.op, self.args)
        return impl.params_from_args(bound)

    def apply(self, table: Table, *, context: "PipelineContext") -> Table:
        """Run this stage on `table` and return a new Table; `table` is left untouched."""
        impl = self._impl()
        grammar = getattr(context, "grammar", None) or DEFAULT_GRAMMAR
        bound = grammar.bind(self.op, self.args)
        grammar.check_fields(self.op, bound, table.columns, getattr(context, "schema", None))
        params = impl.params_from_args(bound)
        try:
            out = impl.apply(table, params=params, context=context)
        except TabshUserError as e:
            if e.stage is None:
                e.stage = self.op
            raise
        logger.debug("%s: %d row(s) in, %d row(s) out", self, len(table), len(out))
        return out

    def output_schema(self, input_schema: Optional[TableSchema], grammar: Grammar = DEFAULT_GRAMMAR) -> Optional[
        TableSchema]:
        impl = TRANSFORM_REGISTRY.get(self.op)
        if impl is None:
            return input_schema
        return impl.output_schema(input_schema, self.params(grammar))

    def __str__(self) -> str:
        return " ".join((self.op, *self.args))
