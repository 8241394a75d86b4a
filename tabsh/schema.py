"""Static grammar of pipeline stages and the column schemas of table producers.

The grammar is built once (``DEFAULT_GRAMMAR``) and only read afterwards. The executor
consults it to reject malformed stage invocations before running them; the completion
helper consults it to offer context-correct suggestions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from tabsh.errors import TabshUserError
from tabsh.util import TableSchema, _schema_field_type, _suggest


class SemanticType(str, Enum):
    NAME = "Name"
    SIZE = "Size"
    KIND = "Kind"
    DATE = "Date"
    IDENTIFIER = "Identifier"
    MEMORY = "Memory"
    COUNT = "Count"
    GENERIC = "Generic"


class ArgRole(str, Enum):
    FIELD = "field"
    OPERATOR = "operator"
    LITERAL = "literal"
    DIRECTION = "direction"
    PATTERN = "pattern"


ALL_TYPES: FrozenSet[SemanticType] = frozenset(SemanticType)
COMPARISON_OPERATORS: Tuple[str, ...] = (">", "<", ">=", "<=", "==", "!=")
DIRECTIONS: Tuple[str, ...] = ("asc", "desc")


def semantic_of(schema: Optional[TableSchema], column: str) -> SemanticType:
    try:
        return SemanticType(_schema_field_type(schema, column))
    except ValueError:
        return SemanticType.GENERIC


@dataclass(frozen=True)
class ColumnSchema:
    name: str
    type: SemanticType


@dataclass(frozen=True)
class ArgSpec:
    role: ArgRole
    allow: FrozenSet[SemanticType] = ALL_TYPES
    required: bool = True
    # a greedy argument swallows the remaining tokens, re-joined with single spaces
    greedy: bool = False


@dataclass(frozen=True)
class StageSchema:
    name: str
    args: Tuple[ArgSpec, ...]
    usage: str
    example: str
    # the last argument may repeat (select takes any number of fields)
    repeat_last: bool = False

    @property
    def min_args(self) -> int:
        return sum(1 for a in self.args if a.required)

    def spec_at(self, index: int) -> Optional[ArgSpec]:
        if index < len(self.args):
            return self.args[index]
        if self.repeat_last and self.args:
            return self.args[-1]
        return None


@dataclass(frozen=True)
class Grammar:
    stages: Mapping[str, StageSchema]
    sources: Mapping[str, Tuple[ColumnSchema, ...]]
    default_columns: Tuple[ColumnSchema, ...]

    def stage(self, name: str) -> StageSchema:
        try:
            return self.stages[name]
        except KeyError:
            raise TabshUserError(
                "E_UNKNOWN_STAGE",
                f"'{name}' is not a filter stage; only filter stages may follow a pipe.",
                hint=_suggest(name, sorted(self.stages)),
                stage=name,
            ) from None

    def columns_for(self, source: str) -> Tuple[ColumnSchema, ...]:
        """Columns a producer exposes; unregistered producers get the generic default."""
        return self.sources.get(source, self.default_columns)

    def source_schema(self, source: str) -> TableSchema:
        return {"fields": [{"name": c.name, "type": c.type.value} for c in self.columns_for(source)]}

    def bind(self, stage_name: str, args: Sequence[str]) -> List[str]:
        """Check an invocation's argument shape and return one value per argument position.

        Greedy trailing arguments are re-joined. Field arguments are returned unchanged;
        their existence and type are checked against the table by ``check_fields``.
        """
        schema = self.stage(stage_name)
        tokens = list(args)
        if len(tokens) < schema.min_args:
            raise TabshUserError(
                "E_ARITY",
                f"{stage_name} expects at least {schema.min_args} argument(s), got {len(tokens)}.",
                hint=f"Usage: {schema.usage}  e.g. {schema.example}",
                stage=stage_name,
            )

        bound: List[str] = []
        i = 0
        while i < len(tokens):
            spec = schema.spec_at(len(bound))
            if spec is None:
                raise TabshUserError(
                    "E_ARITY",
                    f"{stage_name} got unexpected extra argument(s): {' '.join(tokens[i:])}.",
                    hint=f"Usage: {schema.usage}  e.g. {schema.example}",
                    stage=stage_name,
                )
            if spec.greedy:
                bound.append(" ".join(tokens[i:]))
                break
            token = tokens[i]
            if spec.role is ArgRole.OPERATOR and token not in COMPARISON_OPERATORS:
                raise TabshUserError(
                    "E_OPERATOR",
                    f"{stage_name}: unknown comparison operator {token!r}.",
                    hint="Operators: " + " ".join(COMPARISON_OPERATORS),
                    stage=stage_name,
                )
            if spec.role is ArgRole.DIRECTION:
                token = token.lower()
                if token not in DIRECTIONS:
                    raise TabshUserError(
                        "E_DIRECTION",
                        f"{stage_name}: sort direction must be 'asc' or 'desc', got {tokens[i]!r}.",
                        hint=f"Usage: {schema.usage}",
                        stage=stage_name,
                    )
            bound.append(token)
            i += 1
        return bound

    def check_fields(self, stage_name: str, bound: Sequence[str], columns: Sequence[str],
                     running_schema: Optional[TableSchema]) -> None:
        """Reject field arguments that are missing from the table or of a disallowed type."""
        schema = self.stage(stage_name)
        lowered = {c.casefold() for c in columns}
        for pos, value in enumerate(bound):
            spec = schema.spec_at(pos)
            if spec is None or spec.role is not ArgRole.FIELD:
                continue
            if value.casefold() not in lowered:
                raise TabshUserError(
                    "E_UNKNOWN_FIELD",
                    f"{stage_name}: unknown field {value!r}.",
                    hint=_suggest(value, columns),
                    stage=stage_name,
                )
            sem = semantic_of(running_schema, value)
            if sem not in spec.allow:
                raise TabshUserError(
                    "E_FIELD_TYPE",
                    f"{stage_name} cannot be applied to {value!r} (a {sem.value} column).",
                    hint=self._alternative_hint(stage_name, sem, value),
                    stage=stage_name,
                )

    def _alternative_hint(self, stage_name: str, sem: SemanticType, value: str) -> str:
        for name, schema in self.stages.items():
            if name == stage_name or not schema.args:
                continue
            first = schema.args[0]
            # only stages with a restricted field argument are worth pointing at
            if first.role is ArgRole.FIELD and first.allow != ALL_TYPES and sem in first.allow:
                return f"Try: {name} {value} ..."
        return f"Usage: {self.stages[stage_name].usage}"


def _build_default_grammar() -> Grammar:
    not_name = ALL_TYPES - {SemanticType.NAME}
    stages: Dict[str, StageSchema] = {
        "where": StageSchema(
            "where",
            (
                ArgSpec(ArgRole.FIELD, allow=not_name),
                ArgSpec(ArgRole.OPERATOR),
                ArgSpec(ArgRole.LITERAL, greedy=True),
            ),
            usage="where FIELD OPERATOR VALUE",
            example="ls | where Size > 10kb",
        ),
        "sort-by": StageSchema(
            "sort-by",
            (
                ArgSpec(ArgRole.FIELD),
                ArgSpec(ArgRole.DIRECTION, required=False),
            ),
            usage="sort-by FIELD [asc|desc]",
            example="ls | sort-by Name desc",
        ),
        "select": StageSchema(
            "select",
            (ArgSpec(ArgRole.FIELD),),
            usage="select FIELD [FIELD ...]",
            example="ls | select Name Size",
            repeat_last=True,
        ),
        "contains": StageSchema(
            "contains",
            (
                ArgSpec(ArgRole.FIELD, allow=frozenset({SemanticType.NAME})),
                ArgSpec(ArgRole.PATTERN, greedy=True),
            ),
            usage="contains FIELD TEXT",
            example="ls | contains Name log",
        ),
        "limit": StageSchema(
            "limit",
            (ArgSpec(ArgRole.LITERAL),),
            usage="limit N",
            example="ps | limit 5",
        ),
    }
    listing = (
        ColumnSchema("Name", SemanticType.NAME),
        ColumnSchema("Size", SemanticType.SIZE),
        ColumnSchema("Type", SemanticType.KIND),
        ColumnSchema("Date", SemanticType.DATE),
    )
    processes = (
        ColumnSchema("PID", SemanticType.IDENTIFIER),
        ColumnSchema("Name", SemanticType.NAME),
        ColumnSchema("Memory", SemanticType.MEMORY),
        ColumnSchema("Threads", SemanticType.COUNT),
    )
    sources = {"ls": listing, "dir": listing, "ps": processes}
    return Grammar(
        stages=MappingProxyType(stages),
        sources=MappingProxyType(sources),
        default_columns=listing,
    )


DEFAULT_GRAMMAR = _build_default_grammar()
