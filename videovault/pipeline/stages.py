"""
Declarative pipeline stages and their in-memory evaluation.

A pipeline is an ordered tuple of stages (Match, Lookup, AddFields, Project,
Sort, Skip, Limit) applied to the documents of one collection. Stages are
plain frozen dataclasses so pipelines can be built once and reused; the
entity store evaluates them with `run_pipeline`.
"""
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)


@dataclass(frozen=True)
class EvaluationContext:
    """Per-execution values available to computed fields."""

    viewer_id: Optional[str] = None


Document = Dict[str, Any]
Expression = Callable[[Document, EvaluationContext], Any]
CollectionResolver = Callable[[str], Iterable[Document]]

_MISSING = object()


def get_path(document: Optional[Mapping[str, Any]], path: str, default: Any = None) -> Any:
    """Resolve a dotted path (`owner.username`) inside nested documents."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


# =============================================================================
# Predicates
# =============================================================================


class Predicate:
    """Boolean test over a single document."""

    def __call__(self, document: Document) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class MatchAll(Predicate):
    def __call__(self, document: Document) -> bool:
        return True


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any

    def __call__(self, document: Document) -> bool:
        return get_path(document, self.field, _MISSING) == self.value


@dataclass(frozen=True)
class In(Predicate):
    field: str
    values: Tuple[Any, ...]

    def __call__(self, document: Document) -> bool:
        return get_path(document, self.field, _MISSING) in self.values


@dataclass(frozen=True)
class Exists(Predicate):
    """True when the field is present and not None."""

    field: str

    def __call__(self, document: Document) -> bool:
        return get_path(document, self.field) is not None


@dataclass(frozen=True)
class TextSearch(Predicate):
    """Case-insensitive substring match on any of `fields` (logical OR)."""

    fields: Tuple[str, ...]
    query: str

    def __call__(self, document: Document) -> bool:
        needle = self.query.casefold()
        for name in self.fields:
            value = get_path(document, name)
            if isinstance(value, str) and needle in value.casefold():
                return True
        return False


@dataclass(frozen=True)
class All(Predicate):
    predicates: Tuple[Predicate, ...]

    def __call__(self, document: Document) -> bool:
        return all(predicate(document) for predicate in self.predicates)


@dataclass(frozen=True)
class AnyOf(Predicate):
    predicates: Tuple[Predicate, ...]

    def __call__(self, document: Document) -> bool:
        return any(predicate(document) for predicate in self.predicates)


Filter = Union[Predicate, Mapping[str, Any], None]


def as_predicate(filter_: Filter) -> Predicate:
    """Normalize a filter; plain mappings mean field equality on every key."""
    if filter_ is None:
        return MatchAll()
    if isinstance(filter_, Predicate):
        return filter_
    return All(tuple(Eq(name, value) for name, value in filter_.items()))


def all_of(*predicates: Predicate) -> Predicate:
    """AND-combine predicates, dropping MatchAll terms."""
    terms = tuple(p for p in predicates if not isinstance(p, MatchAll))
    if not terms:
        return MatchAll()
    if len(terms) == 1:
        return terms[0]
    return All(terms)


# =============================================================================
# Computed-field expressions
# =============================================================================


def size_of(list_field: str) -> Expression:
    """Number of entries in a joined list (0 when missing)."""

    def expression(document: Document, context: EvaluationContext) -> int:
        return len(get_path(document, list_field) or [])

    return expression


def first_of(list_field: str) -> Expression:
    """First entry of a joined list, or None when the list is empty."""

    def expression(document: Document, context: EvaluationContext) -> Any:
        items = get_path(document, list_field) or []
        return items[0] if items else None

    return expression


def sum_of(list_field: str, value_field: str) -> Expression:
    def expression(document: Document, context: EvaluationContext) -> int:
        return sum(
            get_path(item, value_field) or 0
            for item in get_path(document, list_field) or []
        )

    return expression


def viewer_in(list_field: str, member_field: str) -> Expression:
    """
    Whether the current viewer's id appears as `member_field` in a joined list.
    Always False for anonymous viewers.
    """

    def expression(document: Document, context: EvaluationContext) -> bool:
        if context.viewer_id is None:
            return False
        return any(
            get_path(item, member_field) == context.viewer_id
            for item in get_path(document, list_field) or []
        )

    return expression


# =============================================================================
# Stages
# =============================================================================


@dataclass(frozen=True)
class Match:
    predicate: Predicate


@dataclass(frozen=True)
class Lookup:
    """
    Left-outer join into `from_collection`.

    When the local value is a list (e.g. a playlist's video ids) the joined
    documents keep the order of that list. A missing local value joins to [].
    """

    from_collection: str
    local_field: str
    foreign_field: str
    as_field: str
    pipeline: Tuple["Stage", ...] = ()


@dataclass(frozen=True)
class AddFields:
    fields: Mapping[str, Expression]


@dataclass(frozen=True)
class Project:
    """
    Field allow-list. `nested` projects sub-documents (or lists of them)
    with their own Project; None values stay None.
    """

    fields: Tuple[str, ...]
    nested: Mapping[str, "Project"] = field(default_factory=dict)

    def apply(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, list):
            return [self.apply(item) for item in value]
        if not isinstance(value, Mapping):
            return value
        projected: Document = {}
        for name in self.fields:
            if name in value:
                projected[name] = value[name]
        for name, sub_projection in self.nested.items():
            if name in value:
                projected[name] = sub_projection.apply(value[name])
        return projected


@dataclass(frozen=True)
class Sort:
    field: str
    descending: bool = True


@dataclass(frozen=True)
class Skip:
    count: int


@dataclass(frozen=True)
class Limit:
    count: int


Stage = Union[Match, Lookup, AddFields, Project, Sort, Skip, Limit]


# =============================================================================
# Evaluation
# =============================================================================


def _sort_key(value: Any) -> Tuple[int, Any]:
    # None sorts below every value
    return (0, 0) if value is None else (1, value)


def _lookup(
    documents: List[Document],
    stage: Lookup,
    resolve: CollectionResolver,
    context: EvaluationContext,
) -> List[Document]:
    foreign_docs = list(resolve(stage.from_collection))
    for document in documents:
        local_value = get_path(document, stage.local_field)
        if local_value is None:
            joined: List[Document] = []
        elif isinstance(local_value, list):
            by_key: Dict[Any, Document] = {}
            for foreign in foreign_docs:
                by_key.setdefault(get_path(foreign, stage.foreign_field), foreign)
            joined = [by_key[key] for key in local_value if key in by_key]
        else:
            joined = [
                foreign
                for foreign in foreign_docs
                if get_path(foreign, stage.foreign_field) == local_value
            ]
        if stage.pipeline:
            joined = run_pipeline(joined, stage.pipeline, resolve, context)
        else:
            joined = [dict(foreign) for foreign in joined]
        document[stage.as_field] = joined
    return documents


def run_pipeline(
    documents: Iterable[Document],
    stages: Sequence[Stage],
    resolve: CollectionResolver,
    context: Optional[EvaluationContext] = None,
) -> List[Document]:
    """
    Evaluate `stages` over `documents`.

    Input documents are shallow-copied, so stored documents are never
    mutated by computed fields or joins.
    """
    context = context or EvaluationContext()
    results = [dict(document) for document in documents]

    for stage in stages:
        if isinstance(stage, Match):
            results = [doc for doc in results if stage.predicate(doc)]
        elif isinstance(stage, Lookup):
            results = _lookup(results, stage, resolve, context)
        elif isinstance(stage, AddFields):
            for doc in results:
                computed = {
                    name: expression(doc, context)
                    for name, expression in stage.fields.items()
                }
                doc.update(computed)
        elif isinstance(stage, Project):
            results = [stage.apply(doc) for doc in results]
        elif isinstance(stage, Sort):
            # list.sort is stable, also with reverse=True
            results.sort(
                key=lambda doc: _sort_key(get_path(doc, stage.field)),
                reverse=stage.descending,
            )
        elif isinstance(stage, Skip):
            results = results[stage.count:]
        elif isinstance(stage, Limit):
            results = results[: stage.count]
        else:
            raise TypeError(f"Unsupported pipeline stage: {stage!r}")

    return results
