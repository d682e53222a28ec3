"""Type resolution and filter compilation for notion-cli.

Re-exports all public names so consumers can do:
    from notion_cli.compiler import build_write_payload, parse_where_clause
"""

from notion_cli.compiler._compose import (
    FilterPlan,
    PlannedFacet,
    compose_filter,
    plan_facet,
    plan_facet_filter,
)
from notion_cli.compiler._facets import (
    AssigneeEmptyFacet,
    DateFacet,
    Facet,
    PriorityFacet,
    StatusFacet,
    TagsFacet,
    extract_facets,
    extract_tags,
)
from notion_cli.compiler._inference import (
    COMPARISON_SYMBOLS,
    DEFAULT_RESOLVER,
    RELATIVE_DATE_OPERATORS,
    UNARY_OPERATORS,
    TypeResolver,
    ValueKind,
    infer_value_kind,
    split_values,
)
from notion_cli.compiler._payload import (
    DEFAULT_TITLE_PROPERTY,
    build_write_payload,
    encode_property,
    split_assignment,
    split_set_clause,
    title_payload,
    title_property_name,
)
from notion_cli.compiler._predicates import (
    FILTER_OPERATORS,
    build_filter_leaf,
    leaf_type,
    make_leaf,
    operator_warning,
)
from notion_cli.compiler._resolve import resolve_option, resolve_property
from notion_cli.compiler._where import parse_condition, parse_where_clause, split_conditions
from notion_cli.compiler.patterns import (
    DATE_MODES,
    DEFAULT_PATTERN_PACK,
    PatternPack,
    PatternRule,
    SynonymGroup,
    load_pattern_pack,
    pattern_pack_from_dict,
)

__all__ = [
    "COMPARISON_SYMBOLS",
    "DATE_MODES",
    "DEFAULT_PATTERN_PACK",
    "DEFAULT_RESOLVER",
    "DEFAULT_TITLE_PROPERTY",
    "FILTER_OPERATORS",
    "RELATIVE_DATE_OPERATORS",
    "UNARY_OPERATORS",
    "AssigneeEmptyFacet",
    "DateFacet",
    "Facet",
    "FilterPlan",
    "PatternPack",
    "PatternRule",
    "PlannedFacet",
    "PriorityFacet",
    "StatusFacet",
    "SynonymGroup",
    "TagsFacet",
    "TypeResolver",
    "ValueKind",
    "build_filter_leaf",
    "build_write_payload",
    "compose_filter",
    "encode_property",
    "extract_facets",
    "extract_tags",
    "infer_value_kind",
    "leaf_type",
    "load_pattern_pack",
    "make_leaf",
    "operator_warning",
    "parse_condition",
    "parse_where_clause",
    "pattern_pack_from_dict",
    "plan_facet",
    "plan_facet_filter",
    "resolve_option",
    "resolve_property",
    "split_assignment",
    "split_conditions",
    "split_set_clause",
    "split_values",
    "title_payload",
    "title_property_name",
]
