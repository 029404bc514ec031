"""chainQL query models: values, operators, conditions, clauses, statements."""
from chainql.query.base import Statement, StatementKind
from chainql.query.clauses import (
    Aggregate,
    AggregateFunction,
    Column,
    JoinClause,
    JoinKind,
    OrderByItem,
    RawExpression,
    SortDirection,
    SubqueryColumn,
)
from chainql.query.conditions import (
    Atomic,
    ColumnComparison,
    Connector,
    Exists,
    Group,
    GroupEntry,
    RawCondition,
    SubqueryIn,
)
from chainql.query.dialect import DialectProfile, PlaceholderStyle
from chainql.query.operators import Operator
from chainql.query.statements import DeleteQuery, InsertQuery, SelectQuery, UpdateQuery
from chainql.query.value import Value, ValueKind

__all__ = [
    "Statement",
    "StatementKind",
    "Aggregate",
    "AggregateFunction",
    "Column",
    "JoinClause",
    "JoinKind",
    "OrderByItem",
    "RawExpression",
    "SortDirection",
    "SubqueryColumn",
    "Atomic",
    "ColumnComparison",
    "Connector",
    "Exists",
    "Group",
    "GroupEntry",
    "RawCondition",
    "SubqueryIn",
    "DialectProfile",
    "PlaceholderStyle",
    "Operator",
    "DeleteQuery",
    "InsertQuery",
    "SelectQuery",
    "UpdateQuery",
    "Value",
    "ValueKind",
]
