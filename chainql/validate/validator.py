"""Deferred-validation orchestrator.

``StatementValidator`` is the entry point the renderer calls before any SQL
is produced.  It drives the focused sub-validators in a fixed order and
lets the first failure propagate.

Sub-validator hierarchy
-----------------------
StatementValidator
  ├── OperatorValidator   (operator_validator.py)  — operator allow-list
  └── StructureValidator  (structure_validator.py) — predicates, batch
                                                     shape, subqueries
"""
from __future__ import annotations

from chainql.query.base import Statement
from chainql.validate.operator_validator import OperatorValidator
from chainql.validate.structure_validator import StructureValidator


class StatementValidator:
    """Validates a statement tree before rendering.

    Responsibilities delegated to sub-validators (in order):
    1. Operator checks  – every operator, including those in nested
       subqueries, against the allow-list.
    2. Structure checks – mandatory predicate, batch column set,
       required clauses, subquery shape, raw-fragment markers.

    Raises the first violation as a subclass of ``ValidationError`` (or a
    ``CompilationError`` for malformed raw fragments) so the caller can
    convert it to a structured error response.
    """

    def __init__(self) -> None:
        self._operators = OperatorValidator()
        self._structure = StructureValidator()

    def validate(self, statement: Statement) -> None:
        """Validate ``statement`` and raise on the first violation found."""
        self._operators.validate_statement(statement)
        self._structure.validate_statement(statement)
