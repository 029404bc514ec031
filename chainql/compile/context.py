"""Compilation context value object.

Packages the ``(compiler, dialect)`` pair shared by the renderer and all
clause-level sub-builders into a single object.
"""
from __future__ import annotations

from dataclasses import dataclass

from chainql.compile.base import SQLCompiler
from chainql.query.dialect import DialectProfile


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for a single render.

    Attributes:
        compiler: Dialect-specific SQL compiler instance.
        dialect: The profile the caller asked for.
    """

    compiler: SQLCompiler
    dialect: DialectProfile
