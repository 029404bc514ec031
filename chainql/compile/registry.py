"""Dialect compiler registry.

``to_sql("sqlite")`` and ``DialectProfile(target="sqlite")`` name a dialect
by string; :class:`CompilerFactory` turns that name into a fresh
:class:`~chainql.compile.base.SQLCompiler`.  The postgres, sqlite and mysql
compilers are registered when :mod:`chainql` is imported.  A third-party
dialect only has to register itself::

    @CompilerFactory.register("oracle")
    class OracleCompiler(SQLCompiler):
        ...

    table("users").where(("id", 1)).to_sql("oracle")

Target names are case-insensitive.
"""

from __future__ import annotations

import difflib
from collections.abc import Callable
from typing import ClassVar

from chainql.compile.base import SQLCompiler
from chainql.errors import CompilationError


def _key(name: str) -> str:
    return name.strip().lower()


class CompilerFactory:
    """Class-level mapping of dialect target names to compiler classes.

    A new compiler instance is created for every render, so compilers may
    keep per-render state.
    """

    _compilers: ClassVar[dict[str, type[SQLCompiler]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[SQLCompiler]], type[SQLCompiler]]:
        """Class decorator form of :meth:`register_class`."""

        def decorator(compiler_cls: type[SQLCompiler]) -> type[SQLCompiler]:
            cls.register_class(name, compiler_cls)
            return compiler_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, compiler_cls: type[SQLCompiler]) -> None:
        """Make ``compiler_cls`` the compiler for ``name``, replacing any earlier one."""
        cls._compilers[_key(name)] = compiler_cls

    @classmethod
    def unregister(cls, name: str) -> None:
        """Forget ``name``; unknown names are ignored."""
        cls._compilers.pop(_key(name), None)

    @classmethod
    def create(cls, name: str) -> SQLCompiler:
        """Return a new compiler for the dialect ``name``.

        Raises:
            CompilationError: With ``clause="dialect"`` when nothing is
                registered under ``name``; the message lists the known
                targets and the closest one, if any.
        """
        compiler_cls = cls._compilers.get(_key(name))
        if compiler_cls is not None:
            return compiler_cls()
        targets = cls.registered_targets()
        close = difflib.get_close_matches(_key(name), targets, n=1)
        hint = f" Did you mean '{close[0]}'?" if close else ""
        raise CompilationError(
            f"No compiler registered for dialect '{name}' (known: {', '.join(targets)}).{hint}",
            clause="dialect",
        )

    @classmethod
    def registered_targets(cls) -> list[str]:
        return sorted(cls._compilers)
