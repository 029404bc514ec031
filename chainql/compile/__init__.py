"""chainQL rendering layer: Statement → parameterized SQL."""
from chainql.compile.base import CompiledSQL, SQLCompiler
from chainql.compile.builder import StatementRenderer, render
from chainql.compile.mysql import MySQLCompiler
from chainql.compile.postgres import PostgresCompiler
from chainql.compile.sqlite import SQLiteCompiler

__all__ = [
    "CompiledSQL",
    "SQLCompiler",
    "StatementRenderer",
    "render",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
]
