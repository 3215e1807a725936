"""Two-pass processing of ``luac -l -l`` listings."""

from .annotator import AnnotationLayout, Annotator, annotate_lines, annotate_listing
from .registers import RegisterMatch, resolve_register
from .symbols import FunctionSymbolTable, LocalInfo, SymbolEntry, SymbolTableParser, parse_symbol_tables

__all__ = [
    "AnnotationLayout",
    "Annotator",
    "FunctionSymbolTable",
    "LocalInfo",
    "RegisterMatch",
    "SymbolEntry",
    "SymbolTableParser",
    "annotate_lines",
    "annotate_listing",
    "parse_symbol_tables",
    "resolve_register",
]
