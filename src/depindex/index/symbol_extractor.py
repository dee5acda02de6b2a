"""Best-effort structural extraction of imports, exports and symbols.

JS/TS is scanned line by line with regular expressions: a construct is only
recognised when its keyword starts the (trimmed) line, so declarations that
span several lines with the keyword elsewhere are missed.  Dynamic
``import()`` calls are the exception and are found anywhere in the text.
Class bodies are not walked for JS/TS, so ``ClassRecord.methods`` and
``ClassRecord.properties`` stay empty.

Python is parsed with the stdlib ``ast`` module and only file-scope
statements are considered.

SymbolExtractor never raises: a failing pass yields an empty list and the
other passes still run.
"""

from __future__ import annotations

import ast
import logging
import re
from collections.abc import Callable, Iterable

from depindex.core.languages import EXTRACTABLE_LANGUAGES
from depindex.index.schema import (
    ClassRecord,
    ExportRecord,
    ExtractedSymbols,
    FunctionRecord,
    ImportRecord,
    ImportSpecifier,
    MethodRecord,
    ParameterRecord,
    PropertyRecord,
    VariableRecord,
)

logger = logging.getLogger(__name__)

# ── JS/TS regex patterns ──────────────────────────────────────────────────────

# import * as ns | { a, b as c } | Default [, { ... }] from "source"
_IMPORT_RE = re.compile(
    r"""^import\s+(?:type\s+)?"""
    r"""(?:(\*\s+as\s+\w+)|(\{[^}]*\})|(\w+))"""
    r"""(?:\s*,\s*(\{[^}]*\}))?"""
    r"""\s+from\s+['"]([^'"]+)['"]"""
)
_DYNAMIC_IMPORT_RE = re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_AS_RE = re.compile(r"\s+as\s+")

_EXPORT_DEFAULT_RE = re.compile(
    r"^export\s+default\s+(?:async\s+)?(?:abstract\s+)?"
    r"(?:(?:class|function|const|let|var)\b\s*\*?)?\s*(\w+)?"
)
_EXPORT_NAMED_RE = re.compile(
    r"^export\s+(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    r"(?:const|let|var|function\s*\*?|class|interface|type|enum)\s+(\w+)"
)
_EXPORT_FROM_RE = re.compile(
    r"""^export\s+(?:type\s+)?(?:\{([^}]*)\}|\*(?:\s+as\s+(\w+))?)\s+from\s+['"]([^'"]+)['"]"""
)
# Words that can follow "export default" without naming anything.
_NOT_A_NAME = frozenset({"new", "await", "typeof", "void", "this"})

_FUNCTION_RE = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(async\s+)?function\s*\*?\s*(\w+)"
    r"\s*(?:<[^>]*>)?\s*\(([^)]*)\)(?:\s*:\s*([^{]+))?"
)
_ARROW_RE = re.compile(
    r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*(?::\s*[^=]+)?\s*=\s*"
    r"(async\b\s*)?\(?([^)]*)\)?\s*(?::\s*([^=]+))?\s*=>"
)
_PARAM_RE = re.compile(r"^(?:\.\.\.)?(\w+)(\?)?(?:\s*:\s*([^=]+))?(?:\s*=\s*(.+))?$")

_CLASS_RE = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(abstract\s+)?class\s+(\w+)"
    r"(?:\s*<[^>]*>)?(?:\s+extends\s+([\w.]+)(?:<[^>]*>)?)?(?:\s+implements\s+([^{]+))?"
)

_VARIABLE_RE = re.compile(
    r"^(?:export\s+)?(?:declare\s+)?(const|let|var)\s+(\w+)(?:\s*:\s*([^=]+))?\s*="
)
_FUNCTION_WORD_RE = re.compile(r"\bfunction\b")

_COMMENT_PREFIXES = ("//", "/*", "*")

# A numbered source line: (lineno, raw line, trimmed line)
_Line = tuple[int, str, str]


# ── Public API ────────────────────────────────────────────────────────────────

class SymbolExtractor:
    """Extract imports, exports, functions, classes and variables from text.

    Usage::

        extractor = SymbolExtractor()
        symbols = extractor.extract(source, "typescript")
        names = [f.name for f in symbols.functions]

    Only languages in *languages* are scanned; every other language yields
    empty lists.
    """

    def __init__(self, languages: Iterable[str] | None = None) -> None:
        self._languages = frozenset(
            EXTRACTABLE_LANGUAGES if languages is None else languages
        )

    @property
    def languages(self) -> frozenset[str]:
        return self._languages

    def supports(self, language: str) -> bool:
        return language in self._languages and language in EXTRACTABLE_LANGUAGES

    def extract(self, text: str, language: str) -> ExtractedSymbols:
        """Return the symbols found in *text*; empty lists on any failure."""
        if not self.supports(language) or not text.strip():
            return ExtractedSymbols()
        if language == "python":
            return self._extract_python(text)
        return self._extract_js_ts(text)

    # ── JS / TS ───────────────────────────────────────────────────────────────

    def _extract_js_ts(self, text: str) -> ExtractedSymbols:
        lines: list[_Line] = []
        for lineno, raw in enumerate(text.splitlines(), start=1):
            trimmed = raw.strip()
            if trimmed and not trimmed.startswith(_COMMENT_PREFIXES):
                lines.append((lineno, raw, trimmed))

        imports = _safe(self._scan_imports, lines)
        imports += _safe(lambda _: self._scan_dynamic_imports(text), lines)
        return ExtractedSymbols(
            imports=imports,
            exports=_safe(self._scan_exports, lines),
            functions=_safe(self._scan_functions, lines),
            classes=_safe(self._scan_classes, lines),
            variables=_safe(self._scan_variables, lines),
        )

    @staticmethod
    def _scan_imports(lines: list[_Line]) -> list[ImportRecord]:
        imports: list[ImportRecord] = []
        for lineno, _, line in lines:
            m = _IMPORT_RE.match(line)
            if not m:
                continue
            namespace, named, default, extra_named, source = m.groups()

            if namespace:
                imports.append(ImportRecord(
                    source=source,
                    specifiers=(ImportSpecifier(name=namespace.split()[-1]),),
                    line=lineno,
                    is_namespace=True,
                ))
            elif default:
                specifiers = [ImportSpecifier(name=default, is_default=True)]
                if extra_named:
                    specifiers.extend(_parse_named_bindings(extra_named))
                imports.append(ImportRecord(
                    source=source,
                    specifiers=tuple(specifiers),
                    line=lineno,
                    is_default=True,
                ))
            else:
                imports.append(ImportRecord(
                    source=source,
                    specifiers=tuple(_parse_named_bindings(named)),
                    line=lineno,
                ))
        return imports

    @staticmethod
    def _scan_dynamic_imports(text: str) -> list[ImportRecord]:
        return [
            ImportRecord(
                source=m.group(1),
                specifiers=(),
                line=text.count("\n", 0, m.start()) + 1,
                is_dynamic=True,
            )
            for m in _DYNAMIC_IMPORT_RE.finditer(text)
        ]

    @staticmethod
    def _scan_exports(lines: list[_Line]) -> list[ExportRecord]:
        exports: list[ExportRecord] = []
        for lineno, _, line in lines:
            if not line.startswith("export"):
                continue

            if re.match(r"^export\s+default\b", line):
                m = _EXPORT_DEFAULT_RE.match(line)
                name = m.group(1) if m else None
                if not name or name in _NOT_A_NAME:
                    name = "default"
                exports.append(ExportRecord(name=name, line=lineno, is_default=True))
                continue

            m = _EXPORT_NAMED_RE.match(line)
            if m:
                exports.append(ExportRecord(name=m.group(1), line=lineno))
                continue

            m = _EXPORT_FROM_RE.match(line)
            if not m:
                continue
            names_block, namespace_alias, source = m.groups()
            if names_block is not None:
                for part in names_block.split(","):
                    name = _AS_RE.split(part.strip())[0].strip()
                    if name:
                        exports.append(ExportRecord(
                            name=name, line=lineno, is_re_export=True, source=source,
                        ))
            else:
                exports.append(ExportRecord(
                    name=namespace_alias or "*",
                    line=lineno,
                    is_re_export=True,
                    source=source,
                ))
        return exports

    @staticmethod
    def _scan_functions(lines: list[_Line]) -> list[FunctionRecord]:
        functions: list[FunctionRecord] = []
        for lineno, raw, line in lines:
            exported = line.startswith("export")

            m = _FUNCTION_RE.match(line)
            if m:
                functions.append(FunctionRecord(
                    name=m.group(2),
                    line=lineno,
                    column=_column(raw, m.start(2)),
                    parameters=parse_parameters(m.group(3)),
                    return_type=_clean(m.group(4)),
                    is_async=m.group(1) is not None,
                    is_exported=exported,
                    is_arrow=False,
                ))

            m = _ARROW_RE.match(line)
            if m:
                functions.append(FunctionRecord(
                    name=m.group(1),
                    line=lineno,
                    column=_column(raw, m.start(1)),
                    parameters=parse_parameters(m.group(3)),
                    return_type=_clean(m.group(4)),
                    is_async=m.group(2) is not None,
                    is_exported=exported,
                    is_arrow=True,
                ))
        return functions

    @staticmethod
    def _scan_classes(lines: list[_Line]) -> list[ClassRecord]:
        classes: list[ClassRecord] = []
        for lineno, raw, line in lines:
            m = _CLASS_RE.match(line)
            if not m or m.group(2) == "extends":
                continue
            implements = tuple(
                part.strip() for part in (m.group(4) or "").split(",") if part.strip()
            )
            classes.append(ClassRecord(
                name=m.group(2),
                line=lineno,
                column=_column(raw, m.start(2)),
                extends=m.group(3),
                implements=implements,
                is_exported=line.startswith("export"),
                is_abstract=m.group(1) is not None,
            ))
        return classes

    @staticmethod
    def _scan_variables(lines: list[_Line]) -> list[VariableRecord]:
        variables: list[VariableRecord] = []
        for lineno, raw, line in lines:
            # File scope only
            if raw[:1].isspace():
                continue
            # Already counted as a function
            if "=>" in line or _FUNCTION_WORD_RE.search(line):
                continue
            m = _VARIABLE_RE.match(line)
            if m:
                variables.append(VariableRecord(
                    name=m.group(2),
                    line=lineno,
                    column=_column(raw, m.start(2)),
                    kind=m.group(1),
                    type_text=_clean(m.group(3)),
                    is_exported=line.startswith("export"),
                ))
        return variables

    # ── Python ────────────────────────────────────────────────────────────────

    def _extract_python(self, text: str) -> ExtractedSymbols:
        try:
            tree = ast.parse(text)
        except Exception as exc:
            logger.debug("Python parse failed: %s", exc)
            return ExtractedSymbols()

        result = ExtractedSymbols()
        try:
            for node in tree.body:
                self._visit_python_statement(node, result)
            result.imports.extend(_python_dynamic_imports(tree))
        except Exception as exc:
            logger.warning("Python symbol extraction failed: %s", exc)
            return ExtractedSymbols()
        return result

    def _visit_python_statement(self, node: ast.stmt, result: ExtractedSymbols) -> None:
        if isinstance(node, ast.Import):
            for alias in node.names:
                result.imports.append(ImportRecord(
                    source=alias.name,
                    specifiers=(ImportSpecifier(name=alias.name, alias=alias.asname),),
                    line=node.lineno,
                    is_namespace=True,
                ))

        elif isinstance(node, ast.ImportFrom):
            result.imports.append(ImportRecord(
                source="." * node.level + (node.module or ""),
                specifiers=tuple(
                    ImportSpecifier(name=a.name, alias=a.asname)
                    for a in node.names if a.name != "*"
                ),
                line=node.lineno,
                is_namespace=any(a.name == "*" for a in node.names),
            ))

        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            result.functions.append(FunctionRecord(
                name=node.name,
                line=node.lineno,
                column=node.col_offset,
                parameters=_python_parameters(node.args),
                return_type=_unparse(node.returns),
                is_async=isinstance(node, ast.AsyncFunctionDef),
                is_exported=not node.name.startswith("_"),
            ))

        elif isinstance(node, ast.ClassDef):
            result.classes.append(_python_class(node))

        elif isinstance(node, (ast.Assign, ast.AnnAssign)):
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            annotation = node.annotation if isinstance(node, ast.AnnAssign) else None
            for target in targets:
                if isinstance(target, ast.Name):
                    self._visit_python_assignment(target, node.value, annotation, result)

    @staticmethod
    def _visit_python_assignment(
        target: ast.Name,
        value: ast.expr | None,
        annotation: ast.expr | None,
        result: ExtractedSymbols,
    ) -> None:
        name = target.id
        if name == "__all__":
            if isinstance(value, (ast.List, ast.Tuple)):
                for elt in value.elts:
                    if isinstance(elt, ast.Constant) and isinstance(elt.value, str):
                        result.exports.append(ExportRecord(name=elt.value, line=elt.lineno))
            return

        if isinstance(value, ast.Lambda):
            result.functions.append(FunctionRecord(
                name=name,
                line=target.lineno,
                column=target.col_offset,
                parameters=_python_parameters(value.args),
                is_exported=not name.startswith("_"),
                is_arrow=True,
            ))
            return

        result.variables.append(VariableRecord(
            name=name,
            line=target.lineno,
            column=target.col_offset,
            kind="constant" if name.isupper() else "variable",
            type_text=_unparse(annotation),
            is_exported=not name.startswith("_"),
        ))


def extract_symbols(text: str, language: str) -> ExtractedSymbols:
    """Module-level shortcut using the default language set."""
    return _DEFAULT_EXTRACTOR.extract(text, language)


# ── Helpers ───────────────────────────────────────────────────────────────────

def parse_parameters(param_text: str | None) -> tuple[ParameterRecord, ...]:
    """Split a JS/TS parameter list on commas.

    Destructured and nested generic parameters are not understood and are
    dropped.
    """
    if not param_text or not param_text.strip():
        return ()

    params: list[ParameterRecord] = []
    for part in param_text.split(","):
        trimmed = part.strip()
        if not trimmed:
            continue
        m = _PARAM_RE.match(trimmed)
        if not m:
            continue
        params.append(ParameterRecord(
            name=m.group(1),
            optional="?" in trimmed or "=" in trimmed,
            type_text=_clean(m.group(3)),
            default_text=_clean(m.group(4)),
        ))
    return tuple(params)


def _parse_named_bindings(block: str) -> list[ImportSpecifier]:
    specifiers: list[ImportSpecifier] = []
    for part in block.strip().strip("{}").split(","):
        pieces = _AS_RE.split(part.strip())
        name = re.sub(r"^type\s+", "", pieces[0].strip())
        if not name:
            continue
        alias = pieces[1].strip() if len(pieces) > 1 else None
        specifiers.append(ImportSpecifier(name=name, alias=alias or None))
    return specifiers


def _safe(scan: Callable[[list[_Line]], list], lines: list[_Line]) -> list:
    try:
        return scan(lines)
    except Exception as exc:
        logger.warning("Extractor pass %s failed: %s", getattr(scan, "__name__", scan), exc)
        return []


def _column(raw: str, offset_in_trimmed: int) -> int:
    return len(raw) - len(raw.lstrip()) + offset_in_trimmed


def _clean(text: str | None) -> str | None:
    if text is None:
        return None
    return text.strip() or None


def _unparse(node: ast.AST | None) -> str | None:
    return ast.unparse(node) if node is not None else None


def _visibility(name: str) -> str:
    if name.startswith("__") and not name.endswith("__"):
        return "private"
    if name.startswith("_") and not name.startswith("__"):
        return "protected"
    return "public"


def _python_parameters(args: ast.arguments, skip_first: bool = False) -> tuple[ParameterRecord, ...]:
    positional = [*args.posonlyargs, *args.args]
    defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults))
    defaults.extend(args.defaults)
    pairs = list(zip(positional, defaults))
    if skip_first and pairs:
        pairs = pairs[1:]

    params = [
        ParameterRecord(
            name=arg.arg,
            optional=default is not None,
            type_text=_unparse(arg.annotation),
            default_text=_unparse(default),
        )
        for arg, default in pairs
    ]
    if args.vararg:
        params.append(ParameterRecord(
            name=args.vararg.arg, optional=True, type_text=_unparse(args.vararg.annotation),
        ))
    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        params.append(ParameterRecord(
            name=arg.arg,
            optional=default is not None,
            type_text=_unparse(arg.annotation),
            default_text=_unparse(default),
        ))
    if args.kwarg:
        params.append(ParameterRecord(
            name=args.kwarg.arg, optional=True, type_text=_unparse(args.kwarg.annotation),
        ))
    return tuple(params)


def _python_class(node: ast.ClassDef) -> ClassRecord:
    bases = [ast.unparse(b) for b in node.bases]
    metaclass = next(
        (ast.unparse(k.value) for k in node.keywords if k.arg == "metaclass"), ""
    )
    methods: list[MethodRecord] = []
    properties: list[PropertyRecord] = []

    for child in node.body:
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
            decorators = {ast.unparse(d) for d in child.decorator_list}
            is_static = "staticmethod" in decorators
            methods.append(MethodRecord(
                name=child.name,
                line=child.lineno,
                parameters=_python_parameters(child.args, skip_first=not is_static),
                return_type=_unparse(child.returns),
                is_async=isinstance(child, ast.AsyncFunctionDef),
                is_static=is_static,
                visibility=_visibility(child.name),
            ))
        elif isinstance(child, ast.AnnAssign) and isinstance(child.target, ast.Name):
            type_text = ast.unparse(child.annotation)
            properties.append(PropertyRecord(
                name=child.target.id,
                line=child.lineno,
                type_text=type_text,
                is_static=type_text.startswith(("ClassVar", "typing.ClassVar")),
                is_readonly=type_text.startswith(("Final", "typing.Final")),
                visibility=_visibility(child.target.id),
                default_text=_unparse(child.value),
            ))
        elif isinstance(child, ast.Assign):
            for target in child.targets:
                if isinstance(target, ast.Name):
                    properties.append(PropertyRecord(
                        name=target.id,
                        line=child.lineno,
                        is_static=True,
                        visibility=_visibility(target.id),
                        default_text=_unparse(child.value),
                    ))

    return ClassRecord(
        name=node.name,
        line=node.lineno,
        column=node.col_offset,
        extends=bases[0] if bases else None,
        implements=tuple(bases[1:]),
        methods=tuple(methods),
        properties=tuple(properties),
        is_exported=not node.name.startswith("_"),
        is_abstract=(
            any(b in ("ABC", "abc.ABC") for b in bases)
            or metaclass in ("ABCMeta", "abc.ABCMeta")
        ),
    )


def _python_dynamic_imports(tree: ast.Module) -> list[ImportRecord]:
    """Find ``importlib.import_module("x")`` / ``__import__("x")`` anywhere."""
    found: list[ImportRecord] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or not node.args:
            continue
        func = node.func
        func_name = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", "")
        if func_name not in ("import_module", "__import__"):
            continue
        arg = node.args[0]
        if isinstance(arg, ast.Constant) and isinstance(arg.value, str):
            found.append(ImportRecord(
                source=arg.value, specifiers=(), line=node.lineno, is_dynamic=True,
            ))
    return found


_DEFAULT_EXTRACTOR = SymbolExtractor()
