"""Import statement consolidation.

Raw import statements collected from converter fragments are parsed, merged
per source module and rendered as one block. Consolidating an already
consolidated block returns it unchanged.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from core.naming import quote

# Named binding lists longer than this are wrapped one per line
WRAP_WIDTH = 60

_STATEMENT_RE = re.compile(
    r"""
      import\s+type\s+(?P<tclause>[^;'"]*?)\s+from\s+['"](?P<tsource>[^'"]+)['"]\s*;?
    | import\s+(?P<clause>[^;'"]*?)\s+from\s+['"](?P<source>[^'"]+)['"]\s*;?
    | import\s+['"](?P<side>[^'"]+)['"]\s*;?
    | (?:const|let|var)\s+(?P<rbinding>\{[^}]*\}|[A-Za-z_$][\w$]*)\s*=\s*
        require\(\s*['"](?P<rsource>[^'"]+)['"]\s*\)\s*;?
    | require\(\s*['"](?P<rside>[^'"]+)['"]\s*\)\s*;?
    """,
    re.VERBOSE,
)
_NAMED_RE = re.compile(r"\{([^}]*)\}")
_NAMESPACE_RE = re.compile(r"\*\s*as\s+([A-Za-z_$][\w$]*)")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")

ENV_SOURCES = ("dotenv/config",)


@dataclass
class ImportSpec:
    """Everything imported from one source."""
    source: str
    is_type: bool = False
    defaults: List[str] = field(default_factory=list)
    namespaces: List[str] = field(default_factory=list)
    named: List[str] = field(default_factory=list)
    side_effect: bool = False

    def add_named(self, names: Iterable[str]) -> None:
        for name in names:
            if name and name not in self.named:
                self.named.append(name)

    def add_default(self, name: str) -> None:
        if name not in self.defaults:
            self.defaults.append(name)

    def add_namespace(self, name: str) -> None:
        if name not in self.namespaces:
            self.namespaces.append(name)

    @property
    def has_bindings(self) -> bool:
        return bool(self.defaults or self.namespaces or self.named)

    @property
    def group(self) -> int:
        if self.is_type:
            return 3
        if self.source in ENV_SOURCES:
            return 0
        if self.source.startswith((".", "/")):
            return 2
        return 1


def _split_named(body: str, require_style: bool = False) -> List[str]:
    names = []
    for item in body.split(","):
        item = " ".join(item.split())
        if not item:
            continue
        if require_style and ":" in item:
            original, alias = (part.strip() for part in item.split(":", 1))
            item = f"{original} as {alias}"
        names.append(item)
    return names


def _named_sort_key(name: str) -> Tuple[str, str]:
    bare = name[5:] if name.startswith("type ") else name
    return bare.lower(), name


class ImportConsolidator:
    """Merges import statements for one module format (``esm`` or ``cjs``)."""

    def __init__(self, module_format: str = "esm", quote_char: str = "'"):
        if module_format not in ("esm", "cjs"):
            raise ValueError(f"Unknown module format '{module_format}'")
        self.module_format = module_format
        self.quote_char = quote_char

    def parse(self, statements: Iterable[str]) -> Tuple[Dict[Tuple[str, bool], ImportSpec], List[str]]:
        """Parse statements into specs keyed by ``(source, is_type)``.

        Returns the specs and any non-blank text that is not an import.
        """
        specs: Dict[Tuple[str, bool], ImportSpec] = {}
        unparsed: List[str] = []

        def spec_for(source: str, is_type: bool = False) -> ImportSpec:
            key = (source, is_type)
            if key not in specs:
                specs[key] = ImportSpec(source=source, is_type=is_type)
            return specs[key]

        for statement in statements:
            position = 0
            for match in _STATEMENT_RE.finditer(statement):
                leftover = statement[position:match.start()].strip()
                if leftover:
                    unparsed.extend(line.strip() for line in leftover.splitlines() if line.strip())
                position = match.end()

                if match.group("tsource"):
                    self._apply_clause(spec_for(match.group("tsource"), True), match.group("tclause"))
                elif match.group("source"):
                    self._apply_clause(spec_for(match.group("source")), match.group("clause"))
                elif match.group("side"):
                    spec_for(match.group("side")).side_effect = True
                elif match.group("rsource"):
                    spec = spec_for(match.group("rsource"))
                    binding = match.group("rbinding")
                    if binding.startswith("{"):
                        spec.add_named(_split_named(binding[1:-1], require_style=True))
                    else:
                        spec.add_default(binding)
                else:
                    spec_for(match.group("rside")).side_effect = True

            leftover = statement[position:].strip()
            if leftover:
                unparsed.extend(line.strip() for line in leftover.splitlines() if line.strip())

        return specs, unparsed

    def _apply_clause(self, spec: ImportSpec, clause: str) -> None:
        named = _NAMED_RE.search(clause)
        if named:
            spec.add_named(_split_named(named.group(1)))
            clause = clause[:named.start()] + clause[named.end():]

        namespace = _NAMESPACE_RE.search(clause)
        if namespace:
            spec.add_namespace(namespace.group(1))
            clause = clause[:namespace.start()] + clause[namespace.end():]

        for part in clause.split(","):
            part = part.strip()
            if _IDENTIFIER_RE.match(part):
                spec.add_default(part)

    def consolidate(self, statements: Iterable[str]) -> str:
        specs, unparsed = self.parse(statements)

        ordered = sorted(specs.values(), key=lambda spec: (spec.group, spec.source))
        blocks: List[str] = []
        current_group: Optional[int] = None
        lines: List[str] = []
        for spec in ordered:
            if current_group is not None and spec.group != current_group and lines:
                blocks.append("\n".join(lines))
                lines = []
            current_group = spec.group
            lines.extend(self.render(spec))
        if lines:
            blocks.append("\n".join(lines))

        extras = list(dict.fromkeys(unparsed))
        if extras:
            blocks.append("\n".join(extras))
        return "\n\n".join(blocks)

    def render(self, spec: ImportSpec) -> List[str]:
        source = quote(spec.source, self.quote_char)
        named = sorted(spec.named, key=_named_sort_key)
        if spec.is_type or self.module_format == "esm":
            return self._render_esm(spec, source, named)
        return self._render_cjs(spec, source, named)

    def _named_clause(self, named: List[str], separator: str = "as") -> str:
        items = named if separator == "as" else [n.replace(" as ", ": ") for n in named]
        joined = ", ".join(items)
        if len(joined) > WRAP_WIDTH:
            return "{\n" + ",\n".join(f"  {item}" for item in items) + "\n}"
        return "{ " + joined + " }"

    def _render_esm(self, spec: ImportSpec, source: str, named: List[str]) -> List[str]:
        keyword = "import type" if spec.is_type else "import"
        lines = []
        defaults = list(spec.defaults)

        if defaults or named:
            head = defaults.pop(0) if defaults else None
            parts = [part for part in (head, self._named_clause(named) if named else None) if part]
            lines.append(f"{keyword} {', '.join(parts)} from {source};")
        for default in defaults:
            lines.append(f"{keyword} {default} from {source};")
        for namespace in spec.namespaces:
            lines.append(f"{keyword} * as {namespace} from {source};")
        if spec.side_effect and not spec.has_bindings:
            lines.append(f"import {source};")
        return lines

    def _render_cjs(self, spec: ImportSpec, source: str, named: List[str]) -> List[str]:
        lines = []
        for binding in spec.defaults + spec.namespaces:
            lines.append(f"const {binding} = require({source});")
        if named:
            lines.append(f"const {self._named_clause(named, separator=':')} = require({source});")
        if spec.side_effect and not spec.has_bindings:
            lines.append(f"require({source});")
        return lines


def consolidate(statements: Iterable[str], module_format: str = "esm", quote_char: str = "'") -> str:
    return ImportConsolidator(module_format, quote_char).consolidate(statements)
