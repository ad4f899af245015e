"""Ordering and grouping of code fragments."""

from typing import Dict, Iterable, List, Sequence

from core.ir.models import CodeFragment, FragmentType, collect_exports

# Order slots reserved per node
NODE_SLOT = 1000

PREAMBLE_INDEX = -1


class AssembledFragments:
    """Fragments grouped by type, each group sorted by order."""

    def __init__(self, groups: Dict[FragmentType, List[CodeFragment]]):
        self._groups = {kind: list(groups.get(kind, [])) for kind in FragmentType}

    def __getitem__(self, kind: FragmentType) -> List[CodeFragment]:
        return list(self._groups[kind])

    def contents(self, kind: FragmentType) -> List[str]:
        return [fragment.content for fragment in self._groups[kind]]

    def all(self) -> List[CodeFragment]:
        """Every fragment in file order: by type, then by order."""
        return [fragment for kind in FragmentType for fragment in self._groups[kind]]

    def dependencies(self) -> List[str]:
        found = set()
        for fragment in self.all():
            found.update(fragment.dependencies)
        return sorted(found)

    def exports(self) -> tuple:
        return collect_exports(self.all())

    def has_async(self) -> bool:
        return any(fragment.metadata.is_async for fragment in self.all())

    def as_dict(self) -> Dict[str, List[CodeFragment]]:
        return {kind.value: list(fragments) for kind, fragments in self._groups.items()}


class FragmentAssembler:
    """Assigns ``order = execution_index * 1000 + fragment_index`` and groups by type.

    ``node_fragments`` holds one fragment list per node, in execution order.
    ``preamble`` fragments belong to the graph as a whole and sort ahead of
    every node.
    """

    def assign_order(self, fragments: Sequence[CodeFragment], execution_index: int) -> List[CodeFragment]:
        if len(fragments) >= NODE_SLOT:
            raise ValueError(f"A node may emit at most {NODE_SLOT - 1} fragments")
        return [
            fragment.with_order(execution_index * NODE_SLOT + position)
            for position, fragment in enumerate(fragments)
        ]

    def assemble(
        self,
        node_fragments: Iterable[Sequence[CodeFragment]],
        preamble: Sequence[CodeFragment] = (),
    ) -> AssembledFragments:
        ordered: List[CodeFragment] = self.assign_order(preamble, PREAMBLE_INDEX)
        for execution_index, fragments in enumerate(node_fragments):
            ordered.extend(self.assign_order(fragments, execution_index))

        groups: Dict[FragmentType, List[CodeFragment]] = {kind: [] for kind in FragmentType}
        seen_exports = set()
        for fragment in ordered:
            if fragment.type is FragmentType.EXPORT:
                if fragment.content in seen_exports:
                    continue
                seen_exports.add(fragment.content)
            groups[fragment.type].append(fragment)

        for kind in groups:
            groups[kind].sort(key=lambda fragment: fragment.order)
        return AssembledFragments(groups)
