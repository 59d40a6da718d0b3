from __future__ import annotations

from typing import Iterator, Sequence


NO_PARENT = -1


class Skeleton:
    """Read-only joint hierarchy.

    Joints are stored as an array of parent indices. A parent always comes
    before its children, so a forward scan visits parents first.
    """

    def __init__(self, joint_parents: Sequence[int], joint_names: Sequence[str] | None = None) -> None:
        parents = [int(p) for p in joint_parents]
        for joint, parent in enumerate(parents):
            if parent != NO_PARENT and not 0 <= parent < joint:
                raise ValueError(f"Joint {joint} has invalid parent {parent}; parents must precede children")

        if joint_names is None:
            names = [f"joint{i}" for i in range(len(parents))]
        else:
            names = [str(n) for n in joint_names]
            if len(names) != len(parents):
                raise ValueError(f"Expected {len(parents)} joint names, got {len(names)}")
            if len(set(names)) != len(names):
                raise ValueError("Joint names must be unique")

        self._parents = parents
        self._names = names
        self._children: list[list[int]] = [[] for _ in parents]
        for joint, parent in enumerate(parents):
            if parent != NO_PARENT:
                self._children[parent].append(joint)

        self._depths = [0] * len(parents)
        for joint, parent in enumerate(parents):
            if parent != NO_PARENT:
                self._depths[joint] = self._depths[parent] + 1

        self._heights = [0] * len(parents)
        for joint in range(len(parents) - 1, -1, -1):
            parent = parents[joint]
            if parent != NO_PARENT:
                self._heights[parent] = max(self._heights[parent], self._heights[joint] + 1)

    @property
    def num_joints(self) -> int:
        return len(self._parents)

    @property
    def joint_parents(self) -> tuple[int, ...]:
        return tuple(self._parents)

    @property
    def joint_names(self) -> tuple[str, ...]:
        return tuple(self._names)

    def parent(self, joint: int) -> int:
        return self._parents[joint]

    def children(self, joint: int) -> tuple[int, ...]:
        return tuple(self._children[joint])

    def roots(self) -> tuple[int, ...]:
        return tuple(j for j, p in enumerate(self._parents) if p == NO_PARENT)

    def depth(self, joint: int) -> int:
        return self._depths[joint]

    def height(self, joint: int) -> int:
        """Number of joints on the longest chain below `joint`."""
        return self._heights[joint]

    def joint_index(self, name: str) -> int:
        try:
            return self._names.index(str(name))
        except ValueError as ex:
            raise ValueError(f"Unknown joint name: {name!r}") from ex

    def iter_depth_first(self) -> Iterator[tuple[int, int]]:
        """Yields (joint, parent), every parent before its children."""

        stack = list(reversed(self.roots()))
        while stack:
            joint = stack.pop()
            yield joint, self._parents[joint]
            stack.extend(reversed(self._children[joint]))

    def iter_depth_first_reverse(self) -> Iterator[tuple[int, int]]:
        yield from reversed(list(self.iter_depth_first()))
