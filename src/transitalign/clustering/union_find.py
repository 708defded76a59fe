"""Union-Find (Disjoint Set Union) data structure for clustering."""

from collections.abc import Hashable


class UnionFind:
    """Union-Find data structure with path compression and union by rank.

    Implements the classic DSU algorithm for efficiently finding connected
    components in a graph. Elements may be any hashable value; the resolver
    uses ``(source_dataset, source_id)`` tuples.

    Attributes
    ----------
    parent : dict[Hashable, Hashable]
        Parent pointers for each element.
    rank : dict[Hashable, int]
        Rank (approximate tree height) for each root.
    """

    def __init__(self) -> None:
        """Initialize empty Union-Find structure."""
        self.parent: dict[Hashable, Hashable] = {}
        self.rank: dict[Hashable, int] = {}

    def make_set(self, x: Hashable) -> None:
        """Create a new set containing element x."""
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0

    def find(self, x: Hashable) -> Hashable:
        """Find root of set containing x with path compression.

        Parameters
        ----------
        x : Hashable
            Element to find.

        Returns
        -------
        Hashable
            Root of set containing x.
        """
        if x not in self.parent:
            self.make_set(x)

        if self.parent[x] != x:
            self.parent[x] = self.find(self.parent[x])

        return self.parent[x]

    def union(self, x: Hashable, y: Hashable) -> Hashable:
        """Union sets containing x and y using union by rank.

        Parameters
        ----------
        x : Hashable
            First element.
        y : Hashable
            Second element.

        Returns
        -------
        Hashable
            Root of the merged set.
        """
        root_x = self.find(x)
        root_y = self.find(y)

        if root_x == root_y:
            return root_x

        if self.rank[root_x] < self.rank[root_y]:
            self.parent[root_x] = root_y
            return root_y
        if self.rank[root_x] > self.rank[root_y]:
            self.parent[root_y] = root_x
            return root_x
        self.parent[root_y] = root_x
        self.rank[root_x] += 1
        return root_x

    def get_components(self) -> list[list[Hashable]]:
        """Get all connected components.

        Returns
        -------
        list[list[Hashable]]
            List of components, each component is a list of elements in
            insertion order.
        """
        components_dict: dict[Hashable, list[Hashable]] = {}

        for element in self.parent:
            root = self.find(element)
            if root not in components_dict:
                components_dict[root] = []
            components_dict[root].append(element)

        return list(components_dict.values())
