"""Union-Find (Disjoint Set Union) data structure for clustering."""


class UnionFind:
    """Union-Find with iterative path compression and union by rank.

    ``find`` walks parent pointers in a loop, so arbitrarily long chains
    never hit the interpreter's recursion limit.

    Attributes
    ----------
    parent : dict[str, str]
        Parent pointers for each element.
    rank : dict[str, int]
        Rank (approximate tree height) for each root.
    """

    def __init__(self) -> None:
        """Initialize empty Union-Find structure."""
        self.parent: dict[str, str] = {}
        self.rank: dict[str, int] = {}

    def make_set(self, x: str) -> None:
        """Create a new singleton set containing x if absent."""
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0

    def find(self, x: str) -> str:
        """Find root of set containing x, compressing the path.

        Parameters
        ----------
        x : str
            Element to find.

        Returns
        -------
        str
            Root of set containing x.
        """
        if x not in self.parent:
            self.make_set(x)

        root = x
        while self.parent[root] != root:
            root = self.parent[root]

        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]

        return root

    def union(self, x: str, y: str) -> None:
        """Union sets containing x and y using union by rank."""
        root_x = self.find(x)
        root_y = self.find(y)

        if root_x == root_y:
            return

        if self.rank[root_x] < self.rank[root_y]:
            self.parent[root_x] = root_y
        elif self.rank[root_x] > self.rank[root_y]:
            self.parent[root_y] = root_x
        else:
            self.parent[root_y] = root_x
            self.rank[root_x] += 1

    def get_components(self) -> list[list[str]]:
        """Get all connected components.

        Returns
        -------
        list[list[str]]
            Components in first-seen order, elements in insertion order.
        """
        components: dict[str, list[str]] = {}
        for element in self.parent:
            components.setdefault(self.find(element), []).append(element)
        return list(components.values())
