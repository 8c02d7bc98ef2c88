"""
Standard Merkle Tree for allocation claims.

Produces the same roots, proofs and dumps as OpenZeppelin's
StandardMerkleTree ("standard-v1"), so claim contracts can verify proofs
built here:

- leaf = keccak256(keccak256(abi.encode(leaf_encoding, value)))
- leaves are sorted by hash before the tree is built
- node = keccak256(min(a, b) || max(a, b))
- the tree is a flat array: children of i at 2i+1 and 2i+2, leaves
  stored from the end of the array backwards

Properties:
----------
- Build: O(n log n) (leaf sort)
- Prove: O(log n)
- Verify: O(log n)
"""

from typing import Any, Dict, Iterator, List, Sequence, Tuple

from sealbid.core.auction import ClearingResult
from sealbid.crypto import abi_encode, bytes_to_hex, hex_to_bytes, keccak256
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import is_hex_address

logger = get_logger("claims")

TREE_FORMAT = "standard-v1"

CLAIM_LEAF_ENCODING = ("address", "uint256", "uint256")


# =============================================================================
# Tree Helpers
# =============================================================================


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes in sorted order."""
    return keccak256(a + b if a <= b else b + a)


def standard_leaf_hash(leaf_encoding: Sequence[str], value: Sequence[Any]) -> bytes:
    """Double keccak of the ABI-encoded value."""
    return keccak256(keccak256(abi_encode(leaf_encoding, value)))


def _left_child(i: int) -> int:
    return 2 * i + 1


def _right_child(i: int) -> int:
    return 2 * i + 2


def _parent(i: int) -> int:
    return (i - 1) // 2


def _sibling(i: int) -> int:
    return i + 1 if i % 2 == 1 else i - 1


def make_merkle_tree(leaves: Sequence[bytes]) -> List[bytes]:
    """Build the flat tree array from (already ordered) leaf hashes."""
    if not leaves:
        raise ValueError("Expected non-zero number of leaves")

    tree: List[bytes] = [b""] * (2 * len(leaves) - 1)
    for i, leaf in enumerate(leaves):
        tree[len(tree) - 1 - i] = leaf
    for i in range(len(tree) - 1 - len(leaves), -1, -1):
        tree[i] = hash_pair(tree[_left_child(i)], tree[_right_child(i)])
    return tree


def process_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    """Fold a proof into the root it implies."""
    current = leaf
    for sibling in proof:
        current = hash_pair(current, sibling)
    return current


# =============================================================================
# Standard Merkle Tree
# =============================================================================


class StandardMerkleTree:
    """
    OpenZeppelin-compatible merkle tree over ABI-typed values.

    Attributes:
        tree: Flat node array (bytes)
        values: [{"value": [...], "tree_index": int}] in insertion order
        leaf_encoding: ABI types of each value's fields
    """

    def __init__(self, tree: List[bytes], values: List[Dict], leaf_encoding: Sequence[str]):
        self.tree = tree
        self.values = values
        self.leaf_encoding = tuple(leaf_encoding)
        self._hash_lookup = {
            self.leaf_hash(entry["value"]): i for i, entry in enumerate(values)
        }

    @classmethod
    def of(
        cls,
        values: Sequence[Sequence[Any]],
        leaf_encoding: Sequence[str],
        sort_leaves: bool = True,
    ) -> "StandardMerkleTree":
        """
        Build a tree from values.

        Args:
            values: Rows matching leaf_encoding
            leaf_encoding: ABI types, e.g. ("address", "uint256")
            sort_leaves: Sort leaf hashes before building (OpenZeppelin default)
        """
        hashed = [
            (standard_leaf_hash(leaf_encoding, value), index)
            for index, value in enumerate(values)
        ]
        if sort_leaves:
            hashed.sort(key=lambda item: item[0])

        tree = make_merkle_tree([h for h, _ in hashed])

        indexed = [{"value": list(value), "tree_index": 0} for value in values]
        for leaf_index, (_, value_index) in enumerate(hashed):
            indexed[value_index]["tree_index"] = len(tree) - leaf_index - 1

        return cls(tree, indexed, leaf_encoding)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def root(self) -> str:
        """0x-prefixed hex root."""
        return bytes_to_hex(self.tree[0])

    def leaf_hash(self, value: Sequence[Any]) -> bytes:
        return standard_leaf_hash(self.leaf_encoding, value)

    def entries(self) -> Iterator[Tuple[int, List]]:
        """(value_index, value) in insertion order."""
        for i, entry in enumerate(self.values):
            yield i, entry["value"]

    def __len__(self) -> int:
        return len(self.values)

    def leaf_lookup(self, value: Sequence[Any]) -> int:
        """Index of value, raising ValueError if absent."""
        index = self._hash_lookup.get(self.leaf_hash(value))
        if index is None:
            raise ValueError("Leaf is not in tree")
        return index

    # =========================================================================
    # Proofs
    # =========================================================================

    def get_proof(self, leaf) -> List[str]:
        """
        Proof for a value index or a value.

        Returns:
            Sibling hashes (0x hex), leaf to root
        """
        value_index = leaf if isinstance(leaf, int) else self.leaf_lookup(leaf)
        if not 0 <= value_index < len(self.values):
            raise IndexError(f"Index {value_index} out of range")

        index = self.values[value_index]["tree_index"]
        proof = []
        while index > 0:
            proof.append(self.tree[_sibling(index)])
            index = _parent(index)

        expected = self.leaf_hash(self.values[value_index]["value"])
        if process_proof(expected, proof) != self.tree[0]:
            raise ValueError("Unable to prove value")
        return [bytes_to_hex(p) for p in proof]

    def verify(self, leaf, proof: Sequence[str]) -> bool:
        """Check a proof for a value index or value against this root."""
        value = self.values[leaf]["value"] if isinstance(leaf, int) else leaf
        return self.verify_proof(self.root, self.leaf_encoding, value, proof)

    @staticmethod
    def verify_proof(
        root: str,
        leaf_encoding: Sequence[str],
        value: Sequence[Any],
        proof: Sequence[str],
    ) -> bool:
        """Check a proof without the tree."""
        leaf = standard_leaf_hash(leaf_encoding, value)
        return process_proof(leaf, [hex_to_bytes(p) for p in proof]) == hex_to_bytes(root)

    # =========================================================================
    # Serialization
    # =========================================================================

    def dump(self) -> Dict:
        """Dump in OpenZeppelin's standard-v1 JSON layout."""
        return {
            "format": TREE_FORMAT,
            "leafEncoding": list(self.leaf_encoding),
            "tree": [bytes_to_hex(node) for node in self.tree],
            "values": [
                {"value": entry["value"], "treeIndex": entry["tree_index"]}
                for entry in self.values
            ],
        }

    @classmethod
    def load(cls, data: Dict) -> "StandardMerkleTree":
        """Load a standard-v1 dump, checking its integrity."""
        if data.get("format") != TREE_FORMAT:
            raise ValueError(f"Unknown format '{data.get('format')}'")

        tree = cls(
            tree=[hex_to_bytes(node) for node in data["tree"]],
            values=[
                {"value": entry["value"], "tree_index": entry["treeIndex"]}
                for entry in data["values"]
            ],
            leaf_encoding=data["leafEncoding"],
        )
        tree.validate()
        return tree

    def validate(self) -> None:
        """
        Check every stored value sits at its leaf and every node hashes its
        children.
        """
        for entry in self.values:
            index = entry["tree_index"]
            if not 0 <= index < len(self.tree) or _left_child(index) < len(self.tree):
                raise ValueError(f"Index {index} is not a leaf")
            if self.tree[index] != self.leaf_hash(entry["value"]):
                raise ValueError("Merkle tree does not contain the expected value")

        for i in range(len(self.tree)):
            if _right_child(i) < len(self.tree):
                if self.tree[i] != hash_pair(self.tree[_left_child(i)], self.tree[_right_child(i)]):
                    raise ValueError("Merkle tree is invalid")


# =============================================================================
# Claims
# =============================================================================


def claim_rows(result: ClearingResult) -> List[List[str]]:
    """[address, asset_amount, used_payment] for every bidder with asset."""
    return [
        [address, str(a.asset_amount), str(a.used_payment)]
        for address, a in result.filled()
    ]


def build_claim_tree(result: ClearingResult) -> StandardMerkleTree:
    """
    Build the claim tree for a clearing result.

    Only bidders that received asset get a leaf; refunds are claimed
    outside the tree.

    Raises:
        ValueError: undersubscribed result (nothing to claim) or a filled
            bidder whose address is not a 0x hex address
    """
    rows = claim_rows(result)
    if not rows:
        raise ValueError("No allocations to claim")

    for address, _, _ in rows:
        if not is_hex_address(address):
            raise ValueError(f"Claim address must be 0x hex: {address!r}")

    tree = StandardMerkleTree.of(rows, CLAIM_LEAF_ENCODING)
    logger.info(f"Claim tree built: {len(rows)} leaves, root={tree.root}")
    return tree


def find_claim(tree: StandardMerkleTree, address: str) -> Tuple[List, List[str]]:
    """
    Find an address's claim value and proof.

    Raises:
        KeyError: address has no leaf
    """
    wanted = address.lower()
    for index, value in tree.entries():
        if str(value[0]).lower() == wanted:
            return value, tree.get_proof(index)
    raise KeyError(f"No claim for {address}")
