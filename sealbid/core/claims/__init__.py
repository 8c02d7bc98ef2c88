"""
Claim merkle trees over clearing results.
"""

from sealbid.core.claims.merkle import (
    StandardMerkleTree,
    CLAIM_LEAF_ENCODING,
    TREE_FORMAT,
    build_claim_tree,
    claim_rows,
    find_claim,
    hash_pair,
    standard_leaf_hash,
)

__all__ = [
    "StandardMerkleTree",
    "CLAIM_LEAF_ENCODING",
    "TREE_FORMAT",
    "build_claim_tree",
    "claim_rows",
    "find_claim",
    "hash_pair",
    "standard_leaf_hash",
]
