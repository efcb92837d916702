"""
Huffman coding over the printable ASCII alphabet (byte values 32..127)

Pipeline: count_frequencies -> build_huffman_tree -> generate_huffman_codes
          -> huffman_encode / huffman_decode

The encoded form is a str of '0' and '1' characters. The tree is never
serialized; the same HuffmanTree must be used to decode what its codes encoded.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

ALPHABET_START = 32
ALPHABET_END = 128  # exclusive


def in_alphabet(symbol: int) -> bool:
    return ALPHABET_START <= symbol < ALPHABET_END


# Errors

class HuffmanError(ValueError):
    pass


class EmptyInputError(HuffmanError):
    def __init__(self):
        super().__init__("no symbols with nonzero frequency, cannot build a Huffman tree")


class UnencodableSymbolError(HuffmanError):
    def __init__(self, symbol: int, position: int):
        self.symbol = symbol
        self.position = position
        super().__init__(f"byte {symbol} at position {position} has no code")


class MalformedBitstreamError(HuffmanError):
    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} (bit {position})")


class ResourceReadError(HuffmanError):
    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"cannot read {path}: {reason}")


# Frequency counting

@dataclass(frozen=True)
class FrequencyTable:
    counts: Tuple[int, ...] = (0,) * ALPHABET_END
    ignored: int = 0  # bytes seen outside the alphabet

    def __post_init__(self):
        counts = tuple(self.counts)
        if len(counts) != ALPHABET_END:
            raise ValueError(f"counts must have {ALPHABET_END} entries, got {len(counts)}")
        object.__setattr__(self, "counts", counts)

    @classmethod
    def count(cls, data: bytes) -> "FrequencyTable":
        counts = [0] * ALPHABET_END
        ignored = 0
        for b in data:
            if ALPHABET_START <= b < ALPHABET_END:
                counts[b] += 1
            else:
                ignored += 1
        return cls(tuple(counts), ignored)

    def __getitem__(self, symbol: int) -> int:
        if not in_alphabet(symbol):
            raise KeyError(symbol)
        return self.counts[symbol]

    def items(self) -> Iterator[Tuple[int, int]]:
        # nonzero entries only, ascending symbol order
        for symbol in range(ALPHABET_START, ALPHABET_END):
            if self.counts[symbol]:
                yield symbol, self.counts[symbol]

    @property
    def total(self) -> int:
        return sum(self.counts[ALPHABET_START:ALPHABET_END])

    @property
    def distinct(self) -> int:
        return sum(1 for c in self.counts[ALPHABET_START:ALPHABET_END] if c)

    def __len__(self) -> int:
        return self.distinct

    def as_dict(self) -> Dict[int, int]:
        return dict(self.items())


def count_frequencies(data: bytes) -> FrequencyTable:
    return FrequencyTable.count(data)


# Tree

@dataclass(frozen=True, eq=False)
class HuffmanNode: # leaf (symbol set) or internal node (symbol is None, two children)
    symbol: Optional[int]
    weight: int
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode({chr(self.symbol)!r}, {self.weight})"
        return f"HuffmanNode(None, {self.weight})"


@dataclass(frozen=True, eq=False)
class HuffmanTree:
    root: HuffmanNode

    @property
    def weight(self) -> int:
        return self.root.weight

    @property
    def is_single_leaf(self) -> bool:
        return self.root.is_leaf

    def leaves(self) -> Iterator[HuffmanNode]:
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield node
            else:
                stack.append(node.right)
                stack.append(node.left)

    @classmethod
    def build(cls, frequencies: Union[FrequencyTable, Mapping[int, int]]) -> "HuffmanTree":
        if isinstance(frequencies, FrequencyTable):
            pairs = list(frequencies.items())
        else:
            for s in frequencies:
                if not in_alphabet(s):
                    raise KeyError(s)
            pairs = sorted((s, f) for s, f in frequencies.items() if f > 0)
        if not pairs:
            raise EmptyInputError()

        # (weight, insertion order, node); the order breaks ties so equal weights pop first-in first-out
        priority_queue = [(weight, order, HuffmanNode(symbol, weight))
                          for order, (symbol, weight) in enumerate(pairs)]
        heapq.heapify(priority_queue)
        order = len(priority_queue)

        while len(priority_queue) > 1:
            _, _, left = heapq.heappop(priority_queue)
            _, _, right = heapq.heappop(priority_queue)
            merged = HuffmanNode(None, left.weight + right.weight, left, right)
            heapq.heappush(priority_queue, (merged.weight, order, merged))
            order += 1

        return cls(priority_queue[0][2])


def build_huffman_tree(frequencies: Union[FrequencyTable, Mapping[int, int]]) -> HuffmanTree:
    return HuffmanTree.build(frequencies)


# Codes

def generate_huffman_codes(tree: HuffmanTree) -> Dict[int, str]:
    """
    Walk the tree from the root, appending '0' for a left branch and '1' for a right one.
    Each leaf gets the path that reached it. A tree that is a single leaf gets "0".
    """
    if tree.is_single_leaf:
        return {tree.root.symbol: "0"}

    codes: Dict[int, str] = {}
    stack = [(tree.root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = code
            continue
        stack.append((node.right, code + "1"))
        stack.append((node.left, code + "0"))
    return codes


# Encode / decode

def huffman_encode(data: bytes, code_map: Mapping[int, str]) -> str:
    out = []
    for i, b in enumerate(data):
        code = code_map.get(b)
        if code is None:
            raise UnencodableSymbolError(b, i)
        out.append(code)
    return "".join(out)


def huffman_decode(bitstring: str, tree: HuffmanTree) -> bytes:
    """
    Follow the tree bit by bit from the root, emitting a symbol and restarting at every leaf.
    A single-leaf tree emits its symbol once per bit; the stream must be all '0' or all '1'.
    """
    root = tree.root
    decoded = bytearray()

    if root.is_leaf:
        for i, bit in enumerate(bitstring):
            if bit != "0" and bit != "1":
                raise MalformedBitstreamError(f"invalid bit {bit!r}", i)
            if bit != bitstring[0]:
                raise MalformedBitstreamError("mixed bits for a single-symbol tree", i)
            decoded.append(root.symbol)
        return bytes(decoded)

    node = root
    for i, bit in enumerate(bitstring):
        if bit == "0":
            node = node.left
        elif bit == "1":
            node = node.right
        else:
            raise MalformedBitstreamError(f"invalid bit {bit!r}", i)

        if node.is_leaf:
            decoded.append(node.symbol)
            node = root

    if node is not root:
        raise MalformedBitstreamError("bitstream ends in the middle of a code", len(bitstring))
    return bytes(decoded)
