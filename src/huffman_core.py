# filename: huffman_core.py

from collections import Counter
from enum import Enum

from loguru import logger

from huffman_errors import EmptyInput, TableOverflow

# Arena index meaning "no parent" or "no child".
NONE = -1


class NodeKind(Enum):
    LEAF = "leaf"
    INTERNAL = "internal"
    # Zero-frequency sibling for inputs with a single distinct byte.
    PLACEHOLDER = "placeholder"


class HuffmanNode:
    def __init__(self, kind, freq, symbol=None, left=NONE, right=NONE):
        self.kind = kind
        self.symbol = symbol
        self.freq = freq
        self.parent = NONE
        self.left = left
        self.right = right

    def __repr__(self):
        return (
            f"HuffmanNode({self.kind.value}, freq={self.freq}, symbol={self.symbol}, "
            f"parent={self.parent}, left={self.left}, right={self.right})"
        )


class HuffmanTree:
    """Arena of nodes with the root at index 0.

    Children always sit at higher indices than their parent.
    """

    def __init__(self, nodes):
        self.nodes = nodes
        self.leaves = {
            node.symbol: index
            for index, node in enumerate(nodes)
            if node.kind is NodeKind.LEAF
        }

    @property
    def root(self):
        return self.nodes[0]

    def __len__(self):
        return len(self.nodes)

    def path_to_root(self, symbol):
        """Yield the bit of every edge from the leaf of ``symbol`` up to the root.

        An edge is 1 when the lower node is its parent's right child.
        """
        index = self.leaves[symbol]
        node = self.nodes[index]
        while node.parent != NONE:
            parent = self.nodes[node.parent]
            yield 1 if parent.right == index else 0
            index = node.parent
            node = parent

    def code_length(self, symbol):
        return sum(1 for _ in self.path_to_root(symbol))


class HuffmanLogic:
    def count_frequencies(self, data):
        counts = Counter(data)
        return [counts[value] for value in range(256)]

    def build_node_list(self, data):
        """Leaf nodes of the bytes present in ``data``, by ascending frequency.

        Ties keep the 0..255 scan order. A placeholder is appended when fewer
        than two distinct bytes occur.
        """
        if not data:
            raise EmptyInput()

        freqs = self.count_frequencies(data)
        nodes = [
            HuffmanNode(NodeKind.LEAF, freq, symbol=value)
            for value, freq in enumerate(freqs)
            if freq
        ]
        nodes.sort(key=lambda node: node.freq)
        if len(nodes) < 2:
            nodes.append(HuffmanNode(NodeKind.PLACEHOLDER, 0))
        return nodes

    def build_tree(self, data):
        pending = self.build_node_list(data)
        arena = [None] * (2 * len(pending) - 1)
        tail = len(arena)

        # Merge the two rarest nodes, moving them into the arena from the tail
        while True:
            first, second = pending[0], pending[1]
            del pending[:2]
            tail -= 1
            arena[tail] = first
            tail -= 1
            arena[tail] = second
            merged = HuffmanNode(
                NodeKind.INTERNAL, first.freq + second.freq, left=tail + 1, right=tail
            )
            if not pending:
                break

            position = next(
                (i for i, node in enumerate(pending) if node.freq >= merged.freq),
                len(pending),
            )
            pending.insert(position, merged)

        arena[0] = merged

        for index, node in enumerate(arena):
            for child in (node.left, node.right):
                if child != NONE:
                    arena[child].parent = index

        logger.debug(
            f"[HuffmanLogic] Built tree: {len(arena)} nodes, root freq={merged.freq}"
        )
        return HuffmanTree(arena)

    def total_bits(self, tree, data):
        # Walking once per distinct byte and weighting by count equals one walk per byte
        counts = Counter(data)
        return sum(count * tree.code_length(symbol) for symbol, count in counts.items())

    def compressed_size_info(self, tree, data):
        """Return ``(total_bytes, bits_used_in_last_byte)`` of the payload.

        A second value of 0 means the last byte is fully used.
        """
        bits = self.total_bits(tree, data)
        return (bits + 7) // 8, bits % 8

    def encode(self, tree, data, bit_count=None):
        if bit_count is None:
            bit_count = self.total_bits(tree, data)

        payload = bytearray((bit_count + 7) // 8)
        paths = {}
        cursor = bit_count

        # Codes come out leaf-first, so both the input and the bits are walked
        # backwards; the payload then reads forward MSB-first in input order.
        for symbol in reversed(data):
            path = paths.get(symbol)
            if path is None:
                path = paths[symbol] = list(tree.path_to_root(symbol))
            for bit in path:
                cursor -= 1
                if bit:
                    payload[cursor >> 3] |= 0x80 >> (cursor & 7)

        return bytes(payload)

    def build_decode_table(self, tree, offset_width=1):
        limit = (1 << (8 * offset_width)) - 1
        table = bytearray()

        for index, node in enumerate(tree.nodes):
            offsets = []
            for child in (node.left, node.right):
                offset = child - index if child != NONE else 0
                if offset > limit:
                    raise TableOverflow(len(tree), offset, offset_width)
                offsets.append(offset)

            table.append(node.symbol if node.kind is NodeKind.LEAF else 0)
            for offset in offsets:
                table += offset.to_bytes(offset_width, "big")

        return bytes(table)

    def generate_codes(self, tree, index=0, current_code="", codes=None):
        if codes is None:
            codes = {}

        node = tree.nodes[index]
        if node.kind is NodeKind.LEAF:
            codes[node.symbol] = current_code
        elif node.kind is NodeKind.INTERNAL:
            self.generate_codes(tree, node.left, current_code + "0", codes)
            self.generate_codes(tree, node.right, current_code + "1", codes)
        return codes
