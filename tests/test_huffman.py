import dataclasses
import random

import pytest

import huffman as huff


def build_all(data: bytes):
    ft = huff.count_frequencies(data)
    tree = huff.build_huffman_tree(ft)
    return ft, tree, huff.generate_huffman_codes(tree)


# Frequencies

def test_count_abracadabra():
    ft = huff.count_frequencies(b"abracadabra")
    assert ft.as_dict() == {ord('a'): 5, ord('b'): 2, ord('c'): 1, ord('d'): 1, ord('r'): 2}
    assert ft.total == 11
    assert ft.distinct == len(ft) == 5
    assert ft[ord('z')] == 0


def test_count_empty():
    ft = huff.FrequencyTable.count(b"")
    assert ft.total == 0
    assert list(ft.items()) == []
    assert all(ft[s] == 0 for s in range(huff.ALPHABET_START, huff.ALPHABET_END))


def test_count_ignores_bytes_outside_alphabet():
    ft = huff.count_frequencies(b"a\x00\xffb\n\x7f")
    assert ft.as_dict() == {ord('a'): 1, ord('b'): 1, 127: 1}
    assert ft.ignored == 3
    assert ft.total == 3


def test_lookup_outside_alphabet_raises_keyerror():
    ft = huff.count_frequencies(b"abc")
    with pytest.raises(KeyError):
        ft[10]
    with pytest.raises(KeyError):
        ft[128]


def test_items_in_ascending_symbol_order():
    ft = huff.count_frequencies(b"zyx cba")
    symbols = [s for s, _ in ft.items()]
    assert symbols == sorted(symbols)


# Tree

def test_empty_input_raises():
    with pytest.raises(huff.EmptyInputError):
        huff.build_huffman_tree(huff.count_frequencies(b""))
    with pytest.raises(huff.EmptyInputError):
        huff.HuffmanTree.build({})
    with pytest.raises(huff.EmptyInputError):
        huff.HuffmanTree.build({ord('a'): 0})


def test_only_control_bytes_is_empty_input():
    with pytest.raises(huff.EmptyInputError):
        huff.build_huffman_tree(huff.count_frequencies(b"\n\r\t\x00"))


def test_root_weight_equals_total_frequency():
    data = b"the quick brown fox jumps over the lazy dog"
    ft, tree, _ = build_all(data)
    assert tree.weight == ft.total == len(data)


def test_every_internal_node_has_two_children():
    _, tree, _ = build_all(b"mississippi river banks")
    stack = [tree.root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            assert node.left is None and node.right is None
        else:
            assert node.symbol is None
            assert node.left is not None and node.right is not None
            assert node.weight == node.left.weight + node.right.weight
            stack += [node.left, node.right]


def test_leaves_match_nonzero_symbols():
    ft, tree, _ = build_all(b"hello world")
    assert sorted(leaf.symbol for leaf in tree.leaves()) == sorted(ft.as_dict())
    assert {leaf.symbol: leaf.weight for leaf in tree.leaves()} == ft.as_dict()


def test_build_from_plain_mapping():
    tree = huff.HuffmanTree.build({ord('x'): 3, ord('y'): 1})
    assert tree.weight == 4
    assert huff.generate_huffman_codes(tree) == {ord('y'): "0", ord('x'): "1"}


def test_single_symbol_tree_is_leaf():
    _, tree, _ = build_all(b"aaaa")
    assert tree.is_single_leaf
    assert tree.root.symbol == ord('a')
    assert tree.weight == 4


# Codes

def test_abracadabra_codes_are_deterministic():
    _, _, codes = build_all(b"abracadabra")
    assert codes == {
        ord('a'): "0",
        ord('c'): "100",
        ord('d'): "101",
        ord('b'): "110",
        ord('r'): "111",
    }


def test_codes_prefix_free():
    rng = random.Random(7)
    data = bytes(rng.choice(b"etaoin shrdlu,.ETAOIN!?") for _ in range(2000))
    _, _, codes = build_all(data)
    values = list(codes.values())
    for i, a in enumerate(values):
        assert a
        for j, b in enumerate(values):
            if i != j:
                assert not b.startswith(a)


def test_derivation_repeatable_for_same_tree():
    _, tree, codes = build_all(b"repeat derivation please")
    assert huff.generate_huffman_codes(tree) == codes
    assert huff.generate_huffman_codes(tree) == codes


def test_rebuild_gives_same_codes():
    data = b"ties everywhere: abcdabcd"
    assert build_all(data)[2] == build_all(data)[2]


def test_single_symbol_code_is_one_bit():
    _, _, codes = build_all(b"aaaa")
    assert codes == {ord('a'): "0"}


def test_zero_frequency_symbols_have_no_code():
    _, _, codes = build_all(b"abc")
    assert set(codes) == {ord('a'), ord('b'), ord('c')}


def test_deep_skewed_tree_does_not_recurse():
    # Fibonacci weights give a maximally skewed tree
    fib = [1, 1]
    while len(fib) < 40:
        fib.append(fib[-1] + fib[-2])
    freqs = {huff.ALPHABET_START + i: w for i, w in enumerate(fib)}
    tree = huff.HuffmanTree.build(freqs)
    codes = huff.generate_huffman_codes(tree)
    assert len(codes) == 40
    assert max(len(c) for c in codes.values()) == 39


# Encode / decode

def test_abracadabra_roundtrip_and_compression():
    data = b"abracadabra"
    _, tree, codes = build_all(data)
    bits = huff.huffman_encode(data, codes)
    assert bits == "01101110100010101101110"
    assert len(bits) < 8 * len(data)
    assert huff.huffman_decode(bits, tree) == data


@pytest.mark.parametrize("data", [
    b"a",
    b"ab",
    b"aaaa",
    b"hello, world!",
    b"The quick brown fox jumps over the lazy dog. 0123456789",
    bytes(range(32, 128)),
    bytes(range(32, 128)) * 3 + b"~~~~~~~~",
])
def test_roundtrip(data):
    _, tree, codes = build_all(data)
    assert huff.huffman_decode(huff.huffman_encode(data, codes), tree) == data


def test_roundtrip_random_text():
    rng = random.Random(42)
    data = bytes(rng.randrange(32, 128) for _ in range(5000))
    _, tree, codes = build_all(data)
    assert huff.huffman_decode(huff.huffman_encode(data, codes), tree) == data


def test_single_symbol_roundtrip():
    _, tree, codes = build_all(b"aaaa")
    bits = huff.huffman_encode(b"aaaa", codes)
    assert bits == "0000"
    assert huff.huffman_decode(bits, tree) == b"aaaa"
    assert huff.huffman_decode("1111", tree) == b"aaaa"


def test_encode_empty_gives_empty_bitstring():
    _, tree, codes = build_all(b"abc")
    assert huff.huffman_encode(b"", codes) == ""
    assert huff.huffman_decode("", tree) == b""


def test_encode_control_byte_raises():
    _, _, codes = build_all(b"abracadabra")
    with pytest.raises(huff.UnencodableSymbolError) as excinfo:
        huff.huffman_encode(b"ab\x00", codes)
    assert excinfo.value.symbol == 0
    assert excinfo.value.position == 2


def test_encode_unseen_symbol_raises():
    _, _, codes = build_all(b"abracadabra")
    with pytest.raises(huff.UnencodableSymbolError):
        huff.huffman_encode(b"zebra", codes)


def test_decode_truncated_bitstream_raises():
    _, tree, codes = build_all(b"abracadabra")
    bits = huff.huffman_encode(b"abracadabra", codes)
    with pytest.raises(huff.MalformedBitstreamError) as excinfo:
        huff.huffman_decode(bits[:-2], tree)
    assert excinfo.value.position == len(bits) - 2


@pytest.mark.parametrize("bits", ["1", "10", "011", "0102", "0 1", "ab"])
def test_decode_malformed_bitstreams(bits):
    _, tree, _ = build_all(b"abracadabra")
    with pytest.raises(huff.MalformedBitstreamError):
        huff.huffman_decode(bits, tree)


def test_decode_invalid_char_on_single_leaf_tree():
    _, tree, _ = build_all(b"aaaa")
    with pytest.raises(huff.MalformedBitstreamError):
        huff.huffman_decode("00x", tree)


def test_errors_are_value_errors():
    for cls in (huff.EmptyInputError, huff.UnencodableSymbolError,
                huff.MalformedBitstreamError, huff.ResourceReadError):
        assert issubclass(cls, huff.HuffmanError)
        assert issubclass(cls, ValueError)


def test_build_from_mapping_rejects_control_symbol():
    with pytest.raises(KeyError):
        huff.HuffmanTree.build({0: 3, ord('a'): 1})


def test_build_from_mapping_rejects_symbols_beyond_a_byte():
    with pytest.raises(KeyError):
        huff.HuffmanTree.build({1000: 1, 1001: 1})


def test_build_from_mapping_rejects_zero_count_outside_alphabet():
    with pytest.raises(KeyError):
        huff.HuffmanTree.build({ord('a'): 2, 200: 0})


def test_single_symbol_decode_rejects_mixed_bits():
    _, tree, _ = build_all(b"aaaa")
    with pytest.raises(huff.MalformedBitstreamError) as excinfo:
        huff.huffman_decode("0101", tree)
    assert excinfo.value.position == 1


def test_frequency_table_is_read_only():
    ft = huff.count_frequencies(b"abc")
    with pytest.raises(dataclasses.FrozenInstanceError):
        ft.ignored = 5
    with pytest.raises(TypeError):
        ft.counts[ord('a')] = 10
    assert ft[ord('a')] == 1


def test_frequency_table_rejects_short_counts():
    with pytest.raises(ValueError):
        huff.FrequencyTable(counts=[1, 2, 3])


def test_frequency_table_accepts_full_list():
    counts = [0] * huff.ALPHABET_END
    counts[ord('x')] = 4
    ft = huff.FrequencyTable(counts=counts)
    counts[ord('x')] = 99
    assert ft.as_dict() == {ord('x'): 4}


def test_tree_is_immutable():
    _, tree, _ = build_all(b"abracadabra")
    with pytest.raises(dataclasses.FrozenInstanceError):
        tree.root = huff.HuffmanNode(ord('z'), 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        tree.root.left = None
    with pytest.raises(dataclasses.FrozenInstanceError):
        tree.root.weight = 0
