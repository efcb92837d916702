from typing import Mapping

from huffman import FrequencyTable


def format_frequencies(table: FrequencyTable) -> str: # "<symbol> <count>" per line, ascending symbol
    return "".join(f"{chr(symbol)} {count}\n" for symbol, count in table.items())


def format_codes(code_map: Mapping[int, str]) -> str: # "<symbol> <code>" per line, ascending symbol
    return "".join(f"{chr(symbol)} {code_map[symbol]}\n" for symbol in sorted(code_map))


def average_code_length(table: FrequencyTable, code_map: Mapping[int, str]) -> float:
    """
    Mean code length in bits per symbol, weighted by frequency
    """
    total = table.total
    if total == 0:
        return 0.0
    return sum(count * len(code_map[symbol]) for symbol, count in table.items()) / total


def compression_summary(data_len: int, bit_len: int) -> str:
    baseline = data_len * 8
    ratio = bit_len / baseline if baseline else 0.0
    return f"{data_len} bytes: {baseline} bits fixed-width, {bit_len} bits encoded, ratio {ratio:.3f}"
