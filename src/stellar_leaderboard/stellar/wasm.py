"""Minimal WebAssembly reader: custom sections only."""

from __future__ import annotations

from stellar_leaderboard.errors import CodecError

WASM_MAGIC = b"\x00asm"
CUSTOM_SECTION_ID = 0
CONTRACT_META_SECTION = "contractmetav0"


def _read_uleb128(data: bytes, pos: int) -> tuple[int, int]:
    """Decode an unsigned LEB128 at ``pos``; return (value, new_pos)."""
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise CodecError("truncated LEB128 integer in wasm module")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > 35:
            raise CodecError("LEB128 integer too long in wasm module")


def custom_sections(module: bytes, name: str) -> list[bytes]:
    """Return the payloads of every custom section called ``name``, in order.

    Raises CodecError if ``module`` is not a well-formed wasm binary.
    """
    if len(module) < 8 or module[:4] != WASM_MAGIC:
        raise CodecError("not a wasm module (bad magic)")

    pos = 8  # magic + version
    found: list[bytes] = []
    while pos < len(module):
        section_id = module[pos]
        size, pos = _read_uleb128(module, pos + 1)
        end = pos + size
        if end > len(module):
            raise CodecError(f"wasm section {section_id} overruns module")
        if section_id == CUSTOM_SECTION_ID:
            name_len, name_start = _read_uleb128(module, pos)
            name_end = name_start + name_len
            if name_end > end:
                raise CodecError("wasm custom section name overruns section")
            try:
                section_name = module[name_start:name_end].decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CodecError("wasm custom section name is not UTF-8") from exc
            if section_name == name:
                found.append(module[name_end:end])
        pos = end
    return found
