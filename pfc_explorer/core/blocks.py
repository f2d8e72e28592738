"""Block and subitem decoding for cabinet data records.

A data record is a run of blocks. Each block is framed as::

    "AOLH" | total length (u32) | body ... | "AOLF"

where the total length counts both markers and the length field. A block
body is a run of subitems, each with a 3-byte header (u16 id, u8 type)
followed by a payload whose size is implied by the type code, or given by
an explicit u32 length for variable-size types.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

from .byte_codec import read_uint16_le, read_uint32_le
from .errors import TruncatedSubItemError

logger = logging.getLogger(__name__)

BLOCK_START_MARK = b'AOLH'
BLOCK_END_MARK = b'AOLF'

# start marker + length field + end marker
BLOCK_FRAME_SIZE = 12

# subitem type code -> fixed payload length
FIXED_SUBITEM_LENGTHS = {
    1: 1,
    2: 2,
    3: 2,
    4: 4,
}

SUBITEM_HEADER_SIZE = 3
VARIABLE_HEADER_SIZE = 7


@dataclass(frozen=True)
class SubItem:
    """A tagged field inside a block."""
    item_id: int
    type_code: int
    payload: bytes

    def __len__(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class Block:
    """A block body with its framing markers stripped."""
    body: bytes

    @property
    def length(self) -> int:
        return len(self.body)

    def subitems(self) -> list[SubItem]:
        return parse_subitems(self.body)


def parse_blocks(content: bytes) -> list[Block]:
    """
    Split record content into framed blocks.

    Parsing stops quietly at the first position that does not start with
    the block marker; some records carry trailing bytes after the last
    block.

    Raises:
        TruncatedSubItemError: If a block's declared length overruns the record
    """
    blocks = []
    pos = 0
    size = len(content)

    while pos + 4 <= size:
        if content[pos:pos + 4] != BLOCK_START_MARK:
            logger.debug(f"Stopped block parse at offset {pos}: no start marker")
            break

        if pos + 8 > size:
            raise TruncatedSubItemError(
                f"Block at offset {pos} has no length field"
            )
        block_len = read_uint32_le(content, pos + 4)
        if block_len < BLOCK_FRAME_SIZE:
            raise TruncatedSubItemError(
                f"Block at offset {pos} declares invalid length {block_len}"
            )

        body_end = pos + 8 + block_len - BLOCK_FRAME_SIZE
        if body_end > size:
            raise TruncatedSubItemError(
                f"Block at offset {pos} declares {block_len} bytes, "
                f"only {size - pos} remain"
            )

        blocks.append(Block(bytes(content[pos + 8:body_end])))
        pos += block_len

    return blocks


def parse_subitems(body: bytes) -> list[SubItem]:
    """
    Parse a block body into its ordered subitems.

    Raises:
        TruncatedSubItemError: If a header or payload runs past the body
    """
    items = []
    pos = 0
    size = len(body)

    while pos < size:
        if pos + SUBITEM_HEADER_SIZE > size:
            raise TruncatedSubItemError(
                f"Subitem header at offset {pos} truncated ({size - pos} bytes left)"
            )

        item_id = read_uint16_le(body, pos)
        type_code = body[pos + 2]

        if type_code in FIXED_SUBITEM_LENGTHS:
            header_size = SUBITEM_HEADER_SIZE
            length = FIXED_SUBITEM_LENGTHS[type_code]
        else:
            if pos + VARIABLE_HEADER_SIZE > size:
                raise TruncatedSubItemError(
                    f"Subitem {item_id} at offset {pos} has no length field"
                )
            header_size = VARIABLE_HEADER_SIZE
            length = read_uint32_le(body, pos + SUBITEM_HEADER_SIZE)

        start = pos + header_size
        end = start + length
        if end > size:
            raise TruncatedSubItemError(
                f"Subitem {item_id} at offset {pos} declares {length} bytes, "
                f"only {size - start} remain"
            )

        items.append(SubItem(item_id, type_code, bytes(body[start:end])))
        pos = end

    return items


def iter_block_subitems(content: bytes) -> Iterator[tuple[int, SubItem]]:
    """Yield (block number, subitem) for every subitem of a record."""
    for number, block in enumerate(parse_blocks(content)):
        for item in block.subitems():
            yield number, item
