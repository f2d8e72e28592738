"""Helpers that build synthetic cabinet bytes for tests."""

import struct
import zlib
from pathlib import Path
from typing import Optional

from pfc_explorer.core.blocks import FIXED_SUBITEM_LENGTHS
from pfc_explorer.core.record import ENVELOPE_SIZE, POINTER_OFFSETS

TEXT_TYPE = 5


def subitem(item_id: int, type_code: int, payload: bytes) -> bytes:
    """Encode one subitem; fixed-size types take no length field."""
    if type_code in FIXED_SUBITEM_LENGTHS:
        assert len(payload) == FIXED_SUBITEM_LENGTHS[type_code]
        return struct.pack('<HB', item_id, type_code) + payload
    return struct.pack('<HBI', item_id, type_code, len(payload)) + payload


def text_item(item_id: int, text: str) -> bytes:
    return subitem(item_id, TEXT_TYPE, text.encode('latin-1'))


def extended(ext_type: int, payload: bytes) -> bytes:
    """An id-12 type tag followed by the id-13 payload it describes."""
    return subitem(12, 3, struct.pack('<H', ext_type)) + subitem(13, TEXT_TYPE, payload)


def block(*items: bytes) -> bytes:
    body = b''.join(items)
    return b'AOLH' + struct.pack('<I', len(body) + 12) + body + b'AOLF'


def mail_record(*blocks: bytes) -> bytes:
    """Mail data record: a leading block with the mail marker subitem, then blocks."""
    return block(subitem(1, 2, b'\x00\x00')) + b''.join(blocks)


def mail_fields(**fields: str) -> bytes:
    """Mail data record with standard fields given by name."""
    ids = {
        "date": 5, "sender": 6, "to": 7, "cc": 8, "bcc": 9,
        "subject": 10, "screen_name": 11, "reply_to": 16, "recipient": 17,
    }
    return mail_record(block(*(text_item(ids[name], value) for name, value in fields.items())))


def address_record(first="", last="", email="", remarks="") -> bytes:
    return block(
        text_item(1, first + "\0"),
        text_item(2, last + "\0"),
        text_item(3, email + "\0"),
        text_item(4, remarks + "\0"),
    )


def deflate_chunks(text: bytes, pieces: int = 2) -> list[bytes]:
    """Raw-deflate text and split the stream into consecutive chunks."""
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    stream = compressor.compress(text) + compressor.flush()
    size = max(1, len(stream) // pieces)
    chunks = [stream[i:i + size] for i in range(0, len(stream), size)]
    return chunks


def envelope(kind: int = 0, folder: bool = False, system: bool = False,
             flags: int = 0, label: str = "", data: int = 0, next: int = 0,
             prev: int = 0, parent: int = 0, child: int = 0) -> bytes:
    """126-byte envelope record."""
    content = bytearray(ENVELOPE_SIZE)
    bits = (0x0001 if folder else 0) | (0x0100 if system else 0)
    struct.pack_into('<HH', content, 0, kind, bits)
    content[14] = flags
    encoded = label.encode('latin-1')[:80]
    content[18:18 + len(encoded)] = encoded
    pointers = {"data": data, "next": next, "prev": prev, "parent": parent, "child": child}
    for name, offset in POINTER_OFFSETS.items():
        struct.pack_into('<I', content, offset, pointers[name])
    return bytes(content)


def folder(label: str = "", **pointers) -> bytes:
    return envelope(kind=0, folder=True, label=label, **pointers)


def cabinet_bytes(records: list[Optional[bytes]]) -> bytes:
    """
    Lay out a cabinet file.

    None entries become empty index slots. The record at position 1 is the
    root, so its address also fills the root field.
    """
    out = bytearray(b'AOLVM100' + bytes(12))
    addresses = []
    for content in records:
        if content is None:
            addresses.append(0)
            continue
        addresses.append(len(out))
        out += bytes(4) + struct.pack('<I', len(content)) + content

    index_start = len(out)
    struct.pack_into('<I', out, 16, index_start)

    index_length = 4 + 4 * len(addresses)
    out += bytes(4) + struct.pack('<II', index_length, len(addresses))
    for address in addresses:
        out += struct.pack('<I', address)
    # Keep the root field readable for tiny indexes
    out += bytes(8)
    return bytes(out)


def write_cabinet(path: Path, records: list[Optional[bytes]]) -> Path:
    path.write_bytes(cabinet_bytes(records))
    return path


def sample_records() -> list[Optional[bytes]]:
    """
    A small cabinet::

        0  (empty slot)
        1  root folder "Main"
        2    folder "Inbox"
        3      mail envelope -> 4
        5    mail envelope (sent) -> 6
        7    favorites folder "Places"
        8      favorite envelope -> 9
    """
    return [
        None,
        folder("Main", child=2),
        folder("Inbox", parent=1, next=5, child=3),
        envelope(kind=12, flags=0x01, label="12/2/01\talice@x.com\tHello",
                 data=4, parent=2),
        mail_fields(date="12/2/2001 6:18:53 PM Eastern Standard Time",
                    sender="alice@x.com", to="me@y.com", subject="Hello"),
        envelope(kind=12, flags=0x05, label="12/3/01\tbob@x.com\tRe: Hello",
                 data=6, parent=1, next=7),
        mail_fields(date="12/3/01", sender="me@y.com", to="bob@x.com",
                    subject="Re: Hello"),
        folder("Places", parent=1, child=8),
        envelope(kind=2, label="Example & Co", data=9, parent=7),
        b"http://example.com/?a=1&b=2\0",
    ]
