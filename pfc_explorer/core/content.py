"""Select the content decoder for a cabinet record."""

import logging
from typing import Optional, Union

from .address_book import AddressEntry, AddressGroup
from .favorite import Favorite
from .mail_message import MailMessage
from .record import Record, RecordType

logger = logging.getLogger(__name__)

Content = Union[MailMessage, AddressEntry, AddressGroup, Favorite]

# Envelope type -> decoder for the data record it points to
ENVELOPE_CONTENT = {
    RecordType.MAIL_ENVELOPE: MailMessage,
    RecordType.ADDRESS_ENVELOPE: AddressEntry,
    RecordType.GROUP_ENVELOPE: AddressGroup,
    RecordType.FAVORITE_ENVELOPE: Favorite,
}

# Data record type -> decoder, for records reached without an envelope
DATA_CONTENT = {
    RecordType.MAIL_DATA: MailMessage,
    RecordType.ADDRESS_DATA: AddressEntry,
}


def content_class(record: Record):
    """Return the decoder class for an envelope or data record, or None."""
    if record.is_envelope:
        return ENVELOPE_CONTENT.get(record.record_type)
    return DATA_CONTENT.get(record.record_type)


def reconstruct(record: Record, data_record: Optional[Record] = None) -> Optional[Content]:
    """
    Decode the content behind a record.

    Args:
        record: Envelope or data record
        data_record: Data record the envelope points to (required for envelopes)

    Returns:
        Decoded content object, or None if the record carries no known content

    Raises:
        TruncatedSubItemError: If the data record is corrupt
    """
    decoder = content_class(record)
    if decoder is None:
        return None

    if record.is_envelope:
        if data_record is None:
            logger.debug(f"Envelope {record.index} has no data record")
            return None
        return decoder.from_content(data_record.content)

    return decoder.from_content(record.content)
